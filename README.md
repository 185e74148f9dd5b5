# atlaskit

Helpers for services that sit on top of a relational database. Models are
plain dataclasses; per-field options such as foreign keys or column names go
in the field's `metadata` under the keys `"gorm"` and `"atlas"`, as
`"key:value;key:value"` strings. The package uses only the standard library.

## Modules

- `atlaskit.naming`: `to_db_name` (CamelCase to snake_case database names),
  `camel_case`, `camel_to_snake` and `plural`.
- `atlaskit.models`: model introspection. `table_name`, `column_name`,
  `model_fields`, `gorm_tag`, `atlas_tag`, `is_model`, and the field path helpers
  `handle_field_path`, `handle_json_field_path` and `is_json_condition`. A field
  typed `Jsonb` is treated as a PostgreSQL JSONB column.
- `atlaskit.joins`: `join_info` returns a `JoinInfo` (table name, source keys,
  target keys) for an association. `join_associations` builds `LEFT JOIN` clauses.
- `atlaskit.fields`: `parse_field_selection`, `field_selection_to_preloads`,
  `field_selection_string_to_preloads` and `preload_order`.
- `atlaskit.fieldmask`: `merge_with_mask` copies the fields named by dotted
  paths from one object to another.
- `atlaskit.searching`: `full_text_search_db_mask` and `full_text_search_query`
  build PostgreSQL `to_tsvector` conditions.
- `atlaskit.migrations`: `VersionRange`, `VersionExactly`, `max_version_from`
  and `verify_migration_version`.
- `atlaskit.transaction`: a `Transaction` that is opened lazily, at most once per
  request, and is kept in a context variable. The module also provides
  interceptors that commit or roll it back.
- `atlaskit.resource`: `Identifier` values (`application/type/id`) and a
  `Registry` of codecs. Module-level functions work on a default registry.
- `atlaskit.health`: `ChecksHandler` and `ChecksContextHandler`, WSGI
  applications that serve liveness and readiness endpoints.
- `atlaskit.checks`: `dns_probe_check` and `http_get_check`.
- `atlaskit.network`: `get_open_port_in_range` and `get_open_port`.
- `atlaskit.processes`: `run_binary`, `build_go_source` and `run_container`.
- `atlaskit.postgres`: `PostgresDB` and `new_test_postgres_db`, for a throwaway
  PostgreSQL server run in Docker.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Field paths

```python
from dataclasses import dataclass, field
from atlaskit.models import handle_field_path

@dataclass
class Child:
    name: str = ""

@dataclass
class Human:
    __tablename__ = "db_humans"
    name: str = ""
    age: int = field(default=0, metadata={"gorm": "column:years"})
    child: Child | None = None

handle_field_path(["name"], Human)           # ("db_humans.name", "")
handle_field_path(["age"], Human)            # ("db_humans.years", "")
handle_field_path(["child", "name"], Human)  # ("child.name", "Child")
```

The parts of a path are snake_case. They are matched against CamelCase field
names. An empty path raises `EmptyFieldPathError`, and a path longer than two
parts raises `ValueError`. A path that cannot be resolved is returned joined with
dots, so that columns of tables joined elsewhere can still be used.

## Joins

`join_info(Model, "Parent")` reads the `foreignkey` and
`association_foreignkey` tags of the `Parent` field. It returns the joined table
and the key columns on each side. `join_associations(Model, ["Parent"])` gives
clauses such as `LEFT JOIN parents parent ON people.parent_id = parent.id`.

## Preloading associations

```python
from atlaskit.fields import field_selection_string_to_preloads

field_selection_string_to_preloads("sub_model.sub_sub_model", Model)
# ["SubModel.SubSubModel", "SubModel"]
```

An empty selection preloads every association of the model. Associations
tagged `preload:false` are skipped, and so are those that would lead back to an
enclosing model. `preload_order` checks an association path. It returns the
column named by the association's `position` atlas tag, or `None`.

## Field masks

```python
from atlaskit.fieldmask import merge_with_mask

merge_with_mask(source, dest, ["FieldB.FieldOne", "FieldA.FieldTwo"])
```

Nested objects that are `None` in `dest` are created on the way. An unknown
field, a `None` object or mismatched types raise `FieldMaskError`. An empty mask
does nothing.

## Migration versions

```python
from atlaskit.migrations import VersionRange, max_version_from, verify_migration_version

validator = max_version_from("migrations")   # VersionExactly(<highest NN_ in *.sql>)
verify_migration_version(connection, VersionRange(1, 4))
```

`verify_migration_version` takes a DB-API connection and reads the
`schema_migrations` row. A version out of range or a dirty database raises
`MigrationVersionError`.

## Transactions

```python
from atlaskit.transaction import begin_from_context, unary_server_interceptor

interceptor = unary_server_interceptor(db)

def handler(request):
    handle = begin_from_context()   # db.begin(None), once per request
    ...

interceptor(request, handler)
```

`db` is any object whose `begin(options)` returns a handle with `commit()` and
`rollback()`. The interceptor commits when the handler returns and rolls back
when it raises. After a successful commit it runs the hooks added with
`Transaction.add_after_commit_hook`. `begin_from_context` raises
`TransactionMissingError` outside `use_transaction`, and
`TransactionNoDBError` when the transaction has no database. Rolling back a
handle whose `closed` attribute is true raises `DatabaseUnavailableError`.

## Resource identifiers

```python
from atlaskit import resource

resource.register_application("simpleapp")
identifier = resource.encode(None, "externalapp/external_resource/id")
resource.decode(None, identifier)  # "externalapp/external_resource/id"
```

Register a codec (an object with `encode` and `decode`) for a message type with
`register_codec`, and it takes over conversion for that type. Registering a
second codec for the same type, or a second application name, raises
`RegistrationError`. Mismatched application or resource names raise
`ResourceError`. `set_plural` and `set_return_empty` change how names and empty
values are produced.

## Health endpoints

```python
from atlaskit.checks import http_get_check
from atlaskit.health import ChecksHandler

app = ChecksHandler("/healthz", "/ready")
app.add_readiness("upstream", http_get_check("http://localhost:8080/status", 5.0))
```

`ChecksHandler` is a WSGI application. A check returns on success and raises on
failure. On each path, a `GET` answers `200` when all of that path's checks pass
and `503` when any of them fails. Any other method answers `405`, and unknown
paths answer `404`. With `fail_fast=True` the checks stop at the first failure.
`ChecksContextHandler` calls each check with the request's WSGI environ.
`status_for(method, path)` gives the status without a server.

## Integration test helpers

```python
from atlaskit.network import get_open_port_in_range
from atlaskit.postgres import new_test_postgres_db

port = get_open_port_in_range(35000, 36000)
db = new_test_postgres_db(db_name="orders")
kill = db.run_as_docker_container()
```

`PortError` is raised when no port in the range is free, or when the bounds lie
outside `0..65535`. `PostgresDB.reset` and connection checks against the server
need a `connector`, a callable that opens a DB-API connection from `dsn()`.
Without one, `check_connection` only probes the TCP port.

## What the package does not do

The package does not parse filter expressions. It does not apply filtering,
sorting or pagination to a query, and it does not run queries itself. It returns
SQL fragments, join clauses and preload lists for the caller's own database
layer to use. It ships no database driver and no HTTP server: connections come
from the caller, and the health endpoints need a WSGI server to be served.