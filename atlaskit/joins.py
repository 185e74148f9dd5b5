"""Join information for model associations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .models import _struct_type, column_name, find_field, gorm_tag, indirect_type, table_name
from .naming import to_db_name


@dataclass(frozen=True)
class JoinInfo:
    """Table of an association and the key columns joining it."""

    table_name: str
    source_keys: list[str]
    target_keys: list[str]


def _parse_parent_child(assoc, assoc_child, parent, child, assoc_keys, foreign_keys):
    parent_table = table_name(parent)
    child_table = table_name(child)
    alias = to_db_name(assoc)
    db_assoc_keys = []
    for key in assoc_keys:
        field = find_field(parent, key)
        if field is None:
            raise LookupError(f"Association key {key} is not found in {parent.__name__}")
        prefix = parent_table if assoc_child else alias
        db_assoc_keys.append(f"{prefix}.{column_name(field)}")
    db_foreign_keys = []
    for key in foreign_keys:
        field = find_field(child, key)
        if field is None:
            raise LookupError(f"Foreign key {key} is not found in {child.__name__}")
        prefix = alias if assoc_child else child_table
        db_foreign_keys.append(f"{prefix}.{column_name(field)}")
    return parent_table, child_table, db_assoc_keys, db_foreign_keys


def join_info(model: Any, assoc: str) -> JoinInfo:
    """Return table name and join keys for the association assoc of model."""
    tp = _struct_type(model)
    field = find_field(tp, assoc)
    if field is None:
        raise LookupError(f"Cannot find field {assoc} in {tp.__name__}")
    assoc_key = gorm_tag(field, "association_foreignkey")
    if assoc_key is None:
        raise ValueError(f"association_foreignkey tag is absent in {tp.__name__}")
    foreign_key = gorm_tag(field, "foreignkey")
    if foreign_key is None:
        raise ValueError(f"foreignkey tag is absent in {tp.__name__}")
    assoc_keys = assoc_key.split(",")
    foreign_keys = foreign_key.split(",")
    if len(assoc_keys) != len(foreign_keys):
        raise ValueError(
            f"{tp.__name__}: the number of association keys is not equal to the number "
            f"of foreign keys in {assoc} association"
        )
    assoc_type = indirect_type(field.type)
    try:
        _, child_table, db_assoc, db_fk = _parse_parent_child(
            assoc, True, tp, assoc_type, assoc_keys, foreign_keys
        )
    except LookupError:
        parent_table, _, db_assoc, db_fk = _parse_parent_child(
            assoc, False, assoc_type, tp, assoc_keys, foreign_keys
        )
        return JoinInfo(parent_table, db_fk, db_assoc)
    return JoinInfo(child_table, db_assoc, db_fk)


def join_associations(model: Any, assocs: Iterable[str]) -> list[str]:
    """Build LEFT JOIN clauses for the given associations of model."""
    joins = []
    for assoc in assocs:
        info = join_info(model, assoc)
        pairs = " AND ".join(f"{s} = {t}" for s, t in zip(info.source_keys, info.target_keys))
        joins.append(f"LEFT JOIN {info.table_name} {to_db_name(assoc)} ON {pairs}")
    return joins