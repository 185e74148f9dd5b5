"""Introspection of dataclass models: table and column names, tags and field paths."""

from __future__ import annotations

import builtins
import collections.abc
import dataclasses
import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Mapping

from .naming import camel_case, plural, to_db_name


@dataclass
class Jsonb:
    """A JSONB column value."""

    value: Any = None


class EmptyFieldPathError(ValueError):
    """Raised when an empty field path is resolved."""

    def __init__(self) -> None:
        super().__init__("Empty field path is not allowed")


class _FieldPathError(LookupError):
    """A field path that cannot be resolved against a model."""


@dataclass(frozen=True)
class _StructField:
    name: str
    type: Any
    tags: Mapping[str, str]


_SEQUENCE_NAMES = {"list", "List", "tuple", "Tuple", "Sequence"}
_OPTIONAL_NAMES = {"Optional"}


def _split_generic(text: str) -> tuple[str, str] | None:
    """Split "Name[inner]" into ("Name", "inner"), or return None."""
    if not text.endswith("]") or "[" not in text:
        return None
    head, _, rest = text.partition("[")
    return head.strip().rsplit(".", 1)[-1], rest[:-1].strip()


def _resolve_name(name: str, owner: type) -> Any:
    name = name.strip().strip("'\"")
    if name == "None":
        return type(None)
    short = name.rsplit(".", 1)[-1]
    module = inspect.getmodule(owner)
    for namespace in (module, typing, builtins):
        if namespace is not None and hasattr(namespace, short):
            return getattr(namespace, short)
    if short == owner.__name__:
        return owner
    return name


def _resolve_annotation(annotation: Any, owner: type) -> Any:
    """Turn a string annotation into a type without evaluating it."""
    if not isinstance(annotation, str):
        return annotation
    text = annotation.strip()
    if "|" in text:
        parts = [p.strip() for p in text.split("|")]
        non_null = [p for p in parts if p != "None"]
        if len(non_null) == 1:
            return typing.Optional[_resolve_annotation(non_null[0], owner)]
        return text
    generic = _split_generic(text)
    if generic is not None:
        head, inner = generic
        if head in _OPTIONAL_NAMES:
            return typing.Optional[_resolve_annotation(inner, owner)]
        if head in _SEQUENCE_NAMES:
            element = _resolve_annotation(inner.split(",")[0], owner)
            return list[element] if head in ("list", "List", "Sequence") else tuple[element, ...]
        return _resolve_name(head, owner)
    return _resolve_name(text, owner)


def indirect_type(tp: Any) -> Any:
    """Strip Optional and sequence wrappers from a type hint."""
    while True:
        origin = typing.get_origin(tp)
        if origin in (typing.Union, types.UnionType):
            args = [a for a in typing.get_args(tp) if a is not type(None)]
            if len(args) != 1:
                return tp
            tp = args[0]
        elif origin in (list, tuple, collections.abc.Sequence):
            args = typing.get_args(tp)
            if not args:
                return tp
            tp = args[0]
        else:
            return tp


def _struct_type(model: Any) -> Any:
    tp = model if isinstance(model, type) or typing.get_origin(model) else type(model)
    return indirect_type(tp)


def model_fields(model: Any) -> list[_StructField]:
    """Return the fields of a dataclass model with resolved type hints."""
    tp = _struct_type(model)
    if not (isinstance(tp, type) and dataclasses.is_dataclass(tp)):
        return []
    return [
        _StructField(f.name, _resolve_annotation(f.type, tp), dict(f.metadata))
        for f in dataclasses.fields(tp)
    ]


def find_field(model: Any, name: str) -> _StructField | None:
    """Return the field called name in model, or None."""
    return next((f for f in model_fields(model) if f.name == name), None)


def is_model(tp: Any) -> bool:
    """Tell whether a type is a model (a dataclass or a list) rather than a scalar value."""
    origin = typing.get_origin(tp)
    if origin in (list, tuple) or tp in (list, tuple):
        return True
    return isinstance(tp, type) and dataclasses.is_dataclass(tp) and not issubclass(tp, Jsonb)


def _extract_tag(field: _StructField, tag: str, sub_tag: str) -> str | None:
    for item in field.tags.get(tag, "").split(";"):
        key = value = ""
        key_value = item.split(":")
        if len(key_value) == 2:
            key, value = key_value
        elif len(key_value) == 1:
            key = key_value[0]
        if key.lower() == sub_tag.lower():
            return value
    return None


def gorm_tag(field: _StructField, tag: str) -> str | None:
    """Value of tag within the field's "gorm" metadata, or None when absent."""
    return _extract_tag(field, "gorm", tag)


def atlas_tag(field: _StructField, tag: str) -> str | None:
    """Value of tag within the field's "atlas" metadata, or None when absent."""
    return _extract_tag(field, "atlas", tag)


def table_name(model: Any) -> str:
    """Table name of a model: its __tablename__, else the plural snake_case class name."""
    tp = _struct_type(model)
    explicit = getattr(tp, "__tablename__", None)
    if isinstance(explicit, str):
        return explicit
    return plural(to_db_name(tp.__name__))


def column_name(field: _StructField) -> str:
    """Column name of a field: its "column" tag, else its snake_case name."""
    tagged = gorm_tag(field, "column")
    if tagged is not None:
        return tagged
    return to_db_name(field.name)


def _field_path_to_db_name(field_path: list[str], model: Any) -> str:
    tp = _struct_type(model)
    alias = ""
    last = len(field_path) - 1
    for i, part in enumerate(field_path):
        if not is_model(tp):
            raise _FieldPathError(f"{tp}: non-last field of {field_path} field path should be a model")
        field = find_field(tp, camel_case(part))
        if field is None:
            raise _FieldPathError(f"Cannot find field {part} in {tp.__name__}")
        if i < last:
            tp = indirect_type(field.type)
            alias = part
        else:
            if is_model(indirect_type(field.type)):
                raise _FieldPathError(f"{tp}: last field of {field_path} field path should be a model")
            prefix = alias or table_name(tp)
            return f"{prefix}.{column_name(field)}"
    raise EmptyFieldPathError()


def handle_field_path(field_path: list[str], model: Any) -> tuple[str, str]:
    """Resolve a field path to (db name, association to join).

    Paths that cannot be resolved are returned joined as they are, to allow
    tables joined by a third party.
    """
    if len(field_path) > 2:
        raise ValueError("Field path longer than 2 is not supported")
    try:
        db_path = _field_path_to_db_name(field_path, model)
    except _FieldPathError:
        return ".".join(field_path), ""
    if len(field_path) == 2:
        return db_path, camel_case(field_path[0])
    return db_path, ""


def _is_raw_json(values: tuple[str, ...]) -> bool:
    if not values:
        return False
    return all(v.strip().startswith("{") and v.strip().endswith("}") for v in values)


def handle_json_field_path(field_path: list[str], model: Any, *args: str) -> tuple[str, str]:
    """Translate a field path into a Postgres JSONB path expression."""
    operator = "#>" if _is_raw_json(args) else "#>>"
    try:
        db_path = _field_path_to_db_name(field_path[:1], model)
    except _FieldPathError:
        db_path = field_path[0]
    if len(field_path) == 1:
        return db_path, ""
    return f"{db_path} {operator} '{{{','.join(field_path[1:])}}}'", ""


def is_json_condition(field_path: list[str], model: Any) -> bool:
    """Tell whether the first field of the path is a JSONB column."""
    field = find_field(_struct_type(model), camel_case(field_path[0]))
    if field is None:
        return False
    tp = indirect_type(field.type)
    return isinstance(tp, type) and issubclass(tp, Jsonb)