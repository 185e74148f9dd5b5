"""Field selection: parsing selections and working out which associations to preload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .models import (
    _struct_type,
    atlas_tag,
    find_field,
    gorm_tag,
    indirect_type,
    is_model,
    model_fields,
)
from .naming import camel_case, to_db_name


@dataclass
class Field:
    """A selected field and, when it names an association, its selected sub-fields."""

    name: str
    subs: dict[str, Field] | None = None


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", str(tp))


def parse_field_selection(text: str) -> dict[str, Field] | None:
    """Parse "a,b.c" into a tree of fields; an empty selection gives None."""
    fields: dict[str, Field] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        parts = [part.strip() for part in item.split(".")]
        level = fields
        for i, part in enumerate(parts):
            node = level.get(part)
            if node is None:
                node = level[part] = Field(part)
            if i < len(parts) - 1:
                if node.subs is None:
                    node.subs = {}
                level = node.subs
    return fields or None


def _lookup_field(tp: Any, query_name: str):
    found = find_field(tp, camel_case(query_name))
    if found is not None:
        return found
    target = query_name.replace("_", "").lower()
    candidates = [f for f in model_fields(tp) if f.name.casefold() == target.casefold()]
    return candidates[0] if len(candidates) == 1 else None


def _preload_everything(tp: Any, path: list[Any]) -> list[str]:
    if not is_model(tp):
        raise ValueError(f"{_type_name(tp)} is not a model")
    to_preload: list[str] = []
    for field in model_fields(tp):
        field_type = indirect_type(field.type)
        if any(field_type is ancestor for ancestor in path):
            continue
        if not is_model(field_type):
            continue
        if gorm_tag(field, "preload") == "false":
            continue
        sub = _preload_everything(field_type, [*path, tp])
        to_preload.extend(f"{field.name}.{name}" for name in sub)
        to_preload.append(field.name)
    return to_preload


def _handle_preloads(selected: Field, tp: Any) -> list[str]:
    field = _lookup_field(tp, selected.name)
    if field is None:
        return []
    field_type = indirect_type(field.type)
    if selected.subs is None:
        return [field.name] if is_model(field_type) else []
    if not is_model(field_type):
        raise ValueError(
            f"{selected.name} is expected to be a model, but got {_type_name(field_type)}"
        )
    to_preload: list[str] = []
    for key in sorted(selected.subs):
        sub = _handle_preloads(selected.subs[key], field_type)
        to_preload.extend(f"{field.name}.{name}" for name in sub)
    to_preload.append(field.name)
    return to_preload


def field_selection_to_preloads(selection: Mapping[str, Field] | None, model: Any) -> list[str]:
    """Return the associations of model to preload for a field selection.

    Without a selection every association is preloaded, except those tagged
    "preload:false" and those that would lead back to an enclosing model.
    """
    tp = _struct_type(model)
    if selection is None:
        return _preload_everything(tp, [])
    to_preload: list[str] = []
    for key in sorted(selection):
        to_preload.extend(_handle_preloads(selection[key], tp))
    return to_preload


def field_selection_string_to_preloads(text: str, model: Any) -> list[str]:
    """Parse a field selection string and return the associations to preload."""
    return field_selection_to_preloads(parse_field_selection(text), model)


def preload_order(model: Any, assoc: str) -> str | None:
    """Check that a dotted association path exists and return the column its rows are ordered by.

    The order comes from the "position" atlas tag of the last association;
    None means no ordering.
    """
    tp = _struct_type(model)
    if not is_model(tp):
        raise ValueError(f"{_type_name(tp)} is not a model")
    parts = assoc.split(".")
    for i, part in enumerate(parts):
        field = find_field(tp, part)
        if field is None:
            raise LookupError(f"cannot find {part} in {_type_name(tp)}")
        tp = indirect_type(field.type)
        if not is_model(tp):
            raise ValueError(f"{_type_name(tp)} is not a model")
        if i == len(parts) - 1:
            position = atlas_tag(field, "position")
            return None if position is None else to_db_name(position)
    raise ValueError("cannot preload empty association")