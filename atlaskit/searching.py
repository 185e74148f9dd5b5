"""Postgres full-text search expressions built from model fields."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Sequence

from .models import indirect_type, model_fields
from .naming import camel_case


def full_text_search_db_mask(obj: Any, fields: Sequence[str], separator: str) -> str:
    """Build the text expression searched over for the given fields of obj."""
    if not dataclasses.is_dataclass(obj) or isinstance(obj, type):
        return ""
    by_name = {f.name: f for f in model_fields(obj)}
    glue = f" || '{separator}' || "
    mask = ""
    last = len(fields) - 1
    for i, name in enumerate(fields):
        field = by_name.get(camel_case(name))
        if field is None:
            continue
        value = getattr(obj, field.name)
        if isinstance(value, (bool, int)):
            piece = name
        elif isinstance(value, str):
            piece = glue.join([name, f"replace({name}, '@', ' ')", f"replace({name}, '.', ' ')"])
        elif isinstance(value, datetime) or (value is None and indirect_type(field.type) is datetime):
            piece = f"coalesce(to_char({name}, 'MM/DD/YY HH:MI pm'), '')"
        else:
            continue
        mask += piece
        if i != last:
            mask += glue
    return mask


def full_text_search_query(mask: str) -> str:
    """Wrap a mask into a full-text search condition with one placeholder."""
    return f"to_tsvector('simple', {mask}) @@ to_tsquery('simple', ?)"