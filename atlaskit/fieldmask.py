"""Copying selected fields from one object to another."""

from __future__ import annotations

import copy
import dataclasses
from typing import Any, Iterable

from .models import find_field, indirect_type


class FieldMaskError(ValueError):
    """Raised when a field mask cannot be applied."""


def _zero(dst: Any, name: str) -> Any:
    field = find_field(type(dst), name)
    tp = indirect_type(field.type) if field is not None else None
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return tp()
    return None


def merge_with_mask(source: Any, dest: Any, paths: Iterable[str] | None) -> None:
    """Copy the fields of source named by dotted paths onto dest."""
    paths = list(paths or [])
    if not paths:
        return
    if source is None:
        raise FieldMaskError("Source object is nil")
    if dest is None:
        raise FieldMaskError("Destination object is nil")
    if type(source) is not type(dest):
        raise FieldMaskError("Types of source and destination objects do not match")

    for full_path in paths:
        parts = full_path.split(".")
        src, dst = source, dest
        for i, part in enumerate(parts):
            if not (dataclasses.is_dataclass(dst) and not isinstance(dst, type)):
                break
            if find_field(type(dst), part) is None:
                raise FieldMaskError(
                    f'Field path "{full_path}" doesn\'t exist in type {type(source).__name__}'
                )
            value = getattr(src, part) if src is not None else None
            if i == len(parts) - 1:
                if dataclasses.is_dataclass(value):
                    value = copy.copy(value)
                setattr(dst, part, value)
                break
            nested = getattr(dst, part)
            if nested is None:
                nested = _zero(dst, part)
                setattr(dst, part, nested)
            src, dst = value, nested