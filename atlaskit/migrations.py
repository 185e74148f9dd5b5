"""Checks of the database schema migration version."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Protocol


class MigrationVersionError(Exception):
    """Raised when the database migration version is unacceptable."""


class _Validator(Protocol):
    def validate(self, version: int) -> None: ...


@dataclass(frozen=True)
class VersionRange:
    """Accepts versions between lower and upper inclusive."""

    lower: int
    upper: int

    def validate(self, version: int) -> None:
        if version < self.lower:
            raise MigrationVersionError(
                f"Database at version {version}, lower than requirement of {self.lower}"
            )
        if version > self.upper:
            raise MigrationVersionError(
                f"Database at version {version}, higher than requirement of {self.upper}"
            )


@dataclass(frozen=True)
class VersionExactly:
    """Accepts exactly one version."""

    target: int

    def validate(self, version: int) -> None:
        if version != self.target:
            raise MigrationVersionError(
                f"Database at version {version}, not equal to requirement of {self.target}"
            )


def max_version_from(path: str | os.PathLike) -> VersionExactly:
    """Require the highest version among the .sql migration files in path."""
    target = 0
    with os.scandir(path) as entries:
        for entry in sorted(entries, key=lambda e: e.name):
            name = entry.name
            if entry.is_dir() or "." not in name:
                continue
            if name[name.rindex("."):] != ".sql":
                continue
            parts = name.split("_")
            if len(parts) < 2:
                raise MigrationVersionError(
                    f'Filename "{name}" does not match migration file naming requirements '
                    "##_name.[up/down].sql"
                )
            try:
                version = int(parts[0])
            except ValueError as exc:
                raise MigrationVersionError(f"invalid migration version in {name!r}") from exc
            target = max(target, version)
    return VersionExactly(target)


def verify_migration_version(connection: Any, validator: _Validator) -> None:
    """Check the schema_migrations row of a DB-API connection against validator."""
    cursor = connection.cursor()
    try:
        cursor.execute("SELECT * FROM schema_migrations")
        row = cursor.fetchone()
    finally:
        cursor.close()
    if row is None:
        raise MigrationVersionError("no rows in schema_migrations")
    version, dirty = int(row[0]), bool(row[1])
    if dirty:
        raise MigrationVersionError(f"Database at version {version}, but is dirty")
    validator.validate(version)