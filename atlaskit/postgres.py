"""A disposable Postgres database for integration tests."""

from __future__ import annotations

import contextlib
import socket
import time
from dataclasses import dataclass
from typing import Any, Callable, ClassVar

from .network import PORT_RANGE_MAX, get_open_port_in_range
from .processes import run_container

PASSWORD = "password"

_RESET_QUERY = (
    "DROP SCHEMA public CASCADE;"
    "CREATE SCHEMA public;"
    "GRANT ALL ON SCHEMA public TO postgres;"
    "GRANT ALL ON SCHEMA public TO public;"
)


class TestDatabaseError(Exception):
    """Raised when the test database cannot be used."""

    __test__ = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"testing database error: {message}")


@dataclass
class PostgresDB:
    """Settings of a test Postgres database.

    connector, when given, opens a DB-API connection from a DSN; it is needed
    by reset() and makes check_connection() connect instead of probing the port.
    """

    port: int
    db_name: str = "test-postgres-db"
    db_user: str = "postgres"
    db_password: str = PASSWORD
    db_version: str = "latest"
    migrate_up: Callable[[Any], Any] | None = None
    migrate_down: Callable[[Any], Any] | None = None
    timeout: float = 10.0
    connector: Callable[[str], Any] | None = None
    poll_interval: float = 0.5

    driver_name: ClassVar[str] = "postgres"

    def dsn(self) -> str:
        """The connection string of the database."""
        return (
            f"host=localhost port={self.port} user={self.db_user} "
            f"password={self.db_password} sslmode=disable dbname={self.db_name}"
        )

    def _connect(self) -> Any:
        if self.connector is None:
            raise TestDatabaseError("no database connector configured")
        return self.connector(self.dsn())

    def reset(self) -> None:
        """Drop all tables, then rebuild them with migrate_up if it is set.

        migrate_down, when set, replaces dropping the public schema; its
        failures are ignored.
        """
        conn = self._connect()
        try:
            if self.migrate_down is not None:
                with contextlib.suppress(Exception):
                    self.migrate_down(conn)
            else:
                cursor = conn.cursor()
                try:
                    cursor.execute(_RESET_QUERY)
                finally:
                    cursor.close()
                commit = getattr(conn, "commit", None)
                if commit is not None:
                    commit()
            if self.migrate_up is not None:
                self.migrate_up(conn)
        finally:
            conn.close()

    def _ping(self) -> None:
        if self.connector is not None:
            self.connector(self.dsn()).close()
        else:
            socket.create_connection(("localhost", self.port), timeout=self.poll_interval).close()

    def check_connection(self) -> None:
        """Poll the database until it answers, or raise after timeout seconds."""
        deadline = time.monotonic() + self.timeout
        while True:
            time.sleep(self.poll_interval)
            try:
                self._ping()
                return
            except Exception:
                pass
            if time.monotonic() >= deadline:
                raise TestDatabaseError("database connection timed out")

    def run_as_docker_container(self) -> Callable[[], None]:
        """Start the database in a Docker container; return a function that kills it."""
        cleanup = run_container(
            f"postgres:{self.db_version}",
            [
                f"--publish={self.port}:5432",
                f"--env=POSTGRES_DB={self.db_name}",
                f"--env=POSTGRES_PASSWORD={self.db_password}",
                f"--env=POSTGRES_USER={self.db_user}",
                "--detach",
                "--rm",
            ],
            [],
        )
        try:
            self.check_connection()
        except Exception:
            with contextlib.suppress(Exception):
                cleanup()
            raise
        return cleanup


def new_test_postgres_db(**kwargs: Any) -> PostgresDB:
    """Create test database settings; the port defaults to the first free one from 35000."""
    if "port" not in kwargs:
        kwargs["port"] = get_open_port_in_range(35000, PORT_RANGE_MAX)
    return PostgresDB(**kwargs)