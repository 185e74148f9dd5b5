"""Per-request database transactions kept in a context variable."""

from __future__ import annotations

import contextlib
import threading
from contextvars import ContextVar
from typing import Any, Callable, Iterable, Iterator


class TransactionError(Exception):
    """Base class for transaction errors; target names the failing subsystem, if known."""

    default_message = "transaction error"

    def __init__(self, message: str | None = None, *, target: str | None = None) -> None:
        self.message = message or self.default_message
        self.target = target
        super().__init__(self.message)


class TransactionMissingError(TransactionError):
    """No transaction is set for the current context."""

    default_message = "Database transaction for request missing in context"


class TransactionNoDBError(TransactionError):
    """The transaction in context has no database."""

    default_message = "Transaction in context, but DB is nil"


class DatabaseUnavailableError(TransactionError):
    """The database connection of an open transaction has been closed."""

    default_message = "Database connection not available"


def _is_closed(handle: Any) -> bool:
    return bool(getattr(handle, "closed", False))


class Transaction:
    """Opens at most one database transaction per request.

    parent is a database with a begin(options) method returning a handle
    with commit() and rollback() and, optionally, a closed attribute.
    """

    def __init__(self, parent: Any = None, hooks: Iterable[Callable[[], Any]] = ()) -> None:
        self.parent = parent
        self._hooks: list[Callable[[], Any]] = list(hooks)
        self._current: Any = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Any:
        """The open transaction handle, or None."""
        return self._current

    def add_after_commit_hook(self, *args: Callable[[], Any]) -> None:
        """Register callables to run after a successful commit."""
        self._hooks.extend(args)

    def fork(self) -> Transaction:
        """A fresh transaction sharing this one's database and hooks."""
        return Transaction(self.parent, self._hooks)

    def begin(self, options: Any = None) -> Any:
        """Open the transaction if needed and return its handle."""
        with self._lock:
            if self._current is None:
                if self.parent is None:
                    raise TransactionNoDBError()
                self._current = self.parent.begin(options)
            return self._current

    def commit(self) -> None:
        """Commit the open transaction, if any, then run the after-commit hooks."""
        with self._lock:
            handle = self._current
            if handle is None or _is_closed(handle):
                return
            try:
                handle.commit()
            finally:
                self._current = None
            hooks = list(self._hooks)
        for hook in hooks:
            hook()

    def rollback(self) -> None:
        """Roll back the open transaction, if any."""
        with self._lock:
            handle = self._current
            if handle is None:
                return
            if _is_closed(handle):
                raise DatabaseUnavailableError()
            try:
                handle.rollback()
            finally:
                self._current = None


_current_transaction: ContextVar[Transaction | None] = ContextVar(
    "atlaskit_transaction", default=None
)


@contextlib.contextmanager
def use_transaction(txn: Transaction) -> Iterator[Transaction]:
    """Make txn the transaction of the current context for the duration of the block."""
    token = _current_transaction.set(txn)
    try:
        yield txn
    finally:
        _current_transaction.reset(token)


def from_context() -> Transaction | None:
    """The transaction of the current context, or None."""
    return _current_transaction.get()


def begin_from_context(options: Any = None) -> Any:
    """Begin the transaction of the current context and return its handle."""
    txn = from_context()
    if txn is None:
        raise TransactionMissingError()
    if txn.parent is None:
        raise TransactionNoDBError()
    return txn.begin(options)


def unary_server_interceptor_txn(txn: Transaction) -> Callable[[Any, Callable[[Any], Any]], Any]:
    """An interceptor that runs each handler call within its own copy of txn.

    The handler opens the transaction when it needs one. It is committed when
    the handler returns and rolled back when it raises.
    """

    def interceptor(request: Any, handler: Callable[[Any], Any]) -> Any:
        request_txn = txn.fork()
        with use_transaction(request_txn):
            try:
                response = handler(request)
            except Exception as exc:
                try:
                    request_txn.rollback()
                except DatabaseUnavailableError:
                    raise
                except Exception as rollback_error:
                    raise exc from rollback_error
                raise
            except BaseException:
                with contextlib.suppress(Exception):
                    request_txn.rollback()
                raise
            try:
                request_txn.commit()
            except DatabaseUnavailableError:
                raise
            except Exception as commit_error:
                raise TransactionError(
                    "failed to commit transaction", target="gorm"
                ) from commit_error
            return response

    return interceptor


def unary_server_interceptor(db: Any) -> Callable[[Any, Callable[[Any], Any]], Any]:
    """An interceptor managing transactions on db."""
    return unary_server_interceptor_txn(Transaction(db))