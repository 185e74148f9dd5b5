import pytest

from atlaskit.transaction import (
    DatabaseUnavailableError,
    Transaction,
    TransactionError,
    TransactionMissingError,
    TransactionNoDBError,
    begin_from_context,
    from_context,
    unary_server_interceptor,
    unary_server_interceptor_txn,
    use_transaction,
)


class FakeHandle:
    def __init__(self, commit_error=None, rollback_error=None):
        self.commit_error = commit_error
        self.rollback_error = rollback_error
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def commit(self):
        if self.commit_error is not None:
            raise self.commit_error
        self.committed = True

    def rollback(self):
        self.rolled_back = True
        if self.rollback_error is not None:
            raise self.rollback_error


class FakeDB:
    def __init__(self, begin_error=None, commit_error=None, rollback_error=None):
        self.begin_error = begin_error
        self.commit_error = commit_error
        self.rollback_error = rollback_error
        self.handles = []
        self.options = []

    def begin(self, options=None):
        self.options.append(options)
        if self.begin_error is not None:
            raise self.begin_error
        handle = FakeHandle(self.commit_error, self.rollback_error)
        self.handles.append(handle)
        return handle


def _begin_handler(request):
    txn = from_context()
    assert txn is not None
    txn.begin()
    return request


def test_unary_interceptor_success():
    db = FakeDB()
    interceptor = unary_server_interceptor(db)
    assert interceptor("req", _begin_handler) == "req"
    assert len(db.handles) == 1
    assert db.handles[0].committed


def test_unary_interceptor_txn_success_runs_hooks():
    db = FakeDB()
    txn = Transaction(db)
    fired = []
    txn.add_after_commit_hook(lambda: fired.append(True))
    interceptor = unary_server_interceptor_txn(txn)
    assert interceptor("req", _begin_handler) == "req"
    assert db.handles[0].committed
    assert fired == [True]
    assert txn.current is None


def test_unary_interceptor_error_keeps_handler_error():
    db = FakeDB(rollback_error=RuntimeError("handler"))
    interceptor = unary_server_interceptor(db)

    def handler(request):
        from_context().begin()
        raise ValueError("handler")

    with pytest.raises(ValueError, match="handler") as excinfo:
        interceptor("req", handler)
    assert db.handles[0].rolled_back
    assert not db.handles[0].committed
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert str(excinfo.value.__cause__) == "handler"


def test_unary_interceptor_commit_failure_details():
    db = FakeDB(commit_error=RuntimeError("internal"))
    interceptor = unary_server_interceptor(db)
    with pytest.raises(TransactionError) as excinfo:
        interceptor("req", _begin_handler)
    assert excinfo.value.message == "failed to commit transaction"
    assert excinfo.value.target == "gorm"
    assert str(excinfo.value.__cause__) == "internal"


def test_unary_interceptor_rollback_unavailable():
    db = FakeDB()
    interceptor = unary_server_interceptor(db)

    def handler(request):
        from_context().begin().closed = True
        raise ValueError("handler")

    with pytest.raises(DatabaseUnavailableError, match="Database connection not available"):
        interceptor("req", handler)


def test_unary_interceptor_without_begin_opens_nothing():
    db = FakeDB()
    interceptor = unary_server_interceptor(db)
    assert interceptor(5, lambda request: request * 2) == 10
    assert db.handles == []


@pytest.mark.parametrize("options", [None, {"isolation": "serializable"}])
def test_begin_is_singleton(options):
    db = FakeDB()
    txn = Transaction(db)
    first = txn.begin(options)
    assert txn.current is first
    second = txn.begin(options)
    assert second is first
    assert db.options == [options]


def test_commit():
    db = FakeDB()
    txn = Transaction(db)
    txn.commit()
    assert db.handles == []
    handle = txn.begin()
    txn.commit()
    assert handle.committed
    assert txn.current is None


def test_after_commit_hook():
    txn = Transaction(FakeDB())
    txn.begin()
    called = []
    txn.add_after_commit_hook(lambda: called.append("hook"))
    txn.commit()
    assert called == ["hook"]


def test_failed_commit_skips_hooks_and_resets():
    txn = Transaction(FakeDB(commit_error=RuntimeError("boom")))
    txn.begin()
    called = []
    txn.add_after_commit_hook(lambda: called.append("hook"))
    with pytest.raises(RuntimeError, match="boom"):
        txn.commit()
    assert called == []
    assert txn.current is None


def test_rollback():
    db = FakeDB()
    txn = Transaction(db)
    txn.rollback()
    assert db.handles == []
    handle = txn.begin()
    txn.rollback()
    assert handle.rolled_back
    assert txn.current is None


def test_rollback_on_closed_connection():
    txn = Transaction(FakeDB())
    txn.begin().closed = True
    with pytest.raises(DatabaseUnavailableError) as excinfo:
        txn.rollback()
    assert str(excinfo.value) == "Database connection not available"


def test_context():
    assert from_context() is None
    txn = Transaction()
    with use_transaction(txn) as used:
        assert used is txn
        assert from_context() is txn
    assert from_context() is None


def test_fork_copies_parent_and_hooks_only():
    db = FakeDB()
    txn = Transaction(db)
    fired = []
    txn.add_after_commit_hook(lambda: fired.append(1))
    txn.begin()
    copy = txn.fork()
    assert copy.parent is db
    assert copy.current is None
    copy.begin()
    copy.commit()
    assert fired == [1]
    assert len(db.handles) == 2


@pytest.mark.parametrize("options", [None, {"isolation": "serializable"}])
def test_begin_from_context_good(options):
    db = FakeDB()
    with use_transaction(Transaction(db)):
        first = begin_from_context(options)
        assert first is db.handles[0]
        second = begin_from_context(options)
        assert second is first
    assert db.options == [options]


@pytest.mark.parametrize("options", [None, {"isolation": "serializable"}])
def test_begin_from_context_missing(options):
    with pytest.raises(TransactionMissingError) as excinfo:
        begin_from_context(options)
    assert str(excinfo.value) == "Database transaction for request missing in context"


@pytest.mark.parametrize("options", [None, {"isolation": "serializable"}])
def test_begin_from_context_begin_fails(options):
    txn = Transaction(FakeDB(begin_error=RuntimeError("cannot begin")))
    with use_transaction(txn):
        with pytest.raises(RuntimeError, match="cannot begin"):
            begin_from_context(options)
    assert txn.current is None


@pytest.mark.parametrize("options", [None, {"isolation": "serializable"}])
def test_begin_from_context_without_db(options):
    with use_transaction(Transaction()):
        with pytest.raises(TransactionNoDBError) as excinfo:
            begin_from_context(options)
    assert str(excinfo.value) == "Transaction in context, but DB is nil"