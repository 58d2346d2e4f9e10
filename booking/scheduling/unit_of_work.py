import enum

from sqlalchemy.orm import Session


class TransactionState(enum.Enum):
    NO_TRANSACTION = "no_transaction"
    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class UnitOfWork:
    """Explicit transaction bookkeeping on top of a request-scoped session.

    The session starts its database transaction lazily; this class records
    whether the write phase has been opened so callers only roll back what
    they actually began. Nested transactions are not supported.
    """

    def __init__(self, db: Session):
        self.db = db
        self.state = TransactionState.NO_TRANSACTION

    def has_active_transaction(self) -> bool:
        return self.state is TransactionState.OPEN

    def begin(self) -> None:
        if self.has_active_transaction():
            raise RuntimeError('A transaction is already in progress. Nested transactions are not supported.')
        self.state = TransactionState.OPEN

    def commit(self) -> None:
        if not self.has_active_transaction():
            raise RuntimeError('No transaction is in progress.')
        # A failed commit leaves the state OPEN so the caller can roll back.
        self.db.commit()
        self.state = TransactionState.COMMITTED

    def rollback(self) -> None:
        if not self.has_active_transaction():
            raise RuntimeError('No transaction is in progress.')
        try:
            self.db.rollback()
        finally:
            self.state = TransactionState.ROLLED_BACK
