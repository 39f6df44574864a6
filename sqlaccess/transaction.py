from typing import Any

from sqlaccess.errors import InvalidStateError

# ==================================================
# Transaction Handle
# ==================================================


class Transaction:
    """
    Single-use handle returned by Database.begin_transaction().

    Exactly one terminal action happens per handle: commit() or rollback().
    Closing the handle, or leaving a `with` block, without committing rolls
    the whole transaction back, whatever the nesting depth. A handle whose
    transaction was already ended through another handle cannot touch a
    transaction started later on the same Database.
    """

    def __init__(self, db: Any, isolation_level: str | None = None, generation: int | None = None) -> None:
        self._db = db
        self._isolation_level = isolation_level
        self._generation = generation

    @property
    def is_finished(self) -> bool:
        return self._db is None

    @property
    def isolation_level(self) -> str | None:
        return self._isolation_level

    @property
    def connection(self) -> Any:
        if self._db is None:
            raise InvalidStateError("Transaction was finished.")
        return self._db.connection

    def commit(self) -> None:
        if self._db is None:
            raise InvalidStateError("Transaction was finished.")
        db, self._db = self._db, None
        db._commit(self._generation)

    def rollback(self) -> None:
        if self._db is None:
            return
        db, self._db = self._db, None
        db._rollback(self._generation)

    def close(self) -> None:
        self.rollback()

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.rollback()
