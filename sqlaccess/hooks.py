from typing import Any, Callable

from sqlaccess.errors import HookArgumentError

# ==================================================
# Hook Types
# ==================================================

CommandHook = Callable[[Any], None]
ConnectionHook = Callable[[Any], None]
ExceptionHook = Callable[[Any, Exception], None]
BeginTransactionHook = Callable[[Any], None]
EndTransactionHook = Callable[[Any, bool], None]


def _noop(*_args: Any) -> None:
    return None


class _HookSlot:
    """
    A callback slot that always holds a callable and rejects None.
    """

    def __set_name__(self, owner: type, name: str) -> None:
        self._name = name
        self._attr = f"_{name}"

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.__dict__.get(self._attr, _noop)

    def __set__(self, instance: Any, value: Any) -> None:
        if value is None or not callable(value):
            raise HookArgumentError(f"{self._name} must be a callable, got {value!r}.")
        instance.__dict__[self._attr] = value


class HookSet:
    """
    Lifecycle callbacks fired synchronously by a Database.

    Every slot defaults to a no-op and may be reassigned at any time; the
    last assignment wins. Signatures:

        on_command(command)
        on_open_connection(db)
        on_close_connection(db)
        on_exception(statement, exc)
        on_begin_transaction(db)
        on_end_transaction(db, success)
    """

    on_command = _HookSlot()
    on_open_connection = _HookSlot()
    on_close_connection = _HookSlot()
    on_exception = _HookSlot()
    on_begin_transaction = _HookSlot()
    on_end_transaction = _HookSlot()

    def __init__(
        self,
        *,
        on_command: CommandHook | None = None,
        on_open_connection: ConnectionHook | None = None,
        on_close_connection: ConnectionHook | None = None,
        on_exception: ExceptionHook | None = None,
        on_begin_transaction: BeginTransactionHook | None = None,
        on_end_transaction: EndTransactionHook | None = None,
    ) -> None:
        if on_command is not None:
            self.on_command = on_command
        if on_open_connection is not None:
            self.on_open_connection = on_open_connection
        if on_close_connection is not None:
            self.on_close_connection = on_close_connection
        if on_exception is not None:
            self.on_exception = on_exception
        if on_begin_transaction is not None:
            self.on_begin_transaction = on_begin_transaction
        if on_end_transaction is not None:
            self.on_end_transaction = on_end_transaction
