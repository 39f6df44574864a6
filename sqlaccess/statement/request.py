from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Mapping

from sqlaccess.providers.base import ProcedureParameter

# ==================================================
# Statement Requests
# ==================================================


@dataclass(frozen=True)
class StatementRequest:
    """
    An immutable SQL template plus its arguments, optionally paged or
    naming a stored procedure.
    """

    sql: str
    args: tuple[Any, ...] = ()
    skip: int | None = None
    take: int | None = None
    procedure: str | None = None
    procedure_args: Any = None

    def __post_init__(self) -> None:
        if self.procedure is None and not (self.sql and self.sql.strip()):
            raise ValueError("sql must not be empty.")
        if self.procedure is not None and not self.procedure.strip():
            raise ValueError("procedure name must not be empty.")
        if self.skip is not None or self.take is not None:
            if self.skip is None or self.take is None:
                raise ValueError("skip and take must be supplied together.")
            if self.skip < 0:
                raise ValueError("skip must be >= 0")
            if self.take < 1:
                raise ValueError("take must be >= 1")

    @property
    def is_paged(self) -> bool:
        return self.take is not None

    @property
    def is_procedure(self) -> bool:
        return self.procedure is not None

    def procedure_parameters(self) -> tuple[ProcedureParameter, ...]:
        """
        Flattens procedure_args (a mapping, a dataclass instance or a plain
        object) into named parameters, keeping declaration order.
        """
        source = self.procedure_args
        if source is None:
            return ()
        if isinstance(source, Mapping):
            items = list(source.items())
        elif is_dataclass(source) and not isinstance(source, type):
            items = [(f.name, getattr(source, f.name)) for f in fields(source)]
        elif hasattr(source, "__dict__"):
            items = list(vars(source).items())
        else:
            raise ValueError("Procedure arguments must be a mapping, a dataclass instance or an object.")
        return tuple(ProcedureParameter(name=str(name), value=value) for name, value in items)


@dataclass
class Command:
    """
    A bound command about to be sent to the driver. Passed to on_command.
    """

    sql: str
    params: list[Any]
    kind: str
    cursor: Any = None
