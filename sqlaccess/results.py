from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")

# ==================================================
# Execution Results
# ==================================================


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """
    One page of rows plus the total number of rows the unpaged statement returns.
    """

    items: list[T]
    total_count: int
    skip: int = 0
    take: int = 0

    @property
    def page_count(self) -> int:
        if self.take <= 0:
            return 0
        return (self.total_count + self.take - 1) // self.take

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class StoredProcedureResult:
    """
    Output parameter values (keyed without the output prefix) and the
    procedure's return code, when the provider reports one.
    """

    output_values: Mapping[str, Any] = field(default_factory=dict)
    return_code: int | None = None

    def __getitem__(self, name: str) -> Any:
        return self.output_values[name]
