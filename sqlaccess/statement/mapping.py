from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence
from uuid import UUID

# ==================================================
# Row Mapping
# ==================================================

SCALAR_TYPES = (bool, int, float, str, bytes, Decimal, datetime, date, time, UUID)


def column_names(description: Sequence[Sequence[Any]] | None) -> list[str]:
    if not description:
        return []
    return [str(column[0]) for column in description]


def _is_scalar_type(as_type: Any) -> bool:
    return isinstance(as_type, type) and (as_type in SCALAR_TYPES or issubclass(as_type, Enum))


def convert_value(value: Any, as_type: Any = None) -> Any:
    """
    Converts a driver value into as_type. None passes through untouched.
    """
    if value is None or as_type is None:
        return value
    if as_type is date and isinstance(value, datetime):
        return value.date()
    if isinstance(as_type, type) and isinstance(value, as_type) and not (as_type is int and isinstance(value, bool)):
        return value
    if as_type is bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "t", "yes", "y"}
        return bool(value)
    if as_type in (datetime, date, time) and isinstance(value, str):
        return as_type.fromisoformat(value)
    if as_type is UUID:
        return value if isinstance(value, UUID) else UUID(str(value))
    if as_type is Decimal:
        return Decimal(str(value))
    if as_type is str and isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    return as_type(value)


def map_row(columns: Sequence[str], row: Sequence[Any], as_type: Any = None) -> Any:
    """
    Shapes a row: tuple by default, dict, scalar (first column), dataclass,
    namedtuple, or any callable accepting column names as keyword arguments.
    """
    if as_type is None:
        return tuple(row)
    if as_type is dict:
        return dict(zip(columns, row))
    if _is_scalar_type(as_type):
        return convert_value(row[0], as_type)

    record = dict(zip(columns, row))
    if is_dataclass(as_type):
        by_name = {name.lower(): value for name, value in record.items()}
        kwargs = {
            f.name: by_name[f.name.lower()]
            for f in fields(as_type)
            if f.init and f.name.lower() in by_name
        }
        return as_type(**kwargs)
    if isinstance(as_type, type) and issubclass(as_type, tuple) and hasattr(as_type, "_fields"):
        by_name = {name.lower(): value for name, value in record.items()}
        return as_type(**{name: by_name.get(name.lower()) for name in as_type._fields})
    if callable(as_type):
        return as_type(**record)
    raise TypeError(f"Cannot map a row to {as_type!r}.")
