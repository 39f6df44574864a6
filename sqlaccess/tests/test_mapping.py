from collections import namedtuple
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest

from sqlaccess.statement.mapping import column_names, convert_value, map_row


class Status(Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


@dataclass
class Customer:
    id: int
    name: str
    tags: list[str] = field(default_factory=list)


Pair = namedtuple("Pair", ["id", "name"])


def test_column_names_from_description() -> None:
    assert column_names([("id", None), ("name", None)]) == ["id", "name"]
    assert column_names(None) == []


@pytest.mark.parametrize(
    "value, as_type, expected",
    [
        ("42", int, 42),
        (1, bool, True),
        ("false", bool, False),
        ("yes", bool, True),
        (3, float, 3.0),
        (1.5, Decimal, Decimal("1.5")),
        ("2024-05-01", date, date(2024, 5, 1)),
        (datetime(2024, 5, 1, 12, 30), date, date(2024, 5, 1)),
        ("2024-05-01T12:30:00", datetime, datetime(2024, 5, 1, 12, 30)),
        ("12345678-1234-5678-1234-567812345678", UUID, UUID("12345678-1234-5678-1234-567812345678")),
        (b"abc", str, "abc"),
        ("active", Status, Status.ACTIVE),
    ],
)
def test_convert_value(value, as_type, expected) -> None:
    assert convert_value(value, as_type) == expected


def test_convert_value_passes_none_and_untyped_values() -> None:
    assert convert_value(None, int) is None
    assert convert_value("7") == "7"


def test_convert_bool_to_int_is_numeric() -> None:
    result = convert_value(True, int)
    assert result == 1
    assert type(result) is int


def test_map_row_defaults_to_tuple() -> None:
    assert map_row(["id", "name"], [1, "a"]) == (1, "a")


def test_map_row_to_dict_and_scalar() -> None:
    assert map_row(["id", "name"], (1, "a"), dict) == {"id": 1, "name": "a"}
    assert map_row(["id", "name"], ("5", "a"), int) == 5
    assert map_row(["status"], ("disabled",), Status) is Status.DISABLED


def test_map_row_to_dataclass_matches_columns_case_insensitively() -> None:
    customer = map_row(["ID", "Name", "extra"], (3, "c", "ignored"), Customer)
    assert customer == Customer(id=3, name="c")


def test_map_row_to_namedtuple_fills_missing_with_none() -> None:
    assert map_row(["NAME", "ID"], ("b", 2), Pair) == Pair(2, "b")
    assert map_row(["id"], (2,), Pair) == Pair(2, None)


def test_map_row_to_callable_uses_keyword_columns() -> None:
    def build(id, name):
        return f"{id}:{name}"

    assert map_row(["id", "name"], (1, "a"), build) == "1:a"


def test_map_row_rejects_unmappable_type() -> None:
    with pytest.raises(TypeError):
        map_row(["id"], (1,), 42)
