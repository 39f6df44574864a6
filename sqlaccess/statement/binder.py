from dataclasses import dataclass, field
import re
from typing import Any, Mapping, Sequence

from sqlaccess.providers.base import Provider

# ==================================================
# Parameter Binding
# ==================================================

# quoted literals and @@system variables are matched first so they are skipped
_TOKEN = re.compile(r"'(?:[^']|'')*'|@@\w+|@(\w+)")

_EXPANDABLE = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class BoundStatement:
    """
    SQL rewritten into the provider's parameter style, with its ordered parameters.
    """

    sql: str
    params: list[Any] = field(default_factory=list)


def _lookup(key: str, args: Sequence[Any], named: Mapping[str, Any] | None) -> Any:
    if named is not None:
        if key not in named:
            raise ValueError(f"No value supplied for parameter @{key}.")
        return named[key]
    if not key.isdigit():
        raise ValueError(f"Parameter @{key} is named; pass a mapping of arguments.")
    index = int(key)
    if index >= len(args):
        raise ValueError(f"Parameter @{key} has no matching argument ({len(args)} supplied).")
    return args[index]


def bind(sql: str, args: Sequence[Any], provider: Provider) -> BoundStatement:
    """
    Rewrites @0/@1 (positional) or @name (single mapping argument) placeholders.

    Sequence values expand into one placeholder per item, for IN lists.
    """
    if not args:
        return BoundStatement(sql=sql)

    named = args[0] if len(args) == 1 and isinstance(args[0], Mapping) else None
    escape_percent = provider.paramstyle == "format"
    params: list[Any] = []
    chunks: list[str] = []
    position = 0

    def _literal(text: str) -> str:
        return text.replace("%", "%%") if escape_percent else text

    for match in _TOKEN.finditer(sql):
        chunks.append(_literal(sql[position:match.start()]))
        position = match.end()
        key = match.group(1)
        if key is None:
            chunks.append(_literal(match.group(0)))
            continue

        value = _lookup(key, args, named)
        if isinstance(value, _EXPANDABLE):
            items = list(value)
            if not items:
                raise ValueError(f"Parameter @{key} is an empty sequence.")
            placeholders = []
            for item in items:
                placeholders.append(provider.placeholder(len(params)))
                params.append(item)
            chunks.append(", ".join(placeholders))
        else:
            chunks.append(provider.placeholder(len(params)))
            params.append(value)
    chunks.append(_literal(sql[position:]))

    if not params:
        return BoundStatement(sql=sql)
    return BoundStatement(sql="".join(chunks), params=params)
