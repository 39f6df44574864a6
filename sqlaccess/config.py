from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

from dotenv import dotenv_values

from sqlaccess.errors import ConfigurationError

# ==================================================
# Connection Descriptor
# ==================================================

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Everything a Database needs to reach its backend.

    provider may be a registered provider name, a DbEngine member, a
    Provider instance, or None to infer it from the connection URL.
    """

    connection_string: str
    provider: Any = None
    keep_alive: bool = False
    connect_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if not self.connection_string or not self.connection_string.strip():
            raise ConfigurationError("connection_string must not be empty.")
        if self.connect_timeout_seconds is not None and self.connect_timeout_seconds <= 0:
            raise ConfigurationError("connect_timeout_seconds must be > 0")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], prefix: str = "DATABASE") -> "ConnectionDescriptor":
        """
        Builds a descriptor from <PREFIX>_URL, <PREFIX>_PROVIDER,
        <PREFIX>_KEEP_ALIVE and <PREFIX>_CONNECT_TIMEOUT entries.
        """
        url = values.get(f"{prefix}_URL")
        if not url:
            raise ConfigurationError(f"{prefix}_URL is not set.")

        keep_alive_raw = str(values.get(f"{prefix}_KEEP_ALIVE") or "").strip().lower()
        if keep_alive_raw in _TRUE_VALUES:
            keep_alive = True
        elif keep_alive_raw in _FALSE_VALUES:
            keep_alive = False
        else:
            raise ConfigurationError(f"{prefix}_KEEP_ALIVE must be a boolean, got {keep_alive_raw!r}.")

        timeout_raw = values.get(f"{prefix}_CONNECT_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else None
        except ValueError as exc:
            raise ConfigurationError(f"{prefix}_CONNECT_TIMEOUT must be a number, got {timeout_raw!r}.") from exc

        return cls(
            connection_string=url,
            provider=values.get(f"{prefix}_PROVIDER") or None,
            keep_alive=keep_alive,
            connect_timeout_seconds=timeout,
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = "DATABASE",
        dotenv_path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "ConnectionDescriptor":
        """
        Reads the descriptor from a .env file overlaid with the process
        environment. os.environ itself is never modified.
        """
        values: dict[str, Any] = {}
        if dotenv_path is not None:
            values.update({key: value for key, value in dotenv_values(dotenv_path).items() if value is not None})
        values.update(os.environ if environ is None else environ)
        return cls.from_mapping(values, prefix=prefix)
