"""Central configuration helper for the content RAG backend."""

import logging
import os
from typing import Any


class HelperConfig:
    """Reads all settings from environment variables and hands out the shared logger.

    Keys are case-insensitive. Empty values count as unset.
    """

    def __init__(self, logger: logging.Logger | Any) -> None:
        self._logger = logger

    def _read_raw(self, key: str) -> str | None:
        raw = os.getenv(key.upper())
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name.
            default (str | None): Fallback value if the variable is not set.

        Returns:
            str: The resolved value.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        val = self._read_raw(key)
        if val is None:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return default
        return val

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable.

        Integers stay integers, anything with a decimal point or exponent becomes a float.

        Raises:
            ValueError: If the variable is not set and no default is provided,
                or if the value cannot be parsed as a number.
        """
        raw = self._read_raw(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return default
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable ("true", "1", "yes" are truthy)."""
        raw = self._read_raw(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return default
        return raw.lower() in ("true", "1", "yes", "on")

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",") -> list[str]:
        """Read a list environment variable written as "[a,b,c]" (brackets optional).

        Args:
            key (str): Environment variable name.
            default (list | None): Fallback value if the variable is not set.
            separator (str): Element delimiter.

        Returns:
            list[str]: The stripped, non-empty elements.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        raw = self._read_raw(key)
        if raw is None:
            if default is None:
                raise ValueError(f"Environment variable '{key.upper()}' is not set.")
            return list(default)
        if raw.startswith("[") and raw.endswith("]"):
            raw = raw[1:-1]
        return [elem.strip() for elem in raw.split(separator) if elem.strip()]

    def get_logger(self):
        """Return the application logger."""
        return self._logger
