"""Configuration for the SimpleVB language server.

Settings are read from the ``initializationOptions`` of the LSP initialize
request. Keys may be given in camelCase (as editors send them) or snake_case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _option(data: dict[str, Any], snake_name: str, default: Any) -> Any:
    """Read an option by its snake_case or camelCase key."""
    if snake_name in data:
        return data[snake_name]
    head, *rest = snake_name.split("_")
    camel_name = head + "".join(part.capitalize() for part in rest)
    return data.get(camel_name, default)


@dataclass
class ValidationSettings:
    """Options that control which diagnostics the validator produces."""

    max_line_length: int = 120
    allowed_numbers: frozenset[float] = field(default_factory=lambda: frozenset({0.0, 1.0}))
    check_magic_numbers: bool = True
    check_naming: bool = True
    check_unknown_types: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationSettings:
        """Create ValidationSettings from a dictionary."""
        defaults = cls()

        max_line_length = _option(data, "max_line_length", defaults.max_line_length)
        if not isinstance(max_line_length, int) or isinstance(max_line_length, bool) or max_line_length <= 0:
            logger.warning(f"Invalid maxLineLength: {max_line_length!r}, using {defaults.max_line_length}")
            max_line_length = defaults.max_line_length

        allowed_numbers = defaults.allowed_numbers
        raw_numbers = _option(data, "allowed_numbers", None)
        if raw_numbers is not None:
            try:
                allowed_numbers = frozenset(float(n) for n in raw_numbers)
            except (TypeError, ValueError):
                logger.warning(f"Invalid allowedNumbers: {raw_numbers!r}, using defaults")

        return cls(
            max_line_length=max_line_length,
            allowed_numbers=allowed_numbers,
            check_magic_numbers=bool(_option(data, "check_magic_numbers", defaults.check_magic_numbers)),
            check_naming=bool(_option(data, "check_naming", defaults.check_naming)),
            check_unknown_types=bool(_option(data, "check_unknown_types", defaults.check_unknown_types)),
        )


@dataclass
class ServerSettings:
    """Options for the language server process."""

    debounce_seconds: float = 0.2
    log_level: str = "INFO"
    validation: ValidationSettings = field(default_factory=ValidationSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ServerSettings:
        """Create ServerSettings from initialization options."""
        if not data:
            return cls()
        defaults = cls()

        debounce_seconds = _option(data, "debounce_seconds", defaults.debounce_seconds)
        if not isinstance(debounce_seconds, (int, float)) or isinstance(debounce_seconds, bool) or debounce_seconds < 0:
            logger.warning(f"Invalid debounceSeconds: {debounce_seconds!r}, using {defaults.debounce_seconds}")
            debounce_seconds = defaults.debounce_seconds

        log_level = str(_option(data, "log_level", defaults.log_level)).upper()
        if log_level not in LOG_LEVELS:
            logger.warning(f"Invalid logLevel: {log_level!r}, using {defaults.log_level}")
            log_level = defaults.log_level

        validation_data = _option(data, "validation", None)
        validation = ValidationSettings.from_dict(validation_data) if isinstance(validation_data, dict) else ValidationSettings()

        return cls(
            debounce_seconds=float(debounce_seconds),
            log_level=log_level,
            validation=validation,
        )
