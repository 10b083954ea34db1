"""Configuration audit and source tracking.

Tracks where each resolved value came from so verbose runs can show it.
"""

from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from .types import ConfigOrigin, ResolvedConfig, SourceMap


class SourceTracker:
    """Tracks the origin of configuration values during resolution."""

    def __init__(self) -> None:
        self._origins: dict[str, ConfigOrigin] = {}

    def set_origin(self, field: str, origin: ConfigOrigin) -> None:
        """Record the origin of a configuration field."""
        self._origins[field] = origin

    def get_source_map(self) -> SourceMap:
        """Get the current source map.

        Returns:
            A copy of the mapping of field names to their origins.
        """
        return dict(self._origins)


# Field display order for consistent output
_FIELD_ORDER = (
    "system_instruction",
    "schema",
    "prompt",
    "project",
    "location",
    "model",
    "timeout",
)


def generate_audit(config: ResolvedConfig) -> str:
    """Generate an audit report showing field origins.

    Text fields are summarized by size; identifiers are shown as-is.
    """
    lines = ["Configuration sources:"]
    for field in _FIELD_ORDER:
        if field not in config.origin:
            continue
        origin = config.origin[field]
        if field in ("system_instruction", "prompt"):
            value = f"{len(getattr(config, field).encode('utf-8'))} bytes"
        elif field == "schema":
            value = f"{config.schema.size} bytes"
        else:
            value = str(getattr(config, field))
        lines.append(f"  {field}: {value} ({origin})")
    return "\n".join(lines)
