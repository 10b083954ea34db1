"""Environment variable fallback for configuration values.

Resolution is a pure function over an explicit value and an ordered list of
``(name, value)`` sources. The environment itself is passed in as a mapping so
nothing here reads ``os.environ`` directly.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import NamedTuple


class ResolvedValue(NamedTuple):
    """A resolved configuration value and where it came from."""

    value: str
    origin: str


def resolve_value(
    explicit: str | None,
    sources: Iterable[tuple[str, str | None]],
) -> ResolvedValue | None:
    """Return the explicit value, else the first non-empty source value.

    Args:
        explicit: Value given directly (e.g. a command-line flag).
        sources: Ordered ``(name, value)`` fallbacks.

    Returns:
        The winning value tagged with ``"flag"`` or ``"env:<name>"``, or None
        when every candidate is missing or empty.
    """
    if explicit:
        return ResolvedValue(explicit, "flag")
    for name, value in sources:
        if value:
            return ResolvedValue(value, f"env:{name}")
    return None


class EnvironmentConfigLoader:
    """Looks up fallback chains in a given environment mapping."""

    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = environ

    def sources(self, names: Sequence[str]) -> list[tuple[str, str | None]]:
        """Ordered ``(name, value)`` pairs for the given variable names."""
        return [(name, self._environ.get(name)) for name in names]

    def resolve(
        self, explicit: str | None, names: Sequence[str]
    ) -> ResolvedValue | None:
        """Resolve a flag value against the named environment variables."""
        return resolve_value(explicit, self.sources(names))
