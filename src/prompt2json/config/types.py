"""Core configuration data types for prompt2json.

Flags are captured once as ``ConfigInputs`` and resolved once into an
immutable ``ResolvedConfig`` that every later stage reads.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
import typing

if typing.TYPE_CHECKING:
    from .schema import CompiledSchema

# --- Source Tracking Types ---

# "flag", "stdin", "default", "file:<path>" or "env:<NAME>"
ConfigOrigin = str
SourceMap = Mapping[str, ConfigOrigin]


@dataclass(frozen=True, slots=True)
class ConfigInputs:
    """Raw option values exactly as given on the command line.

    Empty strings and ``None`` both mean "not given".
    """

    system_instruction: str | None = None
    system_instruction_file: str | None = None
    schema: str | None = None
    schema_file: str | None = None
    prompt: str | None = None
    prompt_file: str | None = None
    attachments: tuple[str, ...] = ()
    out_file: str | None = None
    project: str | None = None
    location: str | None = None
    model: str | None = None
    timeout: int | None = None
    verbose: bool = False
    pretty_print: bool = False


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """Validated configuration for a single run.

    Holds everything the pipeline needs; nothing downstream reads flags or the
    environment again. ``origin`` records where each value came from.
    """

    system_instruction: str
    schema: CompiledSchema
    prompt: str
    project: str
    location: str
    model: str
    timeout: int
    attachments: tuple[Path, ...] = ()
    out_file: Path | None = None
    pretty_print: bool = False
    verbose: bool = False
    origin: SourceMap = field(default_factory=dict)

    def __str__(self) -> str:
        return (
            f"ResolvedConfig(project={self.project!r}, location={self.location!r}, "
            f"model={self.model!r}, timeout={self.timeout!r}, "
            f"attachments={len(self.attachments)}, out_file={self.out_file!s}, "
            f"pretty_print={self.pretty_print!r}, origin={dict(self.origin)!r})"
        )

    def audit(self) -> str:
        """Human-readable report of where each configuration value came from."""
        from .audit import generate_audit

        return generate_audit(self)
