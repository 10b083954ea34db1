"""Configuration resolution with precedence handling.

Merges command-line values, environment fallbacks, file contents and standard
input into one ``ResolvedConfig``. All option-combination checks run before any
file or stdin is read, and nothing here touches the network.

Precedence per field: flag > environment chain > default.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
import sys
from typing import TextIO

from prompt2json.constants import DEFAULT_TIMEOUT, LOCATION_ENV_VARS, PROJECT_ENV_VARS
from prompt2json.exceptions import InputError, UsageError

from .audit import SourceTracker
from .env_loader import EnvironmentConfigLoader
from .schema import CompiledSchema, compile_schema
from .types import ConfigInputs, ResolvedConfig

log = logging.getLogger(__name__)


def _require_one_of(inline: str | None, path: str | None, flag: str) -> None:
    if inline and path:
        raise UsageError(f"cannot specify both --{flag} and --{flag}-file")
    if not inline and not path:
        raise UsageError(f"must specify either --{flag} or --{flag}-file")


def _describe(origin: str) -> str:
    return origin.removeprefix("file:")


class ConfigResolver:
    """Resolves run configuration from flags, environment and files.

    Args:
        environ: Environment mapping consulted for project/location fallbacks.
        stdin: Stream read for the prompt when neither ``--prompt`` nor
            ``--prompt-file`` is given.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        self.env_loader = EnvironmentConfigLoader(
            environ if environ is not None else {}
        )
        self._stdin = stdin

    def resolve(self, inputs: ConfigInputs) -> ResolvedConfig:
        """Resolve and validate a complete run configuration.

        Raises:
            UsageError: Contradictory or missing options.
            InputError: Unreadable files, empty text, or a malformed schema.
        """
        tracker = SourceTracker()

        # Option combinations and required values, before any I/O
        _require_one_of(
            inputs.system_instruction, inputs.system_instruction_file, "system-instruction"
        )
        _require_one_of(inputs.schema, inputs.schema_file, "schema")
        if inputs.prompt and inputs.prompt_file:
            raise UsageError("cannot specify both --prompt and --prompt-file")

        project = self.env_loader.resolve(inputs.project, PROJECT_ENV_VARS)
        if project is None:
            raise UsageError(f"--project is required (or set {PROJECT_ENV_VARS[0]})")
        location = self.env_loader.resolve(inputs.location, LOCATION_ENV_VARS)
        if location is None:
            raise UsageError(f"--location is required (or set {LOCATION_ENV_VARS[0]})")
        if not inputs.model:
            raise UsageError("--model is required")

        if inputs.timeout is None:
            timeout = DEFAULT_TIMEOUT
            tracker.set_origin("timeout", "default")
        elif inputs.timeout < 0:
            raise UsageError("--timeout must be non-negative")
        else:
            timeout = inputs.timeout
            tracker.set_origin("timeout", "flag")

        # Inputs
        system_instruction, origin = self._load_text(
            inputs.system_instruction,
            inputs.system_instruction_file,
            "system instruction",
        )
        tracker.set_origin("system_instruction", origin)
        log.info(
            "System instruction: %d bytes (from %s)",
            len(system_instruction.encode("utf-8")),
            _describe(origin),
        )

        schema, origin = self._load_schema(inputs.schema, inputs.schema_file)
        tracker.set_origin("schema", origin)
        log.info(
            "Schema: %d bytes (from %s) - valid JSON", schema.size, _describe(origin)
        )
        log.info("Schema validation: compiled successfully")

        prompt, origin = self._load_text(inputs.prompt, inputs.prompt_file, "prompt")
        tracker.set_origin("prompt", origin)
        log.info(
            "Prompt: %d bytes (from %s)", len(prompt.encode("utf-8")), _describe(origin)
        )

        tracker.set_origin("project", project.origin)
        tracker.set_origin("location", location.origin)
        tracker.set_origin("model", "flag")
        log.info(
            "API configuration: project=%s location=%s model=%s",
            project.value,
            location.value,
            inputs.model,
        )

        return ResolvedConfig(
            system_instruction=system_instruction,
            schema=schema,
            prompt=prompt,
            project=project.value,
            location=location.value,
            model=inputs.model,
            timeout=timeout,
            attachments=tuple(Path(p) for p in inputs.attachments),
            out_file=Path(inputs.out_file) if inputs.out_file else None,
            pretty_print=inputs.pretty_print,
            verbose=inputs.verbose,
            origin=tracker.get_source_map(),
        )

    def _load_text(
        self, inline: str | None, path: str | None, what: str
    ) -> tuple[str, str]:
        """Load trimmed text from the inline value, a file, or stdin."""
        if inline:
            text, origin = inline, "flag"
        elif path:
            try:
                text = Path(path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise InputError(f"failed to read {what} file: {e}") from e
            origin = f"file:{path}"
        else:
            stream = self._stdin if self._stdin is not None else sys.stdin
            try:
                text = stream.read()
            except (OSError, UnicodeDecodeError) as e:
                raise InputError(f"failed to read from stdin: {e}") from e
            origin = "stdin"

        text = text.strip()
        if not text:
            raise InputError(f"{what} cannot be empty")
        return text, origin

    def _load_schema(
        self, inline: str | None, path: str | None
    ) -> tuple[CompiledSchema, str]:
        if inline:
            return compile_schema(inline), "flag"
        try:
            raw = Path(path).read_bytes()
        except OSError as e:
            raise InputError(f"failed to read schema file: {e}") from e
        return compile_schema(raw), f"file:{path}"


def resolve_config(
    inputs: ConfigInputs,
    *,
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
) -> ResolvedConfig:
    """Resolve configuration in one call. See ``ConfigResolver.resolve``."""
    return ConfigResolver(environ=environ, stdin=stdin).resolve(inputs)
