"""Configuration management for prompt2json.

Resolve once, freeze, then flow: flags and environment are merged into an
immutable ``ResolvedConfig`` before any stage runs.
"""

from .audit import SourceTracker, generate_audit
from .env_loader import EnvironmentConfigLoader, ResolvedValue, resolve_value
from .resolver import ConfigResolver, resolve_config
from .schema import CompiledSchema, compile_schema, parse_json
from .types import ConfigInputs, ConfigOrigin, ResolvedConfig, SourceMap

__all__ = [  # noqa: RUF022
    # Main API
    "resolve_config",
    "ConfigResolver",
    # Core types
    "ConfigInputs",
    "ResolvedConfig",
    "SourceMap",
    "ConfigOrigin",
    # Schema
    "CompiledSchema",
    "compile_schema",
    "parse_json",
    # Environment fallback
    "EnvironmentConfigLoader",
    "ResolvedValue",
    "resolve_value",
    # Audit
    "SourceTracker",
    "generate_audit",
]
