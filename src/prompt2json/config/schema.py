"""JSON Schema loading and compilation.

The schema text is parsed exactly once. The resulting value is both embedded in
the outgoing request and compiled into the validator, so the contract the model
is asked to follow and the one its reply is checked against cannot drift apart.

Compilation also resolves every ``$ref`` up front. Schemas must be
self-contained: references may point into the document itself or at the
published JSON Schema meta-schemas, and nothing is fetched over the network.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.protocols import Validator
from jsonschema_specifications import REGISTRY as SPECIFICATIONS
from referencing import Registry
from referencing._core import Resolver
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

from prompt2json.core.types import JsonValue
from prompt2json.exceptions import InputError

# Keywords whose values are instance data, not subschemas
_DATA_KEYWORDS = frozenset({"const", "default", "enum", "examples"})
# Keywords whose values map arbitrary names to subschemas
_SCHEMA_MAPS = frozenset(
    {"$defs", "definitions", "dependentSchemas", "patternProperties", "properties"}
)


@dataclass(frozen=True, slots=True)
class CompiledSchema:
    """A JSON Schema document together with its compiled validator."""

    document: JsonValue
    validator: Validator
    size: int  # bytes of the source text

    def iter_violations(self, instance: Any) -> list[str]:
        """Describe every way ``instance`` fails the schema (empty when valid)."""
        return [
            f"at {error.json_path}: {error.message}"
            for error in self.validator.iter_errors(instance)
        ]


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_json(text: str | bytes) -> JsonValue:
    """Strict JSON parsing: ``NaN`` and ``Infinity`` are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def _check_references(node: Any, resolver: Resolver) -> None:
    """Look up every ``$ref`` below ``node``, following ``$id`` scopes."""
    if isinstance(node, list):
        for item in node:
            _check_references(item, resolver)
        return
    if not isinstance(node, dict):
        return

    if isinstance(node.get("$id"), str):
        resolver = resolver.in_subresource(DRAFT202012.create_resource(node))
    ref = node.get("$ref")
    if isinstance(ref, str):
        resolver.lookup(ref)

    for key, value in node.items():
        if key in _SCHEMA_MAPS and isinstance(value, dict):
            for subschema in value.values():
                _check_references(subschema, resolver)
        elif key not in _DATA_KEYWORDS:
            _check_references(value, resolver)


def _build_registry(document: dict[str, Any]) -> tuple[Registry, str]:
    resource = DRAFT202012.create_resource(document)
    base_uri = resource.id() or ""
    return SPECIFICATIONS.with_resource(uri=base_uri, resource=resource), base_uri


def compile_schema(source: str | bytes) -> CompiledSchema:
    """Parse and compile a Draft 2020-12 JSON Schema.

    Args:
        source: Schema text as given inline or read from a file.

    Returns:
        CompiledSchema holding the parsed document and its validator.

    Raises:
        InputError: If the text is not a JSON object, is not a valid JSON
            Schema, or contains a ``$ref`` that does not resolve.
    """
    raw = source.encode("utf-8") if isinstance(source, str) else source
    try:
        document = parse_json(raw)
    except ValueError as e:
        raise InputError(f"invalid JSON in schema: {e}") from e
    if not isinstance(document, dict):
        raise InputError(
            f"invalid JSON in schema: expected an object, got {type(document).__name__}"
        )

    try:
        Draft202012Validator.check_schema(document)
    except SchemaError as e:
        raise InputError(f"invalid JSON Schema structure: {e.message}") from e

    registry, base_uri = _build_registry(document)
    try:
        _check_references(document, registry.resolver(base_uri=base_uri))
    except Unresolvable as e:
        raise InputError(f"invalid JSON Schema structure: {e}") from e

    return CompiledSchema(
        document=document,
        validator=Draft202012Validator(document, registry=registry),
        size=len(raw),
    )
