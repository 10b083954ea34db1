"""Command-line interface for prompt2json.

Usage:
    prompt2json --system-instruction "Classify sentiment" \\
        --schema '{"type": "object", ...}' \\
        --project my-project --location us-central1 --model gemini-2.5-flash \\
        --prompt "this is great"

The JSON result goes to stdout (or ``--out``); every diagnostic goes to
stderr. Exit status: 0 success, 2 usage, 3 input, 4 validation/response,
5 API/auth.
"""

from __future__ import annotations

import argparse
from collections.abc import Mapping, Sequence
import logging
import os
import sys
from typing import TextIO

from prompt2json import __version__
from prompt2json.config import ConfigInputs, ResolvedConfig, resolve_config
from prompt2json.constants import EXIT_SUCCESS, LOCATION_ENV_VARS, PROJECT_ENV_VARS
from prompt2json.exceptions import InputError, Prompt2JsonError
from prompt2json.executor import create_executor

# ruff: noqa: T201

log = logging.getLogger("prompt2json.cli")

_HANDLER_NAME = "prompt2json.stderr"

_EPILOG = f"""\
environment (used if option not set):
  --project   {", ".join(PROJECT_ENV_VARS)}
  --location  {", ".join(LOCATION_ENV_VARS)}

exit status: 0 success, 2 usage, 3 input, 4 validation/response, 5 API/auth

The response must parse as JSON and satisfy the schema. Output is minified
unless --pretty-print is given. When validation fails the model's output is
still written and the reason is reported on stderr.
"""


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="prompt2json",
        description="Turn prompts into schema-validated JSON using Vertex AI (Gemini)",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    required = parser.add_argument_group("required")
    required.add_argument(
        "--system-instruction", metavar="TEXT", help="System instruction (inline text)"
    )
    required.add_argument(
        "--system-instruction-file", metavar="PATH", help="System instruction from file"
    )
    required.add_argument("--schema", metavar="JSON", help="JSON Schema (inline JSON)")
    required.add_argument("--schema-file", metavar="PATH", help="JSON Schema from file")
    required.add_argument("--project", metavar="ID", help="GCP project ID")
    required.add_argument("--location", metavar="REGION", help="GCP location/region")
    required.add_argument("--model", metavar="NAME", help="Gemini model identifier")

    inputs = parser.add_argument_group("input")
    inputs.add_argument(
        "--prompt", metavar="TEXT", help="Prompt text (default: read from stdin)"
    )
    inputs.add_argument(
        "--prompt-file",
        metavar="PATH",
        help="Read prompt from file (mutually exclusive with --prompt)",
    )
    inputs.add_argument(
        "--attach",
        metavar="PATH",
        action="append",
        default=[],
        help="Attach file (repeatable): png, jpg/jpeg, webp, pdf",
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "--out", metavar="PATH", help="Write JSON to file (default: stdout)"
    )
    output.add_argument(
        "--pretty-print",
        action="store_true",
        help="Pretty-print JSON output (default: minified)",
    )

    misc = parser.add_argument_group("misc")
    misc.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=int,
        default=None,
        help="HTTP request timeout in seconds (default: 60, 0 disables)",
    )
    misc.add_argument(
        "--verbose", action="store_true", help="Log diagnostics to stderr"
    )
    misc.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def parse_inputs(argv: Sequence[str] | None = None) -> ConfigInputs:
    """Parse command-line arguments into raw configuration inputs."""
    args = build_parser().parse_args(argv)
    return ConfigInputs(
        system_instruction=args.system_instruction,
        system_instruction_file=args.system_instruction_file,
        schema=args.schema,
        schema_file=args.schema_file,
        prompt=args.prompt,
        prompt_file=args.prompt_file,
        attachments=tuple(args.attach),
        out_file=args.out,
        project=args.project,
        location=args.location,
        model=args.model,
        timeout=args.timeout,
        verbose=args.verbose,
        pretty_print=args.pretty_print,
    )


def configure_logging(*, verbose: bool) -> None:
    """Send package log records to stderr: INFO when verbose, else WARNING."""
    logger = logging.getLogger("prompt2json")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)


def write_output(config: ResolvedConfig, text: str) -> None:
    """Write the result to ``--out`` (overwriting) or to stdout.

    The text is encoded before the file is opened, so an unencodable result
    never truncates an existing file.

    Raises:
        InputError: If the text is not valid UTF-8 or the file cannot be written.
    """
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InputError(f"failed to encode output: {e.reason}") from e
    if config.out_file is None:
        print(text)
        return
    try:
        config.out_file.write_bytes(data)
    except OSError as e:
        raise InputError(f"failed to write output file: {e}") from e


def run(
    inputs: ConfigInputs,
    *,
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
) -> int:
    """Resolve, execute and write output; raise on any failure.

    A reply that fails validation is written before its error is raised.
    """
    config = resolve_config(
        inputs,
        environ=os.environ if environ is None else environ,
        stdin=stdin,
    )
    log.info(config.audit())

    result = create_executor(config).execute()

    log.info("Output to: %s", config.out_file or "stdout")
    write_output(config, result.output)
    if result.error is not None:
        raise result.error
    return EXIT_SUCCESS


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
) -> int:
    """CLI entry point; returns the process exit status."""
    inputs = parse_inputs(argv)
    configure_logging(verbose=inputs.verbose)
    try:
        return run(inputs, environ=environ, stdin=stdin)
    except Prompt2JsonError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return e.kind.exit_code


if __name__ == "__main__":
    sys.exit(main())
