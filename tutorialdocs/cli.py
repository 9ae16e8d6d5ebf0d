"""Command line entry point for the tutorial document generator."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from tutorialdocs.generator import GenerateError, Params, generate
from tutorialdocs.inputfile import InputFileError
from tutorialdocs.templatefile import TemplateError

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


class _UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise _UsageError(message)


def _parse_bool(value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {value!r}")


def _add_bool_flag(parser: argparse.ArgumentParser, name: str, default: bool, help_text: str) -> None:
    parser.add_argument(
        name,
        nargs="?",
        const=True,
        default=default,
        type=_parse_bool,
        metavar="BOOL",
        help=help_text,
    )


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the command."""
    parser = _Parser(prog="docs-generator")
    parser.add_argument("--input-dir", required=True, help="input directory")
    parser.add_argument("--output-dir", required=True, help="output directory")
    parser.add_argument(
        "--base-image", required=True, help="the base image for the first Docker image"
    )
    parser.add_argument(
        "--tag-prefix",
        default="docsgenerator",
        help="the prefix for the Docker tag used for the images",
    )
    _add_bool_flag(
        parser, "--run-docker-build", True, "run the 'docker build' actions for the templates"
    )
    _add_bool_flag(
        parser,
        "--suppress-docker-output",
        False,
        "suppress the output of the 'docker build' operation(s)",
    )
    parser.add_argument("--start-step", type=int, default=-1, help="start step")
    parser.add_argument("--end-step", type=int, default=-1, help="end step")
    _add_bool_flag(
        parser,
        "--leave-generated-files",
        False,
        "do not clean up the generated intermediate files",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command and return its exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except _UsageError as err:
        sys.stderr.write(f"Error: {err}\n")
        return 1
    except SystemExit as exit_request:
        code = exit_request.code
        return code if isinstance(code, int) else 0

    params = Params(
        tag_prefix=args.tag_prefix,
        run_docker_build=args.run_docker_build,
        suppress_docker_output=args.suppress_docker_output,
        start_step=args.start_step,
        end_step=args.end_step,
        leave_generated_files=args.leave_generated_files,
    )
    try:
        generate(args.input_dir, args.output_dir, args.base_image, params, sys.stdout)
    except (GenerateError, InputFileError, TemplateError, OSError) as err:
        sys.stderr.write(f"Error: {err}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())