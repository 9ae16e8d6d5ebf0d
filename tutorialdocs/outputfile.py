"""Generation of build files and parsing of the commands' recorded output."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable

from tutorialdocs.templatefile import InputFileWithParsedContent, TutorialCodePart

BASH_RUN_START = "BASH_RUN:-------------"
OUTPUT_START = "OUTPUT:---------------"
END_DELIMITER = "----------------------"

_BASH_SCRIPT_COMMON_CODE_TEMPLATE = """#!/usr/bin/env bash
print_then_run () {
    echo "%s"
    echo "$1"
    echo "%s"

    echo "%s"
    eval "$1"
    echo "%s"
}
"""

_BASH_SCRIPT_SINGLE_CMD_TEMPLATE = """
set +e
read -d '' ACTION <<"EOF"
%s
EOF
set -e
print_then_run "$ACTION"
"""

_DOCKERFILE_TEMPLATE = """FROM {{FROM_IMAGE}}

ADD {{SCRIPT_FILE}} /scripts/
RUN /scripts/{{SCRIPT_FILE}} 2>&1
"""

_BASH_OUTPUT_RE = re.compile(
    r"^"
    + re.escape(BASH_RUN_START)
    + r"\n(.*?)\n"
    + re.escape(END_DELIMITER)
    + r"\n"
    + re.escape(OUTPUT_START)
    + r"\n(.*?)\n?"
    + re.escape(END_DELIMITER)
    + r"$",
    re.S | re.M,
)


@dataclass
class BashRunCmd:
    """A command that was run and the output it produced."""

    cmd: str
    output: str = ""

    def __str__(self) -> str:
        text = "➜ " + self.cmd
        if self.output:
            text += "\n" + self.output
        return text


def write_output_files(
    output_dir: str | os.PathLike, in_file: InputFileWithParsedContent, from_image: str
) -> str:
    """Write the script and Dockerfile for ``in_file``; return their directory."""
    current_dir = os.path.join(output_dir, in_file.file_info.output_dir_name())
    os.makedirs(current_dir, mode=0o755, exist_ok=True)

    script_name = in_file.file_info.output_script_file_name()
    script_path = os.path.join(current_dir, script_name)
    with open(script_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(bash_script(in_file.parsed_content.tutorial_code_parts))
    os.chmod(script_path, 0o755)

    dockerfile_path = os.path.join(current_dir, "Dockerfile")
    with open(dockerfile_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(docker_file(from_image, script_name))
    os.chmod(dockerfile_path, 0o644)

    return current_dir


def docker_file(from_image: str, script_file_name: str) -> str:
    """Return a Dockerfile that runs ``script_file_name`` on ``from_image``."""
    return _DOCKERFILE_TEMPLATE.replace("{{FROM_IMAGE}}", from_image).replace(
        "{{SCRIPT_FILE}}", script_file_name
    )


def bash_script_common_code() -> str:
    """Return the script preamble that prints each command and its output."""
    return _BASH_SCRIPT_COMMON_CODE_TEMPLATE % (
        BASH_RUN_START,
        END_DELIMITER,
        OUTPUT_START,
        END_DELIMITER,
    )


def bash_script(code_parts: Iterable[TutorialCodePart]) -> str:
    """Return a bash script that runs every code part in order."""
    pieces = [bash_script_common_code()]
    for part in code_parts:
        code = part.code + " || true" if part.want_fail else part.code
        pieces.append(_BASH_SCRIPT_SINGLE_CMD_TEMPLATE % code)
    return "".join(pieces)


def parse_bash_run_cmd_from_output(output: str) -> list[BashRunCmd]:
    """Extract the commands and their outputs from a script's output."""
    return [
        BashRunCmd(cmd=match.group(1), output=match.group(2))
        for match in _BASH_OUTPUT_RE.finditer(output)
    ]