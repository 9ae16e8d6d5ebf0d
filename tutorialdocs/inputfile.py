"""Discovery and naming of numbered tutorial template files."""

from __future__ import annotations

import json
import os
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

TEMPLATE_SUFFIX = ".tmpl"

_TEMPLATE_FILE_RE = re.compile(r"(\d+)_(.+)" + re.escape(TEMPLATE_SUFFIX))


class InputFileError(Exception):
    """Raised when template input files are malformed or inconsistent."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _format_list(values: Iterable[str]) -> str:
    return "[" + " ".join(values) + "]"


@dataclass(frozen=True)
class InputFile:
    """A template file named ``<ordering>_<name>[.<ext>].tmpl``."""

    template_file_name: str
    ordering: int
    name: str
    original_extension: str = ""

    def output_dir_name(self) -> str:
        return f"{self.ordering}_{self.name}"

    def output_script_file_name(self) -> str:
        return f"run-{self.name}.sh"

    def output_rendered_file_name(self) -> str:
        return self.name + self.original_extension

    def docker_tag(self, tag_prefix: str) -> str:
        return f"{tag_prefix}:{self.name}"


def new_input_file(file_name: str) -> InputFile:
    """Parse a template file name into an :class:`InputFile`."""
    match = _TEMPLATE_FILE_RE.fullmatch(file_name)
    if match is None:
        raise InputFileError(f"input {_quote(file_name)} does not match required format")
    ordering = int(match.group(1))
    base = match.group(2)
    name, dot, extension = base.rpartition(".")
    if not dot:
        return InputFile(file_name, ordering, base, "")
    return InputFile(file_name, ordering, name, "." + extension)


def get_input_files(file_names: Iterable[str]) -> list[InputFile]:
    """Return the valid template files sorted by ordering.

    Names that are not template files are ignored. Raises InputFileError if
    two files share an ordering value or a name.
    """
    input_files: list[InputFile] = []
    orderings: dict[int, list[str]] = defaultdict(list)
    names: dict[str, list[str]] = defaultdict(list)

    for file_name in file_names:
        try:
            current = new_input_file(file_name)
        except InputFileError:
            continue
        input_files.append(current)
        orderings[current.ordering].append(current.template_file_name)
        names[current.name].append(current.template_file_name)

    input_files.sort(key=lambda f: f.ordering)

    for ordering in sorted(orderings):
        if len(orderings[ordering]) > 1:
            raise InputFileError(
                f"multiple inputs have the ordering value {ordering}: "
                f"{_format_list(orderings[ordering])}"
            )

    for name in sorted(names):
        if len(names[name]) > 1:
            raise InputFileError(
                f"multiple inputs have the name {_quote(name)}: {_format_list(names[name])}"
            )

    return input_files


def get_input_files_from_dir(input_dir: str | os.PathLike) -> list[InputFile]:
    """Return the template files among the regular entries of ``input_dir``."""
    try:
        with os.scandir(input_dir) as entries:
            file_names = sorted(entry.name for entry in entries if not entry.is_dir())
    except OSError as err:
        raise InputFileError(f"failed to read directory: {err}") from err
    return get_input_files(file_names)