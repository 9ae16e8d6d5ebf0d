"""Parsing and rendering of tutorial template content."""

from __future__ import annotations

import dataclasses
import json
import os
import re
from dataclasses import dataclass, field

from tutorialdocs.inputfile import InputFile

TUTORIAL_CODE_START_LINE_LITERAL = "```START_TUTORIAL_CODE"
TUTORIAL_CODE_END_LINE_LITERAL = "```END_TUTORIAL_CODE"
CODE_ESCAPE = "```"

# the start line may be followed by a vertical bar and options
_START_LINE = re.escape(TUTORIAL_CODE_START_LINE_LITERAL) + r"(\|[^\n]*)?"
_END_LINE = re.escape(TUTORIAL_CODE_END_LINE_LITERAL)

_TUTORIAL_CODE_RE = re.compile(
    r"^" + _START_LINE + r"\n(.*?)\n" + _END_LINE + r"$", re.S | re.M
)
_ADJACENT_TUTORIAL_CODE_RE = re.compile(
    r"^" + _END_LINE + r"\n" + _START_LINE + r"$\n", re.S | re.M
)
_START_LINE_RE = re.compile(r"^" + _START_LINE + r"$", re.M)
_END_LINE_RE = re.compile(r"^" + _END_LINE + r"$", re.M)

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


class TemplateError(Exception):
    """Raised when template content cannot be read, parsed or rendered."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


@dataclass(frozen=True)
class TutorialCodePart:
    """One block of tutorial code and whether it is expected to fail."""

    code: str
    want_fail: bool = False


@dataclass
class ParsedTemplateFile:
    """Template content together with the code blocks found in it."""

    full_content: str
    tutorial_code_parts: list[TutorialCodePart] = field(default_factory=list)

    def render(self, rendered_code: list[str]) -> str:
        """Replace each code block with its rendered form and plain fences."""
        idx = 0

        def replace(_match: re.Match) -> str:
            nonlocal idx
            if idx >= len(rendered_code):
                raise TemplateError(
                    f"index {idx} is >= than number of rendered code parts {len(rendered_code)}"
                )
            result = "\n".join(
                (
                    TUTORIAL_CODE_START_LINE_LITERAL,
                    rendered_code[idx],
                    TUTORIAL_CODE_END_LINE_LITERAL,
                )
            )
            idx += 1
            return result

        rendered = _TUTORIAL_CODE_RE.sub(replace, self.full_content)
        if idx != len(self.tutorial_code_parts):
            raise TemplateError(
                f"only found {idx} tutorial code parts in content, "
                f"but expected {len(self.tutorial_code_parts)}"
            )

        rendered = _ADJACENT_TUTORIAL_CODE_RE.sub("", rendered)
        rendered = _START_LINE_RE.sub(lambda _m: CODE_ESCAPE, rendered)
        rendered = _END_LINE_RE.sub(lambda _m: CODE_ESCAPE, rendered)
        return rendered


@dataclass(frozen=True)
class InputFileWithParsedContent:
    """An input file paired with its parsed content."""

    file_info: InputFile
    parsed_content: ParsedTemplateFile


def _parse_bool(value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {_quote(value)}")


def apply_options(code_part: TutorialCodePart, options: str) -> TutorialCodePart:
    """Return ``code_part`` updated with the comma-separated ``options``."""
    for option in options.split(","):
        if not option.startswith("fail="):
            raise TemplateError(f"unknown option: {_quote(option)}")
        try:
            want_fail = _parse_bool(option[len("fail="):])
        except ValueError as err:
            raise TemplateError(f"failed to parse option {_quote(option)}: {err}") from err
        code_part = dataclasses.replace(code_part, want_fail=want_fail)
    return code_part


def parse_template_file(content: str | bytes) -> ParsedTemplateFile:
    """Find the tutorial code blocks in ``content``."""
    if isinstance(content, bytes):
        content = content.decode("utf-8")
    parts: list[TutorialCodePart] = []
    for match in _TUTORIAL_CODE_RE.finditer(content):
        part = TutorialCodePart(code=match.group(2))
        options_match = match.group(1)
        if options_match:
            options = options_match[1:]
            if options:
                try:
                    part = apply_options(part, options)
                except TemplateError as err:
                    raise TemplateError(f"failed to apply options: {err}") from err
        parts.append(part)
    return ParsedTemplateFile(full_content=content, tutorial_code_parts=parts)


def read_template_file(
    input_dir: str | os.PathLike, input_file: InputFile
) -> InputFileWithParsedContent:
    """Read and parse the template file described by ``input_file``."""
    path = os.path.join(input_dir, input_file.template_file_name)
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as err:
        raise TemplateError(f"failed to read file: {err}") from err
    try:
        parsed = parse_template_file(data)
    except (TemplateError, UnicodeDecodeError) as err:
        raise TemplateError(f"failed to parse template file: {err}") from err
    return InputFileWithParsedContent(file_info=input_file, parsed_content=parsed)