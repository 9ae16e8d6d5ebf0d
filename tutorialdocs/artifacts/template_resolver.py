"""A resolver whose source location is rendered from a template."""

from __future__ import annotations

import json
import os
import re
import shutil
import sys
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Callable, TextIO, Union

from tutorialdocs.artifacts.locator import LocatorParam, OSArch
from tutorialdocs.artifacts.resolver import ResolveError, Resolver

_Value = Union[str, int, list]
_Func = Callable[[LocatorParam, OSArch], _Value]

_FUNCS: dict[str, _Func] = {
    "Group": lambda loc, _oa: loc.group,
    "GroupPath": lambda loc, _oa: loc.group.replace(".", "/"),
    "GroupParts": lambda loc, _oa: loc.group.split("."),
    "Product": lambda loc, _oa: loc.product,
    "Version": lambda loc, _oa: loc.version,
    "OS": lambda _loc, oa: oa.os,
    "Arch": lambda _loc, oa: oa.arch,
}

_ACTION_RE = re.compile(r"\{\{(-\s)?(.*?)(\s-)?\}\}", re.S)
_TOKEN_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\S+')
_INT_RE = re.compile(r"-?\d+")


class TemplateResolverError(ResolveError):
    """Raised when a resolver template is invalid or its artifact cannot be fetched."""


@dataclass(frozen=True)
class _Term:
    func: str | None = None
    literal: _Value | None = None

    def evaluate(self, locator: LocatorParam, os_arch: OSArch) -> _Value:
        if self.func is not None:
            return _FUNCS[self.func](locator, os_arch)
        assert self.literal is not None
        return self.literal


@dataclass(frozen=True)
class _Action:
    target: _Term
    indices: tuple[_Term, ...] = ()
    comment: bool = False

    def evaluate(self, locator: LocatorParam, os_arch: OSArch) -> str:
        if self.comment:
            return ""
        value = self.target.evaluate(locator, os_arch)
        for index_term in self.indices:
            index = index_term.evaluate(locator, os_arch)
            if not isinstance(value, list):
                raise TemplateResolverError(
                    f"can't index item of type {type(value).__name__}"
                )
            if not isinstance(index, int):
                raise TemplateResolverError(f"cannot index slice with {index!r}")
            if not 0 <= index < len(value):
                raise TemplateResolverError(f"index out of range: {index}")
            value = value[index]
        return _format(value)


def _format(value: _Value) -> str:
    if isinstance(value, list):
        return "[" + " ".join(_format(v) for v in value) + "]"
    return str(value)


def _parse_term(token: str) -> _Term:
    if token.startswith('"'):
        try:
            return _Term(literal=json.loads(token))
        except ValueError as err:
            raise TemplateResolverError(f"invalid string literal {token}") from err
    if _INT_RE.fullmatch(token):
        return _Term(literal=int(token))
    if token in _FUNCS:
        return _Term(func=token)
    raise TemplateResolverError(f'function "{token}" not defined')


def _parse_action(body: str) -> _Action:
    stripped = body.strip()
    if stripped.startswith("/*") and stripped.endswith("*/"):
        return _Action(target=_Term(literal=""), comment=True)
    tokens = _TOKEN_RE.findall(stripped)
    if not tokens:
        raise TemplateResolverError("missing value for command")
    if tokens[0] == "index":
        if len(tokens) < 2:
            raise TemplateResolverError("wrong number of args for index")
        return _Action(
            target=_parse_term(tokens[1]),
            indices=tuple(_parse_term(t) for t in tokens[2:]),
        )
    if len(tokens) > 1:
        if tokens[0] in _FUNCS:
            raise TemplateResolverError(
                f"wrong number of args for {tokens[0]}: want 0 got {len(tokens) - 1}"
            )
        raise TemplateResolverError(f"unexpected {tokens[1]} in command")
    return _Action(target=_parse_term(tokens[0]))


def _parse(template: str) -> list[str | _Action]:
    segments: list[str | _Action] = []
    pos = 0
    trim_next = False
    for match in _ACTION_RE.finditer(template):
        text = template[pos : match.start()]
        if trim_next:
            text = text.lstrip()
        if match.group(1):
            text = text.rstrip()
        if "{{" in text:
            raise TemplateResolverError("unclosed action")
        segments.append(text)
        segments.append(_parse_action(match.group(2)))
        trim_next = bool(match.group(3))
        pos = match.end()
    tail = template[pos:]
    if trim_next:
        tail = tail.lstrip()
    if "{{" in tail:
        raise TemplateResolverError("unclosed action")
    segments.append(tail)
    return segments


class TemplateResolver(Resolver):
    """Resolves artifacts from a location rendered from a template.

    The template may use the functions Group, GroupPath, GroupParts, Product,
    Version, OS and Arch, and ``index`` to pick an element of a list.
    """

    def __init__(self, template: str) -> None:
        self.template = template
        try:
            self._segments = _parse(template)
        except TemplateResolverError as err:
            raise TemplateResolverError(
                f"failed to create resolver from template {json.dumps(template)}: {err}"
            ) from err

    def render(self, locator: LocatorParam, os_arch: OSArch) -> str:
        """Return the source location for ``locator`` and ``os_arch``."""
        try:
            return "".join(
                seg if isinstance(seg, str) else seg.evaluate(locator, os_arch)
                for seg in self._segments
            )
        except TemplateResolverError as err:
            raise TemplateResolverError(
                f"failed to execute template {json.dumps(self.template)}: {err}"
            ) from err

    def resolve(
        self, locator: LocatorParam, os_arch: OSArch, dst: str, stdout: TextIO | None = None
    ) -> None:
        src = self.render(locator, os_arch)
        try:
            download(src, dst, stdout)
        except TemplateResolverError as err:
            raise TemplateResolverError(f"failed to resolve artifact at {src}: {err}") from err


def download(src: str, dst: str | os.PathLike, stdout: TextIO | None = None) -> None:
    """Copy the file at the URL or local path ``src`` to ``dst``."""
    stdout = stdout or sys.stdout
    stdout.write(f"Getting package from {src}...\n")
    parsed = urllib.parse.urlparse(src)
    scheme = parsed.scheme.lower()
    try:
        if scheme in ("http", "https"):
            with urllib.request.urlopen(src) as response, open(dst, "wb") as out:
                shutil.copyfileobj(response, out)
        else:
            path = urllib.request.url2pathname(parsed.path) if scheme == "file" else src
            shutil.copyfile(path, dst)
    except (urllib.error.URLError, OSError, ValueError) as err:
        raise TemplateResolverError(f"failed to download {src}: {err}") from err