"""Identifiers for artifacts and the platforms they are built for."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from tutorialdocs.artifacts.resolver import Resolver


@dataclass(frozen=True)
class OSArch:
    """An operating system and architecture pair."""

    os: str = ""
    arch: str = ""


@dataclass(frozen=True)
class Locator:
    """The group, product and version that identify an artifact."""

    group: str = ""
    product: str = ""
    version: str = ""

    def __str__(self) -> str:
        return f"{self.group_and_product_string()}:{self.version}"

    def group_and_product_string(self) -> str:
        return f"{self.group}:{self.product}"


@dataclass(frozen=True)
class LocatorParam(Locator):
    """A locator together with the expected checksum for each platform."""

    checksums: Mapping[OSArch, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LocatorWithResolverParam:
    """A locator with checksums and an optional resolver that overrides the defaults."""

    locator_with_checksums: LocatorParam
    resolver: Optional["Resolver"] = None