"""Retrieval of artifacts and verification of their checksums."""

from __future__ import annotations

import abc
import hashlib
import os
import shutil
import sys
import tarfile
import zlib
from typing import BinaryIO, Callable, Iterable, TextIO

from tutorialdocs.artifacts.locator import LocatorParam, LocatorWithResolverParam, OSArch

_ERR_INDENT = " " * 4

PathChecksummer = Callable[[str], str]


class ResolveError(Exception):
    """Raised when an artifact cannot be resolved or verified."""


class Resolver(abc.ABC):
    """Retrieves an artifact to a destination path."""

    @abc.abstractmethod
    def resolve(
        self, locator: LocatorParam, os_arch: OSArch, dst: str, stdout: TextIO
    ) -> None:
        """Write the artifact for ``locator`` and ``os_arch`` to ``dst``."""


def resolve_artifact(
    locator_with_resolver: LocatorWithResolverParam,
    default_resolvers: Iterable[Resolver],
    os_arch: OSArch,
    dst: str,
    checksummer: PathChecksummer,
    stdout: TextIO | None = None,
) -> None:
    """Resolve an artifact to ``dst`` and verify its checksum if one is known.

    The locator's own resolver is used if it has one; otherwise the default
    resolvers are tried in order. The artifact is left in place even when
    the checksum does not match.
    """
    stdout = stdout or sys.stdout
    if locator_with_resolver.resolver is not None:
        resolvers: list[Resolver] = [locator_with_resolver.resolver]
    else:
        resolvers = list(default_resolvers)

    locator = locator_with_resolver.locator_with_checksums
    errors: list[str] = []
    for resolver in resolvers:
        try:
            resolver.resolve(locator, os_arch, dst, stdout)
        except Exception as err:  # any resolver failure moves on to the next one
            errors.append(str(err))
            continue
        break
    else:
        parts = [f"failed to resolve artifact {locator} using resolvers:", *errors]
        raise ResolveError(("\n" + _ERR_INDENT).join(parts))

    try:
        got = checksummer(dst)
    except (ResolveError, OSError) as err:
        raise ResolveError(f"failed to compute checksum for artifact at {dst}: {err}") from err

    want = locator.checksums.get(os_arch)
    if want is None:
        return
    if want != got:
        raise ResolveError(
            f"checksum for artifact {dst} did not match: want {want}, got {got}"
        )


def resolve_artifact_tgz(
    locator_with_resolver: LocatorWithResolverParam,
    default_resolvers: Iterable[Resolver],
    os_arch: OSArch,
    dst: str,
    stdout: TextIO | None = None,
) -> None:
    """Resolve a TGZ holding a single file, checksumming the file inside it."""
    resolve_artifact(
        locator_with_resolver,
        default_resolvers,
        os_arch,
        dst,
        plugin_tgz_file_content_hash,
        stdout,
    )


def copy_single_file_tgz_content(dst: BinaryIO, tgz_content_reader: BinaryIO) -> None:
    """Copy the single regular file of a gzipped tar stream to ``dst``.

    Raises ResolveError unless the archive holds exactly one entry.
    """
    num_files = 0
    try:
        with tarfile.open(fileobj=tgz_content_reader, mode="r|gz") as tar:
            for member in tar:
                num_files += 1
                if num_files != 1 or not member.isreg():
                    continue
                extracted = tar.extractfile(member)
                if extracted is not None:
                    shutil.copyfileobj(extracted, dst)
    except (tarfile.TarError, OSError, EOFError, zlib.error) as err:
        raise ResolveError(f"failed to read tar archive: {err}") from err
    if num_files != 1:
        raise ResolveError(f"archive must contain exactly 1 file, but contained {num_files}")


class _HashWriter:
    def __init__(self) -> None:
        self.hasher = hashlib.sha256()

    def write(self, data: bytes) -> int:
        self.hasher.update(data)
        return len(data)


def plugin_tgz_content_hash(tgz_content_reader: BinaryIO) -> str:
    """Return the SHA-256 hex digest of the single file in a TGZ stream."""
    writer = _HashWriter()
    copy_single_file_tgz_content(writer, tgz_content_reader)  # type: ignore[arg-type]
    return writer.hasher.hexdigest()


def plugin_tgz_file_content_hash(tgz_path: str | os.PathLike) -> str:
    """Return the SHA-256 hex digest of the single file in the TGZ at ``tgz_path``."""
    try:
        fh = open(tgz_path, "rb")
    except OSError as err:
        raise ResolveError(f"failed to open {os.fspath(tgz_path)}: {err}") from err
    with fh:
        return plugin_tgz_content_hash(fh)


def sha256_checksum_file(path: str | os.PathLike) -> str:
    """Return the SHA-256 hex digest of the file at ``path``."""
    try:
        fh = open(path, "rb")
    except OSError as err:
        raise ResolveError(f"failed to open {os.fspath(path)} for reading: {err}") from err
    hasher = hashlib.sha256()
    with fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            hasher.update(chunk)
    return hasher.hexdigest()