import hashlib
import io
import tarfile

import pytest

from tutorialdocs.artifacts.locator import LocatorParam, LocatorWithResolverParam, OSArch
from tutorialdocs.artifacts.resolver import (
    ResolveError,
    Resolver,
    copy_single_file_tgz_content,
    plugin_tgz_content_hash,
    plugin_tgz_file_content_hash,
    resolve_artifact,
    resolve_artifact_tgz,
    sha256_checksum_file,
)

DARWIN = OSArch(os="darwin", arch="amd64")


def _make_tgz(entries):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in entries:
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
            else:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class _WritingResolver(Resolver):
    def __init__(self, content):
        self.content = content
        self.calls = 0

    def resolve(self, locator, os_arch, dst, stdout):
        self.calls += 1
        with open(dst, "wb") as fh:
            fh.write(self.content)


class _FailingResolver(Resolver):
    def __init__(self, message):
        self.message = message
        self.calls = 0

    def resolve(self, locator, os_arch, dst, stdout):
        self.calls += 1
        raise ResolveError(self.message)


def test_copy_single_file_tgz_content_copies_file():
    out = io.BytesIO()
    copy_single_file_tgz_content(out, io.BytesIO(_make_tgz([("tool", b"binary content")])))
    assert out.getvalue() == b"binary content"


@pytest.mark.parametrize("count", [0, 2])
def test_copy_single_file_tgz_content_rejects_wrong_count(count):
    entries = [(f"f{i}", b"x") for i in range(count)]
    with pytest.raises(ResolveError, match=f"exactly 1 file, but contained {count}"):
        copy_single_file_tgz_content(io.BytesIO(), io.BytesIO(_make_tgz(entries)))


def test_copy_single_file_tgz_content_single_directory_copies_nothing():
    out = io.BytesIO()
    copy_single_file_tgz_content(out, io.BytesIO(_make_tgz([("dir", None)])))
    assert out.getvalue() == b""


def test_copy_single_file_tgz_content_rejects_non_gzip():
    with pytest.raises(ResolveError):
        copy_single_file_tgz_content(io.BytesIO(), io.BytesIO(b"not an archive"))


def test_plugin_tgz_content_hash_hashes_inner_file():
    data = b"plugin bytes"
    got = plugin_tgz_content_hash(io.BytesIO(_make_tgz([("plugin", data)])))
    assert got == hashlib.sha256(data).hexdigest()


def test_plugin_tgz_file_content_hash_differs_from_archive_hash(tmp_path):
    data = b"plugin bytes"
    path = tmp_path / "plugin.tgz"
    path.write_bytes(_make_tgz([("plugin", data)]))
    assert plugin_tgz_file_content_hash(str(path)) == hashlib.sha256(data).hexdigest()
    assert sha256_checksum_file(str(path)) == hashlib.sha256(path.read_bytes()).hexdigest()


def test_plugin_tgz_file_content_hash_missing_file(tmp_path):
    with pytest.raises(ResolveError, match="failed to open"):
        plugin_tgz_file_content_hash(str(tmp_path / "missing.tgz"))


def test_sha256_checksum_file_missing(tmp_path):
    with pytest.raises(ResolveError, match="for reading"):
        sha256_checksum_file(str(tmp_path / "missing"))


def test_resolve_artifact_uses_defaults_in_order(tmp_path):
    dst = str(tmp_path / "dst")
    failing = _FailingResolver("first failure")
    writing = _WritingResolver(b"content")
    unused = _WritingResolver(b"other")
    param = LocatorWithResolverParam(LocatorParam(group="g", product="p", version="v"))
    resolve_artifact(param, [failing, writing, unused], DARWIN, dst, sha256_checksum_file, io.StringIO())
    assert (tmp_path / "dst").read_bytes() == b"content"
    assert (failing.calls, writing.calls, unused.calls) == (1, 1, 0)


def test_resolve_artifact_locator_resolver_overrides_defaults(tmp_path):
    dst = str(tmp_path / "dst")
    own = _WritingResolver(b"own")
    default = _WritingResolver(b"default")
    param = LocatorWithResolverParam(LocatorParam(), resolver=own)
    resolve_artifact(param, [default], DARWIN, dst, sha256_checksum_file, io.StringIO())
    assert (tmp_path / "dst").read_bytes() == b"own"
    assert default.calls == 0


def test_resolve_artifact_reports_every_failure(tmp_path):
    param = LocatorWithResolverParam(LocatorParam(group="g", product="p", version="v"))
    resolvers = [_FailingResolver("first failure"), _FailingResolver("second failure")]
    with pytest.raises(ResolveError) as excinfo:
        resolve_artifact(param, resolvers, DARWIN, str(tmp_path / "dst"), sha256_checksum_file, io.StringIO())
    message = str(excinfo.value)
    assert message.startswith("failed to resolve artifact g:p:v using resolvers:")
    assert message.endswith("\n    first failure\n    second failure")


def test_resolve_artifact_checksum_match(tmp_path):
    content = b"content"
    expected = hashlib.sha256(content).hexdigest()
    dst = str(tmp_path / "dst")
    param = LocatorWithResolverParam(
        LocatorParam(checksums={DARWIN: expected}),
        resolver=_WritingResolver(content),
    )
    result = resolve_artifact(param, [], DARWIN, dst, sha256_checksum_file, io.StringIO())
    assert result is None
    assert sha256_checksum_file(dst) == expected
    assert (tmp_path / "dst").read_bytes() == content


def test_resolve_artifact_checksum_mismatch_leaves_artifact(tmp_path):
    dst = str(tmp_path / "dst")
    param = LocatorWithResolverParam(
        LocatorParam(checksums={DARWIN: "wrong"}), resolver=_WritingResolver(b"content")
    )
    with pytest.raises(ResolveError, match="did not match: want wrong, got"):
        resolve_artifact(param, [], DARWIN, dst, sha256_checksum_file, io.StringIO())
    assert (tmp_path / "dst").read_bytes() == b"content"


def test_resolve_artifact_checksum_for_other_platform_ignored(tmp_path):
    dst = str(tmp_path / "dst")
    param = LocatorWithResolverParam(
        LocatorParam(checksums={OSArch("linux", "amd64"): "wrong"}),
        resolver=_WritingResolver(b"content"),
    )
    result = resolve_artifact(param, [], DARWIN, dst, sha256_checksum_file, io.StringIO())
    assert result is None
    assert sha256_checksum_file(dst) == hashlib.sha256(b"content").hexdigest()
    assert (tmp_path / "dst").read_bytes() == b"content"


def test_resolve_artifact_tgz_verifies_inner_file(tmp_path):
    data = b"plugin bytes"
    archive = _make_tgz([("plugin", data)])
    dst = str(tmp_path / "plugin.tgz")
    good = LocatorWithResolverParam(
        LocatorParam(checksums={DARWIN: hashlib.sha256(data).hexdigest()}),
        resolver=_WritingResolver(archive),
    )
    resolve_artifact_tgz(good, [], DARWIN, dst, io.StringIO())
    assert (tmp_path / "plugin.tgz").read_bytes() == archive

    bad = LocatorWithResolverParam(
        LocatorParam(checksums={DARWIN: hashlib.sha256(archive).hexdigest()}),
        resolver=_WritingResolver(archive),
    )
    with pytest.raises(ResolveError, match="did not match"):
        resolve_artifact_tgz(bad, [], DARWIN, dst, io.StringIO())


def test_resolve_artifact_tgz_checksum_failure_is_wrapped(tmp_path):
    dst = str(tmp_path / "plugin.tgz")
    param = LocatorWithResolverParam(LocatorParam(), resolver=_WritingResolver(b"not a tgz"))
    with pytest.raises(ResolveError, match="failed to compute checksum for artifact at"):
        resolve_artifact_tgz(param, [], DARWIN, dst, io.StringIO())