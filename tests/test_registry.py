"""InstallRegistry 测试"""

import pytest

from helpers import make_corrupt_zip, make_unsupported_zip, make_zip
from noisefetch.exceptions import ExtractionFailed, FilesystemFault, NotInstalled
from noisefetch.models import Platform, VersionIndex, VersionInfo
from noisefetch.services import InstallRegistry

LINUX = Platform.LINUX_AMD64
WINDOWS = Platform.WINDOWS_AMD64


@pytest.fixture
def registry(tmp_path):
    return InstallRegistry(tmp_path / "versions")


def write_archive(path, files):
    path.write_bytes(make_zip(files))
    return path


def test_install_then_uninstall_round_trip(registry, tmp_path):
    shared = write_archive(tmp_path / "shared.zip", {"bin/engine.dll": b"shared"})
    extension = write_archive(tmp_path / "ext.zip", {"bin/native.so": b"native"})

    target = registry.install("1.0", LINUX, [shared, extension])

    assert target == tmp_path / "versions" / "LinuxAmd64" / "1.0"
    assert registry.is_installed("1.0", LINUX)
    assert not registry.is_installed("1.0", WINDOWS)
    assert (target / "bin" / "engine.dll").read_bytes() == b"shared"
    assert (target / "bin" / "native.so").read_bytes() == b"native"
    # 临时压缩包在解压后被删除
    assert not shared.exists() and not extension.exists()

    registry.uninstall("1.0", LINUX)
    assert not registry.is_installed("1.0", LINUX)
    assert not target.exists()


def test_uninstall_twice_reports_not_installed(registry, tmp_path):
    registry.install("1.0", LINUX, [write_archive(tmp_path / "a.zip", {"a": b"1"})])

    registry.uninstall("1.0", LINUX)
    with pytest.raises(NotInstalled):
        registry.uninstall("1.0", LINUX)


def test_extension_overwrites_shared_files(registry, tmp_path):
    shared = write_archive(tmp_path / "shared.zip", {"config.json": b"shared", "only-shared": b"s"})
    extension = write_archive(tmp_path / "ext.zip", {"config.json": b"platform"})

    target = registry.install("1.0", WINDOWS, [shared, extension])

    assert (target / "config.json").read_bytes() == b"platform"
    assert (target / "only-shared").read_bytes() == b"s"


def test_corrupt_archive(registry, tmp_path):
    broken = tmp_path / "broken.zip"
    broken.write_bytes(b"definitely not a zip")

    with pytest.raises(ExtractionFailed):
        registry.install("1.0", LINUX, [broken])


@pytest.mark.parametrize("payload", [make_corrupt_zip(), make_unsupported_zip()])
def test_undecodable_archive(registry, tmp_path, payload):
    broken = tmp_path / "broken.zip"
    broken.write_bytes(payload)

    with pytest.raises(ExtractionFailed):
        registry.install("1.0", LINUX, [broken])


def test_archive_escaping_target_is_rejected(registry, tmp_path):
    evil = write_archive(tmp_path / "evil.zip", {"../../outside.txt": b"x"})

    with pytest.raises(ExtractionFailed):
        registry.install("1.0", LINUX, [evil])
    assert not (tmp_path / "versions" / "outside.txt").exists()


@pytest.mark.parametrize("name", ["", ".", "..", "../1.0", "a/b"])
def test_unsafe_version_names(registry, tmp_path, name):
    assert not registry.is_installed(name, LINUX)
    with pytest.raises(NotInstalled):
        registry.uninstall(name, LINUX)
    with pytest.raises(FilesystemFault):
        registry.install(name, LINUX, [])


def test_installed_versions(registry):
    assert registry.installed_versions(LINUX) == []
    for version in ("2.0", "1.0"):
        registry.path_for(version, LINUX).mkdir(parents=True)

    assert registry.installed_versions(LINUX) == ["1.0", "2.0"]
    assert registry.installed_versions(WINDOWS) == []


def test_latest_installed_prefers_stable_in_catalog_order(registry):
    index = VersionIndex(
        versions=(
            VersionInfo("3.0-rc", True),
            VersionInfo("2.0", False),
            VersionInfo("1.0", False),
        )
    )
    for version in ("3.0-rc", "1.0"):
        registry.path_for(version, LINUX).mkdir(parents=True)

    assert registry.latest_installed(LINUX, index) == "1.0"

    registry.path_for("2.0", LINUX).mkdir(parents=True)
    assert registry.latest_installed(LINUX, index) == "2.0"


def test_latest_installed_falls_back_to_pre_release(registry):
    index = VersionIndex(versions=(VersionInfo("3.0-rc", True), VersionInfo("2.0", False)))
    registry.path_for("3.0-rc", LINUX).mkdir(parents=True)

    assert registry.latest_installed(LINUX, index) == "3.0-rc"
    assert registry.latest_installed(WINDOWS, index) is None


def test_latest_installed_ignores_versions_missing_from_catalog(registry):
    index = VersionIndex(versions=(VersionInfo("2.0", False),))
    registry.path_for("0.1-local", LINUX).mkdir(parents=True)

    assert registry.latest_installed(LINUX, index) is None
