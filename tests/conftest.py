import zipfile
from pathlib import Path
from typing import Iterable

import pytest

from restore_assets.builder import LockFileLibraryBuilder
from restore_assets.models import LocalPackageInfo
from restore_assets.nuspec import VersionFolderPathResolver


NUSPEC_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>{id}</id>
    <version>{version}</version>
    <authors>test</authors>
    <description>test package</description>
    {metadata}
  </metadata>
</package>
"""


def nuspec_xml(package_id: str, version: str, metadata: str = "") -> str:
    return NUSPEC_TEMPLATE.format(id=package_id, version=version, metadata=metadata)


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    root = tmp_path / "packages"
    root.mkdir()
    return root


@pytest.fixture
def path_resolver(package_root: Path) -> VersionFolderPathResolver:
    return VersionFolderPathResolver(package_root)


@pytest.fixture
def builder(path_resolver: VersionFolderPathResolver) -> LockFileLibraryBuilder:
    return LockFileLibraryBuilder(path_resolver)


@pytest.fixture
def make_package(package_root: Path):
    """Write a package archive and its manifest under the package root."""

    def _make(
        files: Iterable[str],
        metadata: str = "",
        package_id: str = "Foo",
        version: str = "1.0.0",
    ) -> LocalPackageInfo:
        directory = package_root / package_id.lower() / version.lower()
        directory.mkdir(parents=True)
        archive_path = directory / f"{package_id.lower()}.{version}.nupkg"
        with zipfile.ZipFile(archive_path, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types />")
            archive.writestr(f"{package_id}.nuspec", nuspec_xml(package_id, version, metadata))
            for name in files:
                archive.writestr(name, b"")
        (directory / f"{package_id.lower()}.nuspec").write_text(
            nuspec_xml(package_id, version, metadata), encoding="utf-8"
        )
        return LocalPackageInfo(package_id, version, archive_path)

    return _make
