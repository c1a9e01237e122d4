"""
Package manifest (nuspec) loading and per-framework metadata groups.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from packaging.version import Version

from .errors import MalformedNuspec, MissingNuspec
from .frameworks import Framework, get_nearest_item, is_compatible
from .interfaces import PackagePathResolver
from .models import PackageDependency
from .nearest import find_nearest


logger = logging.getLogger(__name__)

G = TypeVar("G")


@dataclass(frozen=True)
class DependencyGroup:
    target_framework: Framework
    packages: Tuple[PackageDependency, ...]


@dataclass(frozen=True)
class ReferenceGroup:
    target_framework: Framework
    items: Tuple[str, ...]


@dataclass(frozen=True)
class FrameworkAssemblyGroup:
    target_framework: Framework
    items: Tuple[str, ...]


def _local_name(element: ET.Element) -> str:
    tag = element.tag
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _children(element: Optional[ET.Element], name: str) -> List[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local_name(child) == name]


def _child(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    children = _children(element, name)
    return children[0] if children else None


def _parse_framework(value: Optional[str]) -> Framework:
    framework = Framework.try_parse(value)
    return framework if framework is not None else Framework.unsupported()


def _framework_sort_key(framework: Framework) -> Tuple[str, Version, str]:
    return framework.identifier.lower(), framework.version, framework.profile.lower()


class NuspecReader:
    """Read package metadata from a manifest document."""

    def __init__(self, root: ET.Element, source: Optional[str] = None) -> None:
        self.source = source
        self._metadata = _child(root, "metadata") if _local_name(root) == "package" else None
        if self._metadata is None:
            raise MalformedNuspec("Manifest has no <package>/<metadata> element", path=source)
        if not self.id or not self.version:
            raise MalformedNuspec("Manifest metadata is missing <id> or <version>", path=source)

    @classmethod
    def from_string(cls, text: Union[str, bytes], source: Optional[str] = None) -> "NuspecReader":
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise MalformedNuspec(f"Unable to parse manifest: {e}", path=source) from e
        return cls(root, source)

    @classmethod
    def from_stream(cls, stream: IO[bytes], source: Optional[str] = None) -> "NuspecReader":
        try:
            root = ET.parse(stream).getroot()
        except ET.ParseError as e:
            raise MalformedNuspec(f"Unable to parse manifest: {e}", path=source) from e
        return cls(root, source)

    @classmethod
    def from_file(cls, path: Path) -> "NuspecReader":
        with open(path, "rb") as stream:
            return cls.from_stream(stream, source=str(path))

    def _text(self, name: str) -> str:
        element = _child(self._metadata, name)
        return (element.text or "").strip() if element is not None else ""

    @property
    def id(self) -> str:
        return self._text("id")

    @property
    def version(self) -> str:
        return self._text("version")

    def get_dependency_groups(self) -> List[DependencyGroup]:
        dependencies = _child(self._metadata, "dependencies")
        groups = _children(dependencies, "group")
        if groups:
            return [
                DependencyGroup(
                    _parse_framework(group.get("targetFramework")),
                    self._read_dependencies(group),
                )
                for group in groups
            ]
        flat = self._read_dependencies(dependencies)
        return [DependencyGroup(Framework.any(), flat)] if flat else []

    def _read_dependencies(self, element: Optional[ET.Element]) -> Tuple[PackageDependency, ...]:
        packages = []
        for dependency in _children(element, "dependency"):
            package_id = (dependency.get("id") or "").strip()
            if not package_id:
                logger.warning("Skipping dependency without an id in %s", self.source or self.id)
                continue
            version_range = (dependency.get("version") or "").strip() or None
            packages.append(PackageDependency(package_id, version_range))
        return tuple(packages)

    def get_reference_groups(self) -> List[ReferenceGroup]:
        references = _child(self._metadata, "references")
        groups = _children(references, "group")
        if groups:
            return [
                ReferenceGroup(_parse_framework(group.get("targetFramework")), self._read_references(group))
                for group in groups
            ]
        flat = self._read_references(references)
        return [ReferenceGroup(Framework.any(), flat)] if flat else []

    @staticmethod
    def _read_references(element: Optional[ET.Element]) -> Tuple[str, ...]:
        return tuple(
            reference.get("file").strip()
            for reference in _children(element, "reference")
            if (reference.get("file") or "").strip()
        )

    def get_framework_reference_groups(self) -> List[FrameworkAssemblyGroup]:
        """Group ``<frameworkAssembly>`` entries by each framework they list.

        Names merge case-insensitively. Groups are ordered by framework and
        their names case-insensitively.
        """
        grouped: Dict[Framework, Dict[str, str]] = {}
        for assembly in _children(_child(self._metadata, "frameworkAssemblies"), "frameworkAssembly"):
            name = (assembly.get("assemblyName") or "").strip()
            if not name:
                continue
            framework_names = [part.strip() for part in (assembly.get("targetFramework") or "").split(",")]
            frameworks = [_parse_framework(part) for part in framework_names if part] or [Framework.any()]
            for framework in frameworks:
                grouped.setdefault(framework, {}).setdefault(name.lower(), name)
        return [
            FrameworkAssemblyGroup(framework, tuple(sorted(names.values(), key=str.lower)))
            for framework, names in sorted(grouped.items(), key=lambda entry: _framework_sort_key(entry[0]))
        ]


def get_nearest_group(framework: Framework, groups: Sequence[G]) -> Optional[G]:
    """Reduce per-framework manifest groups to the nearest one for ``framework``."""
    return find_nearest(
        [framework],
        [groups],
        lambda target, group: is_compatible(target, group.target_framework),
        lambda target, matching: get_nearest_item(target, matching, key=lambda group: group.target_framework),
    )


class VersionFolderPathResolver:
    """Resolve ``{root}/{id}/{version}`` package folders and their manifests."""

    def __init__(self, root: Path, lowercase: bool = True) -> None:
        self.root = Path(root)
        self.lowercase = lowercase

    def _id(self, package_id: str) -> str:
        return package_id.lower() if self.lowercase else package_id

    def _version(self, version: str) -> str:
        return version.lower() if self.lowercase else version

    def get_package_directory(self, package_id: str, version: str) -> Path:
        return self.root / self._id(package_id) / self._version(version)

    def get_manifest_file_path(self, package_id: str, version: str) -> Path:
        return self.get_package_directory(package_id, version) / f"{self._id(package_id)}.nuspec"


class PackageFolderReader:
    """Locate the manifest inside an extracted package folder."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def get_nuspec_path(self) -> Path:
        if not self.directory.is_dir():
            raise MissingNuspec("Package folder not found", path=str(self.directory))
        manifests = sorted(
            candidate for candidate in self.directory.iterdir()
            if candidate.is_file() and candidate.suffix.lower() == ".nuspec"
        )
        if not manifests:
            raise MissingNuspec("Package folder contains no manifest", path=str(self.directory))
        if len(manifests) > 1:
            raise MalformedNuspec("Package folder contains more than one manifest", path=str(self.directory))
        return manifests[0]


def load_metadata(package_id: str, version: str, path_resolver: PackagePathResolver) -> NuspecReader:
    """Load a package manifest.

    Args:
        package_id: Package id as declared by the installed package
        version: Package version
        path_resolver: Maps the identity to a manifest file and package folder

    Returns:
        The parsed manifest

    Raises:
        MissingNuspec: If neither the manifest file nor a folder manifest exists
        MalformedNuspec: If the manifest cannot be parsed
    """
    manifest_path = Path(path_resolver.get_manifest_file_path(package_id, version))
    if not manifest_path.is_file():
        logger.debug("No manifest at %s, reading package folder", manifest_path)
        directory = path_resolver.get_package_directory(package_id, version)
        try:
            manifest_path = PackageFolderReader(directory).get_nuspec_path()
        except (MissingNuspec, MalformedNuspec) as e:
            e.package_id, e.version = package_id, version
            raise
    try:
        return NuspecReader.from_file(manifest_path)
    except MalformedNuspec as e:
        e.package_id, e.version = package_id, version
        raise
    except OSError as e:
        raise MissingNuspec(
            f"Unable to read manifest: {e}", package_id, version, str(manifest_path)
        ) from e
