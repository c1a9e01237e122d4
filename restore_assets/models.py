"""
Core data models for target library construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .content_model import ManagedCodeConventions, freeze_properties
from .frameworks import Framework
from .runtime_graph import RuntimeGraph


@dataclass(frozen=True, eq=False)
class PackageIdentity:
    """A package id and version; ids compare case-insensitively."""

    id: str
    version: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        return self.id.lower() == other.id.lower() and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.id.lower(), self.version))

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


@dataclass(frozen=True)
class LocalPackageInfo:
    """An installed package as reported by the package locator."""

    id: str
    version: str
    archive_path: Path

    @property
    def identity(self) -> PackageIdentity:
        return PackageIdentity(self.id, self.version)


@dataclass(frozen=True)
class LockFileLibrary:
    """A library entry from a previous restore pass, carrying its file listing."""

    name: str
    version: str
    files: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PackageDependency:
    """A dependency declared by a package manifest."""

    id: str
    version_range: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.id} {self.version_range}" if self.version_range else self.id


@dataclass(frozen=True)
class LockFileItem:
    """An asset path selected for a target, with optional properties.

    ``properties`` accepts a mapping and is stored as sorted name/value pairs.
    """

    path: str
    properties: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", freeze_properties(self.properties))

    @property
    def locale(self) -> Optional[str]:
        return dict(self.properties).get("locale")


@dataclass(frozen=True)
class LockFileTargetLibrary:
    """The assets of one package for one restore target."""

    name: str
    version: str
    dependencies: Tuple[PackageDependency, ...] = ()
    framework_assemblies: Tuple[str, ...] = ()
    compile_time_assemblies: Tuple[LockFileItem, ...] = ()
    runtime_assemblies: Tuple[LockFileItem, ...] = ()
    resource_assemblies: Tuple[LockFileItem, ...] = ()
    native_libraries: Tuple[LockFileItem, ...] = ()


@dataclass(frozen=True)
class RestoreTarget:
    """A target framework, optional runtime identifier and the conventions to apply."""

    framework: Framework
    runtime_identifier: Optional[str] = None
    conventions: ManagedCodeConventions = field(default_factory=ManagedCodeConventions)
    runtime_graph: RuntimeGraph = field(default_factory=RuntimeGraph.default)

    @property
    def name(self) -> str:
        if self.runtime_identifier:
            return f"{self.framework}/{self.runtime_identifier}"
        return str(self.framework)
