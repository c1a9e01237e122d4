"""
Error taxonomy for target library construction.
"""

from __future__ import annotations

from typing import Optional


class RestoreAssetsError(Exception):
    """Base error for a single (package, target) build."""

    def __init__(
        self,
        message: str,
        package_id: Optional[str] = None,
        version: Optional[str] = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.package_id = package_id
        self.version = version
        self.path = path

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.package_id:
            parts.append(f"  package: {self.package_id} {self.version or ''}".rstrip())
        if self.path:
            parts.append(f"  path: {self.path}")
        return "\n".join(parts)


class MissingPackageFile(RestoreAssetsError):
    """The package archive or folder is absent or unreadable."""


class MissingNuspec(RestoreAssetsError):
    """Neither a standalone manifest nor a folder manifest was found."""


class MalformedNuspec(RestoreAssetsError):
    """A manifest was found but could not be parsed."""
