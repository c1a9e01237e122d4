"""
Interfaces for the collaborators consumed while building target libraries.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Protocol


class PackagePathResolver(Protocol):
    """Map a package identity to its manifest file and package folder."""

    def get_manifest_file_path(self, package_id: str, version: str) -> Path:
        ...

    def get_package_directory(self, package_id: str, version: str) -> Path:
        ...


class FileListing(Protocol):
    """Produce the canonical relative file paths inside a package."""

    def list_files(self) -> List[str]:
        ...
