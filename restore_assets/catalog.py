"""
Package file listings, either cached from a previous pass or read from disk.
"""

from __future__ import annotations

import logging
import os
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import unquote

from .errors import MissingPackageFile
from .interfaces import FileListing


logger = logging.getLogger(__name__)

# Packaging parts of the archive format, not package content.
_PACKAGING_FILES = ("[content_types].xml",)
_PACKAGING_DIRECTORIES = ("_rels/", "package/")


def normalize_path(path: str) -> str:
    """Convert a relative path to use ``/`` as its only separator."""
    normalized = path.replace("\\", "/")
    if os.sep != "/":
        normalized = normalized.replace(os.sep, "/")
    return normalized


def _is_package_content(name: str) -> bool:
    lowered = name.lower()
    if not name or name.endswith("/"):
        return False
    if lowered in _PACKAGING_FILES:
        return False
    return not lowered.startswith(_PACKAGING_DIRECTORIES)


@dataclass(frozen=True)
class CachedFileListing:
    """Listing recorded by a previous restore pass."""

    files: Tuple[str, ...]

    def list_files(self) -> List[str]:
        logger.debug("Using cached file listing (%d files)", len(self.files))
        return [normalize_path(path) for path in self.files]


@dataclass(frozen=True)
class ArchiveFileListing:
    """Listing read from a package archive or an extracted package folder."""

    path: Path

    def list_files(self) -> List[str]:
        path = Path(self.path)
        if path.is_dir():
            return self._list_folder(path)
        try:
            with zipfile.ZipFile(path, "r") as archive:
                names = archive.namelist()
        except FileNotFoundError as e:
            raise MissingPackageFile("Package archive not found", path=str(path)) from e
        except (OSError, zipfile.BadZipFile) as e:
            raise MissingPackageFile(f"Unable to read package archive: {e}", path=str(path)) from e

        logger.debug("Read %d entries from %s", len(names), path)
        return [normalize_path(unquote(name)) for name in names if _is_package_content(name)]

    def _list_folder(self, root: Path) -> List[str]:
        try:
            files = sorted(
                normalize_path(str(candidate.relative_to(root)))
                for candidate in root.rglob("*")
                if candidate.is_file()
            )
        except OSError as e:
            raise MissingPackageFile(f"Unable to read package folder: {e}", path=str(root)) from e
        return [name for name in files if _is_package_content(name)]


def select_file_listing(
    cached_files: Optional[Iterable[str]], archive_path: Optional[Path]
) -> FileListing:
    """Choose the cached listing when present, otherwise the archive on disk."""
    if cached_files is not None:
        return CachedFileListing(tuple(cached_files))
    if archive_path is None:
        raise MissingPackageFile("No cached file listing and no package archive path")
    return ArchiveFileListing(Path(archive_path))


def list_files(
    cached_files: Optional[Iterable[str]], archive_path: Optional[Path]
) -> List[str]:
    return select_file_listing(cached_files, archive_path).list_files()
