"""
Restore Assets

Per-target asset selection and lock-file target library construction for package restore.
"""

__version__ = "0.1.0"

from .builder import LockFileLibraryBuilder, create_lock_file_target_library
from .frameworks import Framework
from .models import LocalPackageInfo, LockFileLibrary, LockFileTargetLibrary, RestoreTarget

__all__ = [
    "Framework",
    "LocalPackageInfo",
    "LockFileLibrary",
    "LockFileLibraryBuilder",
    "LockFileTargetLibrary",
    "RestoreTarget",
    "create_lock_file_target_library",
]
