"""
Legacy compatibility adjustments applied after asset group selection.
"""

from __future__ import annotations

import logging
import posixpath
from typing import AbstractSet, Iterable, Optional, Sequence, Tuple

from .frameworks import Framework, FrameworkIdentifiers
from .models import LockFileItem


logger = logging.getLogger(__name__)

# Frameworks that cannot consume framework assembly references.
_FRAMEWORK_ASSEMBLY_EXCLUSIONS = frozenset(
    identifier.lower()
    for identifier in (FrameworkIdentifiers.ASP_NET_CORE, FrameworkIdentifiers.DNX_CORE)
)


def contract_path(package_id: str) -> str:
    return f"lib/contract/{package_id}.dll"


def apply_contract_override(
    compile_items: Sequence[LockFileItem],
    runtime_items: Sequence[LockFileItem],
    files: Iterable[str],
    package_id: str,
    framework: Framework,
) -> Tuple[LockFileItem, ...]:
    """Replace compile assets with ``lib/contract/{id}.dll`` for non-desktop targets.

    Applies only when the package ships the contract and runtime assets were
    selected; otherwise the compile assets are returned unchanged.
    """
    path = contract_path(package_id)
    if runtime_items and not framework.is_desktop and path in set(files):
        logger.debug("Using contract assembly %s for %s", path, framework)
        return (LockFileItem(path),)
    return tuple(compile_items)


def build_reference_filter(references: Optional[Iterable[str]]) -> Optional[AbstractSet[str]]:
    """Case-insensitive allow-list of file names, or None when there is no filter."""
    if references is None:
        return None
    return frozenset(name.lower() for name in references)


def apply_reference_filter(
    items: Sequence[LockFileItem], reference_filter: Optional[AbstractSet[str]]
) -> Tuple[LockFileItem, ...]:
    """Drop ``lib/`` assets whose file name is not in the filter.

    Assets outside ``lib/`` (``runtimes/`` in particular) are always kept.
    """
    if reference_filter is None:
        return tuple(items)
    return tuple(
        item
        for item in items
        if not item.path.startswith("lib/")
        or posixpath.basename(item.path).lower() in reference_filter
    )


def framework_assemblies_apply(framework: Framework) -> bool:
    # ASP.NET Core frameworks cannot consume generic PCL profiles
    return framework.identifier.lower() not in _FRAMEWORK_ASSEMBLY_EXCLUSIONS
