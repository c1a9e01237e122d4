"""
Tabular summaries of selected target library assets.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from .models import LockFileTargetLibrary


logger = logging.getLogger(__name__)

ASSET_COLUMNS = ["target", "library", "version", "category", "path", "locale"]


def _asset_rows(target: str, library: LockFileTargetLibrary) -> List[Dict]:
    categories = (
        ("compile", library.compile_time_assemblies),
        ("runtime", library.runtime_assemblies),
        ("resource", library.resource_assemblies),
        ("native", library.native_libraries),
    )
    return [
        {
            "target": target,
            "library": library.name,
            "version": library.version,
            "category": category,
            "path": item.path,
            "locale": item.locale,
        }
        for category, items in categories
        for item in items
    ]


def target_libraries_frame(entries: Iterable[Tuple[str, LockFileTargetLibrary]]) -> pd.DataFrame:
    """One row per selected asset of each ``(target name, library)`` pair."""
    rows: List[Dict] = []
    for target, library in entries:
        rows.extend(_asset_rows(target, library))
    return pd.DataFrame(rows, columns=ASSET_COLUMNS)


def export_asset_summary_csv(frame: pd.DataFrame, output_dir: Path, name: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    summary_file = output_dir / f"{name}_assets.csv"
    frame.to_csv(summary_file, index=False)
    logger.debug("Wrote %d asset rows to %s", len(frame), summary_file)
    return summary_file
