"""
Runtime identifier graph used to expand a runtime identifier into its fallbacks.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple


logger = logging.getLogger(__name__)


_DEFAULT_IMPORTS: Dict[str, Sequence[str]] = {
    "any": (),
    "win": ("any",),
    "win-x86": ("win",),
    "win-x64": ("win",),
    "win-arm": ("win",),
    "win7": ("win",),
    "win7-x86": ("win7", "win-x86"),
    "win7-x64": ("win7", "win-x64"),
    "win8": ("win7",),
    "win8-x86": ("win8", "win7-x86"),
    "win8-x64": ("win8", "win7-x64"),
    "win8-arm": ("win8", "win-arm"),
    "win81": ("win8",),
    "win81-x86": ("win81", "win8-x86"),
    "win81-x64": ("win81", "win8-x64"),
    "win81-arm": ("win81", "win8-arm"),
    "win10": ("win81",),
    "win10-x86": ("win10", "win81-x86"),
    "win10-x64": ("win10", "win81-x64"),
    "win10-arm": ("win10", "win81-arm"),
    "unix": ("any",),
    "unix-x64": ("unix",),
    "linux": ("unix",),
    "linux-x64": ("linux", "unix-x64"),
    "osx": ("unix",),
    "osx-x64": ("osx", "unix-x64"),
    "osx.10.10": ("osx",),
    "osx.10.10-x64": ("osx.10.10", "osx-x64"),
    "osx.10.11": ("osx.10.10",),
    "osx.10.11-x64": ("osx.10.11", "osx.10.10-x64"),
    "ubuntu": ("linux",),
    "ubuntu-x64": ("ubuntu", "linux-x64"),
    "ubuntu.14.04": ("ubuntu",),
    "ubuntu.14.04-x64": ("ubuntu.14.04", "ubuntu-x64"),
    "debian": ("linux",),
    "debian-x64": ("debian", "linux-x64"),
    "debian.8": ("debian",),
    "debian.8-x64": ("debian.8", "debian-x64"),
    "rhel": ("linux",),
    "rhel-x64": ("rhel", "linux-x64"),
    "rhel.7": ("rhel",),
    "rhel.7-x64": ("rhel.7", "rhel-x64"),
}


@dataclass(frozen=True)
class RuntimeDescription:
    """A runtime identifier and the identifiers it falls back to, in order."""

    runtime_identifier: str
    imports: Tuple[str, ...] = ()


class RuntimeGraph:
    """Compatibility graph over runtime identifiers."""

    def __init__(self, runtimes: Iterable[RuntimeDescription] = ()) -> None:
        self.runtimes: Dict[str, RuntimeDescription] = {
            runtime.runtime_identifier: runtime for runtime in runtimes
        }

    @classmethod
    def default(cls) -> "RuntimeGraph":
        return cls.from_imports(_DEFAULT_IMPORTS)

    @classmethod
    def from_imports(cls, imports: Mapping[str, Sequence[str]]) -> "RuntimeGraph":
        return cls(
            RuntimeDescription(rid, tuple(parents)) for rid, parents in imports.items()
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> "RuntimeGraph":
        """Build a graph from a ``runtime.json`` document.

        Args:
            data: Parsed JSON of the form ``{"runtimes": {rid: {"#import": [...]}}}``

        Returns:
            The runtime graph
        """
        runtimes = data.get("runtimes") or {}
        if not isinstance(runtimes, Mapping):
            raise ValueError("'runtimes' must be an object of runtime identifier -> description")
        imports = {}
        for rid, description in runtimes.items():
            parents = (description or {}).get("#import") or []
            if not isinstance(parents, list) or not all(isinstance(p, str) for p in parents):
                raise ValueError(f"'#import' for runtime '{rid}' must be an array of strings")
            imports[rid] = parents
        return cls.from_imports(imports)

    @classmethod
    def from_json(cls, path: Path) -> "RuntimeGraph":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.debug("Loaded runtime graph from %s", path)
        return cls.from_dict(data)

    def expand_runtime(self, runtime_identifier: str) -> List[str]:
        """Return ``runtime_identifier`` followed by its fallbacks, breadth first."""
        expanded = [runtime_identifier]
        seen = {runtime_identifier}
        queue = deque([runtime_identifier])
        while queue:
            description = self.runtimes.get(queue.popleft())
            if description is None:
                continue
            for parent in description.imports:
                if parent not in seen:
                    seen.add(parent)
                    expanded.append(parent)
                    queue.append(parent)
        return expanded
