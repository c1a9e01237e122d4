"""
Ordered compatibility criteria for native and managed asset selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .frameworks import Framework
from .runtime_graph import RuntimeGraph


@dataclass(frozen=True)
class CompatibilityCriterion:
    """One ranked (framework, runtime identifier) candidate.

    A ``None`` value means matching groups must not carry that property.
    """

    framework: Optional[Framework] = None
    runtime_identifier: Optional[str] = None


def build_native_criteria(
    runtime_identifier: Optional[str], runtime_graph: RuntimeGraph
) -> List[CompatibilityCriterion]:
    if not runtime_identifier:
        return []
    return [
        CompatibilityCriterion(runtime_identifier=rid)
        for rid in runtime_graph.expand_runtime(runtime_identifier)
    ]


def build_managed_criteria(
    framework: Framework, runtime_identifier: Optional[str], runtime_graph: RuntimeGraph
) -> List[CompatibilityCriterion]:
    """Most specific runtime first, ending with the runtime-agnostic criterion."""
    criteria = []
    if runtime_identifier:
        criteria.extend(
            CompatibilityCriterion(framework, rid)
            for rid in runtime_graph.expand_runtime(runtime_identifier)
        )
    criteria.append(CompatibilityCriterion(framework, None))
    return criteria
