"""
Nearest-match reduction under an ordered list of criteria.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, TypeVar


C = TypeVar("C")
T = TypeVar("T")


def find_nearest(
    criteria: Iterable[C],
    tiers: Sequence[Sequence[T]],
    is_satisfied: Callable[[C, T], bool],
    pick: Callable[[C, List[T]], Optional[T]],
) -> Optional[T]:
    """Return the nearest candidate for the first criterion that any tier satisfies.

    Args:
        criteria: Criteria ordered from most to least specific
        tiers: Candidate lists in precedence order
        is_satisfied: Whether a candidate satisfies a criterion
        pick: Chooses one candidate among those satisfying a criterion

    Returns:
        The chosen candidate, or None when no criterion is satisfied
    """
    for criterion in criteria:
        for candidates in tiers:
            matching = [candidate for candidate in candidates if is_satisfied(criterion, candidate)]
            if matching:
                chosen = pick(criterion, matching)
                if chosen is not None:
                    return chosen
    return None
