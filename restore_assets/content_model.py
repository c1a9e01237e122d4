"""
Pattern-based classification of package files and best-group selection.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from .criteria import CompatibilityCriterion
from .frameworks import Framework, get_nearest_item, is_compatible
from .nearest import find_nearest


logger = logging.getLogger(__name__)

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"^\{(\w+)\}$")
_LOCALE_RE = re.compile(r"^[A-Za-z]{2,3}(?:-[A-Za-z0-9]{2,8})*$")
_ASSEMBLY_EXTENSIONS = (".dll", ".exe", ".winmd")

# Properties that key a group; the rest describe individual items.
GROUP_PROPERTIES = ("tfm", "rid")


def _parse_tfm(value: str) -> Optional[Framework]:
    return Framework.try_parse(value)


def _parse_segment(value: str) -> Optional[str]:
    return value or None


def _parse_assembly(value: str) -> Optional[str]:
    # _._ marks a framework folder as supported without shipping assemblies
    if value == "_._" or value.lower().endswith(_ASSEMBLY_EXTENSIONS):
        return value
    return None


def _parse_resources(value: str) -> Optional[str]:
    return value if value.lower().endswith(".resources.dll") else None


def _parse_locale(value: str) -> Optional[str]:
    return value if _LOCALE_RE.match(value) else None


_PROPERTY_PARSERS: Dict[str, Callable[[str], Optional[object]]] = {
    "tfm": _parse_tfm,
    "rid": _parse_segment,
    "any": _parse_segment,
    "assembly": _parse_assembly,
    "resources": _parse_resources,
    "locale": _parse_locale,
}


@dataclass(frozen=True)
class PatternTemplate:
    """A path template such as ``lib/{tfm}/{assembly}``.

    Each placeholder fills exactly one path segment, except a trailing
    ``{any}`` which takes the rest of the path. ``defaults`` supplies
    property values the path itself does not carry.
    """

    template: str
    defaults: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        for segment in self.template.split("/"):
            placeholder = _PLACEHOLDER_RE.match(segment)
            if placeholder and placeholder.group(1) not in _PROPERTY_PARSERS:
                raise ValueError(f"Unknown placeholder '{segment}' in pattern '{self.template}'")

    def match(self, path: str) -> Optional[Dict[str, object]]:
        segments = self.template.split("/")
        parts = path.split("/")
        if segments[-1] == "{any}" and len(parts) >= len(segments):
            head = len(segments) - 1
            parts = parts[:head] + ["/".join(parts[head:])]
        if len(parts) != len(segments):
            return None

        properties: Dict[str, object] = {}
        for segment, part in zip(segments, parts):
            placeholder = _PLACEHOLDER_RE.match(segment)
            if placeholder is None:
                if segment.lower() != part.lower():
                    return None
                continue
            name = placeholder.group(1)
            value = _PROPERTY_PARSERS[name](part)
            if value is None:
                return None
            properties[name] = value

        for name, raw in self.defaults:
            if name not in properties:
                properties[name] = _PROPERTY_PARSERS[name](raw)
        return properties


@dataclass(frozen=True)
class PatternSet:
    """Templates for one kind of asset, in precedence order."""

    name: str
    templates: Tuple[PatternTemplate, ...]
    required_properties: Tuple[str, ...] = ()


def freeze_properties(
    properties: Union[Mapping[str, T], Iterable[Tuple[str, T]]]
) -> Tuple[Tuple[str, T], ...]:
    """Sorted name/value pairs, so records holding them stay hashable."""
    pairs = properties.items() if isinstance(properties, Mapping) else properties
    return tuple(sorted(pairs, key=lambda pair: pair[0]))


def _templates(*templates: str, defaults: Tuple[Tuple[str, str], ...] = ()) -> Tuple[PatternTemplate, ...]:
    return tuple(PatternTemplate(template, defaults) for template in templates)


@dataclass(frozen=True)
class ManagedCodeConventions:
    """The pattern sets used to classify managed and native package assets."""

    compile_assemblies: PatternSet = field(
        default_factory=lambda: PatternSet("compile", _templates("ref/{tfm}/{assembly}"))
    )
    runtime_assemblies: PatternSet = field(
        default_factory=lambda: PatternSet(
            "runtime",
            _templates("runtimes/{rid}/lib/{tfm}/{assembly}", "lib/{tfm}/{assembly}")
            + _templates("lib/{assembly}", defaults=(("tfm", "net"),)),
        )
    )
    resource_assemblies: PatternSet = field(
        default_factory=lambda: PatternSet(
            "resource",
            _templates(
                "runtimes/{rid}/lib/{tfm}/{locale}/{resources}",
                "lib/{tfm}/{locale}/{resources}",
            ),
            required_properties=("locale",),
        )
    )
    native_libraries: PatternSet = field(
        default_factory=lambda: PatternSet("native", _templates("runtimes/{rid}/native/{any}"))
    )


class AssetCategory(Enum):
    """Asset kinds selected for a target library."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    RESOURCE = "resource"
    NATIVE = "native"

    @property
    def uses_native_criteria(self) -> bool:
        return self is AssetCategory.NATIVE

    def pattern_sets(self, conventions: ManagedCodeConventions) -> Tuple[PatternSet, ...]:
        """Pattern sets to try, in precedence order."""
        if self is AssetCategory.COMPILE:
            # compile falls back to runtime assets under the same criterion
            return (conventions.compile_assemblies, conventions.runtime_assemblies)
        if self is AssetCategory.RUNTIME:
            return (conventions.runtime_assemblies,)
        if self is AssetCategory.RESOURCE:
            return (conventions.resource_assemblies,)
        return (conventions.native_libraries,)


@dataclass(frozen=True)
class ContentItem:
    """A package file classified by a pattern set."""

    path: str
    properties: Tuple[Tuple[str, object], ...]
    pattern_set: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", freeze_properties(self.properties))

    def get(self, name: str) -> Optional[object]:
        return dict(self.properties).get(name)

    @property
    def locale(self) -> Optional[str]:
        return self.get("locale")


@dataclass(frozen=True)
class ContentItemGroup:
    """Items of one pattern set that share the same group properties."""

    pattern_set: str
    properties: Tuple[Tuple[str, object], ...]
    items: Tuple[ContentItem, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", freeze_properties(self.properties))

    def get(self, name: str) -> Optional[object]:
        return dict(self.properties).get(name)

    @property
    def framework(self) -> Optional[Framework]:
        return self.get("tfm")

    @property
    def runtime_identifier(self) -> Optional[str]:
        return self.get("rid")


def classify(paths: Iterable[str], pattern_set: PatternSet) -> List[ContentItem]:
    """Classify canonical paths; the first matching template wins for each path.

    Paths matching no template, or missing a required property, are not
    part of the result.
    """
    items = []
    for path in paths:
        for template in pattern_set.templates:
            properties = template.match(path)
            if properties is None:
                continue
            if all(properties.get(name) for name in pattern_set.required_properties):
                items.append(ContentItem(path, properties, pattern_set.name))
            break
    return items


def _group_satisfies(criterion: CompatibilityCriterion, group: ContentItemGroup) -> bool:
    if group.runtime_identifier != criterion.runtime_identifier:
        return False
    if criterion.framework is None:
        return group.framework is None
    return group.framework is not None and is_compatible(criterion.framework, group.framework)


def _nearest_group(
    criterion: CompatibilityCriterion, groups: List[ContentItemGroup]
) -> Optional[ContentItemGroup]:
    if criterion.framework is None:
        return groups[0]
    return get_nearest_item(criterion.framework, groups, key=lambda group: group.framework)


class ContentItemCollection:
    """Classified view over one package's file listing."""

    def __init__(self, paths: Iterable[str]) -> None:
        self.paths: Tuple[str, ...] = tuple(paths)

    def find_items(self, pattern_set: PatternSet) -> List[ContentItem]:
        return classify(self.paths, pattern_set)

    def find_item_groups(self, pattern_set: PatternSet) -> List[ContentItemGroup]:
        grouped: Dict[Tuple, List[ContentItem]] = {}
        for item in self.find_items(pattern_set):
            key = tuple(item.get(name) for name in GROUP_PROPERTIES)
            grouped.setdefault(key, []).append(item)
        return [
            ContentItemGroup(
                pattern_set.name,
                {name: value for name, value in zip(GROUP_PROPERTIES, key) if value is not None},
                tuple(items),
            )
            for key, items in grouped.items()
        ]

    def find_best_item_group(
        self, criteria: Sequence[CompatibilityCriterion], *pattern_sets: PatternSet
    ) -> Optional[ContentItemGroup]:
        """Select the nearest group for the first satisfiable criterion.

        Pattern sets are tried in order within each criterion, so an earlier
        set wins over a later one only for the same criterion.
        """
        tiers = [self.find_item_groups(pattern_set) for pattern_set in pattern_sets]
        group = find_nearest(criteria, tiers, _group_satisfies, _nearest_group)
        if group is not None:
            logger.debug(
                "Selected %s group %s (%d items)",
                group.pattern_set,
                {name: str(value) for name, value in group.properties},
                len(group.items),
            )
        return group

    def select(
        self,
        category: AssetCategory,
        conventions: ManagedCodeConventions,
        managed_criteria: Sequence[CompatibilityCriterion],
        native_criteria: Sequence[CompatibilityCriterion],
    ) -> Tuple[ContentItem, ...]:
        """Items of the best group for ``category``, or an empty tuple."""
        criteria = native_criteria if category.uses_native_criteria else managed_criteria
        group = self.find_best_item_group(criteria, *category.pattern_sets(conventions))
        return group.items if group is not None else ()
