"""
Target framework names, compatibility rules and nearest-framework reduction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, TypeVar

from packaging.version import Version


T = TypeVar("T")


class FrameworkIdentifiers:
    """Canonical framework identifiers."""

    NET = ".NETFramework"
    NET_STANDARD = ".NETStandard"
    NET_CORE_APP = ".NETCoreApp"
    NET_CORE = ".NETCore"
    NET_PLATFORM = ".NETPlatform"
    DNX = "DNX"
    DNX_CORE = "DNXCore"
    ASP_NET = "ASP.Net"
    ASP_NET_CORE = "ASP.NetCore"
    WINDOWS = "Windows"
    WINDOWS_PHONE = "WindowsPhone"
    WINDOWS_PHONE_APP = "WindowsPhoneApp"
    SILVERLIGHT = "Silverlight"
    UAP = "UAP"
    PORTABLE = ".NETPortable"
    MONO_ANDROID = "MonoAndroid"
    XAMARIN_IOS = "Xamarin.iOS"
    ANY = "Any"
    UNSUPPORTED = "Unsupported"


_ids = FrameworkIdentifiers

_SHORT_IDENTIFIERS: Dict[str, str] = {
    "net": _ids.NET,
    "netstandard": _ids.NET_STANDARD,
    "netcoreapp": _ids.NET_CORE_APP,
    "netcore": _ids.NET_CORE,
    "dotnet": _ids.NET_PLATFORM,
    "dnx": _ids.DNX,
    "dnxcore": _ids.DNX_CORE,
    "aspnet": _ids.ASP_NET,
    "aspnetcore": _ids.ASP_NET_CORE,
    "win": _ids.WINDOWS,
    "wp": _ids.WINDOWS_PHONE,
    "wpa": _ids.WINDOWS_PHONE_APP,
    "sl": _ids.SILVERLIGHT,
    "uap": _ids.UAP,
    "portable": _ids.PORTABLE,
    "monoandroid": _ids.MONO_ANDROID,
    "xamarinios": _ids.XAMARIN_IOS,
}

_SHORT_NAMES: Dict[str, str] = {identifier: short for short, identifier in _SHORT_IDENTIFIERS.items()}

_IDENTIFIERS: Dict[str, str] = {
    **{
        value.lower(): value
        for name, value in vars(FrameworkIdentifiers).items()
        if not name.startswith("_")
    },
    **_SHORT_IDENTIFIERS,
}

# Short folder names of these frameworks keep the dots in their version.
_DOTTED_VERSIONS = frozenset({_ids.NET_STANDARD, _ids.NET_CORE_APP, _ids.UAP})

# These drop a zero minor version from their short names: win8, wp8, sl5.
_SINGLE_DIGIT_VERSIONS = frozenset({_ids.WINDOWS, _ids.WINDOWS_PHONE, _ids.SILVERLIGHT})

_DESKTOP_IDENTIFIERS = frozenset({_ids.NET, _ids.DNX, _ids.ASP_NET})

_PORTABLE_PROFILES: Dict[str, str] = {
    "profile7": "net45+win8",
    "profile31": "win81+wp81",
    "profile32": "win81+wpa81",
    "profile44": "net451+win81",
    "profile49": "net45+wp8",
    "profile78": "net45+win8+wp8",
    "profile84": "wp81+wpa81",
    "profile111": "net45+win8+wpa81",
    "profile151": "net451+win81+wpa81",
    "profile157": "win81+wp81+wpa81",
    "profile259": "net45+win8+wpa81+wp8",
    "profile328": "net4+sl5+win8+wpa81+wp8",
    "profile336": "net403+sl5+win8+wpa81+wp8",
    "profile344": "net45+sl5+win8+wpa81+wp8",
}

_FULL_NAME_RE = re.compile(
    r"^(?P<identifier>[^,]+?)\s*,\s*Version\s*=\s*v?(?P<version>\d+(?:\.\d+)*)"
    r"(?:\s*,\s*Profile\s*=\s*(?P<profile>.+))?$",
    re.IGNORECASE,
)
_SHORT_NAME_RE = re.compile(
    r"^(?P<identifier>\.?[A-Za-z][A-Za-z.]*?)(?P<version>\d+(?:\.\d+)*)?"
    r"(?:-(?P<profile>[A-Za-z0-9+.]+))?$"
)


def _parse_version(text: Optional[str], dotless: bool) -> Version:
    if not text:
        return Version("0.0")
    if dotless and "." not in text:
        # net451 -> 4.5.1, dnxcore50 -> 5.0
        return Version(".".join(text))
    return Version(text)


def _format_version(version: Version, minimum: int = 2) -> List[str]:
    release = list(version.release)
    while len(release) > minimum and release[-1] == 0:
        release.pop()
    while len(release) < minimum:
        release.append(0)
    return [str(part) for part in release]


@dataclass(frozen=True)
class Framework:
    """A target framework: identifier, version and optional profile.

    Portable frameworks carry their member frameworks in
    ``portable_frameworks`` and a ``+``-joined profile of their short names.
    """

    identifier: str
    version: Version = field(default_factory=lambda: Version("0.0"))
    profile: str = ""
    portable_frameworks: Tuple["Framework", ...] = ()

    @classmethod
    def any(cls) -> "Framework":
        return cls(FrameworkIdentifiers.ANY)

    @classmethod
    def unsupported(cls) -> "Framework":
        return cls(FrameworkIdentifiers.UNSUPPORTED)

    @classmethod
    def parse(cls, name: str) -> "Framework":
        """Parse a short folder name (``net45``) or a full name
        (``.NETFramework,Version=v4.5``).

        Raises:
            ValueError: If the name has neither shape.
        """
        framework = cls.try_parse(name)
        if framework is None:
            raise ValueError(f"Unable to parse target framework '{name}'")
        return framework

    @classmethod
    def try_parse(cls, name: Optional[str]) -> Optional["Framework"]:
        text = (name or "").strip()
        if not text or text.lower() == "any":
            return cls.any()
        if text.lower() == "unsupported":
            return cls.unsupported()

        match = _FULL_NAME_RE.match(text)
        if match:
            return cls._from_parts(
                match.group("identifier"), match.group("version"), match.group("profile"), dotless=False
            )
        match = _SHORT_NAME_RE.match(text)
        if match:
            return cls._from_parts(
                match.group("identifier"), match.group("version"), match.group("profile"), dotless=True
            )
        return None

    @classmethod
    def portable(cls, profile: str) -> "Framework":
        members_text = _PORTABLE_PROFILES.get(profile.lower(), profile)
        members = []
        for part in members_text.split("+"):
            member = cls.try_parse(part)
            if member is None or member.is_any or member.is_portable or member.is_unsupported:
                continue
            if member not in members:
                members.append(member)
        if not members:
            return cls(FrameworkIdentifiers.PORTABLE, Version("0.0"), profile)
        members.sort(key=lambda member: member.short_folder_name)
        return cls(
            FrameworkIdentifiers.PORTABLE,
            Version("0.0"),
            "+".join(member.short_folder_name for member in members),
            tuple(members),
        )

    @classmethod
    def _from_parts(
        cls, identifier: str, version: Optional[str], profile: Optional[str], dotless: bool
    ) -> "Framework":
        canonical = _IDENTIFIERS.get(identifier.lower(), identifier)
        if canonical == FrameworkIdentifiers.PORTABLE:
            return cls.portable(profile or "")
        profile = profile or ""
        if profile.lower() == "client":
            profile = "Client"
        return cls(canonical, _parse_version(version, dotless), profile)

    @property
    def is_any(self) -> bool:
        return self.identifier == FrameworkIdentifiers.ANY

    @property
    def is_unsupported(self) -> bool:
        return self.identifier == FrameworkIdentifiers.UNSUPPORTED

    @property
    def is_portable(self) -> bool:
        return self.identifier == FrameworkIdentifiers.PORTABLE

    @property
    def is_desktop(self) -> bool:
        return self.identifier in _DESKTOP_IDENTIFIERS

    @property
    def short_folder_name(self) -> str:
        if self.is_any:
            return "any"
        if self.is_unsupported:
            return "unsupported"
        if self.is_portable:
            return f"portable-{self.profile}"
        short = _SHORT_NAMES.get(self.identifier, self.identifier.lower())
        parts = _format_version(self.version)
        if self.identifier in _SINGLE_DIGIT_VERSIONS and parts[1:] == ["0"]:
            parts = parts[:1]
        if self.identifier in _DOTTED_VERSIONS or any(len(part) > 1 for part in parts):
            version = ".".join(parts)
        else:
            version = "".join(parts)
        name = short + version
        if self.profile:
            name += "-" + self.profile.lower()
        return name

    def __str__(self) -> str:
        name = f"{self.identifier},Version=v{'.'.join(_format_version(self.version))}"
        if self.profile:
            name += f",Profile={self.profile}"
        return name


def _fw(identifier: str, version: str) -> Framework:
    return Framework(identifier, Version(version))


# (consuming identifier, lowest version, version bound (exclusive), framework it can consume)
_COMPATIBILITY_MAPPINGS: Tuple[Tuple[str, Version, Optional[Version], Framework], ...] = tuple(
    (identifier, Version(lowest), Version(highest) if highest else None, supported)
    for identifier, lowest, highest, supported in (
        (_ids.NET, "4.5", "4.5.1", _fw(_ids.NET_STANDARD, "1.1")),
        (_ids.NET, "4.5.1", "4.6", _fw(_ids.NET_STANDARD, "1.2")),
        (_ids.NET, "4.6", "4.6.1", _fw(_ids.NET_STANDARD, "1.3")),
        (_ids.NET, "4.6.1", None, _fw(_ids.NET_STANDARD, "2.0")),
        (_ids.ASP_NET, "0.0", None, _fw(_ids.NET, "4.5.1")),
        (_ids.ASP_NET_CORE, "0.0", None, _fw(_ids.DNX_CORE, "5.0")),
        (_ids.DNX_CORE, "0.0", None, _fw(_ids.NET_STANDARD, "1.5")),
        (_ids.NET_CORE_APP, "1.0", "2.0", _fw(_ids.NET_STANDARD, "1.6")),
        (_ids.NET_CORE_APP, "2.0", "2.1", _fw(_ids.NET_STANDARD, "2.0")),
        (_ids.NET_CORE_APP, "2.1", None, _fw(_ids.NET_STANDARD, "2.1")),
        (_ids.NET_CORE, "4.5", "4.5.1", _fw(_ids.WINDOWS, "8.0")),
        (_ids.NET_CORE, "4.5.1", "5.0", _fw(_ids.WINDOWS, "8.1")),
        (_ids.NET_CORE, "5.0", None, _fw(_ids.NET_CORE, "4.5.1")),
        (_ids.NET_CORE, "5.0", None, _fw(_ids.NET_STANDARD, "1.4")),
        (_ids.WINDOWS, "8.0", "8.1", _fw(_ids.NET_CORE, "4.5")),
        (_ids.WINDOWS, "8.0", "8.1", _fw(_ids.NET_STANDARD, "1.1")),
        (_ids.WINDOWS, "8.1", None, _fw(_ids.NET_CORE, "4.5.1")),
        (_ids.WINDOWS, "8.1", None, _fw(_ids.NET_STANDARD, "1.2")),
        (_ids.WINDOWS_PHONE_APP, "8.1", None, _fw(_ids.NET_STANDARD, "1.2")),
        (_ids.WINDOWS_PHONE, "8.0", None, _fw(_ids.NET_STANDARD, "1.0")),
        (_ids.UAP, "10.0", None, _fw(_ids.WINDOWS, "8.1")),
        (_ids.UAP, "10.0", None, _fw(_ids.WINDOWS_PHONE_APP, "8.1")),
        (_ids.UAP, "10.0", None, _fw(_ids.NET_CORE, "5.0")),
        (_ids.MONO_ANDROID, "0.0", None, _fw(_ids.NET_STANDARD, "2.0")),
        (_ids.XAMARIN_IOS, "0.0", None, _fw(_ids.NET_STANDARD, "2.0")),
    )
)


def _mapped_frameworks(target: Framework) -> List[Framework]:
    """Frameworks that ``target`` can consume besides its own identifier."""
    mapped = [
        supported
        for identifier, lowest, highest, supported in _COMPATIBILITY_MAPPINGS
        if identifier == target.identifier
        and lowest <= target.version
        and (highest is None or target.version < highest)
    ]
    version = target.version
    if target.identifier == _ids.DNX:
        mapped.append(Framework(_ids.NET, version))
    elif target.identifier == _ids.NET_STANDARD and version.major == 1:
        # netstandard1.x is equivalent to the older dotnet5.(x+1) moniker
        mapped.append(_fw(_ids.NET_PLATFORM, f"5.{version.minor + 1}"))
    elif target.identifier == _ids.NET_PLATFORM and version.major == 5 and version.minor >= 1:
        mapped.append(_fw(_ids.NET_STANDARD, f"1.{version.minor - 1}"))
    return mapped


def _normalized_profile(framework: Framework) -> str:
    if framework.identifier == _ids.NET and framework.profile.lower() == "client":
        return ""
    return framework.profile.lower()


def _is_direct_match(target: Framework, candidate: Framework) -> bool:
    return (
        target.identifier.lower() == candidate.identifier.lower()
        and _normalized_profile(target) == _normalized_profile(candidate)
        and candidate.version <= target.version
    )


def is_compatible(target: Framework, candidate: Framework) -> bool:
    """Return True when a project targeting ``target`` can consume ``candidate``."""
    return _is_compatible(target, candidate, frozenset())


def _is_compatible(target: Framework, candidate: Framework, visited: FrozenSet[Framework]) -> bool:
    if candidate.is_any:
        return True
    if target.is_any or target.is_unsupported or candidate.is_unsupported:
        return False
    if _is_direct_match(target, candidate):
        return True
    if target.is_portable and target.portable_frameworks:
        return all(
            _is_compatible(member, candidate, visited) for member in target.portable_frameworks
        )
    if candidate.is_portable:
        return any(
            _is_compatible(target, member, visited) for member in candidate.portable_frameworks
        )
    if target in visited:
        return False
    visited = visited | {target}
    return any(_is_compatible(mapped, candidate, visited) for mapped in _mapped_frameworks(target))


def get_nearest(framework: Framework, candidates: Iterable[Framework]) -> Optional[Framework]:
    """Pick the most specific candidate that ``framework`` can consume.

    An exact match wins outright. Otherwise candidates that a more specific
    compatible candidate can itself consume are dropped, and the remainder is
    ordered: same identifier first, non-portable before portable, fewer
    portable members first, then the highest version.
    """
    unique = list(dict.fromkeys(candidates))
    compatible = [candidate for candidate in unique if is_compatible(framework, candidate)]
    if not compatible:
        return None
    if framework in compatible:
        return framework

    reduced = [
        candidate
        for candidate in compatible
        if not any(
            other != candidate and is_compatible(other, candidate) and not is_compatible(candidate, other)
            for other in compatible
        )
    ] or compatible

    reduced.sort(key=lambda candidate: candidate.version, reverse=True)
    reduced.sort(
        key=lambda candidate: (
            candidate.identifier.lower() != framework.identifier.lower(),
            candidate.is_portable,
            len(candidate.portable_frameworks),
        )
    )
    return reduced[0]


def get_nearest_item(
    framework: Framework, items: Sequence[T], key: Callable[[T], Optional[Framework]]
) -> Optional[T]:
    """Return the first item whose framework is the nearest to ``framework``."""
    nearest = get_nearest(framework, [key(item) for item in items if key(item) is not None])
    if nearest is None:
        return None
    for item in items:
        if key(item) == nearest:
            return item
    return None
