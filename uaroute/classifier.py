# uaroute/classifier.py

from dataclasses import dataclass, field
from typing import Dict, Optional
from uaroute.matcher import match_fields
from uaroute.registry import Registry, get_registry
from uaroute.rules import DEVICE, OPERATING_SYSTEM, USER_AGENT, EntityKind


@dataclass(frozen=True)
class Version:
    """Version components, kept as the raw strings the rules produced"""
    major: Optional[str] = None
    minor: Optional[str] = None
    patch: Optional[str] = None
    patch_minor: Optional[str] = None


@dataclass(frozen=True)
class UserAgent:
    family: str = ""
    version: Version = field(default_factory=Version)


@dataclass(frozen=True)
class OperatingSystem:
    family: str = ""
    version: Version = field(default_factory=Version)


@dataclass(frozen=True)
class Device:
    family: str = ""
    brand: Optional[str] = None
    model: Optional[str] = None


def _classify(user_agent: Optional[str], kind: EntityKind, registry: Optional[Registry]) -> Dict[str, Optional[str]]:
    if registry is None:
        registry = get_registry()

    return match_fields(
        user_agent or "",
        registry.rules_for(kind),
        kind,
        timeout=registry.match_timeout,
    )


def _version(fields: Dict[str, Optional[str]]) -> Version:
    return Version(
        major=fields["major"],
        minor=fields["minor"],
        patch=fields["patch"],
        patch_minor=fields.get("patch_minor"),  # browser layouts stop at patch
    )


def classify_user_agent(user_agent: Optional[str], registry: Optional[Registry] = None) -> UserAgent:
    """
    Classify the browser of a User-Agent header.

    Uses the process-wide registry (compiled on first use) unless one is
    passed in. Raises MatchError if the regex engine faults on a rule.
    """
    fields = _classify(user_agent, USER_AGENT, registry)
    return UserAgent(family=fields["family"], version=_version(fields))


def classify_operating_system(user_agent: Optional[str], registry: Optional[Registry] = None) -> OperatingSystem:
    """Classify the operating system of a User-Agent header."""
    fields = _classify(user_agent, OPERATING_SYSTEM, registry)
    return OperatingSystem(family=fields["family"], version=_version(fields))


def classify_device(user_agent: Optional[str], registry: Optional[Registry] = None) -> Device:
    """Classify the device of a User-Agent header."""
    fields = _classify(user_agent, DEVICE, registry)
    return Device(family=fields["family"], brand=fields["brand"], model=fields["model"])


# OS family -> platform class used for target selection
OS_CLASSES: Dict[str, str] = {
    "Linux": "linux",
    "Android": "android",
    "Windows": "windows",
    "Darwin": "darwin",
    "Mac OS": "darwin",
    "Mac OS X": "darwin",
    "iOS": "apple_mobile",
    "tvOS": "apple_mobile",
    "WatchOS": "apple_mobile",
}


def classify_os_class(user_agent: Optional[str]) -> str:
    """
    Bucket a user agent into a platform class.

    Returns one of: linux, android, windows, darwin, apple_mobile, unknown
    """
    if not user_agent:
        return "unknown"

    os = classify_operating_system(user_agent)
    return OS_CLASSES.get(os.family, "unknown")


# Repeated user agents skip the regex scan
KNOWN_USER_AGENTS: Dict[str, str] = {}


def classify_os_class_cached(user_agent: Optional[str]) -> str:
    """
    Classify with caching for repeated user agents.
    """
    if user_agent in KNOWN_USER_AGENTS:
        return KNOWN_USER_AGENTS[user_agent]

    os_class = classify_os_class(user_agent)

    # Cache if we haven't exceeded limit (prevent memory issues)
    if user_agent and len(KNOWN_USER_AGENTS) < 10000:
        KNOWN_USER_AGENTS[user_agent] = os_class

    return os_class
