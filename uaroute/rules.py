# uaroute/rules.py

"""
Rule definitions and the rule compiler.

Rules come from a uap-core style ``regexes.yaml`` document holding three
ordered lists (``user_agent_parsers``, ``os_parsers``, ``device_parsers``).
Each entry is a pattern, optional ``regex_flag`` characters and optional
per-field replacement templates. Order is significant: the first matching
rule wins, so entries are never re-sorted.

Patterns are compiled with the ``regex`` module. The upstream rule data
relies on backreferences and lookaround, and ``regex`` also gives us a
per-match timeout to bound runaway backtracking.
"""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import regex
import yaml
from pydantic import BaseModel, ValidationError, field_validator

from uaroute.errors import InitError

logger = logging.getLogger(__name__)


class MatchFlag(enum.Flag):
    NONE = 0
    CASE_INSENSITIVE = enum.auto()
    MULTILINE = enum.auto()
    DOT_MATCHES_NEWLINE = enum.auto()
    UNICODE = enum.auto()


# regex_flag characters from the rule document
FLAG_CHARACTERS: Dict[str, MatchFlag] = {
    "i": MatchFlag.CASE_INSENSITIVE,
    "m": MatchFlag.MULTILINE,
    "s": MatchFlag.DOT_MATCHES_NEWLINE,
    "u": MatchFlag.UNICODE,
}

ENGINE_FLAGS: Dict[MatchFlag, int] = {
    MatchFlag.CASE_INSENSITIVE: regex.IGNORECASE,
    MatchFlag.MULTILINE: regex.MULTILINE,
    MatchFlag.DOT_MATCHES_NEWLINE: regex.DOTALL,
    MatchFlag.UNICODE: regex.UNICODE,
}


def parse_flags(regex_flag: Optional[str]) -> MatchFlag:
    """Map ``regex_flag`` characters to toggles. Unknown characters are ignored."""
    flags = MatchFlag.NONE
    for char in regex_flag or "":
        flags |= FLAG_CHARACTERS.get(char, MatchFlag.NONE)
    return flags


def engine_flags(flags: MatchFlag) -> int:
    bits = 0
    for flag, bit in ENGINE_FLAGS.items():
        if flag in flags:
            bits |= bit
    return bits


@dataclass(frozen=True)
class FieldSpec:
    """One output field: default capture group and the document key of its template"""
    name: str
    group: int
    template_key: str
    required: bool = False


FieldLayout = Tuple[FieldSpec, ...]


@dataclass(frozen=True)
class EntityKind:
    name: str
    document_key: str
    layout: FieldLayout


USER_AGENT = EntityKind(
    name="user_agent",
    document_key="user_agent_parsers",
    layout=(
        FieldSpec("family", 1, "family_replacement", required=True),
        FieldSpec("major", 2, "v1_replacement"),
        FieldSpec("minor", 3, "v2_replacement"),
        FieldSpec("patch", 4, "v3_replacement"),
    ),
)

OPERATING_SYSTEM = EntityKind(
    name="os",
    document_key="os_parsers",
    layout=(
        FieldSpec("family", 1, "os_replacement", required=True),
        FieldSpec("major", 2, "os_v1_replacement"),
        FieldSpec("minor", 3, "os_v2_replacement"),
        FieldSpec("patch", 4, "os_v3_replacement"),
        FieldSpec("patch_minor", 5, "os_v4_replacement"),
    ),
)

DEVICE = EntityKind(
    name="device",
    document_key="device_parsers",
    layout=(
        FieldSpec("family", 1, "device_replacement", required=True),
        FieldSpec("brand", 2, "brand_replacement"),
        FieldSpec("model", 3, "model_replacement"),
    ),
)

ENTITY_KINDS: Tuple[EntityKind, ...] = (USER_AGENT, OPERATING_SYSTEM, DEVICE)


class RuleEntry(BaseModel):
    """A single entry of the rule document, as written by rule authors"""

    regex: str
    regex_flag: Optional[str] = None

    # Browser
    family_replacement: Optional[str] = None
    v1_replacement: Optional[str] = None
    v2_replacement: Optional[str] = None
    v3_replacement: Optional[str] = None

    # Operating system
    os_replacement: Optional[str] = None
    os_v1_replacement: Optional[str] = None
    os_v2_replacement: Optional[str] = None
    os_v3_replacement: Optional[str] = None
    os_v4_replacement: Optional[str] = None

    # Device
    device_replacement: Optional[str] = None
    brand_replacement: Optional[str] = None
    model_replacement: Optional[str] = None

    class Config:
        extra = "ignore"

    @field_validator("*", mode="before")
    @classmethod
    def scalars_as_strings(cls, value: Any) -> Any:
        # Unquoted YAML scalars such as `os_v1_replacement: 8`
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


@dataclass(frozen=True)
class Rule:
    pattern: str
    flags: MatchFlag = MatchFlag.NONE
    templates: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleDefinitions:
    user_agent: Tuple[Rule, ...] = ()
    os: Tuple[Rule, ...] = ()
    device: Tuple[Rule, ...] = ()

    def rules_for(self, kind: EntityKind) -> Tuple[Rule, ...]:
        return getattr(self, kind.name)


@dataclass(frozen=True)
class CompiledRule:
    pattern: "regex.Pattern"
    templates: Mapping[str, str]


def make_rule(
    pattern: str,
    regex_flag: Optional[str] = None,
    **templates: Optional[str],
) -> Rule:
    """Build a rule by hand, templates keyed by field name"""
    present = {name: value for name, value in templates.items() if value is not None}
    return Rule(
        pattern=pattern,
        flags=parse_flags(regex_flag),
        templates=MappingProxyType(present),
    )


def rule_from_entry(kind: EntityKind, entry: RuleEntry) -> Rule:
    templates = {}
    for spec in kind.layout:
        template = getattr(entry, spec.template_key)
        if template is not None:
            templates[spec.name] = template

    return Rule(
        pattern=entry.regex,
        flags=parse_flags(entry.regex_flag),
        templates=MappingProxyType(templates),
    )


def parse_entries(kind: EntityKind, entries: Any) -> Tuple[Rule, ...]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise InitError(f"{kind.document_key} must be a list")

    rules = []
    for index, raw_entry in enumerate(entries):
        if not isinstance(raw_entry, dict):
            raise InitError("rule entry must be a mapping", kind.name, index)
        try:
            entry = RuleEntry.model_validate(raw_entry)
        except ValidationError as e:
            raise InitError(str(e), kind.name, index, raw_entry.get("regex")) from e
        rules.append(rule_from_entry(kind, entry))

    return tuple(rules)


def parse_rule_document(document: Any) -> RuleDefinitions:
    """Turn an already-parsed rule document into ordered rule definitions"""
    if not isinstance(document, dict):
        raise InitError("rule document must be a mapping")

    return RuleDefinitions(**{
        kind.name: parse_entries(kind, document.get(kind.document_key))
        for kind in ENTITY_KINDS
    })


def load_rule_document(path: Union[str, Path]) -> RuleDefinitions:
    """Read and parse a ``regexes.yaml`` file"""
    try:
        with open(path, encoding="utf-8") as fh:
            document = yaml.safe_load(fh)
    except OSError as e:
        raise InitError(f"cannot read rule document {path}: {e}") from e
    except yaml.YAMLError as e:
        raise InitError(f"invalid rule document {path}: {e}") from e

    definitions = parse_rule_document(document)
    logger.info(
        f"Loaded rule document {path}: "
        f"{len(definitions.user_agent)} user agent, "
        f"{len(definitions.os)} os, "
        f"{len(definitions.device)} device rules"
    )
    return definitions


def compile_rule(kind: EntityKind, index: int, rule: Rule) -> CompiledRule:
    try:
        compiled = regex.compile(rule.pattern, engine_flags(rule.flags))
    except regex.error as e:
        raise InitError(str(e), kind.name, index, rule.pattern) from e

    return CompiledRule(pattern=compiled, templates=rule.templates)


def compile_rules(kind: EntityKind, rules: Tuple[Rule, ...]) -> Tuple[CompiledRule, ...]:
    """Compile rules in order. The first bad pattern aborts the whole build."""
    return tuple(compile_rule(kind, index, rule) for index, rule in enumerate(rules))
