# uaroute/matcher.py

import re
from typing import Dict, Optional, Sequence, Tuple

from uaroute.errors import MatchError
from uaroute.rules import CompiledRule, EntityKind

# `$` followed by one or more digits; `$0` is not a group reference
PLACEHOLDER = re.compile(r"\$(\d+)")


def group_text(match, index: int) -> Optional[str]:
    """
    Text of capture group `index`, or None if the group did not take part
    in the match. Indexes past the pattern's group count count as not
    taking part.
    """
    if index > match.re.groups:
        return None
    return match.group(index)


def substitute(template: str, match) -> str:
    """
    Replace each `$N` in the template with capture group N.

    Single left-to-right pass: substituted text is never re-scanned. A `$`
    not followed by a digit, and `$0`, are copied as-is.
    """
    def replace(placeholder) -> str:
        index = int(placeholder.group(1))
        if index == 0:
            return placeholder.group(0)
        return group_text(match, index) or ""

    return PLACEHOLDER.sub(replace, template)


def find_first_match(
    raw: str,
    rules: Sequence[CompiledRule],
    kind: EntityKind,
    timeout: Optional[float] = None,
) -> Optional[Tuple[CompiledRule, object]]:
    for index, rule in enumerate(rules):
        try:
            match = rule.pattern.search(raw, timeout=timeout)
        except TimeoutError as e:
            raise MatchError(kind.name, index, e) from e

        if match is not None:
            return rule, match

    return None


def extract_fields(rule: CompiledRule, match, kind: EntityKind) -> Dict[str, Optional[str]]:
    fields: Dict[str, Optional[str]] = {}

    for spec in kind.layout:
        template = rule.templates.get(spec.name)
        if template is not None:
            fields[spec.name] = substitute(template, match)
            continue

        value = group_text(match, spec.group)
        if value is None and spec.required:
            value = ""
        fields[spec.name] = value

    return fields


def default_fields(kind: EntityKind) -> Dict[str, Optional[str]]:
    return {spec.name: ("" if spec.required else None) for spec in kind.layout}


def match_fields(
    raw: str,
    rules: Sequence[CompiledRule],
    kind: EntityKind,
    timeout: Optional[float] = None,
) -> Dict[str, Optional[str]]:
    """
    Run the first rule that matches `raw` and return its fields.

    No matching rule is not an error: every field comes back at its default
    (empty family, everything else None).
    """
    found = find_first_match(raw, rules, kind, timeout)
    if found is None:
        return default_fields(kind)

    rule, match = found
    return extract_fields(rule, match, kind)
