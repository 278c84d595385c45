"""Tag grammar shared by placeholder extraction and template filling.

Two delimiter syntaxes are recognised::

    {{name}}      the name is kept verbatim
    ${ name }     whitespace inside the braces is ignored

A name is a single run of characters other than ``{`` and ``}``. Keep it that
way: a single character class keeps the pattern free of nested quantifiers.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

TAG_PATTERN = re.compile(r"\{\{([^{}]+?)\}\}|\$\{\s*([^{}]+?)\s*\}")


def tag_name(match: re.Match[str]) -> str:
    return match.group(1) if match.group(1) is not None else match.group(2)


def find_tags(text: str) -> list[str]:
    """Return the name of every non-overlapping tag in *text*, in order."""
    return [tag_name(m) for m in TAG_PATTERN.finditer(text)]


def stringify_value(value: Any) -> str:
    """Canonical text of a mapping value as it is written into a template.

    Differs from plain `str()` on purpose: None is empty, lists and dicts are JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def substitute_tags(text: str, values: Mapping[str, Any]) -> str:
    """Replace every tag of *text* found in *values*; unknown tags stay verbatim."""

    def _replace(match: re.Match[str]) -> str:
        name = tag_name(match)
        if name in values:
            return stringify_value(values[name])
        return match.group(0)

    return TAG_PATTERN.sub(_replace, text)
