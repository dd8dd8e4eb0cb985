"""
Placeholder substitution for recorded flows.

Flows are parameterized with ``${name}`` placeholders anywhere in the JSON
text. Substitution is a plain find/replace on the raw text, done once before
the flow is parsed:

    - String values are injected as-is (no quoting or escaping is added)
    - Other values are injected as their JSON literal (``true``, ``null``, ``42``)
    - Placeholders without a binding are left untouched

Non-string values therefore keep their JSON spelling rather than a plain string
conversion: ``1.0`` renders as ``1.0`` (not ``1``) and a mapping renders as its
JSON object text (not ``[object Object]``). Callers wanting a particular
spelling, such as the CLI's ``--input`` values, pass strings.
"""

import json
import re
from typing import Any, Mapping

PLACEHOLDER_PATTERN = re.compile(r"\$\{(\w+)\}")


def render_value(value: Any) -> str:
    """Render a binding value as the raw text that replaces its placeholder."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def preprocess(content: str, input_data: Mapping[str, Any] | None = None) -> str:
    """
    Replace every bound ``${name}`` placeholder in ``content``.

    Args:
        content: Raw flow text
        input_data: Mapping from placeholder name to value

    Returns:
        The substituted text
    """
    if not input_data:
        return content

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in input_data:
            return match.group(0)
        return render_value(input_data[name])

    return PLACEHOLDER_PATTERN.sub(substitute, content)


def find_placeholders(content: str) -> list[str]:
    """Return the distinct placeholder names in ``content``, in first-seen order."""
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(content)))
