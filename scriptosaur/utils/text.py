"""Small text helpers shared by the gateway and the cliché parser."""

import re

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around a model response.

    Only a fence enclosing the whole response is removed; backticks inside
    the payload are left alone.
    """
    cleaned = text.strip()
    m = _FENCE_RE.match(cleaned)
    if m:
        return m.group(1).strip()
    return cleaned


def substitute_placeholders(template: str, values: dict[str, str]) -> str:
    """Fill ``{NAME}`` placeholders in order, first occurrence only.

    Missing placeholders are ignored and repeated ones stay literal after the
    first match.
    """
    result = template
    for name, value in values.items():
        result = result.replace("{" + name + "}", value, 1)
    return result
