"""
Placeholder substitution for automated messages.

Two syntaxes are in use:

* workflow text uses ``{entity.field}`` paths resolved against nested data
  (``"Hola {client.name}"``); unknown paths are left untouched.
* marketing templates use ``{{variable}}`` names resolved against a flat
  mapping (``"Hola {{cliente_nombre}}"``); unknown names are left untouched.
"""

import json
import re
from datetime import date, datetime
from typing import Any

PATH_PATTERN = re.compile(r"\{([a-zA-Z0-9_.]+)\}")
NAME_PATTERN = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")

_MISSING = object()


def get_path(data: Any, path: str) -> Any:
    """Walk ``a.b.c`` through nested dicts, returning _MISSING if any part is absent"""
    value = data
    for part in path.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return _MISSING
    return value


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def replace_variables(template: str, data: dict) -> str:
    """Replace ``{entity.field}`` placeholders with values from ``data``"""
    if not template or not isinstance(template, str):
        return template

    def _sub(match: re.Match) -> str:
        value = get_path(data, match.group(1))
        if value is _MISSING:
            return match.group(0)
        return _to_text(value)

    return PATH_PATTERN.sub(_sub, template)


def extract_variables(template: str) -> list[str]:
    """Distinct ``{entity.field}`` paths in order of first appearance"""
    if not template:
        return []
    return list(dict.fromkeys(PATH_PATTERN.findall(template)))


def render_template(template: str, variables: dict[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders with values from a flat mapping"""
    if not template:
        return template or ""

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return _to_text(variables[name])

    return NAME_PATTERN.sub(_sub, template)
