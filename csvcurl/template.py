"""
template.py - Request Body Rendering
====================================
Fills a JSON template with values from one CSV record.

Placeholders look like ``{{column_name}}`` and are only recognised inside
string values (never in object keys). A name is one or more ASCII letters,
digits or underscores. There is no escape syntax for a literal ``{{name}}``.

Two kinds of string leaf are handled differently:

    Whole-string placeholder:   "{{id}}"          -> record["id"] as-is
    Embedded placeholders:      "Hi {{name}}!"    -> "Hi Ada!"

The whole-string form hands over the record value itself, so a record holding
non-string values keeps their type. Embedded placeholders always produce text.

A placeholder whose name is not in the record is left untouched in both
cases, e.g. ``"{{missing}}"`` stays ``"{{missing}}"``.

Examples:
    >>> render({"id": "{{id}}", "tags": ["{{tag}}", 1]}, {"id": "42", "tag": "new"})
    {'id': '42', 'tags': ['new', 1]}
    >>> render({"msg": "hello {{name}}"}, {})
    {'msg': 'hello {{name}}'}
"""

import re
from typing import Any, Mapping, Set


PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}", re.ASCII)


def _render_string(text: str, record: Mapping[str, Any]) -> Any:
    exact = PLACEHOLDER.fullmatch(text)
    if exact:
        return record.get(exact.group(1), text)

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in record:
            return match.group(0)
        return str(record[name])

    return PLACEHOLDER.sub(replace, text)


def render(template: Any, record: Mapping[str, Any]) -> Any:
    """
    Build a new document from ``template`` with placeholders filled in.

    The template is never modified; objects and arrays are rebuilt, so the
    result shares no containers with the template and the same template can
    be rendered for any number of records in any order.

    Args:
        template: Any JSON-shaped value (dict, list, str, int, float, bool, None)
        record: Column name -> value mapping for one CSV row

    Returns:
        A document with the same shape as ``template``
    """
    if isinstance(template, dict):
        return {key: render(value, record) for key, value in template.items()}
    if isinstance(template, list):
        return [render(item, record) for item in template]
    if isinstance(template, str):
        return _render_string(template, record)
    # numbers, booleans and null
    return template


def find_placeholders(template: Any) -> Set[str]:
    """Return every placeholder name used anywhere in the template."""
    if isinstance(template, dict):
        names = set()
        for value in template.values():
            names |= find_placeholders(value)
        return names
    if isinstance(template, list):
        names = set()
        for item in template:
            names |= find_placeholders(item)
        return names
    if isinstance(template, str):
        return set(PLACEHOLDER.findall(template))
    return set()
