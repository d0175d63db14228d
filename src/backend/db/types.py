"""
SQLAlchemy Type Decorators for vote payload columns.

Feedback-option id lists are stored in one explicit encoding: a JSON array
of strings. Older rows may hold a bare comma-delimited string or a single
scalar; those are read through normalize_id_array so callers always see a
list of ids.
"""

import json
from typing import Any, Optional

from sqlalchemy import Text, TypeDecorator


def normalize_id_array(value: Any) -> list[str]:
    """
    Coerce a stored or submitted option-id collection into a list of ids.

    Accepted forms:
        ["opt1", "opt2"]      list (ids coerced to trimmed strings)
        '["opt1", "opt2"]'    JSON encoded list
        '"opt1"' / '7'        JSON encoded scalar
        "opt1,opt2"           comma delimited string
        "opt1" / 7            bare scalar

    Empty, null or unparseable input yields an empty list. Feeding the JSON
    encoding of the result back in returns the same list.
    """
    if value is None:
        return []

    if isinstance(value, (list, tuple)):
        return _clean_ids(value)

    if isinstance(value, bool):
        return []

    if isinstance(value, (int, float)):
        return [str(value)]

    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return []

        try:
            parsed = json.loads(trimmed)
        except ValueError:
            parsed = None
        else:
            if isinstance(parsed, list):
                return _clean_ids(parsed)
            if isinstance(parsed, str):
                return normalize_id_array(parsed) if parsed != trimmed else [trimmed]
            if isinstance(parsed, (int, float)) and not isinstance(parsed, bool):
                return [trimmed]
            if parsed is None or isinstance(parsed, (bool, dict)):
                return []

        if "," in trimmed:
            return [part.strip() for part in trimmed.split(",") if part.strip()]
        return [trimmed]

    return []


def _clean_ids(items: Any) -> list[str]:
    ids = []
    for item in items:
        if item is None or isinstance(item, (bool, list, dict)):
            continue
        text = str(item).strip()
        if text:
            ids.append(text)
    return ids


class OptionIdList(TypeDecorator):
    """
    SQLAlchemy type storing a list of feedback-option ids as a JSON array.

    Usage in models:
        strength_ids: Mapped[list[str]] = mapped_column(OptionIdList, default=list)
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        """Serialize to a JSON array of strings before storing."""
        return json.dumps(normalize_id_array(value))

    def process_result_value(self, value: Optional[str], dialect) -> list[str]:
        """Read any known encoding back as a list of ids."""
        return normalize_id_array(value)
