# core/forms.py
"""
Helpers for reading POSTed data that may arrive either as JSON or as a
form-encoded body (``attendance[12]=attended``, ``selected_users[]=3``).
"""
import re
from typing import Dict, List

from .constants import CSRF_FIELD_NAME

_SECRET_FIELDS = {"password", "confirm_password", CSRF_FIELD_NAME}


def is_truthy(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def bracket_dict(data, name: str) -> Dict[str, str]:
    """
    Read ``name`` as a mapping.

    JSON: {"attendance": {"5": "attended"}}
    Form: attendance[5]=attended, responses[7][]=a&responses[7][]=b
    """
    value = data.get(name) if hasattr(data, "get") else None
    if isinstance(value, dict):
        return {str(key): val for key, val in value.items()}

    pattern = re.compile(r"^%s\[([^\]]+)\](\[\])?$" % re.escape(name))
    result = {}
    for key in data.keys():
        match = pattern.match(key)
        if not match:
            continue
        if match.group(2) and hasattr(data, "getlist"):
            result[match.group(1)] = data.getlist(key)
        else:
            result[match.group(1)] = data.get(key)
    return result


def indexed_rows(data, name: str) -> List[dict]:
    """
    Read ``name`` as a list of rows.

    JSON: {"questions": [{"question_text": "..."}]}
    Form: questions[0][question_text]=...&questions[0][options]=...
    """
    value = data.get(name) if hasattr(data, "get") else None
    if isinstance(value, (list, tuple)):
        return [row for row in value if isinstance(row, dict)]

    pattern = re.compile(r"^%s\[(\d+)\]\[([^\]]+)\]$" % re.escape(name))
    rows: Dict[int, dict] = {}
    for key in data.keys():
        match = pattern.match(key)
        if match:
            rows.setdefault(int(match.group(1)), {})[match.group(2)] = data.get(key)
    return [rows[index] for index in sorted(rows)]


def list_param(data, name: str) -> List[str]:
    """
    Read ``name`` as a list.

    JSON: {"selected_users": [1, 2]}
    Form: selected_users=1&selected_users=2 or selected_users[]=1
    """
    if hasattr(data, "getlist"):
        values = data.getlist(name) or data.getlist(f"{name}[]")
        if len(values) == 1 and isinstance(values[0], (list, tuple)):
            return list(values[0])
        return values

    value = data.get(name, [])
    if isinstance(value, (list, tuple)):
        return list(value)
    if value in (None, ""):
        return []
    return [value]


def int_list(values) -> List[int]:
    ids = []
    for value in values:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            continue
    return ids


def submitted_values(data) -> dict:
    """Echo of the submitted form, minus secrets, for redisplay after errors."""
    if hasattr(data, "dict"):
        data = data.dict()
    return {key: value for key, value in dict(data).items() if key not in _SECRET_FIELDS}


def to_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
