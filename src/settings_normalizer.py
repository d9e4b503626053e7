"""
Settings normalization for notifier settings maps.

The backend echoes unset optional settings back as empty strings, and
reports typed values (numbers, booleans, nested objects) in its own JSON
types. Everything that ends up in the generic ``settings`` map of a
notifier is pruned and rendered as a string so the same remote value
always produces the same stored value.
"""

import json
from typing import Any, Dict


def prune_empty_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``settings`` without empty-string or null values."""
    return {k: v for k, v in settings.items() if v is not None and v != ""}


def render_setting_value(value: Any) -> str:
    """
    Render a backend setting value as its canonical string form.

    Strings are returned unchanged. Any other value is JSON encoded with
    sorted keys, so ``True`` becomes ``"true"`` and ``5`` becomes ``"5"``.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def normalize_settings(settings: Dict[str, Any]) -> Dict[str, str]:
    """Prune empty values and stringify the rest."""
    return {
        key: render_setting_value(value)
        for key, value in prune_empty_settings(settings).items()
    }
