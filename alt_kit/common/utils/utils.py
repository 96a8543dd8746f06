from __future__ import annotations

from typing import Dict, Any, Tuple


def get_from_dict(src: Dict, path: Tuple[Any, ...], default_value: Any) -> Any:
    """Provides smart getting values from python dictionary"""
    value = src
    for key in path:
        if isinstance(value, list) and isinstance(key, int):
            if not (0 <= key < len(value)):
                return default_value
            value = value[key]
        elif isinstance(value, dict):
            value = value.get(key, None)
        else:
            return default_value

        if value is None:
            return default_value
    return value
