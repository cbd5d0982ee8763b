"""
JSON serializer utility for converting Python objects to JSON-safe values
"""
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel


def sanitize_for_json(value: Any) -> Any:
    """
    Recursively sanitize Python objects for JSON storage (datetime/date -> isoformat, Enum -> value, etc.).
    Use before saving to JSON columns (audit_logs.meta_json).
    """
    if value is None:
        return None
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, (str, int, float, bool)):
        return value
    elif isinstance(value, (date, datetime, time)):
        return value.isoformat()
    elif isinstance(value, Decimal):
        return float(value)
    elif isinstance(value, dict):
        return {str(k): sanitize_for_json(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple, set)):
        return [sanitize_for_json(item) for item in value]
    elif isinstance(value, BaseModel):
        return sanitize_for_json(value.model_dump())
    elif hasattr(value, "tolist"):
        # numpy arrays and scalars
        return sanitize_for_json(value.tolist())
    return str(value)
