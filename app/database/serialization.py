"""Helpers for turning domain dataclasses into JSONB column values."""

import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from functools import partial
from typing import Any

from psycopg.types.json import Jsonb


def _default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


_dumps = partial(json.dumps, default=_default)


def to_payload(value: Any) -> Any:
    """Convert a dataclass (or a container of them) into plain JSON-ready data."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def jsonb(value: Any) -> Jsonb:
    """Wrap a value for a JSONB column, tolerating dataclasses and datetimes."""
    return Jsonb(to_payload(value), dumps=_dumps)
