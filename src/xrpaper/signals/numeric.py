"""Locale-tolerant numeric parsing for values copied from brokers and charts."""

from __future__ import annotations

import re
from typing import Any

import numpy as np

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def safe_float(value: Any) -> float | None:
    """Return finite float or None."""

    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if np.isfinite(out) else None


def _unify_separators(text: str) -> str:
    last_dot = text.rfind(".")
    last_comma = text.rfind(",")
    if last_dot >= 0 and last_comma >= 0:
        if last_comma > last_dot:
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if last_comma >= 0:
        return text.replace(",", ".")
    return text


def normalize_number(raw: Any) -> float | None:
    """Parse user-entered numbers such as ``"1.234,56"`` or ``"0,5%"``.

    When both separators are present the last one is the decimal point and
    the other is dropped as a thousands separator. A lone comma is a decimal
    point; a lone dot is kept as-is. Returns None for anything that does not
    resolve to a finite number.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, np.integer, np.floating)):
        return safe_float(raw)
    if not isinstance(raw, str):
        return None

    text = _WHITESPACE_PATTERN.sub("", raw).replace("%", "")
    if not text:
        return None
    text = _unify_separators(text)
    if not _NUMBER_PATTERN.match(text):
        return None
    return safe_float(text)
