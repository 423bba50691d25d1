"""Scalar coercion rules shared by the parser, filters and chart transforms."""
import datetime
import math
import re

import numpy as np
import pandas as pd

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INT_RE = re.compile(r"^[+-]?\d+$")


def to_number(value):
    """Numeric form of a cell value, or None when it doesn't coerce to a finite number."""
    if value is None:
        return None
    if isinstance(value, (bool, np.bool_)):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        x = float(value)
        return x if math.isfinite(x) else None
    if isinstance(value, str):
        s = value.strip()
        if not _NUMBER_RE.match(s):
            return None
        x = float(s)
        return x if math.isfinite(x) else None
    return None


def parse_scalar(text: str):
    """CSV cell coercion: numeric literal -> int/float, anything else -> trimmed string."""
    s = text.strip()
    if s and _NUMBER_RE.match(s):
        if _INT_RE.match(s):
            return int(s)
        x = float(s)
        if math.isfinite(x):
            return x
    return s


def to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)):
        x = float(value)
        if math.isfinite(x) and x.is_integer():
            return str(int(x))
        return repr(x)
    return str(value)


def loosely_equal(value, text: str) -> bool:
    """Coerced equality between a row value and a filter string.

    Strings compare exactly; numbers and booleans compare numerically
    against the coerced filter text. ``None`` never equals anything.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return value == text
    left, right = to_number(value), to_number(text)
    if left is None or right is None:
        return False
    return left == right


def to_jsonable(x):
    """Plain JSON-safe Python value for numpy/pandas scalars; NaN and NaT become None."""
    if x is pd.NaT or x is pd.NA:      return None
    if isinstance(x, (pd.Timestamp, datetime.datetime, datetime.date)):
        return x.isoformat()
    if isinstance(x, (np.integer,)):   return int(x)
    if isinstance(x, (np.floating,)):  return None if np.isnan(x) else float(x)
    if isinstance(x, (np.bool_,)):     return bool(x)
    if isinstance(x, float) and math.isnan(x): return None
    return x
