import re

import numpy as np
import pandas as pd

_NUMBER_PATTERN = re.compile(r'^[-+]?(\d+(\.\d*)?|\.\d+)')


def convert_numpy_types(data):
    """
    Recursively converts numpy types in a data structure (dict, list, value)
    to native Python types for JSON serialization.
    """
    if isinstance(data, (np.integer,)):
        return int(data)
    if isinstance(data, (np.floating,)):
        return None if np.isnan(data) else float(data)
    if isinstance(data, (np.bool_, bool)):
        return bool(data)
    if isinstance(data, np.ndarray):
        return [convert_numpy_types(x) for x in data.tolist()]
    if isinstance(data, dict):
        return {key: convert_numpy_types(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [convert_numpy_types(x) for x in data]
    if isinstance(data, pd.Timestamp):
        return data.isoformat()
    if isinstance(data, float) and np.isnan(data):
        return None
    return data


def canonical_key(column):
    """Lower-case a column name and turn whitespace runs into underscores"""
    return re.sub(r'\s+', '_', str(column).strip().lower())


def is_missing(value):
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_number(value):
    """
    Parse a cell into a float. Everything except digits, '.' and '-' is
    stripped before parsing the leading number; failures give None.
    """
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)

    cleaned = re.sub(r'[^\d.\-]', '', str(value))
    match = _NUMBER_PATTERN.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def clean_text(value):
    """Text form of an identifier cell, or None when blank"""
    if is_missing(value):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None
