"""
Descriptive statistics over normalized student records.

Every numeric field is summarized on its own non-null values, so a sheet
that has attendance for only half of the class still gets attendance
statistics for that half.
"""

import logging
from itertools import combinations

import numpy as np
import pandas as pd

from .errors import EmptyDatasetError
from .normalizer import NUMERIC_FIELDS
from .utils import convert_numpy_types, is_missing

logger = logging.getLogger(__name__)

MIN_CORRELATION_POINTS = 2
MIN_TREND_POINTS = 3
MIN_OUTLIER_POINTS = 5
IQR_MULTIPLIER = 1.5


def _records_frame(records):
    df = pd.DataFrame(records)
    for field in NUMERIC_FIELDS:
        if field in df.columns:
            df[field] = pd.to_numeric(df[field], errors='coerce')
        else:
            df[field] = np.nan
    return df


def describe_field(values):
    """Summary of one numeric series with NaNs already removed"""
    quartiles = values.quantile([0.25, 0.5, 0.75])
    return {
        "count": int(values.count()),
        "mean": values.mean(),
        "median": values.median(),
        "mode": values.mode().iloc[0],
        "standardDeviation": values.std(ddof=0),
        "variance": values.var(ddof=0),
        "min": values.min(),
        "max": values.max(),
        "range": values.max() - values.min(),
        "quartiles": {
            "q1": quartiles.loc[0.25],
            "q2": quartiles.loc[0.5],
            "q3": quartiles.loc[0.75],
        },
    }


def calculate_correlations(df, fields=NUMERIC_FIELDS):
    correlations = {}
    for field1, field2 in combinations(fields, 2):
        pairs = df[[field1, field2]].dropna()
        if len(pairs) < MIN_CORRELATION_POINTS:
            continue
        corr = pairs[field1].corr(pairs[field2])
        correlations[f"{field1}_{field2}"] = None if pd.isna(corr) else float(corr)
    return correlations


def fit_trend(values):
    """Least-squares line of value against position"""
    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)
    x_dev = x - x.mean()
    slope = float(np.sum(x_dev * (y - y.mean())) / np.sum(x_dev ** 2))
    intercept = float(y.mean() - slope * x.mean())

    if slope > 0:
        direction = "increasing"
    elif slope < 0:
        direction = "decreasing"
    else:
        direction = "stable"
    return {"slope": slope, "intercept": intercept, "direction": direction}


def identify_trends(df, fields=NUMERIC_FIELDS):
    trends = {}
    for field in fields:
        values = df[field].dropna()
        if len(values) >= MIN_TREND_POINTS:
            trends[field] = fit_trend(values.tolist())
    return trends


def _display_name(row):
    for key in ("name", "id", "identifier"):
        if not is_missing(row.get(key)):
            return row.get(key)
    return None


def identify_outliers(df, fields=NUMERIC_FIELDS):
    outliers = {}
    for field in fields:
        valid = df[df[field].notna()]
        if len(valid) < MIN_OUTLIER_POINTS:
            continue

        q1 = valid[field].quantile(0.25)
        q3 = valid[field].quantile(0.75)
        iqr = q3 - q1
        lower_bound = q1 - IQR_MULTIPLIER * iqr
        upper_bound = q3 + IQR_MULTIPLIER * iqr

        flagged = []
        for _, row in valid.iterrows():
            value = row[field]
            if value < lower_bound or value > upper_bound:
                flagged.append({
                    "studentName": _display_name(row),
                    "value": float(value),
                    "type": "low" if value < lower_bound else "high",
                })
        outliers[field] = flagged
    return outliers


def analyze_statistics(records):
    """
    Statistics summary for a list of normalized student records.
    Raises EmptyDatasetError when there is nothing to summarize.
    """
    if not records:
        raise EmptyDatasetError()

    df = _records_frame(records)
    summary = {}
    for field in NUMERIC_FIELDS:
        values = df[field].dropna()
        if len(values) > 0:
            summary[field] = describe_field(values)

    summary["totalStudents"] = len(records)
    summary["correlations"] = calculate_correlations(df)
    summary["trends"] = identify_trends(df)
    summary["outliers"] = identify_outliers(df)

    logger.info(
        f"Statistics computed for {len(records)} records "
        f"({len([f for f in NUMERIC_FIELDS if f in summary])} numeric fields)"
    )
    return convert_numpy_types(summary)
