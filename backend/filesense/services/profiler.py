"""
Per-column statistical profile of an uploaded dataset.

The column set comes from the keys of the first row only. Rows that lack one
of those keys count as missing for it, and keys that appear only in later
rows are not profiled. Callers that want every header profiled must give the
first row every key (the file parser does this).
"""
import logging
import math
from collections.abc import Mapping
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import pandas as pd

from filesense.core.performance import track_performance
from filesense.core.schemas import (
    CategoricalColumnProfile,
    ColumnProfile,
    DatasetProfile,
    NumericColumnProfile,
)

logger = logging.getLogger(__name__)

TOP_VALUES_LIMIT = 5
_QUANTIZE_PRECISION = 400


def round_half_up(value: float, places: int = 0) -> float:
    """
    Round half away from zero on the shortest decimal repr of value.

    round() would use banker's rounding on the binary value, so 0.125 -> 0.12
    and 2.5 -> 2. Both averages and percentages go through here instead.
    """
    value = float(value)
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    # enough digits for any finite float, e.g. 1e308 to 2 places
    context = Context(prec=_QUANTIZE_PRECISION)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP, context=context))


def is_present(value: Any) -> bool:
    """None, NaN and the empty string are missing; everything else (0, "0", False) is present."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def coerce_number(value: Any) -> Optional[float]:
    """
    Numeric value of a cell, or None if it is not a finite number.

    Never raises. Booleans are not numbers. Strings are stripped and parsed
    as decimal or scientific notation; "nan", "inf" and digit separators
    such as "1_000" are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # ints beyond the float range
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        try:
            # numpy scalars and Decimals
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
    if not math.isfinite(number):
        return None
    return number


def value_to_text(value: Any) -> str:
    """Text used as the frequency key, so 3, 3.0 and "3" collapse together."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _numeric_profile(numbers: List[float], missing: int) -> NumericColumnProfile:
    low, high = min(numbers), max(numbers)
    count = len(numbers)
    try:
        mean = math.fsum(numbers) / count
    except OverflowError:
        # the sum of values near the float limit is not finite, the mean is
        mean = math.fsum(number / count for number in numbers)
    # rounding to 2 dp must not push avg outside [min, max], e.g. [1.004, 1.004]
    avg = min(max(round_half_up(mean, 2), low), high)
    return NumericColumnProfile(
        min=low,
        max=high,
        avg=avg,
        missing=missing,
    )


def _categorical_profile(present: pd.Series, row_count: int, missing: int) -> CategoricalColumnProfile:
    if present.empty:
        return CategoricalColumnProfile(unique_count=0, top_values=[], missing=missing)

    texts = present.map(value_to_text)
    # groupby(sort=False) keeps first-seen order; the stable sort keeps it for ties
    counts = texts.groupby(texts, sort=False).size()
    ranked = counts.sort_values(ascending=False, kind="stable")

    top_values = [
        f"{text} ({int(round_half_up(float(count) / row_count * 100))}%)"
        for text, count in ranked.head(TOP_VALUES_LIMIT).items()
    ]
    return CategoricalColumnProfile(
        unique_count=len(counts),
        top_values=top_values,
        missing=missing,
    )


def profile_column(series: pd.Series, row_count: int) -> ColumnProfile:
    """Classify one column and compute its statistics."""
    present = series[series.map(is_present)]
    missing = row_count - len(present)

    if not present.empty:
        numbers = [coerce_number(v) for v in present]
        if all(n is not None for n in numbers):
            return _numeric_profile(numbers, missing)

    return _categorical_profile(present, row_count, missing)


@track_performance("profile_dataset")
def profile_dataset(rows: Any) -> Optional[DatasetProfile]:
    """
    Profile a list of row mappings.

    Returns None when rows is not a non-empty list whose first element is a
    mapping; the caller decides whether that is an error.
    """
    if not isinstance(rows, list) or not rows:
        return None
    if not isinstance(rows[0], Mapping):
        return None

    headers = list(rows[0].keys())
    row_count = len(rows)
    records = [dict(row) if isinstance(row, Mapping) else {} for row in rows]

    # object dtype keeps cells exactly as given; absent keys become NaN
    df = pd.DataFrame(records, columns=headers, dtype=object)

    columns: Dict[str, ColumnProfile] = {}
    for position, header in enumerate(headers):
        columns[header] = profile_column(df.iloc[:, position], row_count)

    logger.debug(f"Profiled {row_count} rows across {len(headers)} columns")
    return DatasetProfile(row_count=row_count, columns=columns)
