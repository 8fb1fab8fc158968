# =========================================
# 📄 File: healthcare_eda/etl/cleaning.py
# Purpose: Cleaning & feature engineering of patient visits
# - Null checks with per-column policy (fail / drop / impute)
# - Whitespace trimming, name normalization, date parsing, numeric typing
# - Stable deduplication (first occurrence in file order wins)
# - Derived features: length of stay, calendar fields, billing per day, age group
# - Categorical typing with domain validation
# =========================================

import logging  # Used for structured logging of cleaning steps
from typing import Any, Dict, Optional  # Type hints for readability

import pandas as pd  # Core data manipulation library

from healthcare_eda.errors import (
    InvariantViolationError,
    MalformedInputError,
    NullValueError,
)
from healthcare_eda.etl.extract import line_numbers
from healthcare_eda.schema import (
    ADMISSION_DATE,
    AGE,
    AGE_BUCKETS,
    AGE_GROUP,
    AGE_GROUP_LABELS,
    BILLING_AMOUNT,
    BILLING_PER_DAY,
    CALENDAR_PREFIXES,
    CATEGORICAL_DOMAINS,
    CLEAN_COLUMNS,
    DATE_COLUMNS,
    DISCHARGE_DATE,
    LENGTH_OF_STAY,
    NAME,
)

log = logging.getLogger(__name__)  # Module-level logger

DEFAULT_DATE_FORMAT = "%Y-%m-%d"  # Source dates look like 2024-01-31
MAX_REPORTED_LINES = 10  # Cap on file lines quoted in a diagnostic


def _format_lines(lines) -> str:
    """Render file lines for a diagnostic, truncating long lists."""
    shown = ", ".join(str(n) for n in lines[:MAX_REPORTED_LINES])
    extra = len(lines) - MAX_REPORTED_LINES
    return f"{shown} (+{extra} more)" if extra > 0 else shown


def _apply_row_policy(df: pd.DataFrame, mask: pd.Series, reason: str, policy: str) -> pd.DataFrame:
    """
    Handle rows flagged by an invariant check.
      - 'fail'   -> raise InvariantViolationError naming the file lines
      - 'reject' -> drop the rows and log a warning
    """
    if not mask.any():  # Nothing flagged
        return df
    lines = line_numbers(df.index[mask])  # Translate index to file lines
    if policy == "reject":
        log.warning(f"Rejected {len(lines)} rows ({reason}) at lines {_format_lines(lines)}")
        return df.loc[~mask].copy()
    raise InvariantViolationError(f"{reason} at lines {_format_lines(lines)}")


def _is_text(series: pd.Series) -> bool:
    """Object columns (pandas 2) and the dedicated str dtype (pandas 3) both hold text."""
    return pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series)


def _null_mask(series: pd.Series) -> pd.Series:
    """Missing values, counting blank strings as missing too."""
    mask = series.isna()
    if _is_text(series):  # Only text columns can hold blank strings
        mask = mask | series.astype(str).str.strip().eq("")
    return mask


# -----------------------
# Validation & normalization
# -----------------------


def check_nulls(
    df: pd.DataFrame,
    null_policy: Optional[Dict[str, str]] = None,
    impute_values: Optional[Dict[str, Any]] = None,
) -> pd.DataFrame:
    """
    Scan every column for missing values and apply the column's policy.

    null_policy maps column -> 'fail' | 'drop' | 'impute', plus an optional
    'default' key (itself defaulting to 'fail'). 'impute' requires an entry in
    impute_values. All 'fail' columns are reported together in one NullValueError.
    """
    policies = dict(null_policy or {})  # Copy so the caller's config is untouched
    default = policies.pop("default", "fail")
    impute_values = impute_values or {}

    out = df.copy()
    failures = []
    for col in out.columns:
        nulls = _null_mask(out[col])
        if not nulls.any():
            continue
        policy = policies.get(col, default)
        if policy == "drop":
            log.warning(f"Dropping {int(nulls.sum())} rows with nulls in '{col}'")
            out = out.loc[~nulls].copy()
        elif policy == "impute":
            if col not in impute_values:
                raise ValueError(f"Null policy for '{col}' is 'impute' but no impute value is configured")
            log.warning(f"Imputing {int(nulls.sum())} nulls in '{col}' with {impute_values[col]!r}")
            out[col] = out[col].mask(nulls, impute_values[col])
        else:
            failures.append(f"'{col}' at lines {_format_lines(line_numbers(out.index[nulls]))}")

    if failures:
        raise NullValueError("Null values found in " + "; ".join(failures))
    return out


def normalize_names(df: pd.DataFrame) -> pd.DataFrame:
    """Title-case patient names and collapse stray whitespace ('aNNa  SMITH ' -> 'Anna Smith')."""
    out = df.copy()
    out[NAME] = out[NAME].astype(str).str.split().str.join(" ").str.title()
    return out


def strip_text_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Trim leading/trailing whitespace in every text column ('Cancer ' -> 'Cancer')."""
    out = df.copy()
    for col in out.columns:
        if _is_text(out[col]):
            out[col] = out[col].map(lambda v: v.strip() if isinstance(v, str) else v)
    return out


def parse_dates(df: pd.DataFrame, date_format: str = DEFAULT_DATE_FORMAT) -> pd.DataFrame:
    """
    Convert admission/discharge columns to datetime64.
    Any value that does not match date_format fails the whole load.
    """
    out = df.copy()
    for col in DATE_COLUMNS:
        parsed = pd.to_datetime(out[col], format=date_format, errors="coerce")
        bad = parsed.isna()
        if bad.any():
            idx = out.index[bad][:MAX_REPORTED_LINES]
            samples = [f"line {line}: {out.at[i, col]!r}" for i, line in zip(idx, line_numbers(idx))]
            raise MalformedInputError(
                f"Unparseable dates in '{col}' ({int(bad.sum())} rows): " + ", ".join(samples)
            )
        out[col] = parsed.dt.normalize()  # Whole days only
    return out


def coerce_numeric(df: pd.DataFrame) -> pd.DataFrame:
    """Age must be a whole number and Billing Amount a finite number."""
    out = df.copy()

    ages = pd.to_numeric(out[AGE], errors="coerce")
    bad_age = ages.isna() | (ages % 1 != 0)
    if bad_age.any():
        raise MalformedInputError(
            f"Non-integer values in '{AGE}' at lines {_format_lines(line_numbers(out.index[bad_age]))}"
        )
    out[AGE] = ages.astype("int64")

    billing = pd.to_numeric(out[BILLING_AMOUNT], errors="coerce")
    bad_bill = billing.isna() | (billing.abs() == float("inf"))
    if bad_bill.any():
        raise MalformedInputError(
            f"Non-numeric values in '{BILLING_AMOUNT}' at lines "
            f"{_format_lines(line_numbers(out.index[bad_bill]))}"
        )
    out[BILLING_AMOUNT] = billing.astype("float64")
    return out


def check_non_negative(df: pd.DataFrame, policy: str = "fail") -> pd.DataFrame:
    """Ages and billing amounts below zero are invariant violations."""
    out = _apply_row_policy(df, df[AGE] < 0, f"Negative '{AGE}'", policy)
    return _apply_row_policy(out, out[BILLING_AMOUNT] < 0, f"Negative '{BILLING_AMOUNT}'", policy)


def drop_duplicate_visits(df: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse fully identical rows, keeping the first occurrence in file order.
    Rows differing in any single field are kept as distinct visits.
    """
    out = df.drop_duplicates(keep="first")
    removed = len(df) - len(out)
    if removed:
        log.info(f"Removed {removed} duplicate rows")
    return out.copy()


# -----------------------
# Derived features
# -----------------------


def add_length_of_stay(df: pd.DataFrame, policy: str = "fail") -> pd.DataFrame:
    """Length of Stay = Discharge Date - Date of Admission, in whole days; never clamped."""
    stay = (df[DISCHARGE_DATE] - df[ADMISSION_DATE]).dt.days
    out = _apply_row_policy(df, stay < 0, "Discharge date before admission date", policy)
    out = out.copy()
    out[LENGTH_OF_STAY] = stay.loc[out.index].astype("int64")
    return out


def add_calendar_features(df: pd.DataFrame) -> pd.DataFrame:
    """Year, month and weekday name, extracted separately from each date column."""
    out = df.copy()
    for col, prefix in CALENDAR_PREFIXES.items():
        out[f"{prefix} Year"] = out[col].dt.year.astype("int64")
        out[f"{prefix} Month"] = out[col].dt.month.astype("int64")
        out[f"{prefix} Weekday"] = out[col].dt.day_name()
    return out


def add_billing_per_day(df: pd.DataFrame) -> pd.DataFrame:
    """
    Billing per Day = Billing Amount / Length of Stay.
    Zero-day stays get NaN (stored as NULL), so aggregates skip them.
    """
    out = df.copy()
    days = out[LENGTH_OF_STAY].where(out[LENGTH_OF_STAY] > 0)  # 0 -> NaN before dividing
    out[BILLING_PER_DAY] = out[BILLING_AMOUNT] / days
    return out


def age_group(age: int) -> str:
    """
    Bucket a single age: 0-12 Child, 13-18 Teen, 19-35 Young Adult,
    36-65 Adult, 66+ Senior.
    """
    if age < 0:
        raise InvariantViolationError(f"Negative age: {age}")
    label = AGE_BUCKETS[0][1]
    for lower, name in AGE_BUCKETS:
        if age >= lower:
            label = name
    return label


def add_age_group(df: pd.DataFrame, policy: str = "fail") -> pd.DataFrame:
    """Vectorised age_group(): lower bounds inclusive, last bucket unbounded."""
    out = _apply_row_policy(df, df[AGE] < 0, f"Negative '{AGE}'", policy).copy()
    bins = [lower for lower, _ in AGE_BUCKETS] + [float("inf")]
    out[AGE_GROUP] = pd.cut(out[AGE], bins=bins, right=False, labels=AGE_GROUP_LABELS)
    return out


def apply_categorical_types(
    df: pd.DataFrame,
    domains: Optional[Dict[str, Any]] = None,
    policy: str = "fail",
) -> pd.DataFrame:
    """
    Convert finite-domain columns to pandas categoricals.
    Columns with a known domain are validated against it; a domain of None
    means open set (categories are whatever values occur).
    """
    merged = dict(CATEGORICAL_DOMAINS)
    merged.update(domains or {})  # Config may add or override domains

    out = df.copy()
    for col, domain in merged.items():
        values = out[col].astype(str).str.strip()
        if domain is None:
            out[col] = values.astype("category")
            continue
        outside = ~values.isin(domain)
        if outside.any():
            found = sorted(set(values[outside]))
            out = _apply_row_policy(out, outside, f"Out-of-domain values {found} in '{col}'", policy)
            values = values.loc[out.index]
        out[col] = pd.Categorical(values, categories=list(domain), ordered=(col == AGE_GROUP))
    return out


# -----------------------
# Orchestration
# -----------------------


def clean_visits(df: pd.DataFrame, settings: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Run every cleaning step in order and return a new frame with CLEAN_COLUMNS
    and a fresh RangeIndex. The input frame is never modified.

    settings is the 'cleaning' section of the config: date_format, null_policy,
    impute_values, invalid_row_policy ('fail' or 'reject'), categorical_domains.
    """
    settings = settings or {}
    policy = settings.get("invalid_row_policy", "fail")
    rows_in = len(df)

    out = check_nulls(df, settings.get("null_policy"), settings.get("impute_values"))
    out = strip_text_columns(out)
    out = normalize_names(out)
    out = parse_dates(out, settings.get("date_format") or DEFAULT_DATE_FORMAT)
    out = coerce_numeric(out)
    out = check_non_negative(out, policy)
    out = drop_duplicate_visits(out)  # After normalization so equal rows compare equal
    out = add_length_of_stay(out, policy)
    out = add_calendar_features(out)
    out = add_billing_per_day(out)
    out = add_age_group(out, policy)
    out = apply_categorical_types(out, settings.get("categorical_domains"), policy)

    out = out[CLEAN_COLUMNS].reset_index(drop=True)
    zero_stays = int(out[BILLING_PER_DAY].isna().sum())
    log.info(
        f"Cleaning complete: {rows_in} rows in, {len(out)} rows out, "
        f"{zero_stays} zero-day stays without billing per day"
    )
    return out
