# =========================================
# 📄 File: healthcare_eda/quality/quality_checks.py
# Purpose: Data quality expectations on the cleaned visits table
# - Each expectation returns a list of error messages (empty if all good)
# - run_quality_checks() collects them and fails on any issue
# =========================================

import logging  # Used for logging
from typing import Dict, List, Optional  # Type hints for clarity

import pandas as pd  # Data manipulation for checks

from healthcare_eda.errors import DataQualityError
from healthcare_eda.schema import (
    ADMISSION_DATE,
    AGE,
    BILLING_AMOUNT,
    CATEGORICAL_DOMAINS,
    DISCHARGE_DATE,
    LENGTH_OF_STAY,
    NULLABLE_COLUMNS,
)

log = logging.getLogger(__name__)  # Module logger


def _expect_not_null(df: pd.DataFrame, cols: List[str]) -> List[str]:
    """
    Expectation: specified columns must have no nulls.
    """
    errs = []
    for c in cols:
        if df[c].isna().any():  # If any null found in column
            errs.append(f"Nulls found in column '{c}'")
    return errs


def _expect_no_duplicates(df: pd.DataFrame) -> List[str]:
    """
    Expectation: no two rows are identical across all columns.
    """
    dupes = int(df.duplicated(keep="first").sum())  # Later copies of an earlier row
    return [f"{dupes} fully duplicated rows"] if dupes else []


def _expect_discharge_after_admission(df: pd.DataFrame) -> List[str]:
    """
    Expectation: Discharge Date >= Date of Admission on every row.
    """
    bad = int((df[DISCHARGE_DATE] < df[ADMISSION_DATE]).sum())
    return [f"{bad} rows discharged before admission"] if bad else []


def _expect_non_negative(df: pd.DataFrame, cols: List[str]) -> List[str]:
    """
    Expectation: numeric columns must be >= 0.
    """
    errs = []
    for c in cols:
        if (df[c] < 0).any():
            errs.append(f"Negative values in column '{c}'")
    return errs


def _expect_in_domain(df: pd.DataFrame, domains: Dict[str, Optional[list]]) -> List[str]:
    """
    Expectation: categorical columns only hold values of their known domain.
    Open-set columns (domain None) are skipped.
    """
    errs = []
    for c, domain in domains.items():
        if domain is None:
            continue
        outside = sorted(set(df[c].dropna().astype(str)) - set(domain))
        if outside:
            errs.append(f"Out-of-domain values in '{c}': {outside}")
    return errs


def collect_issues(df: pd.DataFrame, domains: Optional[Dict[str, Optional[list]]] = None) -> Dict[str, List[str]]:
    """
    Run every expectation and return a map: expectation name -> list of errors.
    """
    merged = dict(CATEGORICAL_DOMAINS)
    merged.update(domains or {})
    required = [c for c in df.columns if c not in NULLABLE_COLUMNS]  # Billing per Day may be NULL
    return {
        "not_null": _expect_not_null(df, required),
        "no_duplicates": _expect_no_duplicates(df),
        "discharge_after_admission": _expect_discharge_after_admission(df),
        "non_negative": _expect_non_negative(df, [AGE, BILLING_AMOUNT, LENGTH_OF_STAY]),
        "in_domain": _expect_in_domain(df, merged),
    }


def run_quality_checks(df: pd.DataFrame, domains: Optional[Dict[str, Optional[list]]] = None) -> Dict[str, List[str]]:
    """
    Validate the cleaned table against the data-model invariants.
    Raises DataQualityError if any expectation fails, so the run stops before loading.
    """
    errors = collect_issues(df, domains)
    issues = [e for errs in errors.values() for e in errs]
    if issues:
        log.error(f"Data quality failed with {len(issues)} issues")
        raise DataQualityError(issues)
    log.info(f"Data quality passed for {len(df)} rows ✅")
    return errors
