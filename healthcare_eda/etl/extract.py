# =========================================
# 📄 File: healthcare_eda/etl/extract.py
# Purpose: Read the raw healthcare CSV and check its fixed header
# =========================================

import logging
import os

import pandas as pd

from healthcare_eda.errors import MalformedInputError
from healthcare_eda.schema import SOURCE_COLUMNS

log = logging.getLogger(__name__)


def line_numbers(index) -> list:
    """File line of each row: the header is line 1, so row 0 lives on line 2."""
    return [int(i) + 2 for i in index]


def check_header(columns) -> None:
    """Raise MalformedInputError if the header differs from the fixed column set."""
    columns = list(columns)
    missing = [c for c in SOURCE_COLUMNS if c not in columns]
    unexpected = [c for c in columns if c not in SOURCE_COLUMNS]
    problems = []
    if missing:
        problems.append(f"missing columns {missing}")
    if unexpected:
        problems.append(f"unexpected columns {unexpected}")
    if problems:
        raise MalformedInputError("Invalid CSV header: " + "; ".join(problems))


def read_raw_csv(path: str) -> pd.DataFrame:
    """
    Read the source CSV (UTF-8, comma-delimited, header row).
    The RangeIndex is kept as-is so later stages can report file lines.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(path)

    try:
        df = pd.read_csv(path, encoding="utf-8")
    except pd.errors.ParserError as e:  # Ragged rows (wrong field count)
        raise MalformedInputError(f"Could not parse {path}: {e}") from e

    check_header(df.columns)  # pandas renames repeated headers ("Name.1"), reported as unexpected

    log.info(f"Loaded {len(df)} rows from {path}")
    return df[SOURCE_COLUMNS]
