# tests/conftest.py
# ------------------------------------------------------------
# Purpose: Shared fixtures. A throwaway config (SQLite file in
# tmp_path, quiet logging) and a factory for raw visit frames
# so every test builds just the rows it cares about.
# ------------------------------------------------------------

import pandas as pd
import pytest

from healthcare_eda.schema import SOURCE_COLUMNS

# One valid raw row; tests override only the fields they exercise.
_BASE_VISIT = {
    "Name": "Bobby Jackson",
    "Age": 30,
    "Gender": "Male",
    "Blood Type": "B-",
    "Medical Condition": "Cancer",
    "Date of Admission": "2024-01-10",
    "Doctor": "Matthew Smith",
    "Hospital": "Sons and Miller",
    "Insurance Provider": "Blue Cross",
    "Billing Amount": 1000.0,
    "Room Number": 328,
    "Admission Type": "Urgent",
    "Discharge Date": "2024-01-15",
    "Medication": "Paracetamol",
    "Test Results": "Normal",
}


@pytest.fixture
def make_raw():
    """
    Build a raw DataFrame (as read from CSV) from per-row overrides:
    make_raw({}, {"Age": 70}) -> two rows, the second aged 70.
    """
    def _make(*overrides):
        rows = [{**_BASE_VISIT, **o} for o in overrides]
        return pd.DataFrame(rows, columns=SOURCE_COLUMNS)
    return _make


@pytest.fixture
def test_cfg(tmp_path):
    """Config dict shaped like get_config() output, pointing at tmp_path."""
    return {
        "environment": "test",
        "debug": False,
        "log_level": "WARNING",
        "input_csv": str(tmp_path / "raw.csv"),
        "output_csv": str(tmp_path / "clean" / "clean.csv"),
        "report_path": str(tmp_path / "logs" / "report.md"),
        "database": {"driver": "sqlite", "path": str(tmp_path / "test.db")},
        "cleaning": {
            "date_format": "%Y-%m-%d",
            "null_policy": {"default": "fail"},
            "impute_values": {},
            "invalid_row_policy": "fail",
            "categorical_domains": {},
        },
        "analysis": {
            "sql_file": None,
            "top_k": 10,
            "min_patient_visits": 3,
            "exclude_zero_deviation": False,
        },
    }
