"""
Data Loading
------------
 - Declares the single denormalized `healthcare_dataset` table (SQLAlchemy ORM)
 - Recreates it and bulk-loads the cleaned visits (one-shot snapshot)
 - Optionally writes the cleaned table back to CSV
"""

import logging
import os
from typing import Any, Dict

import pandas as pd
from sqlalchemy import Column, Date, Float, Integer, String, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base

from healthcare_eda.config.config_loader import build_db_url
from healthcare_eda.schema import (
    ADMISSION_DATE,
    ADMISSION_MONTH,
    ADMISSION_TYPE,
    ADMISSION_WEEKDAY,
    ADMISSION_YEAR,
    AGE,
    AGE_GROUP,
    BILLING_AMOUNT,
    BILLING_PER_DAY,
    BLOOD_TYPE,
    DATE_COLUMNS,
    DISCHARGE_DATE,
    DISCHARGE_MONTH,
    DISCHARGE_WEEKDAY,
    DISCHARGE_YEAR,
    DOCTOR,
    GENDER,
    HOSPITAL,
    INSURANCE_PROVIDER,
    LENGTH_OF_STAY,
    MEDICAL_CONDITION,
    MEDICATION,
    NAME,
    ROOM_NUMBER,
    TABLE_NAME,
    TEST_RESULTS,
    VISIT_ID,
)

log = logging.getLogger(__name__)

Base = declarative_base()


# -----------------------
# ORM model
# -----------------------


class PatientVisit(Base):
    """One admission record; column names keep the dataset's spaces (quoted in SQL)."""

    __tablename__ = TABLE_NAME

    visit_id = Column(VISIT_ID, Integer, primary_key=True, autoincrement=False)
    name = Column(NAME, String, nullable=False, index=True)
    age = Column(AGE, Integer, nullable=False)
    gender = Column(GENDER, String, nullable=False)
    blood_type = Column(BLOOD_TYPE, String, nullable=False)
    medical_condition = Column(MEDICAL_CONDITION, String, nullable=False)
    admission_date = Column(ADMISSION_DATE, Date, nullable=False)
    doctor = Column(DOCTOR, String, nullable=False)
    hospital = Column(HOSPITAL, String, nullable=False)
    insurance_provider = Column(INSURANCE_PROVIDER, String, nullable=False)
    billing_amount = Column(BILLING_AMOUNT, Float, nullable=False)
    room_number = Column(ROOM_NUMBER, Integer, nullable=False)
    admission_type = Column(ADMISSION_TYPE, String, nullable=False)
    discharge_date = Column(DISCHARGE_DATE, Date, nullable=False)
    medication = Column(MEDICATION, String, nullable=False)
    test_results = Column(TEST_RESULTS, String, nullable=False)

    length_of_stay = Column(LENGTH_OF_STAY, Integer, nullable=False)
    admission_year = Column(ADMISSION_YEAR, Integer, nullable=False)
    admission_month = Column(ADMISSION_MONTH, Integer, nullable=False)
    admission_weekday = Column(ADMISSION_WEEKDAY, String, nullable=False)
    discharge_year = Column(DISCHARGE_YEAR, Integer, nullable=False)
    discharge_month = Column(DISCHARGE_MONTH, Integer, nullable=False)
    discharge_weekday = Column(DISCHARGE_WEEKDAY, String, nullable=False)
    billing_per_day = Column(BILLING_PER_DAY, Float, nullable=True)  # NULL for zero-day stays
    age_group = Column(AGE_GROUP, String, nullable=False)


# -----------------------
# Engine / helpers
# -----------------------


def get_engine(cfg: Dict[str, Any], echo: bool = False):
    """
    Create SQLAlchemy engine using the connection string built from YAML config.
    """
    url = build_db_url(cfg)
    safe_url = make_url(url).render_as_string(hide_password=True)  # mask actual password from logs
    log.info(f"Connecting to: {safe_url}")
    return create_engine(url, echo=echo, future=True)


def create_tables(engine, recreate: bool = True) -> None:
    """
    Create the visits table; with recreate=True any previous snapshot is dropped first.
    """
    if recreate:
        log.warning(f"Dropping table {TABLE_NAME} (if present)…")
        Base.metadata.drop_all(engine, checkfirst=True)
    log.info(f"Creating table {TABLE_NAME}…")
    Base.metadata.create_all(engine, checkfirst=True)


def prepare_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Shape the cleaned frame for insertion:
      - Visit ID = 1-based position (original file order of surviving rows)
      - dates as datetime.date, categoricals as plain strings
    """
    out = df.copy()
    for col in DATE_COLUMNS:
        out[col] = out[col].dt.date
    for col in out.select_dtypes(include="category").columns:
        out[col] = out[col].astype(str)
    out.insert(0, VISIT_ID, range(1, len(out) + 1))
    return out


def load_visits(engine, df: pd.DataFrame, recreate: bool = True) -> int:
    """
    Load the cleaned visits into TABLE_NAME inside a single transaction.

    Returns:
      Number of rows inserted.
    """
    create_tables(engine, recreate=recreate)
    prepared = prepare_dataframe(df)
    with engine.begin() as conn:
        prepared.to_sql(TABLE_NAME, conn, if_exists="append", index=False)
    log.info(f"Loaded {len(prepared)} rows into {TABLE_NAME}")
    return len(prepared)


def export_clean_csv(df: pd.DataFrame, path: str) -> str:
    """Write the cleaned table to CSV (dates as YYYY-MM-DD, zero-day billing per day left empty)."""
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    df.to_csv(path, index=False, date_format="%Y-%m-%d")
    log.info(f"Wrote cleaned CSV to {path}")
    return path
