# =========================================
# 📄 File: healthcare_eda/schema.py
# Purpose: Column names, categorical domains and age buckets of the healthcare dataset
# =========================================

from typing import Dict, List, Tuple

TABLE_NAME = "healthcare_dataset"  # Single denormalized table for the analysis

# --- Source columns (fixed CSV header, file order) ---
NAME = "Name"
AGE = "Age"
GENDER = "Gender"
BLOOD_TYPE = "Blood Type"
MEDICAL_CONDITION = "Medical Condition"
ADMISSION_DATE = "Date of Admission"
DOCTOR = "Doctor"
HOSPITAL = "Hospital"
INSURANCE_PROVIDER = "Insurance Provider"
BILLING_AMOUNT = "Billing Amount"
ROOM_NUMBER = "Room Number"
ADMISSION_TYPE = "Admission Type"
DISCHARGE_DATE = "Discharge Date"
MEDICATION = "Medication"
TEST_RESULTS = "Test Results"

SOURCE_COLUMNS: List[str] = [
    NAME,
    AGE,
    GENDER,
    BLOOD_TYPE,
    MEDICAL_CONDITION,
    ADMISSION_DATE,
    DOCTOR,
    HOSPITAL,
    INSURANCE_PROVIDER,
    BILLING_AMOUNT,
    ROOM_NUMBER,
    ADMISSION_TYPE,
    DISCHARGE_DATE,
    MEDICATION,
    TEST_RESULTS,
]

DATE_COLUMNS: List[str] = [ADMISSION_DATE, DISCHARGE_DATE]

# --- Derived columns (added by cleaning, in this order) ---
LENGTH_OF_STAY = "Length of Stay"
ADMISSION_YEAR = "Admission Year"
ADMISSION_MONTH = "Admission Month"
ADMISSION_WEEKDAY = "Admission Weekday"
DISCHARGE_YEAR = "Discharge Year"
DISCHARGE_MONTH = "Discharge Month"
DISCHARGE_WEEKDAY = "Discharge Weekday"
BILLING_PER_DAY = "Billing per Day"
AGE_GROUP = "Age Group"

# Prefix used for calendar features of each date column
CALENDAR_PREFIXES: Dict[str, str] = {
    ADMISSION_DATE: "Admission",
    DISCHARGE_DATE: "Discharge",
}

DERIVED_COLUMNS: List[str] = [
    LENGTH_OF_STAY,
    ADMISSION_YEAR,
    ADMISSION_MONTH,
    ADMISSION_WEEKDAY,
    DISCHARGE_YEAR,
    DISCHARGE_MONTH,
    DISCHARGE_WEEKDAY,
    BILLING_PER_DAY,
    AGE_GROUP,
]

CLEAN_COLUMNS: List[str] = SOURCE_COLUMNS + DERIVED_COLUMNS

# Billing per Day is the only column allowed to hold NULL (zero-day stays)
NULLABLE_COLUMNS: List[str] = [BILLING_PER_DAY]

# Surrogate key added at load time (1-based file order of surviving rows)
VISIT_ID = "Visit ID"

# --- Age buckets: (lower bound inclusive, label); last bucket is unbounded above ---
AGE_BUCKETS: List[Tuple[int, str]] = [
    (0, "Child"),
    (13, "Teen"),
    (19, "Young Adult"),
    (36, "Adult"),
    (66, "Senior"),
]
AGE_GROUP_LABELS: List[str] = [label for _, label in AGE_BUCKETS]

# --- Categorical columns; None marks an open-set domain ---
CATEGORICAL_DOMAINS: Dict[str, object] = {
    GENDER: ["Male", "Female"],
    BLOOD_TYPE: ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"],
    ADMISSION_TYPE: ["Elective", "Urgent", "Emergency"],
    TEST_RESULTS: ["Normal", "Abnormal", "Inconclusive"],
    AGE_GROUP: AGE_GROUP_LABELS,
    MEDICAL_CONDITION: None,
    INSURANCE_PROVIDER: None,
}
