import csv
import os
import random
import sys
from datetime import date, timedelta

from healthcare_eda.schema import SOURCE_COLUMNS

# === Helper lists ===

FIRST_NAMES = [
    "Bobby", "Leslie", "Danny", "Andrew", "Adrienne", "Emily", "Edward",
    "Christina", "Jasmine", "Christopher", "Michael", "Kimberly", "Steven",
    "Julie", "Connor", "Natalie", "Tyler", "Sarah", "Kevin", "Laura",
]
LAST_NAMES = [
    "Jackson", "Terry", "Smith", "Watts", "Hernandez", "Moore", "Young",
    "Morales", "Johnson", "Martinez", "Walker", "Nguyen", "Lopez", "Hayes",
]
GENDERS = ["Male", "Female"]
BLOOD_TYPES = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
CONDITIONS = ["Cancer", "Obesity", "Diabetes", "Asthma", "Hypertension", "Arthritis"]
INSURERS = ["Aetna", "Blue Cross", "Cigna", "UnitedHealthcare", "Medicare"]
ADMISSION_TYPES = ["Elective", "Urgent", "Emergency"]
MEDICATIONS = ["Paracetamol", "Ibuprofen", "Aspirin", "Penicillin", "Lipitor"]
TEST_RESULTS = ["Normal", "Abnormal", "Inconclusive"]
HOSPITALS = ["Sons and Miller", "Kim Inc", "Cook PLC", "Hernandez Rogers and Vang", "White-White"]


def generate_records(n=1000, seed=42, start=date(2020, 1, 1), end=date(2023, 12, 31),
                     duplicate_rate=0.0, max_stay=30):
    """
    Build n synthetic admission records (dicts keyed by the source CSV header).

    Names are drawn from a small pool so patients repeat across visits.
    With duplicate_rate > 0 that share of extra rows are exact copies of
    earlier rows, for exercising deduplication.
    """
    rng = random.Random(seed)
    span = (end - start).days
    doctors = [f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}" for _ in range(40)]  # nosec B311

    records = []
    for _ in range(n):
        admitted = start + timedelta(days=rng.randint(0, span))  # nosec B311
        discharged = admitted + timedelta(days=rng.randint(0, max_stay))  # nosec B311
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"  # nosec B311
        # Source data mixes capitalisation; cleaning title-cases it
        if rng.random() < 0.3:  # nosec B311
            name = "".join(c.upper() if rng.random() < 0.5 else c.lower() for c in name)  # nosec B311
        records.append(
            {
                "Name": name,
                "Age": rng.randint(1, 89),  # nosec B311
                "Gender": rng.choice(GENDERS),  # nosec B311
                "Blood Type": rng.choice(BLOOD_TYPES),  # nosec B311
                "Medical Condition": rng.choice(CONDITIONS),  # nosec B311
                "Date of Admission": admitted.isoformat(),
                "Doctor": rng.choice(doctors),  # nosec B311
                "Hospital": rng.choice(HOSPITALS),  # nosec B311
                "Insurance Provider": rng.choice(INSURERS),  # nosec B311
                "Billing Amount": round(rng.uniform(1000, 50000), 2),  # nosec B311
                "Room Number": rng.randint(101, 500),  # nosec B311
                "Admission Type": rng.choice(ADMISSION_TYPES),  # nosec B311
                "Discharge Date": discharged.isoformat(),
                "Medication": rng.choice(MEDICATIONS),  # nosec B311
                "Test Results": rng.choice(TEST_RESULTS),  # nosec B311
            }
        )

    copies = int(n * duplicate_rate)
    for _ in range(copies):
        records.append(dict(rng.choice(records[:n])))  # nosec B311
    return records


def save_csv(filename, data, headers=SOURCE_COLUMNS):
    """Write a list of dicts to a CSV file, creating the folder if needed."""
    folder = os.path.dirname(filename)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(filename, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=headers)
        writer.writeheader()
        writer.writerows(data)
    return filename


def generate_data(path="data/raw/healthcare_dataset.csv", n=5000):
    """Generate the sample dataset used for local runs."""
    try:
        save_csv(path, generate_records(n=n, duplicate_rate=0.01))
        print(f"[OK] File saved: {path}")
    except OSError as e:
        print(f"[ERROR] Could not write {path}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    generate_data()
