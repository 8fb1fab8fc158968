# =========================================
# 📄 File: healthcare_eda/analysis/reporting.py
# Purpose: Turn query results into headline insights and a markdown report
# =========================================

import logging  # Used for logging
import os  # Used for paths
from datetime import datetime, timezone  # Used to timestamp reports
from typing import Dict, List  # Type hints for clarity

import pandas as pd

log = logging.getLogger(__name__)  # Module logger

MAX_REPORT_ROWS = 25  # Long results (one row per visit) are truncated in the report


def _scalar(results: Dict[str, pd.DataFrame], name: str, column: str):
    """First value of a column in a named result, or None if absent/empty."""
    df = results.get(name)
    if df is None or df.empty or column not in df.columns:
        return None
    value = df[column].iloc[0]
    return None if pd.isna(value) else value


def _money(value) -> str:
    return "n/a" if value is None else f"{value:,.0f}"


def summarize(results: Dict[str, pd.DataFrame]) -> List[str]:
    """
    Headline insights (one sentence each) from the scalar-style queries.
    """
    lines = []
    patients = _scalar(results, "distinct_patients", "distinct_patients")
    visits = _scalar(results, "total_visits", "total_visits")
    if patients is not None and visits is not None:
        lines.append(f"{int(visits):,} visits from {int(patients):,} distinct patients")

    total = _scalar(results, "billing_totals", "total_billing")
    average = _scalar(results, "billing_totals", "average_billing")
    if total is not None:
        lines.append(f"Total billing {_money(total)}, average bill {_money(average)}")

    condition = _scalar(results, "highest_average_bill_condition", "medical_condition")
    if condition is not None:
        condition_avg = _scalar(results, "highest_average_bill_condition", "average_billing")
        lines.append(f"Highest average bill: {condition} ({_money(condition_avg)})")

    busiest = _scalar(results, "visits_by_admission_type", "admission_type")
    if busiest is not None:
        lines.append(f"Most frequent admission type: {busiest}")

    deviation = results.get("patient_billing_deviation")
    if deviation is not None:
        lines.append(f"{deviation['name'].nunique():,} patients with repeat visits in the deviation report")
    return lines


def log_insights(results: Dict[str, pd.DataFrame]) -> None:
    for line in summarize(results):
        log.info(f"Insight: {line}")


def write_report(results: Dict[str, pd.DataFrame], path: str, environment: str = "dev") -> str:
    """
    Write a markdown report with a lineage note, the headline insights and one
    section per query (tables truncated to MAX_REPORT_ROWS rows).
    """
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")

    with open(path, "w", encoding="utf-8") as f:
        f.write("# Healthcare Dataset Analysis Report\n\n")
        f.write(f"- Generated at: {ts}\n")
        f.write(f"- Environment: **{environment}**\n\n")
        f.write("## Lineage\n")
        f.write("- Source: healthcare dataset CSV (one-time load)\n")
        f.write("- Cleaned & feature-engineered → table `healthcare_dataset`\n")
        f.write(f"- Queries executed: {len(results)}\n\n")

        f.write("## Insights\n\n")
        for line in summarize(results):
            f.write(f"- {line}\n")
        f.write("\n")

        for name, df in results.items():
            f.write(f"## {name}\n\n")
            if df.empty:
                f.write("_No rows._\n\n")
                continue
            f.write("```\n")
            f.write(df.head(MAX_REPORT_ROWS).to_string(index=False))
            f.write("\n```\n")
            if len(df) > MAX_REPORT_ROWS:
                f.write(f"\n_{len(df) - MAX_REPORT_ROWS} more rows not shown._\n")
            f.write("\n")

    log.info(f"Analysis report written to {path}")
    return path
