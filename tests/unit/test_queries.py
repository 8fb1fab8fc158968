# tests/unit/test_queries.py
# ------------------------------------------------------------
# Purpose: Run the analysis SQL against a small SQLite snapshot
#          and check the window-function semantics row by row.
# ------------------------------------------------------------

import pandas as pd
import pytest
from sqlalchemy import create_engine

from healthcare_eda.analysis.queries import (
    bound_params,
    load_queries,
    run_analysis,
    run_query,
)
from healthcare_eda.errors import QueryExecutionError
from healthcare_eda.etl.cleaning import clean_visits
from healthcare_eda.etl.load_to_db import load_visits

PARAMS = {"top_k": 2, "min_visits": 3, "exclude_zero_deviation": 0}


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'analysis.db'}", future=True)
    yield eng
    eng.dispose()


@pytest.fixture
def queries():
    return load_queries()


def _monthly_rows(year, amounts):
    """One visit per month of `year`, billed amounts[month - 1]."""
    return [
        {
            "Name": f"Patient {year} {month}",
            "Date of Admission": f"{year}-{month:02d}-05",
            "Discharge Date": f"{year}-{month:02d}-07",
            "Billing Amount": float(amount),
        }
        for month, amount in enumerate(amounts, start=1)
    ]


@pytest.fixture
def monthly_engine(engine, make_raw):
    rows = (
        _monthly_rows(2022, [999])  # partial year: only January
        + _monthly_rows(2023, [100, 150, 50] + [10] * 9)
        + _monthly_rows(2024, [40] * 12)
    )
    load_visits(engine, clean_visits(make_raw(*rows)))
    return engine


def _run(engine, queries, name, params=PARAMS):
    with engine.connect() as conn:
        return run_query(conn, name, queries[name], params)


def test_load_queries_parses_named_blocks(tmp_path):
    sql = tmp_path / "q.sql"
    sql.write_text(
        "-- header comment\n"
        "-- name: first\n"
        "-- explains the query\n"
        "SELECT 1 AS one;\n"
        "\n"
        "-- name: second\n"
        "SELECT :x AS x\n"
        "FROM t;\n",
        encoding="utf-8",
    )
    queries = load_queries(str(sql))
    assert list(queries) == ["first", "second"]
    assert queries["first"] == "SELECT 1 AS one"
    assert queries["second"] == "SELECT :x AS x\nFROM t"


def test_load_queries_rejects_duplicates_and_empty(tmp_path):
    dup = tmp_path / "dup.sql"
    dup.write_text("-- name: a\nSELECT 1;\n-- name: a\nSELECT 2;\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_queries(str(dup))

    empty = tmp_path / "empty.sql"
    empty.write_text("-- name: a\n-- nothing here\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_queries(str(empty))


def test_default_query_battery(queries):
    expected = {
        "distinct_patients",
        "total_visits",
        "billing_totals",
        "highest_average_bill_condition",
        "billing_vs_admission_type_average",
        "top_billing_outliers",
        "patient_billing_deviation",
        "monthly_billing_running_total",
        "monthly_visits_running_total",
        "monthly_billing_pct_change",
    }
    assert expected.issubset(queries)
    # Comments are stripped so placeholders in them never reach the driver
    assert all("--" not in sql for sql in queries.values())


def test_bound_params_keeps_only_referenced_names():
    assert bound_params("SELECT * FROM t LIMIT :top_k", PARAMS) == {"top_k": 2}
    assert bound_params("SELECT 1", PARAMS) == {}
    with pytest.raises(ValueError):
        bound_params("SELECT :missing", PARAMS)


def test_counts_and_rounded_billing(engine, queries, make_raw):
    raw = make_raw(
        {"Billing Amount": 100.4},
        {"Billing Amount": 200.4, "Admission Type": "Emergency"},
        {"Name": "Other Person", "Billing Amount": 300.4, "Medical Condition": "Asthma"},
    )
    load_visits(engine, clean_visits(raw))

    assert _run(engine, queries, "distinct_patients").iloc[0, 0] == 2
    assert _run(engine, queries, "total_visits").iloc[0, 0] == 3

    totals = _run(engine, queries, "billing_totals").iloc[0]
    # 601.2 -> 601, 200.4 -> 200: rounding happens once, at the end
    assert totals["total_billing"] == 601
    assert totals["average_billing"] == 200

    by_type = _run(engine, queries, "visits_by_admission_type")
    assert by_type.to_dict("records") == [
        {"admission_type": "Urgent", "visits": 2},
        {"admission_type": "Emergency", "visits": 1},
    ]

    top = _run(engine, queries, "highest_average_bill_condition")
    assert len(top) == 1
    assert top.iloc[0]["medical_condition"] == "Asthma"


def test_billing_vs_admission_type_average_keeps_every_row(engine, queries, make_raw):
    raw = make_raw(
        {"Name": "A One", "Billing Amount": 100.0},
        {"Name": "B Two", "Billing Amount": 300.0},
        {"Name": "C Three", "Billing Amount": 500.0, "Admission Type": "Elective"},
    )
    load_visits(engine, clean_visits(raw))
    df = _run(engine, queries, "billing_vs_admission_type_average")

    # One output row per visit, in visit order
    assert df["visit_id"].tolist() == [1, 2, 3]
    assert df["admission_type_average"].tolist() == [200, 200, 500]
    assert df["difference"].tolist() == [-100, 100, 0]
    assert df["pct_difference"].tolist() == [-50.0, 50.0, 0.0]


def test_top_billing_outliers_limited_to_top_k(engine, queries, make_raw):
    raw = make_raw(
        {"Name": "A One", "Billing Amount": 100.0},
        {"Name": "B Two", "Billing Amount": 110.0},
        {"Name": "C Three", "Billing Amount": 1000.0},
        {"Name": "D Four", "Billing Amount": 120.0},
    )
    load_visits(engine, clean_visits(raw))
    df = _run(engine, queries, "top_billing_outliers")
    assert len(df) == 2
    assert df.iloc[0]["name"] == "C Three"


def test_patient_deviation_needs_three_visits(engine, queries, make_raw):
    rows = (
        [{"Name": "Two Visits", "Room Number": r, "Billing Amount": b} for r, b in [(1, 100.0), (2, 900.0)]]
        + [{"Name": "Three Visits", "Room Number": r, "Billing Amount": b} for r, b in [(1, 100.0), (2, 200.0), (3, 300.0)]]
        + [{"Name": "Flat Biller", "Room Number": r, "Billing Amount": 50.0} for r in (1, 2, 3)]
    )
    load_visits(engine, clean_visits(make_raw(*rows)))

    df = _run(engine, queries, "patient_billing_deviation")
    # Two-visit patient is excluded however large the deviation
    assert set(df["name"]) == {"Three Visits", "Flat Biller"}
    three = df[df["name"] == "Three Visits"]
    assert three["patient_average"].tolist() == [200, 200, 200]
    assert three["pct_deviation"].tolist() == [-50.0, 0.0, 50.0]
    # Zero deviations are kept by default
    assert (df.loc[df["name"] == "Flat Biller", "pct_deviation"] == 0).all()

    strict = _run(engine, queries, "patient_billing_deviation", {**PARAMS, "exclude_zero_deviation": 1})
    assert strict["name"].tolist() == ["Three Visits", "Three Visits"]
    assert strict["pct_deviation"].tolist() == [-50.0, 50.0]


def test_running_total_resets_each_year_and_skips_partial_years(monthly_engine, queries):
    df = _run(monthly_engine, queries, "monthly_billing_running_total")

    # 2022 has one month only and is left out
    assert sorted(df["admission_year"].unique()) == [2023, 2024]
    y2023 = df[df["admission_year"] == 2023]
    assert y2023["admission_month"].tolist() == list(range(1, 13))
    assert y2023["running_total"].tolist()[:3] == [100, 250, 300]
    assert y2023["running_total"].iloc[-1] == 390
    # January 2024 starts from its own total, not from 390
    y2024 = df[df["admission_year"] == 2024]
    assert y2024["running_total"].tolist() == [40 * m for m in range(1, 13)]


def test_running_visit_counts(monthly_engine, queries):
    df = _run(monthly_engine, queries, "monthly_visits_running_total")
    y2024 = df[df["admission_year"] == 2024]
    assert y2024["running_visits"].tolist() == list(range(1, 13))


def test_percent_change_null_for_first_month(monthly_engine, queries):
    df = _run(monthly_engine, queries, "monthly_billing_pct_change")
    y2023 = df[df["admission_year"] == 2023].reset_index(drop=True)

    # January has no predecessor in its year: NULL, not 0
    assert pd.isna(y2023.loc[0, "pct_change"])
    assert y2023.loc[1, "pct_change"] == 50.0
    assert y2023.loc[2, "pct_change"] == pytest.approx(-66.67)
    # The partition resets: January 2024 does not compare against December 2023
    y2024 = df[df["admission_year"] == 2024].reset_index(drop=True)
    assert pd.isna(y2024.loc[0, "pct_change"])
    assert y2024.loc[1, "pct_change"] == 0.0


def test_run_analysis_executes_full_battery(monthly_engine, queries):
    results = run_analysis(monthly_engine, queries, PARAMS)
    assert list(results) == list(queries)
    assert all(isinstance(df, pd.DataFrame) for df in results.values())


def test_query_errors_surface_with_diagnostic(engine):
    with pytest.raises(QueryExecutionError) as exc:
        run_analysis(engine, {"broken": "SELECT * FROM no_such_table"}, {})
    assert exc.value.query_name == "broken"
    assert "no_such_table" in exc.value.diagnostic
