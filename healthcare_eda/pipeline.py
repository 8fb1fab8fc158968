#!/usr/bin/env python3
# =========================================
# 📄 File: healthcare_eda/pipeline.py
# Purpose: One-shot run of the whole analysis
# - Extract the raw CSV
# - Clean & engineer features, then check data quality
# - Load the snapshot into the relational store
# - Run the analysis queries and write the report
# =========================================

import argparse
import logging
import sys
import time
from typing import Any, Dict, Optional

import pandas as pd

from healthcare_eda.analysis.queries import load_queries, run_analysis
from healthcare_eda.analysis.reporting import log_insights, write_report
from healthcare_eda.config.config_loader import get_config
from healthcare_eda.etl.cleaning import clean_visits
from healthcare_eda.etl.extract import read_raw_csv
from healthcare_eda.etl.load_to_db import export_clean_csv, get_engine, load_visits
from healthcare_eda.quality.quality_checks import run_quality_checks

log = logging.getLogger(__name__)


def setup_logging(cfg: Dict[str, Any]) -> None:
    """Configure root logging from the YAML log level."""
    logging.basicConfig(
        level=cfg["log_level"],  # DEBUG in dev, INFO in prod
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def query_params(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Bind parameters for the analysis queries, taken from the 'analysis' section."""
    analysis = cfg.get("analysis", {})
    return {
        "top_k": int(analysis.get("top_k", 10)),
        "min_visits": int(analysis.get("min_patient_visits", 3)),
        "exclude_zero_deviation": 1 if analysis.get("exclude_zero_deviation") else 0,
    }


def run(cfg: Dict[str, Any], input_csv: Optional[str] = None, echo: bool = False) -> Dict[str, pd.DataFrame]:
    """
    Execute every stage once, in order. Any error is terminal and propagates.

    Returns:
      Query name -> result DataFrame.
    """
    started = time.time()
    env = str(cfg.get("environment", "dev"))
    cleaning = cfg.get("cleaning", {})

    # 1) EXTRACT
    raw = read_raw_csv(input_csv or cfg["input_csv"])

    # 2) CLEAN + QUALITY
    clean = clean_visits(raw, cleaning)
    run_quality_checks(clean, cleaning.get("categorical_domains"))
    if cfg.get("output_csv"):
        export_clean_csv(clean, cfg["output_csv"])

    # 3) LOAD + QUERY (connection scoped to this block)
    queries = load_queries(cfg.get("analysis", {}).get("sql_file"))
    engine = get_engine(cfg, echo=echo)
    try:
        loaded = load_visits(engine, clean)
        results = run_analysis(engine, queries, query_params(cfg))
    finally:
        engine.dispose()

    # 4) REPORT
    log_insights(results)
    if cfg.get("report_path"):
        write_report(results, cfg["report_path"], env)

    elapsed = time.time() - started
    log.info(
        f"[{env.upper()}] Analysis completed in {elapsed:.2f}s | "
        f"RAW={len(raw)} CLEAN={len(clean)} LOADED={loaded} QUERIES={len(results)}"
    )
    return results


def parse_args(argv=None):
    """
    Command-line options:
    --input : override input_csv from the config
    --echo  : print SQL statements being executed
    """
    p = argparse.ArgumentParser(description="Healthcare dataset cleaning and exploratory analysis")
    p.add_argument("--input", type=str, default=None, help="Path to the raw CSV (overrides config)")
    p.add_argument("--echo", action="store_true", help="Print SQL statements")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = get_config()
    setup_logging(cfg)
    try:
        run(cfg, input_csv=args.input, echo=args.echo)
        return 0
    except Exception as e:
        log.exception(f"❌ Analysis failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
