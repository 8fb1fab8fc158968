# =========================================
# 📄 File: healthcare_eda/analysis/queries.py
# Purpose: Load the named analysis queries and run them on one scoped connection
# =========================================

import logging
import os
import re
from typing import Any, Dict, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from healthcare_eda.errors import QueryExecutionError

log = logging.getLogger(__name__)

DEFAULT_SQL_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "sql", "analysis_queries.sql")

NAME_MARKER = re.compile(r"^--\s*name:\s*(\w+)\s*$")
BIND_PARAM = re.compile(r"(?<![:\w]):(\w+)")


def load_queries(sql_file_path: Optional[str] = None) -> Dict[str, str]:
    """
    Read the SQL file and split it into named statements.

    Each statement starts with a '-- name: <query_name>' line; other comment
    lines are removed and the trailing semicolon is dropped. Statements keep
    the order they have in the file.
    """
    path = sql_file_path or DEFAULT_SQL_FILE
    if not os.path.exists(path):
        raise FileNotFoundError(f"SQL file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    queries: Dict[str, str] = {}
    current = None
    body = []

    def _flush():
        if current is None:
            return
        statement = "\n".join(body).strip().rstrip(";").strip()
        if not statement:
            raise ValueError(f"Query '{current}' in {path} has no SQL")
        queries[current] = statement

    for line in lines:
        marker = NAME_MARKER.match(line.strip())
        if marker:
            _flush()
            current = marker.group(1)
            if current in queries:
                raise ValueError(f"Duplicate query name '{current}' in {path}")
            body = []
        elif line.strip().startswith("--"):  # Remove comments
            continue
        elif current is not None:
            body.append(line)
    _flush()

    if not queries:
        raise ValueError(f"No '-- name:' blocks found in {path}")
    log.debug(f"Loaded {len(queries)} queries from {path}")
    return queries


def bound_params(sql: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep only the parameters the statement references; a missing one is a ValueError."""
    names = set(BIND_PARAM.findall(sql))
    params = params or {}
    missing = sorted(names - set(params))
    if missing:
        raise ValueError(f"Missing query parameters: {missing}")
    return {k: params[k] for k in names}


def run_query(conn, name: str, sql: str, params: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Execute one read-only statement and return its rows as a DataFrame.
    Database errors surface as QueryExecutionError with the driver's message.
    """
    try:
        df = pd.read_sql(text(sql), conn, params=bound_params(sql, params))
    except (SQLAlchemyError, pd.errors.DatabaseError) as e:
        # Recent pandas wraps the SQLAlchemy error; the driver message sits on its cause
        cause = e.__cause__ if isinstance(e.__cause__, SQLAlchemyError) else e
        diagnostic = str(getattr(cause, "orig", None) or cause)
        log.error(f"Query '{name}' failed: {diagnostic}")
        raise QueryExecutionError(name, diagnostic) from e
    log.info(f"Executed query '{name}' ({len(df)} rows)")
    return df


def run_analysis(engine, queries: Dict[str, str], params: Optional[Dict[str, Any]] = None) -> Dict[str, pd.DataFrame]:
    """
    Run every query on a single connection, released on success and on failure.
    Stops at the first failing query.
    """
    results: Dict[str, pd.DataFrame] = {}
    with engine.connect() as conn:
        for name, sql in queries.items():
            results[name] = run_query(conn, name, sql, params)
    log.info(f"✅ All {len(results)} analysis queries executed successfully.")
    return results
