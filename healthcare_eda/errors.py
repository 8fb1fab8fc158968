# =========================================
# 📄 File: healthcare_eda/errors.py
# Purpose: Error taxonomy for the cleaning, load and query stages
# =========================================


class HealthcareDataError(Exception):
    """Base class for every terminal error raised by the pipeline."""


class MalformedInputError(HealthcareDataError, ValueError):
    """Header mismatch, unparseable dates or non-numeric values in the source CSV."""


class NullValueError(HealthcareDataError, ValueError):
    """A column holds missing values and its null policy is 'fail'."""


class InvariantViolationError(HealthcareDataError, ValueError):
    """A record breaks a data-model invariant (negative stay, out-of-domain category...)."""


class DataQualityError(HealthcareDataError):
    """Post-cleaning expectations failed."""

    def __init__(self, issues):
        self.issues = list(issues)
        super().__init__(f"Data quality failed with {len(self.issues)} issues: " + "; ".join(self.issues))


class QueryExecutionError(HealthcareDataError, RuntimeError):
    """An analysis query failed; carries the underlying database diagnostic."""

    def __init__(self, query_name: str, diagnostic: str):
        self.query_name = query_name
        self.diagnostic = diagnostic
        super().__init__(f"Query '{query_name}' failed: {diagnostic}")
