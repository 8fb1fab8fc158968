# =========================================
# 📄 File: healthcare_eda/config/config_loader.py
# Purpose: Load YAML config (dev/prod), substitute ${ENV_VARS}, validate, and expose helpers
# =========================================

import copy                    # Used to deep-copy defaults before merging
import os                      # Used to read ENV to pick dev/prod and to resolve ${VAR} placeholders
import re                      # Used to find and replace ${VAR} patterns inside YAML text
import sys                     # Used to exit early with a clear error message on invalid config
from typing import Dict, Any   # Type hints for better readability and tooling
import yaml                    # Safe YAML parsing (install: PyYAML)

# Optional sections and their defaults (merged under whatever the YAML provides)
DEFAULTS: Dict[str, Any] = {
    "output_csv": None,
    "report_path": "logs/analysis_report.md",
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

SUPPORTED_DRIVERS = ("sqlite", "postgresql")
NULL_POLICIES = ("fail", "drop", "impute")
ROW_POLICIES = ("fail", "reject")


def _substitute_env_placeholders(yaml_text: str) -> str:
    """
    Replace ${VAR} placeholders in YAML text with their environment variable values.
    If an env var is missing, mark it as <MISSING:VAR> to fail validation cleanly.
    """
    pattern = re.compile(r"\$\{([^}^{]+)\}")
    def repl(match):
        var_name = match.group(1)                              # Extract VAR name from ${VAR}
        return os.getenv(var_name, f"<MISSING:{var_name}>")    # Return env value or a sentinel
    return pattern.sub(repl, yaml_text)


def _load_yaml_file(path: str) -> Dict[str, Any]:
    """
    Read a YAML file from disk, perform ${VAR} substitution, and parse it to a dict.
    """
    if not os.path.exists(path):                               # Ensure the path exists
        print(f"❌ Configuration file not found: {path}")
        sys.exit(1)

    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    substituted = _substitute_env_placeholders(raw)            # Replace ${VAR} with env values

    try:
        cfg = yaml.safe_load(substituted)                      # Parse YAML text into Python dict
    except yaml.YAMLError as e:                                # Catch YAML syntax errors
        print(f"❌ YAML parsing error in {path}: {e}")
        sys.exit(1)

    if not isinstance(cfg, dict):                              # Empty file or a bare scalar
        print(f"❌ Configuration in {path} must be a mapping")
        sys.exit(1)
    return cfg


def _merge_defaults(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill optional sections with DEFAULTS; nested dicts are merged one level deep.
    """
    merged = copy.deepcopy(DEFAULTS)
    for key, value in cfg.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)                          # Keep defaults for keys the YAML omits
        else:
            merged[key] = value
    return merged


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Validate presence of required keys and ensure no <MISSING:...> placeholders remain.
    """
    required_top = ["environment", "debug", "log_level", "input_csv", "database"]
    missing_top = [k for k in required_top if k not in cfg or cfg[k] in (None, "")]
    if missing_top:
        print(f"❌ Missing top-level config keys: {', '.join(missing_top)}")
        sys.exit(1)

    db = cfg.get("database", {})
    driver = db.get("driver", "postgresql")
    if driver not in SUPPORTED_DRIVERS:
        print(f"❌ Unsupported database.driver '{driver}' (expected one of {', '.join(SUPPORTED_DRIVERS)})")
        sys.exit(1)

    # SQLite only needs a file path; PostgreSQL needs the full connection set
    required_db = ["path"] if driver == "sqlite" else ["host", "port", "name", "user", "password"]
    missing_db = [f"database.{k}" for k in required_db
                  if k not in db or db[k] in (None, "") or "MISSING:" in str(db[k])]
    if missing_db:
        print(f"❌ Missing/invalid DB config keys: {', '.join(missing_db)}")
        sys.exit(1)

    cleaning = cfg.get("cleaning", {})
    bad_null = {col: p for col, p in cleaning.get("null_policy", {}).items() if p not in NULL_POLICIES}
    if bad_null:
        print(f"❌ Invalid cleaning.null_policy entries: {bad_null}")
        sys.exit(1)
    if cleaning.get("invalid_row_policy") not in ROW_POLICIES:
        print(f"❌ cleaning.invalid_row_policy must be one of {', '.join(ROW_POLICIES)}")
        sys.exit(1)


def get_config() -> Dict[str, Any]:
    """
    Public API: pick env from ENV (default 'dev'), load YAML, validate, return dict.
    The directory holding {env}.yaml can be moved with CONFIG_DIR (default 'config').
    """
    env = os.getenv("ENV", "dev").lower()
    config_dir = os.getenv("CONFIG_DIR", "config")
    path = os.path.join(config_dir, f"{env}.yaml")
    cfg = _merge_defaults(_load_yaml_file(path))
    _validate_config(cfg)
    return cfg


def build_db_url(cfg: Dict[str, Any]) -> str:
    """
    Build a SQLAlchemy URL string from the cfg dict (SQLite file or PostgreSQL server).
    """
    db = cfg["database"]
    if db.get("driver", "postgresql") == "sqlite":
        return f"sqlite:///{db['path']}"                      # ':memory:' gives an in-memory DB
    user = db["user"]
    pwd  = db["password"]
    host = db["host"]
    port = db["port"]
    name = db["name"]
    return f"postgresql+psycopg2://{user}:{pwd}@{host}:{port}/{name}"
