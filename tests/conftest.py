# ruff: noqa: INP001
"""Pytest configuration shared across tasktrail tests."""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Tests build their own engines per test; keep import-time settings deterministic
# regardless of shell env or a developer `.env`.
os.environ["TASKTRAIL_ENVIRONMENT"] = "test"
os.environ["TASKTRAIL_DB_AUTO_MIGRATE"] = "false"
os.environ["TASKTRAIL_LOG_FORMAT"] = "text"
