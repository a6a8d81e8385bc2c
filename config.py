#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf — it never imports from
other project packages.  Signal timing and decision thresholds live in
:class:`crossing.signal_policy.SignalPolicy`.
"""

import logging

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_SEED: int = 42
DEFAULT_RUN_SECONDS: float = 30.0
STATUS_LOG_PERIOD_S: float = 2.0

# ── Logging ──────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: int = logging.INFO
LOG_FILE: str = "crossing.log"
CONTROLLER_DEBUG_LOG_FILE: str = "controller_debug.log"

# ── HTTP observation surface ─────────────────────────────────────────────────
API_HOST: str = "0.0.0.0"
API_PORT: int = 8000

# ── Headless report (relative to project root) ───────────────────────────────
DEFAULT_REPORT_SECONDS: float = 300.0
REPORT_CSV_REL_PATH: str = "generated/headless_run.csv"
