#!/usr/bin/env python3
"""
main.py
=======
Entry point.  Behaviour is selected through environment variables:

``CROSSING_MODE``
    ``run`` (default) — threaded simulation, status logged periodically;
    ``serve`` — FastAPI observation server;
    ``report`` — headless virtual-clock run written to CSV.
``CROSSING_SEED``
    Spawner seed (default :data:`config.DEFAULT_SEED`).
``CROSSING_SECONDS``
    Wall-clock seconds for ``run``, virtual seconds for ``report``.
``CROSSING_LOG_LEVEL``
    ``DEBUG`` / ``INFO`` / ``WARNING`` …
``CROSSING_CSV``
    Output path for ``report``.
"""

import logging
import math
import os
import sys
import time
from typing import Optional

import config
from logging_setup import setup_logging
from crossing.errors import ConfigError
from crossing.signal_policy import SignalPolicy
from crossing.simulation import IntersectionSim

project_root = os.path.abspath(os.path.dirname(__file__))


def _env_float(name: str, default: float, minimum: Optional[float] = None) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be finite, got {raw!r}")
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {raw!r}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_level(default: int) -> int:
    raw = os.environ.get("CROSSING_LOG_LEVEL", "").upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise ConfigError(f"unknown CROSSING_LOG_LEVEL {raw!r}")
    return level


def run(policy: SignalPolicy, seconds: float) -> None:
    log = logging.getLogger("main")
    sim = IntersectionSim(policy)
    sim.start()
    try:
        deadline = time.monotonic() + seconds
        while time.monotonic() < deadline:
            time.sleep(config.STATUS_LOG_PERIOD_S)
            log.info(sim.describe())
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        sim.stop()
    log.info("final metrics: %s", sim.metrics.report())


def report(policy: SignalPolicy, seconds: float, csv_path: str) -> None:
    from crossing.report import run_headless, summarise, write_csv

    log = logging.getLogger("main")
    df = run_headless(policy, seconds=seconds)
    log.info("summary: %s", summarise(df))
    write_csv(df, csv_path)


def main() -> int:
    try:
        setup_logging(_env_level(config.DEFAULT_LOG_LEVEL))
        mode = os.environ.get("CROSSING_MODE", "run").lower()
        seed = _env_int("CROSSING_SEED", config.DEFAULT_SEED)
        default_seconds = (
            config.DEFAULT_REPORT_SECONDS if mode == "report" else config.DEFAULT_RUN_SECONDS
        )
        seconds = _env_float("CROSSING_SECONDS", default_seconds, minimum=0.0)
        policy = SignalPolicy(seed=seed)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    log = logging.getLogger("main")
    log.info("Starting crossing in %s mode (seed=%d)", mode, seed)

    if mode == "serve":
        from web.api import serve
        serve(sim=IntersectionSim(policy))
    elif mode == "report":
        csv_path = os.environ.get("CROSSING_CSV") or os.path.join(
            project_root, config.REPORT_CSV_REL_PATH
        )
        report(policy, seconds, csv_path)
    elif mode == "run":
        run(policy, seconds)
    else:
        log.error("unknown CROSSING_MODE %r (expected run, serve or report)", mode)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
