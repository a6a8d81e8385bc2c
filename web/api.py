"""
web/api.py
==========
Optional FastAPI server exposing the intersection's observation surface.

Start the server::

    python -m web.api          # → http://localhost:8000/snapshot

Endpoints: ``GET /health``, ``GET /snapshot``, ``GET /policy``,
``POST /start``, ``POST /stop``, ``POST /tick``.

.. note::

   This server is **not** required to run the simulation.
   It exists for external renderers and dashboards.
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

import config
from crossing.errors import ConfigError
from crossing.simulation import IntersectionSim

log = logging.getLogger("api")

# ── Pydantic request schemas ─────────────────────────────────────────────────


class StartRequest(BaseModel):
    """Policy overrides for ``/start``; omitted fields keep their defaults."""
    emergency_threshold: Optional[int] = None
    early_release_window_s: Optional[int] = None
    demand_margin: Optional[int] = None
    preempt_window_s: Optional[int] = None
    seconds_per_vehicle: Optional[int] = None
    min_green_s: Optional[int] = None
    max_green_s: Optional[int] = None
    yellow_s: Optional[int] = None
    approach_limit: Optional[float] = None
    stop_line: Optional[float] = None
    exit_threshold: Optional[float] = None
    vehicle_speed: Optional[float] = None
    spawn_north: Optional[float] = None
    spawn_south: Optional[float] = None
    spawn_east: Optional[float] = None
    spawn_west: Optional[float] = None
    red_spawn_bias: Optional[float] = None
    turn_left_share: Optional[float] = None
    turn_right_share: Optional[float] = None
    signal_period_s: Optional[float] = None
    spawn_period_s: Optional[float] = None
    motion_period_s: Optional[float] = None
    initial_direction: Optional[str] = None
    initial_green_s: Optional[int] = None
    seed: Optional[int] = None


# ── FastAPI application ──────────────────────────────────────────────────────


def create_app(sim: Optional[IntersectionSim] = None) -> FastAPI:
    """Build an app bound to *sim* (a fresh simulation when *None*)."""
    sim = sim or IntersectionSim({"seed": config.DEFAULT_SEED})
    app = FastAPI(
        title="Adaptive Crossing API",
        description="Observe and control the adaptive intersection simulation.",
        version="1.0",
    )
    app.state.sim = sim

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/snapshot")
    def snapshot(include_vehicles: bool = True):
        """Per-direction signals, active direction and recent decisions."""
        return sim.get_snapshot(include_vehicles=include_vehicles)

    @app.get("/policy")
    def policy():
        return sim.policy.as_dict()

    @app.post("/start")
    def start(req: Optional[StartRequest] = None):
        overrides = req.model_dump(exclude_none=True) if req else {}
        try:
            started = sim.start(overrides or None)
        except ConfigError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        if not started:
            raise HTTPException(status_code=409, detail="simulation already running")
        log.info("started via API with %d override(s)", len(overrides))
        return {"running": sim.is_running(), "policy": sim.policy.as_dict()}

    @app.post("/stop")
    def stop():
        sim.stop()
        return {"running": sim.is_running()}

    @app.post("/tick")
    def tick():
        """One manual motion + signal step while the threads are stopped."""
        if sim.is_running():
            raise HTTPException(status_code=409, detail="stop the simulation before stepping")
        sim.motion_tick()
        decision = sim.signal_tick()
        return {
            "rule": decision.rule.value,
            "switch_to": decision.switch_to.value if decision.switch_to else None,
            "green_duration": decision.green_duration,
            "snapshot": sim.get_snapshot(include_vehicles=False),
        }

    return app


app = create_app()


# ── Standalone entry point ───────────────────────────────────────────────────

def serve(
    host: str = config.API_HOST,
    port: int = config.API_PORT,
    sim: Optional[IntersectionSim] = None,
) -> None:
    application = create_app(sim) if sim is not None else app
    log.info("Starting crossing API on http://%s:%d", host, port)
    try:
        uvicorn.run(application, host=host, port=port)
    finally:
        application.state.sim.stop()


if __name__ == "__main__":
    serve()
