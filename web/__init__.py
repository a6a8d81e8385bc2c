"""
web — HTTP observation surface
==============================

Modules
-------
api
    FastAPI application exposing ``/snapshot``, ``/start``, ``/stop``
    and ``/tick`` over an :class:`~crossing.simulation.IntersectionSim`.
"""
