"""
HTTP surface of the supervisor.

A single `GET /health` endpoint, served in-process by Hypercorn, used by
container orchestration probes.
"""
from .server import HealthServer, create_app

__all__ = ["HealthServer", "create_app"]
