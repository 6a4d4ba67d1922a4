"""Request-scoped access to the CostEngine owned by the app."""

from fastapi import Request

from leadcost_engine.engine import CostEngine


def get_engine(request: Request) -> CostEngine:
    """FastAPI dependency returning the engine constructed in create_app()."""
    return request.app.state.engine
