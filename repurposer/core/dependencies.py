"""Shared service instances for routers. Tests override these with app.dependency_overrides."""
from repurposer.database import SessionLocal
from repurposer.services.ai_gateway import AiGateway

_gateway: AiGateway | None = None


def get_session_factory():
    return SessionLocal


def get_gateway() -> AiGateway:
    """Lazy singleton: one gateway (and provider client config) per process."""
    global _gateway
    if _gateway is None:
        _gateway = AiGateway(SessionLocal)
    return _gateway
