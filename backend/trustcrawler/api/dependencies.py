"""
FastAPI dependencies.

Pipeline objects are built once in the app lifespan and stored on
app.state; tests replace them through app.dependency_overrides.
"""

from fastapi import HTTPException, Request, status

from trustcrawler.db.store import RecordStore
from trustcrawler.orchestrator import VerificationOrchestrator
from trustcrawler.services.registry import RegistryVerifier


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return value


def get_store(request: Request) -> RecordStore:
    return _state(request, "store")


def get_verifier(request: Request) -> RegistryVerifier:
    return _state(request, "verifier")


def get_orchestrator(request: Request) -> VerificationOrchestrator:
    return _state(request, "orchestrator")
