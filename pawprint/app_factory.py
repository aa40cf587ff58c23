"""Entry point for the public FastAPI app (uvicorn pawprint.app_factory:app)."""
from pawprint.app import create_app

app = create_app()

__all__ = ["app", "create_app"]
