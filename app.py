"""
App assembly entry point.

Re-exports the FastAPI `app` from `storefront.api.main` so the service can be
started with `uvicorn app:app`.
"""

from storefront.api.main import app  # noqa: F401
