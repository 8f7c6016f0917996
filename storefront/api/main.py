"""
FastAPI app assembly: logging, middleware, error mapping and router wiring.
"""
import logging
import os
from fastapi import FastAPI, Depends, status
from starlette.requests import Request
from starlette.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from storefront.api.access import router as access_router
from storefront.api.audits import router as audits_router
from storefront.api.catalog import router as catalog_router
from storefront.api.deps import get_principal
from storefront.api.orders import router as orders_router, system_router as system_orders_router
from storefront.errors import (
    AuthenticationMissing,
    AuthorizationDenied,
    InvalidGrantRequest,
    InvalidTransition,
    NotFound,
)
from storefront.services.identity import Principal
from storefront.utils.feature_flags import get_feature_flags

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Storefront Access Service",
    description="Authorization for marketplace collections, categories, products and storefront orders.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost,http://localhost:3000,http://localhost:8000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware: enforce read-only for unauthenticated requests
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        path = request.url.path or ""
        # Service-key routes authenticate in their own dependency
        if path.startswith("/system/"):
            return await call_next(request)
        h = request.headers
        user_present = (
            h.get("x-auth-request-user")
            or h.get("x-auth-request-email")
            or h.get("x-forwarded-user")
            or h.get("x-forwarded-email")
        )
        if not user_present:
            return JSONResponse(
                {"detail": "Guest mode is read-only. Sign in to perform changes."},
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
    return await call_next(request)


# Domain errors -> HTTP
@app.exception_handler(AuthenticationMissing)
async def _authentication_missing(request: Request, exc: AuthenticationMissing):
    return JSONResponse({"detail": str(exc) or "Authentication required"}, status_code=status.HTTP_401_UNAUTHORIZED)


@app.exception_handler(AuthorizationDenied)
async def _authorization_denied(request: Request, exc: AuthorizationDenied):
    return JSONResponse(
        {"detail": str(exc), "capability": exc.capability},
        status_code=status.HTTP_403_FORBIDDEN,
    )


@app.exception_handler(InvalidGrantRequest)
async def _invalid_grant_request(request: Request, exc: InvalidGrantRequest):
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


@app.exception_handler(InvalidTransition)
async def _invalid_transition(request: Request, exc: InvalidTransition):
    return JSONResponse(
        {
            "detail": str(exc),
            "from_status": exc.from_status,
            "to_status": exc.to_status,
            "channel": exc.channel,
        },
        status_code=status.HTTP_409_CONFLICT,
    )


@app.exception_handler(NotFound)
async def _not_found(request: Request, exc: NotFound):
    return JSONResponse({"detail": str(exc) or "Not found"}, status_code=status.HTTP_404_NOT_FOUND)


@app.get("/user-info")
def get_user_info(principal: Principal = Depends(get_principal)):
    """Return the resolved principal for the current request."""
    return {
        "authenticated": principal.user_id is not None,
        "user_id": str(principal.user_id) if principal.user_id else None,
        "email": principal.email,
        "role": principal.role,
        "wallet_address": principal.wallet_address,
        "wallet_verified_by": principal.wallet.verified_by.value if principal.wallet else None,
        "features": get_feature_flags(),
    }


app.include_router(access_router)
app.include_router(catalog_router)
app.include_router(orders_router)
app.include_router(system_orders_router)
app.include_router(audits_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "storefront-access-service"}
