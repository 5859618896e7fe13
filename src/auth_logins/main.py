from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.auth_logins.config import settings, get_cors_origins
from src.auth_logins.errors import (
    AuthLoginStoreError,
    ConstraintViolationError,
    DuplicateKeyError,
    RecordNotFoundError,
)
from src.auth_logins.log_config import configure_logging
from src.auth_logins.routes import router as auth_logins_router

configure_logging(settings)

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    license_info={"name": "Proprietary"},
    openapi_tags=[
        {"name": "Auth Logins", "description": "Identity provider login records"},
    ],
)

# Configure CORS based on environment
allowed_origins = get_cors_origins(settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins if allowed_origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_ERROR = {
    DuplicateKeyError: status.HTTP_409_CONFLICT,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    ConstraintViolationError: 422,
}


@app.exception_handler(AuthLoginStoreError)
async def store_error_handler(request: Request, exc: AuthLoginStoreError) -> JSONResponse:
    """Translate store errors into JSON error responses."""
    return JSONResponse(
        status_code=_STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={
            "error": exc.__class__.__name__,
            "message": exc.message,
            "path": str(request.url),
        },
    )


@app.get("/", summary="Health Check", tags=["Auth Logins"])
def health_check():
    """Simple health check endpoint."""
    return {"message": "Healthy"}

# Register routers
app.include_router(auth_logins_router)
