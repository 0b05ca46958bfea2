from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .database import init_db
from .routers import apps, auth, packages
from .config import get_settings
import logging

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="SetupForMe API")

# Only origins on the allow-list receive CORS headers; there is no wildcard fallback
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as 400 validation errors."""
    logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": "validation",
                "message": "Invalid request",
                "errors": jsonable_errors(exc),
            }
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


# Create tables
@app.on_event("startup")
async def startup():
    await init_db()

# ============================================================================
# Include Routers
# ============================================================================

app.include_router(auth.router)
app.include_router(apps.router)
app.include_router(packages.router)

@app.get("/")
async def root():
    return {"message": "SetupForMe API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "setupforme-backend"}


def run():
    """Start the API server (used by `python -m setupforme` and the console script)."""
    import uvicorn
    logger.info(f"Server starting on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
