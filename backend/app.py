import logging
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import tasks, users, webhook
from config.settings import Settings, get_settings
from utils.logging_setup import setup_logging
from utils.responses import error_response

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(title="Enhanced Todo API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Update with specific origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tasks.router)
app.include_router(users.router)
app.include_router(webhook.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return error_response("Invalid request body", 400)


@app.on_event("startup")
async def startup_db_client():
    from config.supabase import test_connection

    setup_logging(get_settings().log_level)

    if await test_connection():
        logger.info("Supabase connection initialized successfully")
    else:
        logger.warning("Supabase is not reachable yet; requests will fail until it is configured")


@app.get("/")
async def health_check(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "service": "Enhanced Todo API",
        "webhook_secret_configured": bool(settings.webhook_secret),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
