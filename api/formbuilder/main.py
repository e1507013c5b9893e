"""
Main FastAPI Application
Wires the form and response routers, error envelopes and media files.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from formbuilder.config import get_cors_origins, get_media_dir, get_media_url_prefix
from formbuilder.database import init_db
from formbuilder.logging_utils import setup_logging
from formbuilder.routers.forms import router as forms_router
from formbuilder.routers.responses import router as responses_router
from formbuilder.services.validation import format_error_list

API_PREFIX = "/api"

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_media_dir().mkdir(parents=True, exist_ok=True)
    init_db()
    logger.info("Form Builder API started")
    yield


# Initialize FastAPI App
app = FastAPI(
    title="Form Builder API",
    description="Build categorize, cloze and comprehension forms, collect and score responses",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Origin", "Accept"],
)

app.mount(
    get_media_url_prefix(),
    StaticFiles(directory=str(get_media_dir()), check_dir=False),
    name="media",
)

app.include_router(forms_router, prefix=API_PREFIX)
app.include_router(responses_router, prefix=API_PREFIX)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = {"success": False, "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Invalid request data",
            "errors": format_error_list(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})


@app.get("/")
async def read_root():
    """Return API status info (UI is served by the client app)."""
    return {"message": "Form Builder API is running."}


@app.get(f"{API_PREFIX}/health")
async def health_check():
    """Health check endpoint."""
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
