import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from content_api.cache import cache
from content_api.config import settings
from content_api.errors import ContentError
from content_api.middleware import TimingMiddleware
from content_api.responses import failure
from content_api.routers import blogs, dashboard, image_assets, orders, samples, services, testimonials

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    try:
        await cache.connect()
    except Exception as exc:
        logger.warning("Cache unavailable, continuing without it: %s", exc)
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Content API",
    description="Admin CMS API for publishable content and external assets",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers
def _field_errors(errors) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in errors
    ]


@app.exception_handler(ContentError)
async def content_error_handler(request: Request, exc: ContentError):
    return JSONResponse(status_code=exc.status_code, content=failure(exc.message, exc.errors))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400, content=failure("Validation failed", _field_errors(exc.errors()))
    )


@app.exception_handler(ValidationError)
async def form_validation_handler(request: Request, exc: ValidationError):
    # Multipart forms are validated inside the handler, outside FastAPI's own checks.
    return JSONResponse(
        status_code=400,
        content=failure("Validation failed", _field_errors(exc.errors(include_url=False))),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = failure("Something went wrong")
    if settings.is_development:
        body["error"] = repr(exc)
    return JSONResponse(status_code=500, content=body)


# Routers
app.include_router(blogs.router)
app.include_router(services.router)
app.include_router(samples.router)
app.include_router(testimonials.router)
app.include_router(image_assets.router)
app.include_router(orders.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION, "cache": cache.stats}
