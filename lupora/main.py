import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from lupora.config import settings
from lupora.database import SessionLocal, init_db
from lupora.api.endpoints import auth, products, cart, orders, payments
from lupora.middleware.security import SecurityHeadersMiddleware, TimingMiddleware, RateLimitMiddleware
from lupora.services.cart_service import purge_expired_carts
from lupora.services.order_service import purge_expired_checkout_requests
from lupora.utils.cache import TTLCache
from lupora.utils.notifications import NotificationDispatcher

# Configure logging
if not settings.DEBUG:
    from lupora.utils.logging_config import configure_logging
    configure_logging()
logger = logging.getLogger(__name__)


def purge_expired_records() -> None:
    """Delete idle carts and stale idempotency records"""
    db = SessionLocal()
    try:
        purge_expired_carts(db)
        purge_expired_checkout_requests(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Expired record purge failed")
    finally:
        db.close()


async def _purge_periodically(interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(purge_expired_records)
        except Exception:
            logger.exception("Periodic purge failed, retrying next interval")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Without persistence the service cannot work; a failure here aborts startup
    init_db()

    app.state.notification_dispatcher.start()
    purge_task = asyncio.create_task(_purge_periodically(settings.CART_PURGE_INTERVAL_SECONDS))
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    try:
        yield
    finally:
        purge_task.cancel()
        with suppress(asyncio.CancelledError):
            await purge_task
        app.state.notification_dispatcher.stop()


app = FastAPI(
    title=settings.APP_NAME,
    description="Lupora Perfumes storefront API",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.state.catalog_cache = TTLCache(settings.CATALOG_CACHE_TTL_SECONDS)
app.state.notification_dispatcher = NotificationDispatcher()

# Security Middleware (add first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TimingMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    auth_limit=settings.AUTH_RATE_LIMIT,
    auth_window_seconds=settings.AUTH_RATE_WINDOW_SECONDS,
    api_limit=settings.API_RATE_LIMIT,
    api_window_seconds=settings.API_RATE_WINDOW_SECONDS,
    enabled=settings.RATE_LIMIT_ENABLED,
)

# CORS Middleware
origins = settings.allowed_origins
if not origins:
    logger.warning("No ALLOWED_ORIGINS set; cross-origin requests will be refused")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Idempotency-Key"],
    expose_headers=["X-Process-Time"],
)


# Exception Handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {"message": ...}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    def sanitize_error(error):
        """Convert error dict to JSON-serializable format"""
        if isinstance(error, dict):
            return {k: sanitize_error(v) for k, v in error.items() if k not in ("ctx", "input", "url")}
        elif isinstance(error, (list, tuple)):
            return [sanitize_error(item) for item in error]
        elif isinstance(error, bytes):
            return error.decode('utf-8', errors='replace')
        elif isinstance(error, (str, int, float, bool, type(None))):
            return error
        else:
            return str(error)

    errors = sanitize_error(exc.errors())
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "errors": errors}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    content = {"message": "Internal server error"}
    if settings.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# Include Routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(products.media_router, prefix="/api/media", tags=["Media"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/api/payment", tags=["Payments"])


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": settings.APP_VERSION,
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME
    }
