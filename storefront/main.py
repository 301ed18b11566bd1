"""
Storefront API
FastAPI application entry point

- Catalog browsing, cart, checkout with simulated payment
- Order history and profile for signed-in users
- Admin console for products, categories, orders and users
- Rate limiting with SlowAPI, error sanitization, DB-pinging health check
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from storefront.api.routes import admin, cart, categories, checkout, orders, products, profile
from storefront.core.config import settings
from storefront.core.database import AsyncSessionLocal, create_tables
from storefront.core.error_handler import ErrorSanitizationMiddleware, storefront_error_handler
from storefront.core.exceptions import StorefrontError
from storefront.core.rate_limit import limiter, rate_limit_exceeded_handler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup when asked to (local development)."""
    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
        logger.info("Database tables ensured")
    logger.info(f"{settings.APP_NAME} API started ({settings.ENVIRONMENT})")

    yield

    logger.info(f"{settings.APP_NAME} API stopped")


app = FastAPI(
    lifespan=lifespan,
    title=f"{settings.APP_NAME} API",
    description="""
## Storefront API

Catalog, cart, checkout and admin console for an online store.

### Authentication
Identity is provided by the hosted auth provider. Send its access token as
`Authorization: Bearer <token>`.

### Rate Limits
- Checkout: 10 requests/minute
- General: 100 requests/minute
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Products", "description": "Product catalog"},
        {"name": "Categories", "description": "Product categories"},
        {"name": "Cart", "description": "Shopping cart operations"},
        {"name": "Checkout", "description": "Order placement with simulated payment"},
        {"name": "Orders", "description": "Order history"},
        {"name": "Profile", "description": "Signed-in user profile"},
        {"name": "Admin", "description": "Admin console"},
        {"name": "Config", "description": "Public configuration endpoints"},
    ],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Domain errors -> notification payloads
app.add_exception_handler(StorefrontError, storefront_error_handler)

# Error sanitization (catches unhandled exceptions)
app.add_middleware(ErrorSanitizationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(checkout.router, prefix="/api", tags=["Checkout"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": "1.0.0",
        "status": "operational"
    }


@app.get("/api/config", tags=["Config"])
async def get_config():
    """Non-sensitive values the client needs for display."""
    return {
        "tax_rate": settings.TAX_RATE,
        "free_shipping": True,
        "admin_page_size": settings.ADMIN_PAGE_SIZE,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check with an actual DB ping. Returns 503 if the database is unreachable."""
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check DB ping failed: {type(e).__name__}: {e}")
        health_status["database"] = f"error: {type(e).__name__}"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
