"""
Storefront Cart Service

Cart, pricing and checkout API for the storefront. The web front end
drives the cart through these routes; catalog, auth and order
processing are external collaborators.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before settings are read
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

from .core.config import settings  # noqa: E402
from .core.dependencies import get_promo_resolver  # noqa: E402
from .routes import cart_router, checkout_router  # noqa: E402
from .services.promo import HttpPromoResolver  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront cart service starting up...")
    logger.info(f"Cart storage: {settings.cart_storage_dir or 'in-memory'}")
    logger.info(f"Promo codes: {settings.promo_service_url or 'static table'}")
    yield
    resolver = get_promo_resolver()
    if isinstance(resolver, HttpPromoResolver):
        await resolver.close()
    logger.info("Storefront cart service shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Cart, pricing and checkout API for the storefront",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(cart_router)
app.include_router(checkout_router)


@app.get("/")
async def home():
    """Service index"""
    return {
        "message": "Storefront Cart API",
        "docs": "/docs",
        "endpoints": {
            "cart": "/api/cart/{session_id}",
            "checkout": "/api/checkout/{session_id}",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "storefront-cart"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
