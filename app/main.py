from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import engine
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.core.seed import seed_admin_account

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: public dir for sitemap.xml / robots.txt, then the admin account
    Path(settings.PUBLIC_DIR).mkdir(parents=True, exist_ok=True)
    await seed_admin_account()
    yield
    # Shutdown: release pooled connections
    await engine.dispose()


app = FastAPI(
    title="Perks Marketplace API",
    description="Perks, categories, leads, blog and SEO management for the perks marketplace",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",")],
    allow_credentials=settings.CORS_ORIGINS != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "perks-marketplace-api", "version": "1.0.0"}
