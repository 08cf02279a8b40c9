import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.database import create_db_and_tables
from core.dependencies import ServiceContainer, build_services, get_services
from core.errors import register_exception_handlers
from routes.auth import router as auth_router
from routes.payment import router as payment_router
from routes.profile import router as profile_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("✅ Database tables created on startup.")
    yield
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="PackRocket API")

# Clients are built once here and reach the routes through Depends
app.state.services = build_services(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router, prefix="/api")
app.include_router(profile_router, prefix="/api")
app.include_router(payment_router, prefix="/api")

# Uploaded logos are served from /static
app.mount(
    "/static",
    StaticFiles(directory=app.state.services.storage.ensure_root()),
    name="static",
)


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/api/health")
def health_check():
    return {"ok": True}


@app.get("/api/_debug")
def debug_info(services: ServiceContainer = Depends(get_services)):
    config = services.settings
    return {
        "environment": config.ENVIRONMENT,
        "stripeKeyPrefix": (config.STRIPE_SECRET_KEY or "")[:8],
        "prices": config.price_ids,
        "airtableConfigured": services.mirror.configured,
    }
