from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import logging.config
from contextlib import asynccontextmanager
import sys
from dotenv import load_dotenv

# Load environment
load_dotenv()

# Import settings (after dotenv loads)
import settings

# Configure stdout/stderr for UTF-8 (Windows compatibility)
if sys.stdout.encoding != 'utf-8':
    sys.stdout.reconfigure(encoding='utf-8')
if sys.stderr.encoding != 'utf-8':
    sys.stderr.reconfigure(encoding='utf-8')

settings.ensure_log_dir()
logging.config.dictConfig(settings.get_log_config())

logger = logging.getLogger(__name__)
logger.info(f"Starting {settings.SERVICE_NAME} v{settings.SERVICE_VERSION}")

from db import get_engine, init_database
from api.routes_travel_providers import router as travel_providers_router, set_factory
from travel_hub.providers import ProviderError, ProviderFactory, SqlConfigStore, initialize_providers
from travel_hub.security import CredentialEncryption


def build_provider_factory(engine) -> ProviderFactory:
    """Wire the factory to the SQL store; encrypted when a master key is configured."""
    encryption = None
    if settings.PROVIDER_ENCRYPTION_KEY:
        encryption = CredentialEncryption(settings.PROVIDER_ENCRYPTION_KEY.encode())
    else:
        logger.warning("TRIPDESK_PROVIDER_ENCRYPTION_KEY not set; provider credentials stored unencrypted")

    factory = ProviderFactory(
        store=SqlConfigStore(engine, encryption=encryption),
        require_user_id=settings.REQUIRE_USER_ID,
    )
    initialize_providers(factory)
    return factory


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    engine = get_engine(settings.DATABASE_URL)
    init_database(engine)

    factory = build_provider_factory(engine)
    set_factory(factory)
    app.state.provider_factory = factory
    logger.info("Travel provider factory ready")

    yield

    engine.dispose()
    logging.info("Application shutdown")


# Create app
app = FastAPI(title="TripDesk Travel Providers", version=settings.SERVICE_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using wildcard
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


@app.exception_handler(ProviderError)
async def provider_exception_handler(request: Request, exc: ProviderError):
    """Provider errors escaping a route become 502 with the error payload"""
    logger.error(f"Unhandled provider error: {exc}", exc_info=True)
    return JSONResponse(status_code=502, content={"detail": exc.to_dict()})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers
app.include_router(travel_providers_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
