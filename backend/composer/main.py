import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from composer.api.api import api_router
from composer.core.config import settings
from composer.db import session as db_session

logging.basicConfig(level=settings.LOG_LEVEL, format='%(levelname)s:%(name)s:%(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s %s starting", settings.PROJECT_NAME, settings.PROJECT_VERSION)
    yield
    if db_session.engine is not None:
        await db_session.engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    version=settings.PROJECT_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/", include_in_schema=False)
async def read_root():
    return {"message": f"{settings.PROJECT_NAME} is running. API docs under {settings.API_V1_STR}/openapi.json"}


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "ok", "storage": db_session.SessionLocal is not None}
