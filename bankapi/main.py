"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from bankapi.api.v1 import router as v1_router
from bankapi.core.config import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="bankapi",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next) -> Response:
    """Log every request and mark responses as varying by Authorization."""
    response = await call_next(request)
    response.headers.append("Vary", "Authorization")
    logger.info(
        "%s %s %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={"client": request.client.host if request.client else None},
    )
    return response


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
