"""API v1 routes. Every route resolves the request identity first."""

from fastapi import APIRouter, Depends

from bankapi.api.deps import get_identity
from bankapi.api.v1 import health, tokens, users

router = APIRouter(dependencies=[Depends(get_identity)])
router.include_router(health.router, prefix="/healthcheck", tags=["health"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(tokens.router, prefix="/tokens", tags=["tokens"])
