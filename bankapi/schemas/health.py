"""Health check response: availability plus basic system info."""

from typing import Literal

from pydantic import BaseModel


class SystemInfo(BaseModel):
    environment: str
    version: str
    database: Literal["connected", "disconnected"]


class HealthResponse(BaseModel):
    """Returned to anonymous callers; contains nothing account-specific."""

    status: Literal["available"] = "available"
    system_info: SystemInfo
