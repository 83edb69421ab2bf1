"""Translate domain errors into HTTP responses."""

import logging

from fastapi import HTTPException, status

from bankapi.core.errors import AccountError

logger = logging.getLogger(__name__)


def http_error(e: AccountError) -> HTTPException:
    """
    Build the HTTPException for a domain error. 5xx errors are logged with
    their cause and answered with the generic message only.
    """
    if e.status_code >= 500:
        logger.error("Request failed: %s", type(e).__name__, exc_info=e)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=AccountError.default_message,
        )
    headers = {"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
    return HTTPException(status_code=e.status_code, detail=e.message, headers=headers)
