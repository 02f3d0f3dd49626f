"""Translate domain exceptions into HTTP errors."""

import logging

from fastapi import HTTPException, status

from citelens.domain.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    IndexUnavailableError,
    ProviderError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: Exception) -> HTTPException:
    """Map a domain exception to the HTTP status the API reports for it."""
    if isinstance(exc, EntityNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, IndexUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, ProviderError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


DOMAIN_ERRORS = (EntityNotFoundError, IndexUnavailableError, ProviderError, ConfigurationError)
