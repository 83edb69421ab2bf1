"""FastAPI dependencies: store, request identity and authorization gates."""

from typing import Annotated, Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bankapi.api.errors import http_error
from bankapi.core.config import Settings, get_settings
from bankapi.core.database import get_db
from bankapi.core.errors import AccountError
from bankapi.core.security import SignedClaims
from bankapi.services.authentication import AuthenticationResolver, Identity
from bankapi.services.gates import (
    ACTIVATED,
    AUTHENTICATED,
    Gate,
    check_gates,
    permission_gates,
)
from bankapi.services.mailer import Mailer
from bankapi.services.store import AccountStore


def get_store(db: Annotated[Session, Depends(get_db)]) -> AccountStore:
    return AccountStore(db)


def get_signed_claims(settings: Annotated[Settings, Depends(get_settings)]) -> SignedClaims:
    """Signer built from the request's settings, so overriding get_settings reaches it."""
    return SignedClaims.from_settings(settings)


def get_mailer(settings: Annotated[Settings, Depends(get_settings)]) -> Mailer:
    return Mailer(settings)


def get_identity(
    request: Request,
    store: Annotated[AccountStore, Depends(get_store)],
    claims: Annotated[SignedClaims, Depends(get_signed_claims)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Identity:
    """
    Resolve the Authorization header once per request and keep the result on
    request.state. A missing header is anonymous, not an error.
    """
    identity = getattr(request.state, "identity", None)
    if identity is not None:
        return identity
    resolver = AuthenticationResolver(store, mode=settings.AUTH_MODE, claims=claims)
    try:
        identity = resolver.resolve(request.headers.get("Authorization"))
    except AccountError as e:
        raise http_error(e) from e
    request.state.identity = identity
    return identity


def gated(*gates: Gate) -> Callable[..., Identity]:
    """Dependency that runs gates in order against the request identity."""

    def dependency(
        identity: Annotated[Identity, Depends(get_identity)],
        store: Annotated[AccountStore, Depends(get_store)],
    ) -> Identity:
        try:
            check_gates(gates, identity, store)
        except AccountError as e:
            raise http_error(e) from e
        return identity

    return dependency


require_authenticated_user = gated(*AUTHENTICATED)
require_activated_user = gated(*ACTIVATED)


def require_permission(code: str) -> Callable[..., Identity]:
    return gated(*permission_gates(code))
