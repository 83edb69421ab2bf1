"""Token endpoints: log in (opaque token or signed claim) and log out."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from bankapi.api.deps import get_signed_claims, get_store, require_authenticated_user
from bankapi.api.errors import http_error
from bankapi.core.config import Settings, get_settings
from bankapi.core.errors import AccountError
from bankapi.core.security import SignedClaims
from bankapi.schemas.auth import AuthenticationTokenResponse, LoginRequest, TokenResponse
from bankapi.services.accounts import (
    authenticate_credentials,
    issue_authentication_token,
    issue_signed_claim,
    revoke_authentication_tokens,
)
from bankapi.services.authentication import Identity
from bankapi.services.store import AccountStore

router = APIRouter()


@router.post(
    "/authentication",
    response_model=AuthenticationTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_authentication_token(
    body: LoginRequest,
    store: Annotated[AccountStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthenticationTokenResponse:
    """
    Exchange email and password for an opaque authentication token.
    Send it back as: Authorization: Bearer <token>
    """
    try:
        user = authenticate_credentials(store, body.email, body.password.get_secret_value())
        token = issue_authentication_token(store, settings, user.id)
    except AccountError as e:
        raise http_error(e) from e
    return AuthenticationTokenResponse(
        authentication_token=TokenResponse(token=token.plaintext, expiry=token.expiry)
    )


@router.post(
    "/jwt",
    response_model=AuthenticationTokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_jwt_token(
    body: LoginRequest,
    store: Annotated[AccountStore, Depends(get_store)],
    claims: Annotated[SignedClaims, Depends(get_signed_claims)],
) -> AuthenticationTokenResponse:
    """Exchange email and password for a signed claim (accepted when AUTH_MODE=jwt)."""
    try:
        user = authenticate_credentials(store, body.email, body.password.get_secret_value())
    except AccountError as e:
        raise http_error(e) from e
    encoded, expiry = issue_signed_claim(claims, user.id)
    return AuthenticationTokenResponse(
        authentication_token=TokenResponse(token=encoded, expiry=expiry)
    )


@router.delete("/authentication", status_code=status.HTTP_204_NO_CONTENT)
def delete_authentication_tokens(
    identity: Annotated[Identity, Depends(require_authenticated_user)],
    store: Annotated[AccountStore, Depends(get_store)],
) -> Response:
    """Revoke every authentication token of the caller."""
    try:
        revoke_authentication_tokens(store, identity.user.id)
    except AccountError as e:
        raise http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
