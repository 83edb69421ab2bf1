"""Domain error taxonomy shared by the store, services and API layers.

Every error carries a client-safe ``message`` and the HTTP status it maps
to. Store-level errors (``RecordNotFoundError``, ``DuplicateEmailError``,
``StoreError``) are translated by services before they reach a client;
``EditConflictError`` is passed through unchanged so callers can retry.
"""


class AccountError(Exception):
    """Base for all errors raised by the authentication/authorization engine."""

    status_code = 500
    default_message = "the server encountered a problem and could not process your request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# 4xx: malformed or missing input, message echoed to the client.


class InvalidInputError(AccountError):
    status_code = 422
    default_message = "invalid input"


# 401: credentials. Messages are deliberately generic.


class CredentialError(AccountError):
    status_code = 401
    default_message = "invalid authentication credentials"


class InvalidCredentialsError(CredentialError):
    """Malformed Authorization header, malformed token, or wrong email/password."""


class InvalidAuthenticationTokenError(CredentialError):
    """Token looked valid but is unknown, expired, or issued for another scope."""

    default_message = "invalid authentication token"


class AuthenticationRequiredError(CredentialError):
    default_message = "you must be authenticated to access this resource"


# 403: authorization gates.


class AuthorizationError(AccountError):
    status_code = 403
    default_message = "you are not allowed to access this resource"


class InactiveAccountError(AuthorizationError):
    default_message = "your user account must be activated to access this resource"


class NotPermittedError(AuthorizationError):
    default_message = "your user account doesn't have permission to access this resource"


# 409: optimistic concurrency.


class EditConflictError(AccountError):
    status_code = 409
    default_message = "unable to update the record due to an edit conflict, please try again"


# 500: infrastructure.


class InternalError(AccountError):
    status_code = 500


class StoreError(InternalError):
    """Database unreachable, timed out, or returned an unexpected failure."""


class PasswordHashError(InternalError):
    """The hashing primitive failed; indicates a configuration or environment fault."""


# Store-internal conditions, never shown to clients as-is.


class RecordNotFoundError(AccountError):
    status_code = 404
    default_message = "the requested resource could not be found"


class DuplicateEmailError(AccountError):
    status_code = 422
    default_message = "a user with this email address already exists"
