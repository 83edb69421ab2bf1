"""Authorization gates evaluated in order, stopping at the first failure.

A gate is a callable ``gate(identity, store) -> None`` that raises when the
request must not proceed. Each gate also runs the checks it depends on,
so the activation gate rejects an anonymous caller and the permission gate
an inactive one, in whatever list they appear. The prebuilt lists spell
the chain out so a failure is reported by the earliest check.
"""

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from bankapi.core.errors import (
    AuthenticationRequiredError,
    InactiveAccountError,
    NotPermittedError,
)
from bankapi.services.authentication import Authenticated, Identity

if TYPE_CHECKING:
    from bankapi.services.store import AccountStore

logger = logging.getLogger(__name__)

Gate = Callable[[Identity, "AccountStore"], None]


def require_authenticated(identity: Identity, store: "AccountStore") -> None:
    if not isinstance(identity, Authenticated):
        raise AuthenticationRequiredError()


def require_activated(identity: Identity, store: "AccountStore") -> None:
    require_authenticated(identity, store)
    if not identity.user.activated:
        logger.info("Gate denied: inactive account", extra={"user_id": identity.user.id})
        raise InactiveAccountError()


def require_permission(code: str) -> Gate:
    """Gate that passes only if the user's permission set contains code."""

    def gate(identity: Identity, store: "AccountStore") -> None:
        require_activated(identity, store)
        # Store failures propagate as InternalError (500), never as a denial.
        permissions = store.get_permissions_for_user(identity.user.id)
        if code not in permissions:
            logger.info(
                "Gate denied: missing permission",
                extra={"user_id": identity.user.id, "permission": code},
            )
            raise NotPermittedError()

    gate.permission_code = code  # type: ignore[attr-defined]
    gate.__name__ = f"require_permission[{code}]"
    return gate


AUTHENTICATED: tuple[Gate, ...] = (require_authenticated,)
ACTIVATED: tuple[Gate, ...] = (require_authenticated, require_activated)


def permission_gates(code: str) -> tuple[Gate, ...]:
    return (*ACTIVATED, require_permission(code))


def check_gates(gates: Sequence[Gate], identity: Identity, store: "AccountStore") -> None:
    """Run gates in order; the first failure propagates and later gates never run."""
    for gate in gates:
        gate(identity, store)
