"""
Finsolvz Backend — Authentication & Role Policy
================================================

What:  Resolves the caller of each request into a typed `Principal` and
       enforces the minimum role of every route from one policy table.
How:   `get_current_principal` is a FastAPI dependency: it parses the bearer
       header, verifies the JWT and returns Principal(user_id, role).
       `require_role(action)` looks the action up in ROLE_POLICY and returns a
       guard dependency that yields the principal or raises 403.

Routes declare their action once:

    @router.get("/users")
    async def list_users(principal: Principal = Depends(require_role("users:list"))):
        ...

Role ladder: SUPER_ADMIN > ADMIN > CLIENT. A minimum of CLIENT means "any
authenticated caller".
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from bson import ObjectId
from fastapi import Depends, Header

from finsolvz.exceptions import AuthenticationError, PermissionDeniedError
from finsolvz.models.user import Role
from finsolvz.repositories.base import is_object_id
from finsolvz.security import decode_access_token, extract_bearer_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of the current request."""

    user_id: str
    role: Role

    @property
    def object_id(self) -> ObjectId:
        return ObjectId(self.user_id)


# ── Policy Table ──────────────────────────────────────────────────────────
# action → minimum role
ROLE_POLICY: Dict[str, Role] = {
    # users
    "users:list": Role.ADMIN,
    "users:read": Role.CLIENT,
    "users:read_self": Role.CLIENT,
    "users:register": Role.SUPER_ADMIN,
    "users:update": Role.SUPER_ADMIN,
    "users:delete": Role.SUPER_ADMIN,
    "users:update_role": Role.SUPER_ADMIN,
    "users:change_password": Role.CLIENT,
    # companies
    "companies:read": Role.CLIENT,
    "companies:create": Role.CLIENT,
    "companies:update": Role.SUPER_ADMIN,
    "companies:delete": Role.SUPER_ADMIN,
    # report types
    "report_types:read": Role.CLIENT,
    "report_types:write": Role.CLIENT,
    # reports
    "reports:read": Role.CLIENT,
    "reports:write": Role.CLIENT,
}


def principal_from_token(token: str) -> Principal:
    claims = decode_access_token(token)
    user_id = claims["_id"]
    try:
        role = Role(claims["role"])
    except ValueError as e:
        raise AuthenticationError(message="Invalid token claims", code="JWT_INVALID", cause=e) from e
    if not is_object_id(user_id):
        raise AuthenticationError(message="Invalid token claims", code="JWT_INVALID")
    return Principal(user_id=user_id, role=role)


async def get_current_principal(authorization: Optional[str] = Header(default=None)) -> Principal:
    """FastAPI dependency: the verified caller, or 401."""
    return principal_from_token(extract_bearer_token(authorization))


def require_role(action: str) -> Callable[..., Principal]:
    """
    Build the guard dependency for `action`.

    Unknown actions fail at import time (KeyError), so a route can never be
    registered without a policy entry.
    """
    minimum = ROLE_POLICY[action]

    async def guard(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.role.satisfies(minimum):
            logger.warning(
                "Denied %s to user %s (role %s, requires %s)",
                action,
                principal.user_id,
                principal.role.value,
                minimum.value,
            )
            raise PermissionDeniedError(details={"action": action, "required_role": minimum.value})
        return principal

    return guard
