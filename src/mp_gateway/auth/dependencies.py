"""FastAPI dependency: get_current_identity.

Usage in any protected router:
    from src.mp_gateway.auth.dependencies import get_current_identity

    @router.get("/protected")
    async def protected(identity: Identity = Depends(get_current_identity)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mp_common.enums import ActorRole
from src.mp_common.errors import ForbiddenError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import decode_access_token

# Tokens are issued by the auth service; tokenUrl only feeds the Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: ActorRole


async def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Extract and validate the JWT Bearer token.

    Raises HTTP 401 if the token is missing, invalid, expired, or carries an
    unknown role.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    try:
        role = ActorRole(payload.get("role", ""))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    return Identity(user_id=user_id, role=role)


def require_role(*roles: ActorRole):  # type: ignore[no-untyped-def]
    """Dependency factory: reject callers whose role is not in `roles`."""

    async def _check(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in roles:
            raise ForbiddenError(f"role {identity.role.value} not allowed")
        return identity

    return _check
