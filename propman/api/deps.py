from dataclasses import dataclass
from typing import Annotated, Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from propman.config import settings
from propman.core.enum_utils import normalize_role
from propman.core.security import verify_access_token
from propman.jobs.recurring_bills import get_default_repository
from propman.services.bill_repository import BillRepository
from propman.services.recurring_billing_service import RecurringBillingService


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity taken from a verified access token."""
    user_id: str
    role: Optional[str]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AuthenticatedUser:
    """
    Dependency to get the current authenticated user.
    Validates the JWT token and returns the identity it carries.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    claims = verify_access_token(credentials.credentials)
    if claims is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise credentials_exception

    return AuthenticatedUser(
        user_id=str(claims["sub"]),
        role=normalize_role(claims.get("role")),
    )


def require_roles(*allowed_roles: str):
    """
    Dependency factory to require one of the given roles.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles("owner", "manager"))])
        async def manager_endpoint():
            ...
    """
    allowed = {normalize_role(role) for role in allowed_roles}

    async def role_dependency(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied. Required role: {', '.join(sorted(allowed))}"
            )
        return user

    return role_dependency


def require_billing_role():
    """Roles configured in BILLING_ROLES (owner and manager by default)."""
    return require_roles(*settings.BILLING_ROLES)


def get_bill_repository() -> BillRepository:
    return get_default_repository()


def get_billing_service(
    repository: Annotated[BillRepository, Depends(get_bill_repository)],
) -> RecurringBillingService:
    return RecurringBillingService(repository)


# Type aliases for cleaner endpoint signatures
BillingManager = Annotated[AuthenticatedUser, Depends(require_billing_role())]
BillingService = Annotated[RecurringBillingService, Depends(get_billing_service)]
