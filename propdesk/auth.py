import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .models import User
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer()

PLATFORM_ADMIN_ROLES = ["master", "admin", "admin_jr"]
EXTERNAL_ADMIN_ROLES = ["external_agency_admin", *PLATFORM_ADMIN_ROLES]
EXTERNAL_SELLER_ROLES = ["external_agency_seller", *EXTERNAL_ADMIN_ROLES]
EXTERNAL_MAINTENANCE_ROLES = ["external_agency_maintenance", *EXTERNAL_ADMIN_ROLES]
# Anyone who works inside an agency
EXTERNAL_STAFF_ROLES = [
    "external_agency_seller",
    "external_agency_maintenance",
    *EXTERNAL_ADMIN_ROLES,
]
AGENCY_MEMBER_ROLES = ["external_agency_admin", "external_agency_seller", "external_agency_maintenance"]
ALL_ROLES = [*PLATFORM_ADMIN_ROLES, *AGENCY_MEMBER_ROLES, "owner", "tenant"]


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received: length {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=401,
            detail="Token is invalid or has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims") from None

    user = (
        db.query(User)
        .filter(User.id == user_id)
        .options(joinedload(User.agency))
        .first()
    )
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    logger.debug(f"✅ User authenticated: {user.email} ({user.role})")
    return user


def require_roles(*roles: str):
    """
    Dependency factory that admits only the given roles

    Example:
        @router.patch("/external/agency")
        async def update_agency(user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES))):
            ...
    """
    allowed = set(roles)

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.warning(f"⚠️ User {user.email} with role {user.role} denied (needs {sorted(allowed)})")
            raise HTTPException(status_code=403, detail="You do not have permission for this action")
        return user

    return role_checker


def get_user_agency_id(user: User) -> int:
    """Agency the user operates in; platform admins must belong to one to use agency endpoints"""
    if not user.external_agency_id:
        raise HTTPException(status_code=404, detail="No agency associated with this user")
    return user.external_agency_id
