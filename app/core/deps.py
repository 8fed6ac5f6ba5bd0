from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.config import settings
from app.core.security import ALGORITHM
from app.db.models import UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)  # 401 is raised below

DASHBOARD_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)


class CurrentUser(BaseModel):
    user_id: int
    role: UserRole
    tenant_id: Optional[int] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> CurrentUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise credentials_exception
    user_id = payload.get("user_id") or payload.get("sub")
    role = payload.get("role")
    if user_id is None or role is None:
        raise credentials_exception
    try:
        return CurrentUser(
            user_id=int(user_id),
            role=UserRole(role),
            tenant_id=payload.get("tenant_id"),
        )
    except ValueError:
        raise credentials_exception


def require_roles(*allowed_roles: UserRole):
    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of {[r.value for r in allowed_roles]} roles",
            )
        return user
    return checker


require_dashboard_user = require_roles(*DASHBOARD_ROLES)
