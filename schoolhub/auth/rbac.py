from fastapi import Depends, HTTPException, status

from schoolhub.auth.dependencies import get_current_user
from schoolhub.auth.schemas import CurrentUser


def require_roles(*roles: str):
    """
    Dependency factory to enforce the caller's role tag.

    Example:
        Depends(require_roles("teacher"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {current_user.role} is not authorized to access this route",
            )
        return current_user

    return _checker
