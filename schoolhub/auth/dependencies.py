from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth.models import User
from schoolhub.auth.schemas import CurrentUser
from schoolhub.auth.security import InvalidTokenError, decode_access_token
from schoolhub.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the principal for the bearer token; 401 unless it maps to an active user."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_access_token(token)
    except InvalidTokenError:
        raise unauthorized

    # Role comes from the row, not the token, so demotions apply immediately
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise unauthorized
    return CurrentUser(id=user.id, role=user.role)
