import uuid
from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import NotFoundException, UnauthorizedException
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User
from app.schemas.token import TokenPayload

# Access tokens are issued by the main auth service, this API only verifies them.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_access_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    if not credentials:
        raise UnauthorizedException(detail="Not authenticated")
    return credentials.credentials


SessionDep = Annotated[AsyncSession, Depends(get_db)]
TokenDep = Annotated[str, Depends(get_access_token)]

async def get_current_user(session: SessionDep, token: TokenDep) -> User:
    try:
        payload = decode_access_token(token)
        token_data = TokenPayload(**payload)
        user_id = uuid.UUID(token_data.sub or "")
    except (JWTError, ValidationError, ValueError):
        raise UnauthorizedException(detail="Unauthorized")
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundException(detail="User not found")
    return user

CurrentUser = Annotated[User, Depends(get_current_user)]
