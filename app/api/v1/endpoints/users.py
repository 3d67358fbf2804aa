from typing import Any
from fastapi import APIRouter, status
from app.api import deps
from app.schemas.user import User as UserSchema
from app.schemas.response import APIResponse
from app.core.errors import InternalServerErrorException

router = APIRouter()

@router.get("/me", response_model=APIResponse[UserSchema], status_code=status.HTTP_200_OK)
async def read_user_me(
    current_user: deps.CurrentUser,
) -> Any:
    try:
        return APIResponse.success_response(data=UserSchema.model_validate(current_user))
    except Exception as e:
        raise InternalServerErrorException(detail="Failed to retrieve user information")
