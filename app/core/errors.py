from fastapi import status, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.schemas.response import APIResponse

_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    500: "INTERNAL_SERVER_ERROR",
}


async def http_exception_handler(request: Request, exc: HTTPException):
    response_data = APIResponse.error_response(
        message=str(exc.detail),
        code=_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}"),
    ).model_dump(exclude_none=True)
    return JSONResponse(status_code=exc.status_code, content=response_data, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are rejected with field-level detail before any write."""
    response_data = APIResponse.error_response(
        message="Invalid payload",
        code="BAD_REQUEST",
        issues=jsonable_encoder(exc.errors()),
    ).model_dump(exclude_none=True)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=response_data)


class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestException(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedException(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InternalServerErrorException(HTTPException):
    def __init__(self, detail: str = "Internal Server Error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


# Pending registration token lifecycle. Each failure has its own message.

class PendingTokenInvalidException(BadRequestException):
    def __init__(self):
        super().__init__(detail="Onboarding link is invalid or already used")


class PendingTokenExpiredException(BadRequestException):
    def __init__(self):
        super().__init__(detail="Onboarding link has expired")


class PendingPayloadInvalidException(BadRequestException):
    def __init__(self):
        super().__init__(detail="Stored onboarding payload is invalid")


class PendingAccountMismatchException(ForbiddenException):
    def __init__(self):
        super().__init__(detail="Onboarding link belongs to a different account")


class AddressPreferenceRequiredException(BadRequestException):
    def __init__(self):
        super().__init__(detail="Address preference required to finalize onboarding")


class ConflictException(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PendingIssueConflictException(ConflictException):
    def __init__(self):
        super().__init__(detail="Another onboarding link is being created for this email")
