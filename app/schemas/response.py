from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: str
    # Field-level problems, only set when a request body failed validation.
    issues: Optional[List[Dict[str, Any]]] = None


class APIResponse(BaseModel, Generic[T]):
    """Envelope shared by the user and onboarding routes."""

    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None

    @classmethod
    def success_response(cls, data: T, message: str = "Success") -> "APIResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error_response(
        cls, message: str, code: str, issues: Optional[List[Dict[str, Any]]] = None
    ) -> "APIResponse[T]":
        return cls(success=False, message=message, error=ErrorDetail(code=code, issues=issues))
