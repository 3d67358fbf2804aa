import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional
import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.v1.extraction.service import extract_and_persist
from app.core.config import settings
from app.schemas.extraction import ExtractionRequest, ExtractionResponse

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """The extraction collaborator failed for one answer."""


class ExtractionCollaborator(ABC):

    @abstractmethod
    async def extract(self, request: ExtractionRequest) -> ExtractionResponse:
        """Extract and persist one answer. Raises ExtractionError on any failure."""


class HttpExtractionClient(ExtractionCollaborator):
    """Calls a remote extraction endpoint that speaks the same wire contract."""

    def __init__(
        self,
        url: str,
        timeout: float = settings.EXTRACTION_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def extract(self, request: ExtractionRequest) -> ExtractionResponse:
        headers = {"Content-Type": "application/json"}
        if request.access_token:
            headers["Authorization"] = f"Bearer {request.access_token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.url,
                    json=request.model_dump(by_alias=True, exclude_none=True),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise ExtractionError(f"Extraction request failed: {str(e)}") from e

        if not response.is_success:
            raise ExtractionError(f"Extraction API returned {response.status_code}")

        try:
            body = ExtractionResponse.model_validate(response.json())
        except ValueError as e:
            raise ExtractionError("Extraction API returned an invalid body") from e

        if not body.success:
            raise ExtractionError(body.error or "Extraction API reported failure")
        return body


class LocalExtractionCollaborator(ExtractionCollaborator):
    """Runs extraction in process, writing on the caller's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def extract(self, request: ExtractionRequest) -> ExtractionResponse:
        if not request.user_id:
            raise ExtractionError("userId is required for extraction")
        result = await extract_and_persist(self.session, request, uuid.UUID(request.user_id))
        if result.persisted is not None and not result.persisted.success:
            raise ExtractionError(f"Failed to persist extraction: {result.persisted.error}")
        return result


def get_extraction_collaborator(session: AsyncSession) -> ExtractionCollaborator:
    if settings.EXTRACTION_API_URL:
        logger.debug(f"Using remote extraction at {settings.EXTRACTION_API_URL}")
        return HttpExtractionClient(settings.EXTRACTION_API_URL)
    return LocalExtractionCollaborator(session)
