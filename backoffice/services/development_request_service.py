"""Development requests (bug reports and feature requests from admins)."""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.admin import AdminDB
from backoffice.models.development_request import (
    DevelopmentRequest,
    DevelopmentRequestCreate,
    DevelopmentRequestDB,
    DevelopmentRequestStatusUpdate,
    RequestStatus,
    StorageStatus,
)
from backoffice.services.errors import NotFoundError

logger = structlog.get_logger(__name__)

# API vocabulary -> stored vocabulary
_TO_STORAGE = {
    RequestStatus.PENDING: StorageStatus.OPEN,
    RequestStatus.IN_PROGRESS: StorageStatus.IN_PROGRESS,
    RequestStatus.DONE: StorageStatus.CLOSED,
    RequestStatus.CANCELLED: StorageStatus.CANCELLED,
}
_FROM_STORAGE = {storage: api for api, storage in _TO_STORAGE.items()}


def to_storage_status(status: RequestStatus | str) -> StorageStatus:
    """Map an API status (pending/in_progress/done/cancelled) to its stored value."""
    return _TO_STORAGE[RequestStatus(status)]


def from_storage_status(status: StorageStatus | str) -> RequestStatus:
    """Map a stored status (open/in_progress/closed/cancelled) to the API value."""
    return _FROM_STORAGE[StorageStatus(status)]


class DevelopmentRequestService:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def list_requests(self, status: RequestStatus | None = None) -> list[DevelopmentRequest]:
        """Requests newest first, optionally filtered by public status."""
        query = select(DevelopmentRequestDB)
        if status is not None:
            query = query.where(DevelopmentRequestDB.status == to_storage_status(status).value)
        result = await self.db_session.execute(query.order_by(DevelopmentRequestDB.created_at.desc()))
        return [self.to_api(r) for r in result.scalars().all()]

    async def get_request(self, request_id: uuid.UUID) -> DevelopmentRequestDB:
        """Load a request by id.

        Raises:
            NotFoundError: If the request does not exist
        """
        request = await self.db_session.get(DevelopmentRequestDB, request_id)
        if request is None:
            raise NotFoundError("Demande de développement non trouvée")
        return request

    async def create_request(self, data: DevelopmentRequestCreate, requester: AdminDB) -> DevelopmentRequestDB:
        """File a bug report or feature request.

        Args:
            data: Request payload
            requester: Administrator filing the request

        Returns:
            The flushed request, stored with the open status
        """
        request = DevelopmentRequestDB(
            title=data.title,
            description=data.description,
            type=data.type.value,
            priority=data.priority.value,
            requested_by=requester.email,
            requested_by_name=f"{requester.first_name} {requester.last_name}".strip(),
            status=StorageStatus.OPEN.value,
        )
        self.db_session.add(request)
        await self.db_session.flush()
        logger.info("development_request_created", request_id=str(request.id), type=request.type)
        return request

    async def update_status(
        self, request_id: uuid.UUID, data: DevelopmentRequestStatusUpdate, actor: str
    ) -> DevelopmentRequestDB:
        """Change the status of a request and record who changed it.

        Args:
            request_id: Request UUID
            data: New public status and optional admin comment
            actor: E-mail of the super administrator

        Returns:
            The updated request

        Raises:
            NotFoundError: If the request does not exist
        """
        request = await self.get_request(request_id)
        request.status = to_storage_status(data.status).value
        request.last_status_change_by = actor
        if data.admin_comment is not None:
            request.admin_comment = data.admin_comment
        await self.db_session.flush()

        logger.info(
            "development_request_status_changed",
            request_id=str(request.id),
            status=request.status,
            actor=actor,
        )
        return request

    async def delete_request(self, request_id: uuid.UUID) -> None:
        request = await self.get_request(request_id)
        await self.db_session.delete(request)
        await self.db_session.flush()

    @staticmethod
    def to_api(request: DevelopmentRequestDB) -> DevelopmentRequest:
        """Build the response model, translating the stored status."""
        values = {column.name: getattr(request, column.name) for column in DevelopmentRequestDB.__table__.columns}
        values["status"] = from_storage_status(request.status)
        return DevelopmentRequest.model_validate(values)
