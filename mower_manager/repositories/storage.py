"""
Storage gateway - Data access layer for all fleet records.

Every operation runs in its own short-lived session and commits on success,
so independent reads can be fanned out concurrently and a failed insert never
rolls back records created before it.
"""

import logging
from datetime import date
from typing import Any, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import defer

from mower_manager.db.database import AsyncSessionLocal, Base
from mower_manager.db.models import (
    AssetPartDB,
    AttachmentDB,
    ComponentDB,
    MowerDB,
    PartDB,
    ServiceRecordDB,
    TaskDB,
)
from mower_manager.models.entities import (
    AssetPartCreate,
    AttachmentCreate,
    CamelModel,
    ComponentCreate,
    MowerCreate,
    PartCreate,
    ServiceRecordCreate,
    TaskCreate,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# Tables with integer serial ids that may be written with explicit ids
SERIAL_TABLES = ("mowers", "components", "parts", "asset_parts")


def _add_one_year(day: date) -> date:
    """Same calendar day next year; Feb 29 rolls over to Mar 1."""
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        return date(day.year + 1, 3, 1)


class StorageError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, code: str = "STORAGE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class IntegrityViolationError(StorageError):
    """Raised when an insert violates a key or foreign key constraint."""

    def __init__(self, entity: str, detail: str):
        super().__init__(f"Cannot create {entity}: {detail}", "INTEGRITY_ERROR")


class Storage:
    """Typed fetch/create operations per entity type."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self.session_factory = session_factory

    # ============ Internal Helpers ============

    async def _get_all(self, model: Type[ModelT], *order_by, options=()) -> List[ModelT]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(model).options(*options).order_by(*order_by)
            )
            return list(result.scalars().all())

    async def _get(self, model: Type[ModelT], record_id: Any, options=()) -> Optional[ModelT]:
        async with self.session_factory() as session:
            return await session.get(model, record_id, options=list(options))

    async def _insert(self, model: Type[ModelT], entity: str, values: dict) -> ModelT:
        # Drop unset optional keys so column defaults apply
        values = {k: v for k, v in values.items() if v is not None}
        async with self.session_factory() as session:
            record = model(**values)
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise IntegrityViolationError(entity, str(e.orig)) from e
            await session.refresh(record)
            return record

    @staticmethod
    def _validate(schema: Type[CamelModel], data: Mapping[str, Any]) -> dict:
        """Validate a camelCase or snake_case record and return column values."""
        return schema.model_validate(dict(data)).model_dump()

    # ============ Mowers ============

    async def get_all_mowers(self) -> List[MowerDB]:
        return await self._get_all(MowerDB, MowerDB.id)

    async def get_mower(self, mower_id: int) -> Optional[MowerDB]:
        return await self._get(MowerDB, mower_id)

    async def create_mower(self, data: Mapping[str, Any]) -> MowerDB:
        values = self._validate(MowerCreate, data)
        return await self._insert(MowerDB, "mower", values)

    # ============ Components ============

    async def get_all_components(self) -> List[ComponentDB]:
        return await self._get_all(ComponentDB, ComponentDB.id)

    async def get_component(self, component_id: int) -> Optional[ComponentDB]:
        return await self._get(ComponentDB, component_id)

    async def create_component(self, data: Mapping[str, Any]) -> ComponentDB:
        values = self._validate(ComponentCreate, data)
        return await self._insert(ComponentDB, "component", values)

    # ============ Parts ============

    async def get_all_parts(self) -> List[PartDB]:
        return await self._get_all(PartDB, PartDB.id)

    async def get_part(self, part_id: int) -> Optional[PartDB]:
        return await self._get(PartDB, part_id)

    async def create_part(self, data: Mapping[str, Any]) -> PartDB:
        values = self._validate(PartCreate, data)
        return await self._insert(PartDB, "part", values)

    # ============ Service Records ============

    async def get_all_service_records(self) -> List[ServiceRecordDB]:
        return await self._get_all(ServiceRecordDB, ServiceRecordDB.service_date, ServiceRecordDB.id)

    async def create_service_record(
        self,
        data: Mapping[str, Any],
        update_mower: bool = False,
    ) -> ServiceRecordDB:
        """Create a service record.

        With update_mower=True the mower's last service date becomes the
        service date and its next service date is pushed out twelve months.
        """
        values = self._validate(ServiceRecordCreate, data)
        record = await self._insert(ServiceRecordDB, "service record", values)

        if update_mower:
            service_day: date = record.service_date.date()
            async with self.session_factory() as session:
                await session.execute(
                    update(MowerDB)
                    .where(MowerDB.id == record.mower_id)
                    .values(
                        last_service_date=service_day,
                        next_service_date=_add_one_year(service_day),
                    )
                )
                await session.commit()

        return record

    # ============ Tasks ============

    async def get_all_tasks(self) -> List[TaskDB]:
        return await self._get_all(TaskDB, TaskDB.created_at, TaskDB.id)

    async def create_task(self, data: Mapping[str, Any]) -> TaskDB:
        values = self._validate(TaskCreate, data)
        return await self._insert(TaskDB, "task", values)

    # ============ Attachments ============

    async def get_all_attachments(self, include_data: bool = True) -> List[AttachmentDB]:
        """Get all attachments. Pass include_data=False to skip loading payloads."""
        options = () if include_data else (defer(AttachmentDB.file_data, raiseload=True),)
        return await self._get_all(AttachmentDB, AttachmentDB.uploaded_at, AttachmentDB.id, options=options)

    async def get_attachment(self, attachment_id: str, include_data: bool = True) -> Optional[AttachmentDB]:
        options = () if include_data else (defer(AttachmentDB.file_data, raiseload=True),)
        return await self._get(AttachmentDB, attachment_id, options=options)

    async def create_attachment(self, data: Mapping[str, Any], file_data: bytes) -> AttachmentDB:
        if not file_data:
            raise StorageError("Attachment payload is empty", "EMPTY_PAYLOAD")
        values = self._validate(AttachmentCreate, data)
        values["file_data"] = file_data
        return await self._insert(AttachmentDB, "attachment", values)

    # ============ Asset Parts ============

    async def get_all_asset_parts(self) -> List[AssetPartDB]:
        return await self._get_all(AssetPartDB, AssetPartDB.id)

    async def create_asset_part(self, data: Mapping[str, Any]) -> AssetPartDB:
        values = self._validate(AssetPartCreate, data)
        if values.get("mower_id") is None and values.get("component_id") is None:
            raise StorageError("Asset part must reference a mower or a component", "MISSING_ASSET")
        return await self._insert(AssetPartDB, "asset part", values)

    # ============ Maintenance ============

    async def sync_id_sequences(self) -> None:
        """Move serial id sequences past the highest id in each table.

        Rows restored with explicit ids do not advance PostgreSQL sequences.
        Other backends derive the next id from the table itself.
        """
        async with self.session_factory() as session:
            if session.bind.dialect.name != "postgresql":
                return
            try:
                for table in SERIAL_TABLES:
                    await session.execute(text(
                        f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                        f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
                    ))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning(f"Failed to resync id sequences: {e}")


def get_storage() -> Storage:
    """
    Dependency for getting the storage gateway.

    Usage in FastAPI:
        @router.get("/mowers")
        async def list_mowers(storage: Storage = Depends(get_storage)):
            ...
    """
    return Storage(AsyncSessionLocal)
