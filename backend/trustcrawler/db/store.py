"""
Record store - persistence seam for business records.

RecordStore is the interface the pipeline talks to. SqlAlchemyRecordStore
implements it on SQLAlchemy async sessions. Writes are upserts on
(org_number, country_code) using the dialect's INSERT ... ON CONFLICT DO UPDATE,
so concurrent workers converge on one row per business.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import structlog
from pydantic import BaseModel
from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trustcrawler.core.exceptions import StoreError
from trustcrawler.core.models import (
    TERMINAL_WEBSITE_STATUSES,
    BusinessRecord,
    LogStatus,
    VerificationType,
    WebsiteStatus,
)
from trustcrawler.db.database import get_db_session
from trustcrawler.db.models import BusinessModel, VerificationLogModel, utcnow

logger = structlog.get_logger()

JSON_FIELDS = frozenset({
    "sitelinks",
    "social_media",
    "contact_info",
    "translations",
    "services",
    "products",
    "search_keywords",
    "technologies",
    "trust_score_breakdown",
    "registry_data",
    "quality_analysis",
    "news_signals",
})

# Never overwritten by an upsert
IMMUTABLE_FIELDS = frozenset({"id", "org_number", "country_code", "created_at", "updated_at"})

DATETIME_FIELDS = ("last_scraped_at", "next_scrape_at", "last_verified_at", "created_at", "updated_at")


# =============================================================================
# Query Types
# =============================================================================


@dataclass
class RecordFilter:
    """Criteria for RecordStore.find(). Unset criteria do not filter."""
    domain_required: bool = False
    exclude_statuses: frozenset[WebsiteStatus] = frozenset()
    website_status: WebsiteStatus | None = None
    country_code: str | None = None
    max_scrape_count: int | None = None  # strictly less than
    scraped_before: datetime | None = None  # never scraped, or scraped before this
    limit: int = 100
    newest_first: bool = True

    @classmethod
    def eligible_for_scrape(
        cls,
        now: datetime,
        max_attempts: int = 4,
        freshness: timedelta = timedelta(hours=24),
        limit: int = 100,
    ) -> "RecordFilter":
        """Records the scheduler may crawl now."""
        return cls(
            domain_required=True,
            exclude_statuses=TERMINAL_WEBSITE_STATUSES,
            max_scrape_count=max_attempts,
            scraped_before=now - freshness,
            limit=limit,
        )


@dataclass
class VerificationLogEntry:
    verification_type: VerificationType
    status: LogStatus
    details: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Conversion
# =============================================================================


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _column_value(name: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if name not in JSON_FIELDS:
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value]
    if isinstance(value, dict):
        return {
            k: v.model_dump(mode="json") if isinstance(v, BaseModel) else v
            for k, v in value.items()
        }
    return value


def record_to_row(record: BusinessRecord) -> dict[str, Any]:
    """Column values for an upsert, excluding identity and timestamps."""
    row = {}
    for name in BusinessRecord.model_fields:
        if name in IMMUTABLE_FIELDS:
            continue
        row[name] = _column_value(name, getattr(record, name))
    return row


def model_to_record(model: BusinessModel) -> BusinessRecord:
    record = BusinessRecord.model_validate(model)
    return record.model_copy(
        update={name: _as_utc(getattr(record, name)) for name in DATETIME_FIELDS}
    )


# =============================================================================
# Interface
# =============================================================================


class RecordStore(ABC):
    """Persistence operations the pipeline depends on."""

    @abstractmethod
    async def find(self, record_filter: RecordFilter) -> list[BusinessRecord]:
        pass

    @abstractmethod
    async def get(self, org_number: str, country_code: str) -> BusinessRecord | None:
        pass

    @abstractmethod
    async def get_by_id(self, business_id: UUID) -> BusinessRecord | None:
        pass

    @abstractmethod
    async def upsert(self, record: BusinessRecord) -> UUID:
        """Insert or update by (org_number, country_code); returns the row id."""
        pass

    @abstractmethod
    async def update_fields(self, business_id: UUID, fields: dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def log_verification(
        self,
        business_id: UUID,
        verification_type: VerificationType,
        status: LogStatus,
        details: dict[str, Any] | None = None,
    ) -> None:
        pass

    @abstractmethod
    async def save_verification(
        self,
        record: BusinessRecord,
        logs: list[VerificationLogEntry],
    ) -> UUID:
        """Upsert the record and append its audit entries in one transaction."""
        pass


# =============================================================================
# SQLAlchemy Implementation
# =============================================================================


class SqlAlchemyRecordStore(RecordStore):
    """RecordStore on SQLAlchemy async sessions (PostgreSQL or SQLite)."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | None = None):
        self._session_maker = session_maker
        self.log = logger.bind(component="RecordStore")

    async def find(self, record_filter: RecordFilter) -> list[BusinessRecord]:
        f = record_filter
        stmt = select(BusinessModel)

        if f.domain_required:
            stmt = stmt.where(BusinessModel.domain.is_not(None), BusinessModel.domain != "")
        if f.exclude_statuses:
            stmt = stmt.where(BusinessModel.website_status.not_in([s.value for s in f.exclude_statuses]))
        if f.website_status is not None:
            stmt = stmt.where(BusinessModel.website_status == f.website_status.value)
        if f.country_code:
            stmt = stmt.where(BusinessModel.country_code == f.country_code.upper())
        if f.max_scrape_count is not None:
            stmt = stmt.where(BusinessModel.scrape_count < f.max_scrape_count)
        if f.scraped_before is not None:
            stmt = stmt.where(
                or_(
                    BusinessModel.last_scraped_at.is_(None),
                    BusinessModel.last_scraped_at < f.scraped_before,
                )
            )

        if f.newest_first:
            stmt = stmt.order_by(BusinessModel.created_at.desc(), BusinessModel.id)
        else:
            stmt = stmt.order_by(BusinessModel.created_at.asc(), BusinessModel.id)
        stmt = stmt.limit(f.limit)

        async with get_db_session(self._session_maker) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [model_to_record(row) for row in rows]

    async def get(self, org_number: str, country_code: str) -> BusinessRecord | None:
        stmt = select(BusinessModel).where(
            BusinessModel.org_number == org_number,
            BusinessModel.country_code == country_code.upper(),
        )
        async with get_db_session(self._session_maker) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return model_to_record(row) if row else None

    async def get_by_id(self, business_id: UUID) -> BusinessRecord | None:
        async with get_db_session(self._session_maker) as session:
            row = await session.get(BusinessModel, business_id)
            return model_to_record(row) if row else None

    async def upsert(self, record: BusinessRecord) -> UUID:
        async with get_db_session(self._session_maker) as session:
            async with session.begin():
                return await self._upsert(session, record)

    async def update_fields(self, business_id: UUID, fields: dict[str, Any]) -> None:
        rejected = (set(fields) - set(BusinessRecord.model_fields)) | (set(fields) & IMMUTABLE_FIELDS)
        if rejected:
            raise StoreError("Fields cannot be updated", details={"fields": sorted(rejected)})

        values = {name: _column_value(name, value) for name, value in fields.items()}
        values["updated_at"] = utcnow()
        stmt = update(BusinessModel).where(BusinessModel.id == business_id).values(**values)

        async with get_db_session(self._session_maker) as session:
            async with session.begin():
                await session.execute(stmt)

    async def log_verification(
        self,
        business_id: UUID,
        verification_type: VerificationType,
        status: LogStatus,
        details: dict[str, Any] | None = None,
    ) -> None:
        entry = VerificationLogEntry(verification_type, status, details or {})
        async with get_db_session(self._session_maker) as session:
            async with session.begin():
                session.add(self._log_model(business_id, entry))

    async def save_verification(
        self,
        record: BusinessRecord,
        logs: list[VerificationLogEntry],
    ) -> UUID:
        async with get_db_session(self._session_maker) as session:
            async with session.begin():
                business_id = await self._upsert(session, record)
                for entry in logs:
                    session.add(self._log_model(business_id, entry))
        return business_id

    async def count(self) -> int:
        async with get_db_session(self._session_maker) as session:
            return (await session.execute(select(func.count()).select_from(BusinessModel))).scalar_one()

    async def list_verification_logs(self, business_id: UUID) -> list[VerificationLogEntry]:
        stmt = (
            select(VerificationLogModel)
            .where(VerificationLogModel.business_id == business_id)
            .order_by(VerificationLogModel.id)
        )
        async with get_db_session(self._session_maker) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [
                VerificationLogEntry(
                    verification_type=VerificationType(row.verification_type),
                    status=LogStatus(row.status),
                    details=row.details or {},
                )
                for row in rows
            ]

    # =========================================================================
    # Internals
    # =========================================================================

    async def _upsert(self, session: AsyncSession, record: BusinessRecord) -> UUID:
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            insert = pg_insert
        elif dialect == "sqlite":
            insert = sqlite_insert
        else:
            raise StoreError("Unsupported database dialect for upsert", details={"dialect": dialect})

        row = record_to_row(record)
        stmt = insert(BusinessModel).values(
            id=record.id or uuid4(),
            org_number=record.org_number,
            country_code=record.country_code.upper(),
            **row,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["org_number", "country_code"],
            set_={**{name: stmt.excluded[name] for name in row}, "updated_at": utcnow()},
        ).returning(BusinessModel.id)

        business_id = (await session.execute(stmt)).scalar_one()
        self.log.debug(
            "Record upserted",
            business_id=str(business_id),
            org_number=record.org_number,
            country=record.country_code,
        )
        return business_id

    @staticmethod
    def _log_model(business_id: UUID, entry: VerificationLogEntry) -> VerificationLogModel:
        return VerificationLogModel(
            business_id=business_id,
            verification_type=entry.verification_type.value,
            status=entry.status.value,
            details=entry.details,
        )
