"""
SQLAlchemy ORM models for Mower Manager.

Tables:
- mowers: Fleet assets
- components: Engines and other major components, optionally installed on a mower
- parts: Parts inventory
- service_records: Service history per mower
- tasks: Maintenance to-do items per mower
- attachments: Files (manuals, photos, receipts) owned by a mower, component or part
- asset_parts: Part allocations to a mower or component
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from mower_manager.db.database import Base


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


class MowerDB(Base):
    """A fleet asset."""
    __tablename__ = "mowers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    make: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column("serialnumber", Text, nullable=True)
    purchase_date: Mapped[Optional[date]] = mapped_column("purchasedate", Date, nullable=True)
    purchase_price: Mapped[Optional[Decimal]] = mapped_column(
        "purchaseprice", Numeric(10, 2), nullable=True
    )
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    condition: Mapped[str] = mapped_column(
        Text, default="good", nullable=False
    )  # excellent/good/fair/poor
    status: Mapped[str] = mapped_column(
        Text, default="active", nullable=False
    )  # active/maintenance/retired
    last_service_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    next_service_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    thumbnail_attachment_id: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True
    )  # Soft reference, attachments are restored after mowers
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Mower(id={self.id}, make={self.make}, model={self.model})>"


class ComponentDB(Base):
    """
    An engine or other major component.

    May be installed on a mower or kept in stock (mower_id is NULL).
    """
    __tablename__ = "components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mower_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("mowers.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    part_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    model: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    install_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    condition: Mapped[str] = mapped_column(Text, default="good", nullable=False)
    status: Mapped[str] = mapped_column(Text, default="active", nullable=False)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    thumbnail_attachment_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Component(id={self.id}, name={self.name}, mower_id={self.mower_id})>"


class PartDB(Base):
    """Parts inventory item."""
    __tablename__ = "parts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    part_number: Mapped[str] = mapped_column(Text, nullable=False)
    manufacturer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(Text, nullable=False)  # engine/belt/filter/blade/...
    unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_stock_level: Mapped[Optional[int]] = mapped_column(Integer, default=0, nullable=True)
    thumbnail_attachment_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Part(id={self.id}, part_number={self.part_number})>"


class ServiceRecordDB(Base):
    """A service performed on a mower."""
    __tablename__ = "service_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    mower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mowers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    service_type: Mapped[str] = mapped_column(
        Text, nullable=False
    )  # maintenance/repair/inspection/warranty
    description: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    performed_by: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    next_service_due: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    mileage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # Hours of operation
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )


class TaskDB(Base):
    """A maintenance task for a mower."""
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    mower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mowers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(
        Text, default="medium", nullable=False
    )  # low/medium/high/urgent
    status: Mapped[str] = mapped_column(
        Text, default="pending", nullable=False
    )  # pending/in_progress/completed/cancelled
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    part_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(Text, default="maintenance", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class AttachmentDB(Base):
    """
    A file owned by a mower, a component or a part.

    The binary payload lives in file_data. Listing queries defer it.
    """
    __tablename__ = "attachments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    mower_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("mowers.id", ondelete="CASCADE"), nullable=True, index=True
    )
    component_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=True, index=True
    )
    part_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("parts.id", ondelete="CASCADE"), nullable=True, index=True
    )
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_type: Mapped[str] = mapped_column(Text, nullable=False)  # pdf/image/document/zip
    file_data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    page_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, file_name={self.file_name})>"


class AssetPartDB(Base):
    """Allocation of a part to a mower or a component."""
    __tablename__ = "asset_parts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    part_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("parts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    mower_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("mowers.id", ondelete="CASCADE"), nullable=True
    )
    component_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    install_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    service_record_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("service_records.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
