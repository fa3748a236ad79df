"""
Pydantic models for fleet records.

*Create models validate incoming records (API payloads and restored backup
records) and *Response models serialize ORM rows. Both use camelCase aliases
on the wire, which is also the record layout inside database.json.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _to_naive_utc(value: datetime) -> datetime:
    """Timestamp columns are naive UTC; "...Z" strings parse as aware."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


Timestamp = Annotated[datetime, AfterValidator(_to_naive_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============ Mowers ============


class MowerBase(CamelModel):
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: Optional[int] = None
    serial_number: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = None
    location: Optional[str] = None
    condition: str = "good"
    status: str = "active"
    last_service_date: Optional[date] = None
    next_service_date: Optional[date] = None
    thumbnail_attachment_id: Optional[str] = None
    notes: Optional[str] = None


class MowerCreate(MowerBase):
    id: Optional[int] = None


class MowerResponse(MowerBase):
    id: int


# ============ Components ============


class ComponentBase(CamelModel):
    mower_id: Optional[int] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    part_number: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    install_date: Optional[date] = None
    condition: str = "good"
    status: str = "active"
    cost: Optional[Decimal] = None
    thumbnail_attachment_id: Optional[str] = None
    notes: Optional[str] = None


class ComponentCreate(ComponentBase):
    id: Optional[int] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


class ComponentResponse(ComponentBase):
    id: int
    created_at: Timestamp
    updated_at: Timestamp


# ============ Parts ============


class PartBase(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    part_number: str = Field(..., min_length=1)
    manufacturer: Optional[str] = None
    category: str = Field(..., min_length=1)
    unit_cost: Optional[Decimal] = None
    stock_quantity: int = 0
    min_stock_level: Optional[int] = 0
    thumbnail_attachment_id: Optional[str] = None
    notes: Optional[str] = None


class PartCreate(PartBase):
    id: Optional[int] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


class PartResponse(PartBase):
    id: int
    created_at: Timestamp
    updated_at: Timestamp


# ============ Service Records ============


class ServiceRecordBase(CamelModel):
    mower_id: int
    service_date: Timestamp
    service_type: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    cost: Optional[Decimal] = None
    performed_by: Optional[str] = None
    next_service_due: Optional[Timestamp] = None
    mileage: Optional[int] = None


class ServiceRecordCreate(ServiceRecordBase):
    id: Optional[str] = None
    created_at: Optional[Timestamp] = None


class ServiceRecordResponse(ServiceRecordBase):
    id: str
    created_at: Timestamp


# ============ Tasks ============


class TaskBase(CamelModel):
    mower_id: int
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: str = "medium"
    status: str = "pending"
    due_date: Optional[Timestamp] = None
    estimated_cost: Optional[Decimal] = None
    part_number: Optional[str] = None
    category: str = "maintenance"


class TaskCreate(TaskBase):
    id: Optional[str] = None
    created_at: Optional[Timestamp] = None
    completed_at: Optional[Timestamp] = None


class TaskResponse(TaskBase):
    id: str
    created_at: Timestamp
    completed_at: Optional[Timestamp] = None


# ============ Attachments ============


class AttachmentBase(CamelModel):
    """Attachment metadata. The binary payload never travels in these models."""

    mower_id: Optional[int] = None
    component_id: Optional[int] = None
    part_id: Optional[int] = None
    file_name: str = Field(..., min_length=1)
    title: Optional[str] = None
    file_type: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0)
    page_count: Optional[int] = None
    description: Optional[str] = None


class AttachmentCreate(AttachmentBase):
    id: Optional[str] = None
    uploaded_at: Optional[Timestamp] = None


class AttachmentResponse(AttachmentBase):
    id: str
    uploaded_at: Timestamp


# ============ Asset Parts ============


class AssetPartBase(CamelModel):
    part_id: int
    mower_id: Optional[int] = None
    component_id: Optional[int] = None
    quantity: int = Field(1, ge=1)
    install_date: Optional[date] = None
    service_record_id: Optional[str] = None
    notes: Optional[str] = None


class AssetPartCreate(AssetPartBase):
    id: Optional[int] = None
    created_at: Optional[Timestamp] = None


class AssetPartResponse(AssetPartBase):
    id: int
    created_at: Timestamp
