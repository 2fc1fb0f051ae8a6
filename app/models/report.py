"""
Pydantic models for roadkill reports.
These models handle validation for report submission, storage and responses.

Wire format is camelCase (animalType, contactEmail, ...); snake_case is
accepted on input as well.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class AnimalType(str, Enum):
    DEER = "Deer"
    RACCOON = "Raccoon"
    OPOSSUM = "Opossum"
    CAT = "Cat"
    DOG = "Dog"
    SQUIRREL = "Squirrel"
    RABBIT = "Rabbit"
    OTHER = "Other"


class ReportSize(str, Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


class ReportStatus(str, Enum):
    """
    Report lifecycle, in forward order:
    pending → submitted → in-progress → resolved
    """
    PENDING = "pending"            # Stored, city not yet notified
    SUBMITTED = "submitted"        # City contact notified
    IN_PROGRESS = "in-progress"    # City acknowledged, pickup scheduled
    RESOLVED = "resolved"          # Terminal


class Location(BaseModel):
    """A WGS84 point. Service-area bounds are checked by the intake service."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


class ReportCreate(BaseModel):
    """
    Model for creating a new report (incoming POST request).
    id, status and timestamps are assigned by the server; extra keys are ignored.
    """
    location: Location
    address: str = Field(..., max_length=500, description="Street address or nearest landmark")
    animal_type: AnimalType
    size: ReportSize
    description: Optional[str] = Field(None, max_length=1000)
    photo_reference: Optional[str] = Field(
        None,
        max_length=2048,
        validation_alias=AliasChoices("photoReference", "photo_reference", "photoUrl"),
        description="Opaque reference to an uploaded photo",
    )
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    send_updates: bool = False

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "location": {"latitude": 36.0, "longitude": -84.3},
                "address": "Oak Ridge Turnpike near Illinois Ave",
                "animalType": "Deer",
                "size": "Medium",
                "description": "In the right lane, eastbound.",
                "contactEmail": "resident@example.com",
                "sendUpdates": True,
            }
        }

    @field_validator("description", "photo_reference", "contact_email", "contact_phone", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        # Mobile forms send "" for untouched optional inputs
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("address")
    @classmethod
    def address_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Address is required")
        return value


class Report(BaseModel):
    """
    Canonical stored report.
    ReportStore owns these records; services only hold transient copies.
    """
    id: str
    location: Location
    address: str
    animal_type: AnimalType
    size: ReportSize
    description: Optional[str] = None
    photo_reference: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    send_updates: bool = False
    owner_id: Optional[str] = None
    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime
    updated_at: Optional[datetime] = None
    submitted_to_city_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    city_response: Optional[str] = None
    client_hash: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("created_at", "updated_at", "submitted_to_city_at", "resolved_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Seed files and old snapshots may carry naive timestamps
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_document(self, mode: str = "python") -> Dict[str, Any]:
        """Flat storage layout: coordinates as top-level fields so they can be indexed."""
        data = self.model_dump(mode=mode, exclude={"id", "location"})
        data["animal_type"] = self.animal_type.value
        data["size"] = self.size.value
        data["status"] = self.status.value
        data["latitude"] = self.location.latitude
        data["longitude"] = self.location.longitude
        return data

    @classmethod
    def from_document(cls, report_id: str, data: Dict[str, Any]) -> "Report":
        fields = {k: v for k, v in data.items() if k not in ("latitude", "longitude", "id")}
        fields["location"] = {"latitude": data["latitude"], "longitude": data["longitude"]}
        return cls(id=report_id, **fields)

    def to_public(self) -> Dict[str, Any]:
        """JSON-ready camelCase view; the client hash never leaves the server."""
        return self.model_dump(mode="json", by_alias=True, exclude={"client_hash"})


class StatusUpdateRequest(BaseModel):
    """
    Operator request to change report status.
    status is a raw token so unknown values surface as InvalidStatus, not a schema error.
    """
    status: str = Field(..., description="pending | submitted | in-progress | resolved")
    city_response: Optional[str] = Field(None, max_length=2000)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CityNotifyRequest(BaseModel):
    report_id: str = Field(..., min_length=1)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
