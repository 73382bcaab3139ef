"""Tracked Field Registry Data Models

This module defines the Pydantic data models describing which parts of an event
request snapshot are monitored for changes: scalar/structured fields, persisted
file reference fields, pending (not yet uploaded) file slots, and the keyed
invoice collection.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from ..exceptions import RegistryConfigurationError


class ValueKind(str, Enum):
    """Display kind of a monitored field value."""
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"
    FILE = "file"


class FieldMapping(BaseModel):
    """Registry entry for one monitored snapshot field."""

    field: str = Field(..., min_length=1, description="Snapshot key of the monitored field")
    label: str = Field(..., min_length=1, description="Human-readable field label")
    value_kind: ValueKind = Field(..., description="How the field value is displayed")

    model_config = {"frozen": True}


class FileFieldMapping(BaseModel):
    """Registry entry for a field holding persisted file reference strings."""

    field: str = Field(..., min_length=1, description="Snapshot key holding a list of file URLs")
    label: str = Field(..., min_length=1, description="Human-readable field label")

    model_config = {"frozen": True}


class PendingUploadSlot(BaseModel):
    """Registry entry for a live-only slot holding local files not yet uploaded."""

    field: str = Field(..., min_length=1, description="Snapshot key holding local file handles")
    label: str = Field(..., min_length=1, description="Human-readable slot label")
    multiple: bool = Field(False, description="Whether the slot holds a list of handles")

    model_config = {"frozen": True}


class CollectionSpec(BaseModel):
    """Registry entry for a keyed sub-collection reconciled by item id."""

    field: str = Field("invoices", min_length=1, description="Snapshot key holding the item list")
    id_field: str = Field("id", min_length=1, description="Item key carrying the stable identity")
    compared_fields: Tuple[str, ...] = Field(
        ("vendor", "total", "tax", "tip", "items", "invoiceFile"),
        description="Item fields compared between matched items"
    )

    model_config = {"frozen": True}

    @field_validator('compared_fields')
    @classmethod
    def validate_compared_fields(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Drop blanks and duplicates while preserving order."""
        seen = set()
        result = []
        for name in v:
            if name and name.strip() and name not in seen:
                seen.add(name)
                result.append(name.strip())
        return tuple(result)


DEFAULT_FIELD_MAPPINGS: Tuple[FieldMapping, ...] = tuple(
    FieldMapping(field=field, label=label, value_kind=kind)
    for field, label, kind in [
        ("name", "Event Name", ValueKind.TEXT),
        ("location", "Location", ValueKind.TEXT),
        ("startDate", "Start Date", ValueKind.DATE),
        ("startTime", "Start Time", ValueKind.TEXT),
        ("endTime", "End Time", ValueKind.TEXT),
        ("eventDescription", "Description", ValueKind.TEXT),
        ("department", "Department", ValueKind.TEXT),
        ("eventCode", "Event Code", ValueKind.TEXT),
        ("pointsToReward", "Points to Reward", ValueKind.NUMBER),
        ("expectedAttendance", "Expected Attendance", ValueKind.TEXT),
        ("flyersNeeded", "Flyers Needed", ValueKind.BOOLEAN),
        ("photographyNeeded", "Photography Needed", ValueKind.BOOLEAN),
        ("hasRoomBooking", "Room Booking", ValueKind.BOOLEAN),
        ("servingFoodDrinks", "Food & Drinks", ValueKind.BOOLEAN),
        ("needsAsFunding", "AS Funding", ValueKind.BOOLEAN),
        ("needsGraphics", "Graphics Needed", ValueKind.BOOLEAN),
        ("flyerType", "Flyer Types", ValueKind.ARRAY),
        ("requiredLogos", "Required Logos", ValueKind.ARRAY),
        ("advertisingFormat", "Advertising Format", ValueKind.TEXT),
        ("additionalSpecifications", "Additional Specifications", ValueKind.TEXT),
        ("flyerAdvertisingStartDate", "Flyer Start Date", ValueKind.DATE),
        ("flyerAdditionalRequests", "Flyer Additional Requests", ValueKind.TEXT),
    ]
)

DEFAULT_FILE_FIELDS: Tuple[FileFieldMapping, ...] = (
    FileFieldMapping(field="existingRoomBookingFiles", label="Room Booking Files"),
    FileFieldMapping(field="existingOtherLogos", label="Other Logo Files"),
    FileFieldMapping(field="existingInvoiceFiles", label="Invoice Files"),
)

DEFAULT_PENDING_UPLOAD_SLOTS: Tuple[PendingUploadSlot, ...] = (
    PendingUploadSlot(field="roomBookingFile", label="Room Booking File", multiple=False),
    PendingUploadSlot(field="otherLogoFiles", label="Other Logo Files", multiple=True),
)


class ChangeTrackingRegistry(BaseModel):
    """Static description of everything monitored on one record type.

    The defaults reproduce the event request form. Fields not listed here are
    never reported, whatever happens to them in the live snapshot.
    """

    field_mappings: Tuple[FieldMapping, ...] = Field(
        DEFAULT_FIELD_MAPPINGS, description="Monitored scalar/structured fields, in report order"
    )
    file_fields: Tuple[FileFieldMapping, ...] = Field(
        DEFAULT_FILE_FIELDS, description="Fields holding persisted file references"
    )
    pending_upload_slots: Tuple[PendingUploadSlot, ...] = Field(
        DEFAULT_PENDING_UPLOAD_SLOTS, description="Live-only slots holding local files"
    )
    invoice_collection: CollectionSpec = Field(
        default_factory=CollectionSpec, description="Keyed invoice sub-collection"
    )

    model_config = {"frozen": True}

    @model_validator(mode='after')
    def validate_unique_fields(self) -> 'ChangeTrackingRegistry':
        """A snapshot key may be monitored only once per registry section."""
        for section, entries in (("field_mappings", self.field_mappings),
                                 ("file_fields", self.file_fields),
                                 ("pending_upload_slots", self.pending_upload_slots)):
            names = [entry.field for entry in entries]
            duplicates = sorted({name for name in names if names.count(name) > 1})
            if duplicates:
                raise ValueError(f"Duplicate fields in {section}: {duplicates}")
        return self

    @property
    def file_field_names(self) -> List[str]:
        """Snapshot keys of the persisted file fields."""
        return [entry.field for entry in self.file_fields]

    def get_mapping(self, field: str) -> Optional[FieldMapping]:
        """Get the registry entry for a monitored field, if any."""
        for mapping in self.field_mappings:
            if mapping.field == field:
                return mapping
        return None

    @classmethod
    def from_record_config(cls, record_config: Dict[str, Any]) -> 'ChangeTrackingRegistry':
        """Build a registry from one record section of ``field_mapping.json``.

        Sections missing from the configuration fall back to the defaults.

        Args:
            record_config: Record configuration as returned by ConfigLoader.get_record_config

        Returns:
            ChangeTrackingRegistry for the record type

        Raises:
            RegistryConfigurationError: If the configuration cannot form a valid registry
        """
        try:
            kwargs: Dict[str, Any] = {
                "field_mappings": tuple(
                    FieldMapping(field=entry["field_name"], label=entry["label"],
                                 value_kind=entry["value_kind"])
                    for entry in record_config["fields"].values()
                )
            }

            if "file_fields" in record_config:
                kwargs["file_fields"] = tuple(
                    FileFieldMapping(field=entry["field_name"], label=entry.get("label", entry["field_name"]))
                    for entry in record_config["file_fields"].values()
                )

            if "pending_uploads" in record_config:
                kwargs["pending_upload_slots"] = tuple(
                    PendingUploadSlot(field=entry["field_name"],
                                      label=entry.get("label", entry["field_name"]),
                                      multiple=entry.get("multiple", False))
                    for entry in record_config["pending_uploads"].values()
                )

            invoices = record_config.get("collections", {}).get("invoices")
            if invoices:
                spec_kwargs = {"field": invoices["field_name"]}
                if "id_field" in invoices:
                    spec_kwargs["id_field"] = invoices["id_field"]
                if "compared_fields" in invoices:
                    spec_kwargs["compared_fields"] = tuple(invoices["compared_fields"])
                kwargs["invoice_collection"] = CollectionSpec(**spec_kwargs)

            return cls(**kwargs)

        except (KeyError, ValueError, TypeError) as e:
            raise RegistryConfigurationError(f"Invalid change tracking registry: {e}")
