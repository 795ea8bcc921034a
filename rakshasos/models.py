"""
models.py — Shared data structures for the alert-orchestration engine.

Defines:
    • LocationSample   — immutable position fix (live or persisted)
    • LocationStatus   — tracker state machine states
    • LocationAccuracy — accuracy tier requested from the OS provider
    • NetworkStatus    — three-valued reachability summary
    • EmergencyCategory / Language
    • UserSettings     — per-user preferences synced with the remote service
    • Contact, ContactDraft, ContactPatch — trusted contacts and their payloads
    • AlertFailure / AlertOutcome — result of one dispatch attempt

═══════════════════════════════════════════════════════════════════════════
LOCATION STATUS STATE MACHINE
═══════════════════════════════════════════════════════════════════════════

    LOADING ──fix ok──────────────────────────▶ READY
       │
       ├──fix failed, persisted sample──────▶ USING_LAST
       │
       └──fix failed, nothing persisted─────▶ UNAVAILABLE

    READY / USING_LAST always carry a sample.
    LOADING / UNAVAILABLE may not.

Wire names (camelCase) follow the remote contacts/settings service and the
durable storage format, so payloads round-trip unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ═══════════════════════════════════════════════════════════════════════════
# Enumerations
# ═══════════════════════════════════════════════════════════════════════════

class LocationStatus(str, Enum):
    """Location tracker states."""
    LOADING     = "loading"
    READY       = "ready"         # fresh live fix
    USING_LAST  = "using_last"    # persisted sample, possibly stale
    UNAVAILABLE = "unavailable"   # no fix, nothing persisted


class LocationAccuracy(str, Enum):
    """Accuracy tiers understood by location providers."""
    LOW      = "low"
    BALANCED = "balanced"
    HIGH     = "high"


class NetworkStatus(str, Enum):
    """Reachability classification, informational only."""
    ONLINE   = "online"
    SMS_ONLY = "sms_only"   # radio connected, no confirmed data path
    OFFLINE  = "offline"


class EmergencyCategory(str, Enum):
    MEDICAL  = "medical"
    FIRE     = "fire"
    POLICE   = "police"
    THREAT   = "threat"
    DISASTER = "disaster"


class Language(str, Enum):
    ENGLISH = "en"
    HINDI   = "hi"
    MARATHI = "mr"


class AlertFailure(str, Enum):
    """Why a dispatch produced a negative outcome."""
    NO_CONTACTS          = "no_contacts"
    DELIVERY_UNAVAILABLE = "delivery_unavailable"
    DELIVERY_FAILED      = "delivery_failed"


# ═══════════════════════════════════════════════════════════════════════════
# Location
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LocationSample:
    """
    A single position fix.

    Attributes
    ----------
    latitude, longitude : float
        Decimal degrees (WGS84).
    captured_at_ms : int
        Epoch milliseconds when the fix was taken.
    accuracy_m : float | None
        Horizontal accuracy radius in metres, if the provider reported one.
    """
    latitude: float
    longitude: float
    captured_at_ms: int
    accuracy_m: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.captured_at_ms,
        }
        if self.accuracy_m is not None:
            d["accuracy"] = self.accuracy_m
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LocationSample":
        """Rebuild a sample from its stored form; raises ValueError if malformed."""
        try:
            accuracy = data.get("accuracy")
            return cls(
                latitude=float(data["latitude"]),
                longitude=float(data["longitude"]),
                captured_at_ms=int(data["timestamp"]),
                accuracy_m=float(accuracy) if accuracy is not None else None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValueError(f"Malformed location sample: {data!r}") from e


# ═══════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════

class UserSettings(BaseModel):
    """Per-user preferences. Field aliases are the remote wire names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    language: Language = Language.ENGLISH
    fake_call_enabled: bool = Field(default=False, alias="fakeCallEnabled")
    silent_mode: bool = Field(default=False, alias="silentSOS")
    siren_enabled: bool = Field(default=True, alias="sirenSound")
    power_saving: bool = Field(default=False, alias="powerSaving")
    selected_category: EmergencyCategory = Field(
        default=EmergencyCategory.MEDICAL, alias="selectedEmergencyType",
    )
    dark_mode: bool = Field(default=False, alias="darkMode")

    @classmethod
    def from_profile(
        cls,
        profile: Optional[Mapping[str, Any]],
        default_language: Optional[str] = None,
    ) -> "UserSettings":
        """
        Hydrate settings from a user profile where any field may be null.

        Null or unrecognised values fall back to the defaults field by field,
        so a half-filled profile never blocks the session. A supported
        ``default_language`` replaces English as the language default.
        """
        defaults = cls()
        if default_language in {lang.value for lang in Language}:
            defaults = cls(language=Language(default_language))
        if not profile:
            return defaults

        values: Dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            raw = profile.get(info.alias or name, profile.get(name))
            if raw is None:
                continue
            values[name] = raw

        language = values.get("language")
        if language not in {lang.value for lang in Language}:
            values["language"] = defaults.language
        category = values.get("selected_category")
        if category not in {c.value for c in EmergencyCategory}:
            values["selected_category"] = defaults.selected_category

        return cls.model_validate(values)

    def to_wire(self, fields: Optional[set] = None) -> Dict[str, Any]:
        """Serialise (optionally a subset of fields) using wire aliases."""
        return self.model_dump(mode="json", by_alias=True, include=fields)


# ═══════════════════════════════════════════════════════════════════════════
# Contacts
# ═══════════════════════════════════════════════════════════════════════════

class Contact(BaseModel):
    """A trusted contact as returned by the remote service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    owner_id: str = Field(alias="userId")
    name: str
    phone: str = Field(min_length=1)
    relationship: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")


class ContactDraft(BaseModel):
    """Payload for creating a contact."""

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    relationship: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ContactPatch(BaseModel):
    """Partial update for a contact; only fields that were set are sent."""

    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _phone_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("phone must not be blank")
        return v

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ═══════════════════════════════════════════════════════════════════════════
# Dispatch outcome
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AlertOutcome:
    """Result of one alert attempt. Negative outcomes carry a reason."""
    delivered: bool
    recipient_count: int
    failure: Optional[AlertFailure] = None

    @classmethod
    def success(cls, recipient_count: int) -> "AlertOutcome":
        return cls(delivered=True, recipient_count=recipient_count)

    @classmethod
    def failed(cls, reason: AlertFailure) -> "AlertOutcome":
        return cls(delivered=False, recipient_count=0, failure=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delivered": self.delivered,
            "recipient_count": self.recipient_count,
            "failure": self.failure.value if self.failure else None,
        }
