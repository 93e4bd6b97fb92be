"""
Data models for SeatWatch.

Defines Pydantic models for the monitoring domain:
- Credential
- ClientIdentity
- MonitorTarget
- SeatSnapshot
"""

import base64
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertState(str, Enum):
    """Per-target alerting state."""
    UNKNOWN = "unknown"
    ALERTING = "alerting"


class AlertResetPolicy(str, Enum):
    """When a target in the ALERTING state returns to UNKNOWN."""
    SEATS_GONE = "seats_gone"
    AFTER_ALERT = "after_alert"
    NEVER = "never"


class Credential(BaseModel):
    """
    An access token together with the refresh token it was issued with.

    Instances are immutable. A refresh produces a new Credential that
    replaces the old one as a whole, so the pair is never observed half
    updated.

    Attributes:
        bearer_token: Short-lived token sent as ``Authorization: Bearer``
        renewal_secret: Refresh token used to obtain the next bearer token
        issued_at: When the token endpoint returned this pair
        expires_in: Lifetime reported by the server, in seconds
    """
    model_config = ConfigDict(frozen=True)

    bearer_token: str = Field(..., min_length=1)
    renewal_secret: str = Field(..., min_length=1)
    issued_at: datetime = Field(default_factory=utcnow)
    expires_in: Optional[int] = None

    def __repr__(self) -> str:
        return f"Credential(issued_at={self.issued_at.isoformat()}, expires_in={self.expires_in})"

    __str__ = __repr__


class ClientIdentity(BaseModel):
    """Consumer key and secret registered with the API directory."""
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)

    @property
    def renewal_key(self) -> str:
        """Value of the HTTP Basic authorization header for the token endpoint."""
        raw = f"{self.client_id}:{self.client_secret}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class MonitorTarget(BaseModel):
    """
    One class section under observation.

    Attributes:
        term: Term code (e.g., 2010)
        course_id: Class number within the term
    """
    model_config = ConfigDict(frozen=True)

    term: int
    course_id: int

    @computed_field
    @property
    def key(self) -> str:
        """Stable identifier for logs and state maps."""
        return f"{self.term}/{self.course_id}"


class SeatSnapshot(BaseModel):
    """
    Result of polling one target in one cycle.

    ``open_seats`` is -1 when the response arrived but did not contain a
    usable seat count.
    """
    target: MonitorTarget
    open_seats: int
    observed_at: datetime = Field(default_factory=utcnow)

    @property
    def is_known(self) -> bool:
        return self.open_seats >= 0

    @property
    def is_open(self) -> bool:
        return self.open_seats > 0
