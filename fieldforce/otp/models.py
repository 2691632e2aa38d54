import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class SendOtpIn(BaseModel):
    client_id: uuid.UUID


class VerifyOtpIn(BaseModel):
    client_id: uuid.UUID
    otp: str = Field(..., pattern=r"^\d{6}$", examples=["123456"])


@dataclass(frozen=True)
class ClientRef:
    """Plain snapshot of the client row, safe to use after the session rolled back."""
    id: int
    public_id: uuid.UUID
    name: str
    phone: str


@dataclass
class IssueResult:
    client_public_id: uuid.UUID
    otp_public_id: uuid.UUID
    phone: str
    expires_at: datetime
    expires_in: int
    delivered: bool
    delivery_method: str
    message: str
    message_id: Optional[str] = None
    delivery_error: Optional[Any] = None
    code: Optional[str] = None

    def to_public(self) -> Dict[str, Any]:
        data = {
            "message": self.message,
            "client_id": str(self.client_public_id),
            "phone": self.phone,
            "expires_at": self.expires_at,
            "expires_in": self.expires_in,
            "delivered": self.delivered,
            "delivery_method": self.delivery_method,
            "message_id": self.message_id,
        }
        if self.delivery_error is not None:
            data["delivery_error"] = self.delivery_error
        if self.code is not None:
            data["otp"] = self.code
        return data


@dataclass
class VerifiedClient:
    client_public_id: uuid.UUID
    name: str
    phone: str
    verified_at: datetime

    def to_public(self) -> Dict[str, Any]:
        return {
            "message": "OTP verified successfully",
            "client": {"id": str(self.client_public_id), "name": self.name, "phone": self.phone},
            "verified_at": self.verified_at,
        }


@dataclass
class OtpStatus:
    has_active_otp: bool
    message: Optional[str] = None
    is_used: Optional[bool] = None
    used_reason: Optional[str] = None
    attempts: Optional[int] = None
    time_left: Optional[int] = None
    expires_at: Optional[datetime] = None

    def to_public(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.message is not None:
            return {"has_active_otp": self.has_active_otp, "message": self.message}
        data.pop("message")
        return data
