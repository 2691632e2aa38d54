import enum
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, Text, Uuid, text
from uuid6 import uuid7
from sqlmodel import Column, SQLModel, Field, Relationship, String
from fieldforce.common.utils import now


def _enum_column(enum_cls, nullable: bool = False, **kwargs) -> Column:
    # stored as plain varchar holding the enum values, no native db enum types to migrate
    return Column(SAEnum(enum_cls, native_enum=False, length=32,
                         values_callable=lambda members: [m.value for m in members]),
                  nullable=nullable, **kwargs)


class UserRoleName(str, enum.Enum):
    ADMIN = "admin"
    SALESMAN = "salesman"


class OtpUsedReason(str, enum.Enum):
    VERIFIED = "verified"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    SUPERSEDED = "superseded"


class NotificationType(str, enum.Enum):
    OTP_SENT = "otp_sent"
    OTP_RESENT = "otp_resent"
    OTP_VERIFIED = "otp_verified"


class NotificationStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class Users(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True))
    first_name: str = Field(sa_column=Column(String(64), nullable=False))
    last_name: str = Field(default="", sa_column=Column(String(64), nullable=False, default=""))
    password_hash: str = Field(sa_column=Column(Text(), nullable=False))
    role: UserRoleName = Field(default=UserRoleName.SALESMAN,
                               sa_column=_enum_column(UserRoleName, default=UserRoleName.SALESMAN.value))
    is_active: bool = Field(default=True, sa_column=Column(Boolean(), nullable=False, default=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Client(SQLModel, table=True):
    __tablename__ = "clients"

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    name: str = Field(sa_column=Column(String(128), nullable=False))
    company: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))  # as entered, normalized at delivery time
    email: Optional[str] = Field(default=None, sa_column=Column(String(320), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))
    deleted_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True))

    otp_records: List["OtpRecord"] = Relationship(back_populates="client")


class OtpRecord(SQLModel, table=True):
    """One issued one time code. Rows are never deleted, they double as audit history."""
    __tablename__ = "otp_records"

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    client_id: int = Field(sa_column=Column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False))
    code_hash: str = Field(sa_column=Column(String(64), nullable=False))  # keyed hmac of the code, never plaintext
    phone: str = Field(sa_column=Column(String(20), nullable=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    attempts: int = Field(default=0, sa_column=Column(Integer(), nullable=False, default=0))
    is_used: bool = Field(default=False, sa_column=Column(Boolean(), nullable=False, default=False))
    used_reason: Optional[OtpUsedReason] = Field(default=None, sa_column=_enum_column(OtpUsedReason, nullable=True))
    used_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True))

    client: "Client" = Relationship(back_populates="otp_records")

    __table_args__ = (
        Index("ix_otp_records_client_id_created_at", "client_id", "created_at"),
        # single active otp per client
        Index("uq_otp_records_active_client", "client_id", unique=True,
              postgresql_where=text("is_used = false"), sqlite_where=text("is_used = 0")),
    )


class Notification(SQLModel, table=True):
    """Append-only audit trail of otp actions, only is_read ever changes."""
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    type: NotificationType = Field(sa_column=_enum_column(NotificationType))
    salesman_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False))
    client_id: int = Field(sa_column=Column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False))
    client_name: str = Field(sa_column=Column(String(128), nullable=False))
    client_phone: str = Field(sa_column=Column(String(20), nullable=False))
    salesman_name: str = Field(sa_column=Column(String(130), nullable=False))
    message: str = Field(sa_column=Column(Text(), nullable=False))
    status: NotificationStatus = Field(default=NotificationStatus.SUCCESS,
                                       sa_column=_enum_column(NotificationStatus, default=NotificationStatus.SUCCESS.value))
    otp_id: Optional[int] = Field(default=None,
        sa_column=Column(ForeignKey("otp_records.id", ondelete="SET NULL"), nullable=True))
    delivery_method: str = Field(default="WhatsApp", sa_column=Column(String(64), nullable=False, default="WhatsApp"))
    is_read: bool = Field(default=False, sa_column=Column(Boolean(), nullable=False, default=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=now, onupdate=now))

    __table_args__ = (
        Index("ix_notifications_salesman_id_created_at", "salesman_id", "created_at"),
        Index("ix_notifications_client_id_created_at", "client_id", "created_at"),
        Index("ix_notifications_type_created_at", "type", "created_at"),
        Index("ix_notifications_is_read", "is_read"),
    )
