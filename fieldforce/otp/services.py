import uuid
from datetime import datetime
from typing import Callable, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from fieldforce.auth.models import CurrentUser
from fieldforce.clients.repository import get_client_by_public_id
from fieldforce.common.utils import as_utc, now
from fieldforce.config.otp_config import OtpSettings, otp_settings
from fieldforce.messaging.constants import DELIVERY_METHOD_DISABLED
from fieldforce.messaging.whatsapp import DeliveryResult
from fieldforce.otp.constants import logger
from fieldforce.otp.exceptions import ClientNotFound, InvalidOtp, NoPhoneOnFile, OtpExpired, OtpRateLimited
from fieldforce.otp.models import ClientRef, IssueResult, OtpStatus, VerifiedClient
from fieldforce.otp.repository import (create_otp, find_latest_active_by_client, find_latest_by_client,
                                       mark_used, save_attempts, supersede_active)
from fieldforce.otp.utils import (generate_otp_code, hash_otp, is_expired, is_valid, otp_matches,
                                  resend_wait_seconds, seconds_left)
from fieldforce.schema.full_schema import NotificationStatus, NotificationType, OtpRecord, OtpUsedReason


class OtpManager:
    """
    Owns the otp record lifecycle: issue, resend, verify and status.

    This is the only writer of otp records. The single active code per client
    is kept by superseding inside the insert transaction and backed by a partial
    unique index; consuming a code is a conditional update so two concurrent
    verifications cannot both succeed. Expiry is lazy, a record only moves to
    used(expired|exhausted) when a verification finds it invalid.

    Delivery and audit are collaborators, neither can fail an issuance.
    """

    def __init__(self, delivery, audit, settings: OtpSettings = otp_settings,
                 clock: Callable[[], datetime] = now):
        self.delivery = delivery
        self.audit = audit
        self.settings = settings
        self._clock = clock

    async def _load_client(self, session, client_public_id: uuid.UUID) -> ClientRef:
        client = await get_client_by_public_id(session, client_public_id)
        if client is None:
            logger.info("otp.client.not_found", extra={"client_public_id": str(client_public_id)})
            raise ClientNotFound()
        if not client.phone:
            logger.info("otp.client.no_phone", extra={"client_public_id": str(client_public_id)})
            raise NoPhoneOnFile()
        return ClientRef(id=client.id, public_id=client.public_id, name=client.name, phone=client.phone)

    async def _check_cooldown(self, session, client: ClientRef):
        at = self._clock()
        latest = await find_latest_active_by_client(session, client.id)
        if latest is None or not is_valid(latest, at, self.settings.OTP_MAX_ATTEMPTS):
            return
        wait = resend_wait_seconds(latest, at, self.settings.OTP_RESEND_COOLDOWN_SECONDS)
        if wait > 0:
            logger.info("otp.resend.throttled", extra={"client_public_id": str(client.public_id), "wait_time": wait})
            raise OtpRateLimited(wait)

    async def _persist_new(self, session, client: ClientRef, code: str, at: datetime) -> Tuple[OtpRecord, int]:
        code_hash = hash_otp(code, self.settings.hash_secret)
        for attempt in (1, 2):
            try:
                superseded = await supersede_active(session, client.id, at)
                record = await create_otp(session, client_id=client.id, code_hash=code_hash, phone=client.phone,
                                          at=at, ttl_seconds=self.settings.OTP_TTL_SECONDS)
                await session.commit()
                return record, superseded
            except IntegrityError:
                # a concurrent issuance inserted its active row first
                await session.rollback()
                if attempt == 2:
                    raise
                logger.warning("otp.issue.conflict_retry", extra={"client_public_id": str(client.public_id)})

    def _delivery_method(self) -> str:
        return self.delivery.channel if self.settings.OTP_DELIVERY_ENABLED else DELIVERY_METHOD_DISABLED

    async def _deliver(self, client: ClientRef, code: str) -> Optional[DeliveryResult]:
        if not self.settings.OTP_DELIVERY_ENABLED:
            return None
        try:
            return await self.delivery.send(client.phone, code, display_name=client.name)
        except Exception as exc:
            logger.exception("otp.delivery.crashed", extra={"client_public_id": str(client.public_id)})
            return DeliveryResult(success=False, phone_number=client.phone, error=str(exc))

    async def _issue(self, session, client: ClientRef, actor: CurrentUser,
                     event_type: NotificationType) -> IssueResult:
        at = self._clock()
        code = generate_otp_code()
        record, superseded = await self._persist_new(session, client, code, at)

        result = await self._deliver(client, code)
        verb = "resent" if event_type == NotificationType.OTP_RESENT else "sent"

        if result is None:
            delivered, method, status = False, DELIVERY_METHOD_DISABLED, NotificationStatus.SUCCESS
            message = f"OTP generated successfully for {client.name} (delivery disabled)"
        else:
            delivered, method = result.success, self.delivery.channel
            status = NotificationStatus.SUCCESS if result.success else NotificationStatus.FAILED
            if result.success:
                message = f"OTP {verb} to {client.name} ({client.phone})"
            else:
                message = f"OTP generated for {client.name} but {method} delivery failed"
                logger.warning("otp.delivery.failed", extra={"client_public_id": str(client.public_id),
                                                              "otp_public_id": str(record.public_id),
                                                              "status_code": result.status_code})

        await self.audit.record(event_type=event_type, actor=actor, client=client, message=message,
                                otp_id=record.id, status=status, delivery_method=method)

        logger.info(f"otp.{'resend' if verb == 'resent' else 'issue'}.success", extra={
            "client_public_id": str(client.public_id),
            "otp_public_id": str(record.public_id),
            "superseded": superseded,
            "delivered": delivered,
        })

        return IssueResult(
            client_public_id=client.public_id,
            otp_public_id=record.public_id,
            phone=client.phone,
            expires_at=as_utc(record.expires_at),
            expires_in=self.settings.OTP_TTL_SECONDS,
            delivered=delivered,
            delivery_method=method,
            message=message,
            message_id=result.message_id if result else None,
            delivery_error=result.error if result and not result.success else None,
            code=code if self.settings.OTP_ECHO_CODE else None,
        )

    async def issue_otp(self, session, client_public_id: uuid.UUID, actor: CurrentUser) -> IssueResult:
        client = await self._load_client(session, client_public_id)
        if self.settings.OTP_THROTTLE_SEND:
            await self._check_cooldown(session, client)
        return await self._issue(session, client, actor, NotificationType.OTP_SENT)

    async def resend_otp(self, session, client_public_id: uuid.UUID, actor: CurrentUser) -> IssueResult:
        client = await self._load_client(session, client_public_id)
        await self._check_cooldown(session, client)
        return await self._issue(session, client, actor, NotificationType.OTP_RESENT)

    async def verify_otp(self, session, client_public_id: uuid.UUID, submitted_code: str,
                         actor: CurrentUser) -> VerifiedClient:
        at = self._clock()
        max_attempts = self.settings.OTP_MAX_ATTEMPTS

        client = await get_client_by_public_id(session, client_public_id)
        # unknown client, nothing pending and wrong code all look the same to the caller
        record = await find_latest_active_by_client(session, client.id, lock=True) if client else None
        if record is None:
            logger.info("otp.verify.no_pending", extra={"client_public_id": str(client_public_id)})
            raise InvalidOtp()

        client_ref = ClientRef(id=client.id, public_id=client.public_id, name=client.name, phone=client.phone or record.phone)
        record_id, record_public_id = record.id, record.public_id

        if not is_valid(record, at, max_attempts):
            reason = OtpUsedReason.EXPIRED if is_expired(record, at) else OtpUsedReason.EXHAUSTED
            await mark_used(session, record_id, reason, at)
            await session.commit()
            logger.info("otp.verify.expired", extra={"otp_public_id": str(record_public_id), "reason": reason.value})
            raise OtpExpired()

        attempts = record.attempts + 1
        if not otp_matches(submitted_code, record.code_hash, self.settings.hash_secret):
            await save_attempts(session, record_id)
            await session.commit()
            attempts_left = max(0, max_attempts - attempts)
            logger.info("otp.verify.mismatch", extra={"otp_public_id": str(record_public_id),
                                                      "attempts_left": attempts_left})
            raise InvalidOtp(attempts_left=attempts_left)

        moved = await mark_used(session, record_id, OtpUsedReason.VERIFIED, at, count_attempt=True)
        if moved == 0:
            await session.rollback()
            logger.info("otp.verify.lost_race", extra={"otp_public_id": str(record_public_id)})
            raise OtpExpired()
        await session.commit()

        await self.audit.record(event_type=NotificationType.OTP_VERIFIED, actor=actor, client=client_ref,
                                message=f"OTP verified for {client_ref.name}", otp_id=record_id,
                                status=NotificationStatus.SUCCESS, delivery_method=self._delivery_method())

        logger.info("otp.verify.success", extra={"client_public_id": str(client_ref.public_id),
                                                 "otp_public_id": str(record_public_id)})
        return VerifiedClient(client_public_id=client_ref.public_id, name=client_ref.name,
                              phone=client_ref.phone, verified_at=at)

    async def get_otp_status(self, session, client_public_id: uuid.UUID) -> OtpStatus:
        at = self._clock()
        record = await find_latest_by_client(session, client_public_id)
        if record is None:
            return OtpStatus(has_active_otp=False, message="No OTP found")

        return OtpStatus(
            has_active_otp=is_valid(record, at, self.settings.OTP_MAX_ATTEMPTS),
            is_used=record.is_used,
            used_reason=record.used_reason.value if record.used_reason else None,
            attempts=record.attempts,
            time_left=seconds_left(record, at),
            expires_at=as_utc(record.expires_at),
        )
