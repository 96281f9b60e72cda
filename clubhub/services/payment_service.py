"""
Payment Recorder - membership payments and expiry extension

Handles:
- Offline payments recorded by the club desk (admin/committee)
- Self-service payments by the member
- Payment history
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Union

from dateutil.relativedelta import relativedelta

from clubhub.core.config import settings
from clubhub.core.exceptions import ProfileNotFoundError, UserNotFoundError, ValidationError
from clubhub.core.logging_config import logger
from clubhub.models.payment import Payment
from clubhub.models.user import User, UserRole
from clubhub.services.base import WorkflowService
from clubhub.services.access_policy import ORGANISER_ROLES
from clubhub.services.data_store import DataStore
from clubhub.services.store_capability import StoreCapability


@dataclass
class PaymentResult:
    payment: Payment
    new_expiry: datetime
    membership_level: int


def extend_expiry(current_expiry: Optional[datetime], now: datetime, months: int) -> datetime:
    """
    New membership expiry after a payment.

    An active membership is extended from its current expiry; a lapsed (or
    missing) one restarts from now. Calendar months, clamped to month end.
    """
    base = current_expiry if current_expiry and current_expiry > now else now
    return base + relativedelta(months=months)


def _epoch_ms(now: datetime) -> int:
    return int((now - datetime(1970, 1, 1)).total_seconds() * 1000)


class PaymentService(WorkflowService):
    """Service for recording membership payments"""

    def __init__(
        self,
        store: DataStore,
        capability: StoreCapability,
        clock: Optional[Callable[[], datetime]] = None,
        payment_advances_level: Optional[bool] = None,
    ):
        super().__init__(store, capability, clock)
        if payment_advances_level is None:
            payment_advances_level = settings.PAYMENT_ADVANCES_LEVEL
        self.payment_advances_level = payment_advances_level

    @staticmethod
    def _validate_amount(amount: Union[int, float, Decimal]) -> Decimal:
        try:
            value = Decimal(str(amount))
        except ArithmeticError:
            raise ValidationError("Amount must be a number", field="amount")
        if not value.is_finite() or value <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")
        return value

    async def _apply_payment(
        self,
        profile: User,
        amount: Decimal,
        payment_method: str,
        reference_number: str,
        payment_type: Optional[str],
    ) -> PaymentResult:
        now = self.now()
        current_level = profile.membership_level or 1
        new_expiry = extend_expiry(profile.membership_expiry, now, settings.MEMBERSHIP_PERIOD_MONTHS)

        fields = {"membership_expiry": new_expiry}
        new_level = current_level
        if self.payment_advances_level and current_level < settings.MAX_MEMBERSHIP_LEVEL:
            new_level = current_level + 1
            fields["membership_level"] = new_level

        payment = await self.store.insert(Payment(
            user_id=profile.id,
            amount=amount,
            level=current_level,
            payment_method=payment_method,
            payment_type=payment_type,
            reference_number=reference_number,
            status="completed",
            paid_at=now,
        ))
        await self.store.update_profile(profile.id, fields, expected_version=profile.version)
        await self.store.commit()

        logger.log_workflow_event(
            "payment",
            "recorded",
            user_id=str(profile.id),
            amount=str(amount),
            method=payment_method,
            level=new_level,
            new_expiry=new_expiry.isoformat(),
        )
        return PaymentResult(payment=payment, new_expiry=new_expiry, membership_level=new_level)

    async def record_payment(
        self,
        caller_id: str,
        user_id: str,
        amount: Union[int, float, Decimal],
        payment_type: Optional[str] = None,
    ) -> PaymentResult:
        """
        Record an offline payment taken at the club desk.

        Args:
            caller_id: Admin or committee member recording the payment
            user_id: Member who paid
            amount: Amount received
            payment_type: Free-form label, e.g. "cash"

        Returns:
            PaymentResult with the created Payment and the new expiry
        """
        await self.policy.require_role(caller_id, *ORGANISER_ROLES)
        value = self._validate_amount(amount)
        await self.ensure_store_ready("record_payment")

        profile = await self.store.get_profile(user_id)
        reference = f"OFFLINE-{_epoch_ms(self.now())}"
        return await self._apply_payment(profile, value, "offline", reference, payment_type)

    async def process_payment(
        self,
        caller_id: str,
        amount: Union[int, float, Decimal],
        payment_method: str = "online",
        reference_number: Optional[str] = None,
        payment_type: Optional[str] = None,
    ) -> PaymentResult:
        """Self-service payment by the signed-in member"""
        value = self._validate_amount(amount)
        if not payment_method or not payment_method.strip():
            raise ValidationError("Payment method is required", field="payment_method")
        await self.ensure_store_ready("process_payment")

        try:
            profile = await self.store.get_profile(caller_id)
        except UserNotFoundError:
            raise ProfileNotFoundError()

        reference = reference_number or f"PAY-{_epoch_ms(self.now())}"
        return await self._apply_payment(profile, value, payment_method.strip(), reference, payment_type)

    async def get_payments(self, caller_id: str, user_id: str) -> List[Payment]:
        """Payment history for one member, newest first"""
        await self.policy.require_self_or_role(caller_id, user_id, *ORGANISER_ROLES)
        return await self.store.query(
            Payment, Payment.user_id == str(user_id), order_by=Payment.paid_at.desc()
        )

    async def list_all_payments(self, caller_id: str) -> List[Payment]:
        await self.policy.require_role(caller_id, UserRole.ADMIN)
        return await self.store.query(Payment, order_by=Payment.paid_at.desc())
