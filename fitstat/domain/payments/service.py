"""Payment service - Intent creation, booking confirmation and refunds"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import STRIPE_MIN_AMOUNT
from ...models import Payment, User
from ...security_utils import log_security_event
from ...shared.analytics import monthly_series, months_ago
from ...shared.pagination import paginate
from ..classes.service import ClassService
from .gateway import PaymentGatewayError, PaymentGatewayUnavailable, StripeGateway, stripe_gateway
from .repository import PaymentRepository
from .schemas import PaymentCreate, PaymentIntentCreate, PaymentIntentResponse

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    """12.5 dollars -> 1250 cents"""
    return int(round(amount * 100))


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, gateway: Optional[StripeGateway] = None):
        self.db = db
        self.repo = PaymentRepository()
        self.gateway = gateway or stripe_gateway
        self.classes = ClassService(db)

    # ========================================================================
    # BOOKING FLOW
    # ========================================================================

    async def create_payment_intent(
        self, data: PaymentIntentCreate, user: User
    ) -> PaymentIntentResponse:
        """Create a gateway-side intent; nothing is stored locally until confirmation"""
        if data.amount < STRIPE_MIN_AMOUNT:
            raise HTTPException(
                status_code=400, detail=f"Amount must be at least {STRIPE_MIN_AMOUNT}"
            )
        amount = to_minor_units(data.amount)

        metadata = dict(data.metadata or {})
        metadata.setdefault("userEmail", user.email)

        try:
            intent = await self.gateway.create_payment_intent(amount, data.currency, metadata)
        except PaymentGatewayError as e:
            raise HTTPException(status_code=400, detail=f"Payment error: {e.message}") from e
        except PaymentGatewayUnavailable as e:
            logger.error(f"❌ Failed to create payment intent for {user.email}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create payment intent") from e

        return PaymentIntentResponse(
            clientSecret=intent["client_secret"], paymentIntentId=intent["id"]
        )

    async def process_payment(self, data: PaymentCreate, user: User) -> Payment:
        """
        Confirm a booking paid through the gateway.

        The capacity check, the intent lookup, the insert and the counter bump
        are separate steps; concurrent confirmations for the last seat can both
        pass the check.
        """
        if user.role != "admin" and data.userEmail != user.email.lower():
            raise HTTPException(status_code=403, detail="Cannot record a payment for another user")

        logger.info(f"📥 Processing payment {data.paymentIntentId} for class {data.classId}")

        self.classes.validate_class_capacity(data.classId)

        try:
            intent = await self.gateway.retrieve_payment_intent(data.paymentIntentId)
        except PaymentGatewayError as e:
            raise HTTPException(status_code=400, detail=f"Payment error: {e.message}") from e
        except PaymentGatewayUnavailable as e:
            logger.error(f"❌ Could not verify payment intent {data.paymentIntentId}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to verify payment") from e

        if intent.get("status") != "succeeded":
            logger.warning(
                f"⚠️ Payment intent {data.paymentIntentId} has status {intent.get('status')}"
            )
            raise HTTPException(status_code=400, detail="Payment was not successful")

        try:
            payment = self.repo.create_payment(
                self.db,
                user_email=data.userEmail,
                user_name=data.userName,
                trainer_name=data.trainerName,
                trainer_email=data.trainerEmail,
                class_id=data.classId,
                package_name=data.packageName,
                package_price=data.packagePrice,
                slot_name=data.slotName,
                payment_intent_id=data.paymentIntentId,
                payment_status="completed",
                payment_method=data.paymentMethod,
                currency=data.currency,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"❌ Payment {data.paymentIntentId} succeeded at the gateway but could not be saved: {str(e)}"
            )
            raise HTTPException(status_code=500, detail="Failed to record payment") from e

        self.classes.increment_booking_count(data.classId)

        logger.info(
            f"✅ Payment {payment.id} recorded for {payment.user_email} "
            f"(class {payment.class_id}, {payment.package_price} {payment.currency})"
        )
        return self.get_payment(payment.id)

    async def refund_payment(self, payment_id: int, reason: str, admin: User) -> Payment:
        """Refund through the gateway, then mark the record; a second refund is a conflict"""
        payment = self.get_payment(payment_id)

        if payment.payment_status == "refunded":
            raise HTTPException(status_code=409, detail="Payment has already been refunded")
        if payment.payment_status != "completed":
            raise HTTPException(status_code=400, detail="Only completed payments can be refunded")

        try:
            refund = await self.gateway.create_refund(payment.payment_intent_id, reason)
        except PaymentGatewayError as e:
            raise HTTPException(status_code=400, detail=f"Refund error: {e.message}") from e
        except PaymentGatewayUnavailable as e:
            logger.error(f"❌ Refund request for payment {payment_id} failed: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to refund payment") from e

        try:
            payment = self.repo.mark_refunded(self.db, payment, refund["id"], reason)
        except Exception as e:
            self.db.rollback()
            logger.critical(
                f"❌ Refund {refund.get('id')} issued for payment {payment_id} but not saved: {str(e)}"
            )
            raise HTTPException(status_code=500, detail="Failed to update refunded payment") from e

        log_security_event(
            "payment_refunded",
            user_id=admin.id,
            details={"payment_id": payment_id, "refund_id": payment.refund_id, "reason": reason},
        )
        return payment

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.repo.get_payment_by_id(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        return payment

    def get_payment_for_user(self, payment_id: int, user: User) -> Payment:
        payment = self.get_payment(payment_id)
        if user.role != "admin" and payment.user_email != user.email.lower():
            raise HTTPException(status_code=403, detail="Access denied")
        return payment

    def list_payments(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        user_email: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> dict:
        query = self.repo.build_payment_query(
            self.db, status, user_email, start_date, end_date, sort_by, sort_order
        )
        payments, pagination = paginate(query, page, limit)
        return {"payments": payments, "pagination": pagination}

    def _resolve_email(self, user: User, email: Optional[str]) -> str:
        """Members only see their own payments; admins may look anyone up"""
        email = (email or user.email).strip().lower()
        if email != user.email.lower() and user.role != "admin":
            raise HTTPException(status_code=403, detail="Access denied")
        return email

    def get_user_payments(self, user: User, email: Optional[str] = None) -> list[Payment]:
        return self.repo.get_payments_by_user(self.db, self._resolve_email(user, email))

    def get_latest_payment(self, user: User, email: Optional[str] = None) -> Optional[Payment]:
        payments = self.repo.get_payments_by_user(self.db, self._resolve_email(user, email), limit=1)
        return payments[0] if payments else None

    def get_booked_slots(self, class_id: int) -> list[Payment]:
        return self.repo.get_booked_slots(self.db, class_id)

    def get_payment_stats(self) -> dict:
        revenue_rows = self.repo.get_completed_since(self.db, months_ago(12))
        return {
            "overview": self.repo.get_overview(self.db),
            "monthly_revenue": [
                {"month": m["month"], "revenue": m["total"], "count": m["count"]}
                for m in monthly_series(revenue_rows, 12)
            ],
            "top_users": self.repo.get_top_payers(self.db, 10),
            "unique_paying_members": self.repo.count_unique_payers(self.db),
        }

    def get_dashboard_stats(self) -> dict:
        overview = self.repo.get_overview(self.db)
        return {
            "total_bookings": overview["total_payments"],
            "total_revenue": overview["total_revenue"],
            "recent_transactions": self.repo.get_recent_payments(self.db, 10),
            "unique_paying_members": self.repo.count_unique_payers(self.db),
        }
