"""Payment repository - Database operations for payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Payment

SORT_COLUMNS = {
    "createdAt": Payment.created_at,
    "packagePrice": Payment.package_price,
    "paymentStatus": Payment.payment_status,
}


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.fitness_class))
            .filter(Payment.id == payment_id)
            .first()
        )

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def mark_refunded(db: Session, payment: Payment, refund_id: str, reason: str) -> Payment:
        payment.payment_status = "refunded"
        payment.refund_id = refund_id
        payment.refund_reason = reason
        payment.refunded_at = datetime.utcnow()
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def build_payment_query(
        db: Session,
        status: Optional[str] = None,
        user_email: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Query:
        query = db.query(Payment).options(joinedload(Payment.fitness_class))

        if status:
            query = query.filter(Payment.payment_status == status)
        if user_email:
            query = query.filter(Payment.user_email == user_email.lower())
        if start_date:
            query = query.filter(Payment.created_at >= start_date)
        if end_date:
            query = query.filter(Payment.created_at <= end_date)

        column = SORT_COLUMNS.get(sort_by, Payment.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        return query.order_by(ordering, Payment.id.desc())

    @staticmethod
    def get_payments_by_user(db: Session, user_email: str, limit: Optional[int] = None) -> list[Payment]:
        query = (
            db.query(Payment)
            .options(joinedload(Payment.fitness_class))
            .filter(Payment.user_email == user_email.lower())
            .order_by(Payment.created_at.desc(), Payment.id.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_booked_slots(db: Session, class_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.class_id == class_id, Payment.payment_status == "completed")
            .order_by(Payment.created_at.asc(), Payment.id.asc())
            .all()
        )

    @staticmethod
    def get_recent_payments(db: Session, limit: int = 10) -> list[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.fitness_class))
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_overview(db: Session) -> dict:
        total, revenue, completed, refunded, avg_amount = db.query(
            func.count(Payment.id),
            func.coalesce(
                func.sum(case((Payment.payment_status == "completed", Payment.package_price), else_=0)), 0
            ),
            func.coalesce(func.sum(case((Payment.payment_status == "completed", 1), else_=0)), 0),
            func.coalesce(func.sum(case((Payment.payment_status == "refunded", 1), else_=0)), 0),
            func.coalesce(func.avg(Payment.package_price), 0),
        ).one()
        return {
            "total_payments": total,
            "total_revenue": round(float(revenue), 2),
            "completed_payments": int(completed),
            "refunded_payments": int(refunded),
            "avg_payment_amount": round(float(avg_amount), 2),
        }

    @staticmethod
    def get_completed_since(db: Session, since: datetime) -> list[tuple[datetime, float]]:
        return (
            db.query(Payment.created_at, Payment.package_price)
            .filter(Payment.payment_status == "completed", Payment.created_at >= since)
            .all()
        )

    @staticmethod
    def get_top_payers(db: Session, limit: int = 10) -> list[dict]:
        total_spent = func.sum(Payment.package_price)
        rows = (
            db.query(
                Payment.user_email,
                func.max(Payment.user_name),
                total_spent,
                func.count(Payment.id),
            )
            .filter(Payment.payment_status == "completed")
            .group_by(Payment.user_email)
            .order_by(total_spent.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "user_email": email,
                "user_name": name,
                "total_spent": round(float(spent or 0), 2),
                "total_bookings": bookings,
            }
            for email, name, spent, bookings in rows
        ]

    @staticmethod
    def count_unique_payers(db: Session) -> int:
        return (
            db.query(func.count(func.distinct(Payment.user_email)))
            .filter(Payment.payment_status == "completed")
            .scalar()
            or 0
        )

    @staticmethod
    def count_payments(db: Session) -> int:
        return db.query(func.count(Payment.id)).scalar() or 0
