"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import REFUND_REASONS
from ...shared.pagination import PaginationMeta
from ...shared.validators import validate_choice, validate_email

INTENT_ID_PATTERN = r"^[A-Za-z0-9_]+$"


class PaymentIntentCreate(BaseModel):
    """Amount is in major currency units (dollars), converted to cents for the gateway"""

    amount: float = Field(..., gt=0)
    currency: str = "usd"
    metadata: Optional[dict[str, str]] = None

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        v = v.strip().lower()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("Currency must be a 3-letter ISO code")
        return v


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    paymentIntentId: str


class PaymentCreate(BaseModel):
    """Schema for recording a confirmed booking payment"""

    userEmail: str
    userName: str = Field(..., min_length=1, max_length=100)
    trainerName: str = Field(..., min_length=1, max_length=100)
    trainerEmail: Optional[str] = None
    classId: int
    packageName: str = Field(..., min_length=1, max_length=100)
    packagePrice: float = Field(..., ge=0)
    slotName: str = Field(..., min_length=1, max_length=100)
    paymentIntentId: str = Field(..., min_length=3, max_length=255, pattern=INTENT_ID_PATTERN)
    paymentMethod: str = "card"
    currency: str = "usd"

    @field_validator("userEmail", "trainerEmail")
    @classmethod
    def validate_emails(cls, v):
        return validate_email(v)

    @field_validator("userName", "trainerName", "packageName", "slotName")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v):
        return v.strip().lower()


class RefundRequest(BaseModel):
    reason: str = "requested_by_customer"

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        return validate_choice(v, REFUND_REASONS, "Refund reason")


class PaymentClassSummary(BaseModel):
    id: int
    name: str
    category: str
    difficulty: str
    price: float

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    """Schema for payment response"""

    id: int
    user_email: str
    user_name: str
    trainer_name: str
    trainer_email: Optional[str] = None
    class_id: int
    package_name: str
    package_price: float
    slot_name: str
    payment_intent_id: str
    payment_status: str
    payment_method: str
    currency: str
    refund_id: Optional[str] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    fitness_class: Optional[PaymentClassSummary] = None

    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    payments: list[PaymentResponse]
    pagination: PaginationMeta


class BookedSlot(BaseModel):
    slot_name: str
    user_email: str
    user_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentDashboardResponse(BaseModel):
    total_bookings: int
    total_revenue: float
    recent_transactions: list[PaymentResponse]
    unique_paying_members: int
