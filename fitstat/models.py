from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

USER_ROLES = ("member", "trainer", "admin")
USER_STATUSES = ("active", "pending", "rejected", "inactive")
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
CLASS_DIFFICULTIES = ("Beginner", "Intermediate", "Advanced")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")
REFUND_REASONS = ("duplicate", "fraudulent", "requested_by_customer")
NEWSLETTER_TOPICS = ("fitness", "nutrition", "wellness", "classes", "events")
NEWSLETTER_FREQUENCIES = ("daily", "weekly", "monthly")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # null for social-login accounts
    photo_url = Column(String(500), nullable=True)
    role = Column(String(20), default="member", nullable=False, index=True)
    status = Column(String(20), default="active", nullable=False, index=True)
    # Trainer profile
    age = Column(Integer, nullable=True)
    skills = Column(JSON, default=list)
    available_days = Column(JSON, default=list)  # e.g. ["Monday", "Wednesday"]
    hours_per_day = Column(Integer, nullable=True)
    experience = Column(Integer, nullable=True)  # years
    social_links = Column(JSON, default=dict)  # facebook, twitter, instagram, linkedin
    biodata = Column(Text, nullable=True)
    # [{"slotName", "slotTime", "slotDay", "selectedClasses": [{"label", "value"}]}]
    slots = Column(JSON, default=list)
    feedback = Column(Text, nullable=True)  # admin feedback on a rejected application
    is_email_verified = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class FitnessClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)
    image = Column(String(500), nullable=False)
    price = Column(Float, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    difficulty = Column(String(20), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    booking_count = Column(Integer, default=0, nullable=False)
    max_capacity = Column(Integer, default=20, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    payments = relationship("Payment", back_populates="fitness_class")
    reviews = relationship("Review", back_populates="fitness_class")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    trainer_name = Column(String(100), nullable=False)
    trainer_email = Column(String(255), nullable=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    package_name = Column(String(100), nullable=False)
    package_price = Column(Float, nullable=False)
    slot_name = Column(String(100), nullable=False)
    payment_intent_id = Column(String(255), nullable=False, index=True)
    payment_status = Column(String(20), default="pending", nullable=False, index=True)
    payment_method = Column(String(50), default="card", nullable=False)
    currency = Column(String(10), default="usd", nullable=False)
    refund_id = Column(String(255), nullable=True)
    refund_reason = Column(String(50), nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    fitness_class = relationship("FitnessClass", back_populates="payments")


class ForumPost(Base):
    __tablename__ = "forum_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    author_name = Column(String(100), nullable=False)
    author_email = Column(String(255), nullable=False, index=True)
    author_avatar = Column(String(500), nullable=True)
    category = Column(String(100), default="General", nullable=False, index=True)
    tags = Column(JSON, default=list)
    vote_count = Column(Integer, default=0, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_pinned = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    trainer_email = Column(String(255), nullable=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=True, index=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    fitness_class = relationship("FitnessClass", back_populates="reviews")


class Subscriber(Base):
    __tablename__ = "subscribers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    topics = Column(JSON, default=list)
    frequency = Column(String(20), default="weekly", nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
