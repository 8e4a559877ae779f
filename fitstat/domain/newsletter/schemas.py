"""Newsletter domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import NEWSLETTER_FREQUENCIES, NEWSLETTER_TOPICS
from ...shared.pagination import PaginationMeta
from ...shared.validators import validate_choice, validate_email


class NewsletterPreferences(BaseModel):
    topics: list[str] = Field(default_factory=list)
    frequency: str = "weekly"

    @field_validator("topics")
    @classmethod
    def validate_topics(cls, v):
        topics = []
        for topic in v:
            topic = validate_choice(topic.strip().lower(), NEWSLETTER_TOPICS, "Topic")
            if topic not in topics:
                topics.append(topic)
        return topics

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v):
        return validate_choice(v.strip().lower(), NEWSLETTER_FREQUENCIES, "Frequency")


class SubscribeRequest(BaseModel):
    email: str
    name: Optional[str] = Field(None, max_length=100)
    preferences: Optional[NewsletterPreferences] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        return v.strip() or None


class UnsubscribeRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class BulkUnsubscribeRequest(BaseModel):
    emails: list[str] = Field(..., min_length=1, max_length=500)

    @field_validator("emails")
    @classmethod
    def validate_emails(cls, v):
        return [validate_email(email) for email in v]


class SubscriberResponse(BaseModel):
    id: int
    email: str
    name: str
    is_active: bool
    topics: list[str] = []
    frequency: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriberListResponse(BaseModel):
    subscribers: list[SubscriberResponse]
    pagination: PaginationMeta


class BulkUnsubscribeResult(BaseModel):
    message: str
    modified_count: int
