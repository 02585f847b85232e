"""Marketing schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..clients.schemas import CLIENT_TYPES
from .catalog import TEMPLATE_TYPES

CHANNELS = ("email", "whatsapp", "sms", "all")

CAMPAIGN_STATUSES = ("draft", "scheduled", "in_progress", "paused", "completed", "cancelled")


def _check_type(v):
    if v is not None and v not in TEMPLATE_TYPES:
        raise ValueError(f"type must be one of: {', '.join(TEMPLATE_TYPES)}")
    return v


def _check_channel(v):
    if v is not None and v not in CHANNELS:
        raise ValueError(f"channel must be one of: {', '.join(CHANNELS)}")
    return v


class TemplateCreate(BaseModel):
    type: str
    channel: str = "email"
    name: str = Field(..., min_length=1, max_length=100)
    emailSubject: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1)
    htmlContent: Optional[str] = None
    isDefault: bool = False
    isActive: bool = True

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        return _check_type(v)

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        return _check_channel(v)


class TemplateUpdate(BaseModel):
    channel: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    emailSubject: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    htmlContent: Optional[str] = None
    isDefault: Optional[bool] = None
    isActive: Optional[bool] = None

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        return _check_channel(v)


class TemplateResponse(BaseModel):
    id: int
    type: str
    channel: str
    name: str
    emailSubject: Optional[str]
    content: str
    htmlContent: Optional[str]
    availableVariables: list[str]
    isDefault: bool
    isActive: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, t) -> "TemplateResponse":
        return cls(
            id=t.id,
            type=t.type,
            channel=t.channel or "email",
            name=t.name,
            emailSubject=t.email_subject,
            content=t.content,
            htmlContent=t.html_content,
            availableVariables=t.available_variables or [],
            isDefault=bool(t.is_default),
            isActive=bool(t.is_active),
            createdAt=t.created_at,
        )


class RecipientFilters(BaseModel):
    clientTypes: Optional[list[str]] = None
    requireEmail: bool = False
    city: Optional[str] = None
    lastServiceBefore: Optional[datetime] = None
    lastServiceAfter: Optional[datetime] = None

    @field_validator("clientTypes")
    @classmethod
    def validate_client_types(cls, v):
        for client_type in v or []:
            if client_type not in CLIENT_TYPES:
                raise ValueError(f"Unknown client type: {client_type}")
        return v


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    templateId: int
    recipientFilters: RecipientFilters = Field(default_factory=RecipientFilters)
    scheduledAt: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    templateId: Optional[int] = None
    status: Optional[str] = None
    recipientFilters: Optional[RecipientFilters] = None
    scheduledAt: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in CAMPAIGN_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(CAMPAIGN_STATUSES)}")
        return v


class CampaignResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    templateId: int
    status: str
    recipientFilters: Optional[dict[str, Any]]
    totalRecipients: int
    sentCount: int
    failedCount: int
    scheduledAt: Optional[datetime]
    startedAt: Optional[datetime]
    completedAt: Optional[datetime]
    createdAt: Optional[datetime] = None
    recipientCounts: Optional[dict[str, int]] = None

    @classmethod
    def from_model(cls, c, recipient_counts: Optional[dict[str, int]] = None) -> "CampaignResponse":
        return cls(
            id=c.id,
            name=c.name,
            description=c.description,
            templateId=c.template_id,
            status=c.status,
            recipientFilters=c.recipient_filters,
            totalRecipients=c.total_recipients or 0,
            sentCount=c.sent_count or 0,
            failedCount=c.failed_count or 0,
            scheduledAt=c.scheduled_at,
            startedAt=c.started_at,
            completedAt=c.completed_at,
            createdAt=c.created_at,
            recipientCounts=recipient_counts,
        )


class RecipientResponse(BaseModel):
    id: int
    clientId: int
    clientName: Optional[str]
    generatedMessage: Optional[str]
    status: str
    queueOrder: Optional[int]
    errorMessage: Optional[str]


class MessageHistoryEntry(BaseModel):
    id: int
    campaignId: int
    campaignName: str
    channel: Optional[str]
    clientId: int
    clientName: Optional[str]
    generatedMessage: Optional[str]
    status: str
    sentAt: Optional[datetime]
    errorMessage: Optional[str]
    createdAt: Optional[datetime]

    @classmethod
    def from_model(cls, r) -> "MessageHistoryEntry":
        return cls(
            id=r.id,
            campaignId=r.campaign_id,
            campaignName=r.campaign.name,
            channel=r.campaign.template.channel if r.campaign.template else None,
            clientId=r.client_id,
            clientName=r.client.name if r.client else None,
            generatedMessage=r.generated_message,
            status=r.status,
            sentAt=r.sent_at,
            errorMessage=r.error_message,
            createdAt=r.created_at,
        )


class CampaignStats(BaseModel):
    total: int
    draft: int
    active: int
    completed: int


class PreviewResponse(BaseModel):
    subject: Optional[str]
    content: str
    variables: dict[str, str]
