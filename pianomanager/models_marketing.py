"""
Marketing models: message templates, campaigns and their recipient queue
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import DEFAULT_PARTNER_ID
from .database import Base


class MessageTemplate(Base):
    __tablename__ = "message_templates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    type = Column(String(50), nullable=False)  # appointment_reminder, promotion, custom...
    channel = Column(String(20), default="email")  # email, whatsapp, sms, all
    name = Column(String(100), nullable=False)
    email_subject = Column(String(200), nullable=True)
    # Message body with {{variable}} placeholders
    content = Column(Text, nullable=False)
    html_content = Column(Text, nullable=True)
    available_variables = Column(JSON, nullable=True)
    is_default = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class MarketingCampaign(Base):
    __tablename__ = "marketing_campaigns"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    template_id = Column(Integer, ForeignKey("message_templates.id"), nullable=False)
    # draft, scheduled, in_progress, paused, completed, cancelled
    status = Column(String(20), default="draft", nullable=False)
    # {"clientTypes": [...], "requireEmail": bool, "city": str,
    #  "lastServiceBefore": iso, "lastServiceAfter": iso}
    recipient_filters = Column(JSON, nullable=True)
    total_recipients = Column(Integer, default=0)
    sent_count = Column(Integer, default=0)
    failed_count = Column(Integer, default=0)
    scheduled_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    template = relationship("MessageTemplate")
    recipients = relationship(
        "CampaignRecipient", back_populates="campaign", cascade="all, delete-orphan"
    )


class CampaignRecipient(Base):
    __tablename__ = "campaign_recipients"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(
        Integer, ForeignKey("marketing_campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    generated_message = Column(Text, nullable=True)
    status = Column(String(20), default="pending")  # pending, sent, failed, skipped
    sent_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    queue_order = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    campaign = relationship("MarketingCampaign", back_populates="recipients")
    client = relationship("Client")
