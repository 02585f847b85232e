"""Marketing router - message templates and campaigns"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    CampaignCreate,
    CampaignResponse,
    CampaignStats,
    CampaignUpdate,
    MessageHistoryEntry,
    PreviewResponse,
    RecipientResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from .service import MarketingService

router = APIRouter(prefix="/marketing", tags=["Marketing"])


def get_marketing_service(db: Session = Depends(get_db)) -> MarketingService:
    return MarketingService(db)


# ============================================================
# TEMPLATES
# ============================================================


@router.get("/templates", response_model=list[TemplateResponse])
async def get_templates(
    type: Optional[str] = Query(None),
    channel: Optional[str] = Query(None),
    isActive: Optional[bool] = Query(None),
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    templates = service.get_templates(current_user, type, channel, isActive)
    return [TemplateResponse.from_model(t) for t in templates]


@router.get("/templates/defaults")
async def get_default_templates(current_user: User = Depends(get_current_user)):
    """Built-in template catalogue with the variables each type offers"""
    return MarketingService.get_default_templates()


@router.post("/templates/initialize-defaults")
async def initialize_default_templates(
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return service.initialize_default_templates(current_user)


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return TemplateResponse.from_model(service.get_template(template_id, current_user))


@router.get("/templates/{template_id}/preview", response_model=PreviewResponse)
async def preview_template(
    template_id: int,
    clientId: int = Query(...),
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    """Render a template for one client"""
    return service.preview(template_id, clientId, current_user)


@router.post("/templates", response_model=TemplateResponse)
async def create_template(
    data: TemplateCreate,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return TemplateResponse.from_model(service.create_template(data, current_user))


@router.patch("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    data: TemplateUpdate,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return TemplateResponse.from_model(service.update_template(template_id, data, current_user))


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return service.delete_template(template_id, current_user)


# ============================================================
# CAMPAIGNS
# ============================================================


@router.get("/campaigns", response_model=list[CampaignResponse])
async def get_campaigns(
    status: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    campaigns = service.get_campaigns(current_user, status, limit, offset)
    return [CampaignResponse.from_model(c) for c in campaigns]


@router.get("/campaigns/stats", response_model=CampaignStats)
async def get_campaign_stats(
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return service.get_stats(current_user)


@router.get("/messages", response_model=list[MessageHistoryEntry])
async def get_message_history(
    clientId: Optional[int] = Query(None),
    campaignId: Optional[int] = Query(None),
    channel: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    """Messages generated for clients by the user's campaigns"""
    messages = service.message_history(current_user, clientId, campaignId, channel, limit, offset)
    return [MessageHistoryEntry.from_model(m) for m in messages]


@router.get("/campaigns/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: int,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    """Campaign with recipient counts per status"""
    campaign = service.get_campaign(campaign_id, current_user)
    return CampaignResponse.from_model(campaign, service.recipient_counts(campaign.id))


@router.get("/campaigns/{campaign_id}/recipients", response_model=list[RecipientResponse])
async def get_campaign_recipients(
    campaign_id: int,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return [
        RecipientResponse(
            id=r.id,
            clientId=r.client_id,
            clientName=r.client.name if r.client else None,
            generatedMessage=r.generated_message,
            status=r.status,
            queueOrder=r.queue_order,
            errorMessage=r.error_message,
        )
        for r in service.get_recipients(campaign_id, current_user)
    ]


@router.post("/campaigns", response_model=CampaignResponse)
async def create_campaign(
    data: CampaignCreate,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return CampaignResponse.from_model(service.create_campaign(data, current_user))


@router.patch("/campaigns/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    campaign_id: int,
    data: CampaignUpdate,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return CampaignResponse.from_model(service.update_campaign(campaign_id, data, current_user))


@router.delete("/campaigns/{campaign_id}")
async def delete_campaign(
    campaign_id: int,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    return service.delete_campaign(campaign_id, current_user)


@router.post("/campaigns/{campaign_id}/calculate-recipients")
async def calculate_recipients(
    campaign_id: int,
    current_user: User = Depends(get_current_user),
    service: MarketingService = Depends(get_marketing_service),
):
    """Replace the recipient queue with the clients matching the campaign filters"""
    return service.calculate_recipients(campaign_id, current_user)
