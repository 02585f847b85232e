"""Marketing service - message templates, campaigns and recipient queues"""

import logging
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Appointment, Client, Piano, ServiceRecord, User
from ...models_marketing import CampaignRecipient, MarketingCampaign, MessageTemplate
from ...security_utils import sanitize_html
from ...shared.templating import NAME_PATTERN, render_template
from .catalog import DEFAULT_TEMPLATES, TEMPLATE_TYPES, TEMPLATE_VARIABLES
from .schemas import CHANNELS, CampaignCreate, CampaignUpdate, RecipientFilters, TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)


def invalid_variables(content: str, template_type: str) -> list[str]:
    """``{{name}}`` placeholders in ``content`` that the template type does not offer"""
    allowed = set(TEMPLATE_VARIABLES.get(template_type, []))
    found = dict.fromkeys(NAME_PATTERN.findall(content or ""))
    return [name for name in found if name not in allowed]


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def _format_amount(value: Optional[float]) -> str:
    return f"{value:.2f} €" if value is not None else ""


class MarketingService:
    def __init__(self, db: Session):
        self.db = db

    # ============================================================
    # TEMPLATES
    # ============================================================

    def get_templates(
        self,
        user: User,
        template_type: Optional[str] = None,
        channel: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[MessageTemplate]:
        query = self.db.query(MessageTemplate).filter(MessageTemplate.user_id == user.id)
        if template_type:
            query = query.filter(MessageTemplate.type == template_type)
        if channel:
            query = query.filter(MessageTemplate.channel == channel)
        if is_active is not None:
            query = query.filter(MessageTemplate.is_active.is_(is_active))
        return query.order_by(MessageTemplate.created_at.desc(), MessageTemplate.id.desc()).all()

    def get_template(self, template_id: int, user: User) -> MessageTemplate:
        template = (
            self.db.query(MessageTemplate)
            .filter(MessageTemplate.id == template_id, MessageTemplate.user_id == user.id)
            .first()
        )
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")
        return template

    def _check_variables(self, content: str, template_type: str) -> None:
        invalid = invalid_variables(content, template_type)
        if invalid:
            names = ", ".join(f"{{{{{name}}}}}" for name in invalid)
            raise HTTPException(status_code=400, detail=f"Invalid template variables: {names}")

    def create_template(self, data: TemplateCreate, user: User) -> MessageTemplate:
        self._check_variables(data.content, data.type)

        template = MessageTemplate(
            user_id=user.id,
            partner_id=user.partner_id,
            type=data.type,
            channel=data.channel,
            name=data.name.strip(),
            email_subject=data.emailSubject,
            content=data.content,
            html_content=sanitize_html(data.htmlContent) if data.htmlContent else None,
            available_variables=TEMPLATE_VARIABLES[data.type],
            is_default=data.isDefault,
            is_active=data.isActive,
        )
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        logger.info(f"✅ Message template {template.id} created for user {user.id}")
        return template

    def update_template(self, template_id: int, data: TemplateUpdate, user: User) -> MessageTemplate:
        template = self.get_template(template_id, user)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("content") is not None:
            self._check_variables(updates["content"], template.type)
        if "htmlContent" in updates:
            updates["htmlContent"] = sanitize_html(updates["htmlContent"]) if updates["htmlContent"] else None

        columns = {
            "channel": "channel",
            "name": "name",
            "emailSubject": "email_subject",
            "content": "content",
            "htmlContent": "html_content",
            "isDefault": "is_default",
            "isActive": "is_active",
        }
        for field, value in updates.items():
            if value is None and field in ("channel", "name", "content", "isDefault", "isActive"):
                continue
            setattr(template, columns[field], value)

        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template_id: int, user: User) -> dict:
        template = self.get_template(template_id, user)
        in_use = (
            self.db.query(func.count(MarketingCampaign.id))
            .filter(MarketingCampaign.template_id == template.id)
            .scalar()
        )
        if in_use:
            raise HTTPException(status_code=409, detail="Template is used by a campaign and cannot be deleted")
        self.db.delete(template)
        self.db.commit()
        return {"success": True, "message": "Template deleted"}

    @staticmethod
    def get_default_templates() -> list[dict]:
        return [
            {
                "type": template_type,
                "name": DEFAULT_TEMPLATES[template_type]["name"],
                "emailSubject": DEFAULT_TEMPLATES[template_type]["subject"],
                "content": DEFAULT_TEMPLATES[template_type]["content"],
                "availableVariables": TEMPLATE_VARIABLES[template_type],
            }
            for template_type in TEMPLATE_TYPES
        ]

    def initialize_default_templates(self, user: User) -> dict:
        """Add the built-in templates the user does not already have"""
        existing = {
            t
            for (t,) in self.db.query(MessageTemplate.type)
            .filter(MessageTemplate.user_id == user.id, MessageTemplate.is_default.is_(True))
            .all()
        }

        created = 0
        for template_type in TEMPLATE_TYPES:
            if template_type in existing:
                continue
            default = DEFAULT_TEMPLATES[template_type]
            self.db.add(
                MessageTemplate(
                    user_id=user.id,
                    partner_id=user.partner_id,
                    type=template_type,
                    channel="email",
                    name=default["name"],
                    email_subject=default["subject"],
                    content=default["content"],
                    available_variables=TEMPLATE_VARIABLES[template_type],
                    is_default=True,
                    is_active=True,
                )
            )
            created += 1

        self.db.commit()
        logger.info(f"📄 Initialized {created} default templates for user {user.id}")
        return {"success": True, "count": created}

    # ============================================================
    # PERSONALISATION
    # ============================================================

    def client_variables(self, client: Client, user: User, now: Optional[datetime] = None) -> dict[str, str]:
        """Values for ``{{variable}}`` placeholders about one client"""
        now = now or datetime.utcnow()
        name = (client.name or "").strip()

        variables = {
            "cliente_nombre": name.split(" ")[0] if name else "",
            "cliente_nombre_completo": name,
            "direccion": client.address or "",
            "nombre_negocio": user.smtp_from_name or user.name or "",
            "email_negocio": user.email or "",
            "telefono_negocio": "",
        }

        piano = (
            self.db.query(Piano).filter(Piano.client_id == client.id).order_by(Piano.id).first()
        )
        if piano:
            variables["piano_marca"] = piano.brand or ""
            variables["piano_modelo"] = piano.model or ""

        last_service = (
            self.db.query(ServiceRecord)
            .filter(ServiceRecord.client_id == client.id)
            .order_by(ServiceRecord.date.desc())
            .first()
        )
        if last_service:
            elapsed = relativedelta(now, last_service.date)
            months = elapsed.years * 12 + elapsed.months
            variables.update(
                {
                    "ultimo_servicio": _format_date(last_service.date),
                    "fecha_servicio": _format_date(last_service.date),
                    "tipo_servicio": last_service.service_type or "",
                    "importe": _format_amount(last_service.cost),
                    "notas": last_service.notes or "",
                    "meses_desde_servicio": str(months),
                    "meses_inactivo": str(months),
                    "dias_desde_servicio": str((now - last_service.date).days),
                }
            )

        next_appointment = (
            self.db.query(Appointment)
            .filter(
                Appointment.client_id == client.id,
                Appointment.date >= now,
                Appointment.status.in_(("scheduled", "confirmed")),
            )
            .order_by(Appointment.date)
            .first()
        )
        if next_appointment:
            variables["fecha_cita"] = _format_date(next_appointment.date)
            variables["hora_cita"] = next_appointment.date.strftime("%H:%M")
            variables["direccion"] = next_appointment.address or variables["direccion"]
            if next_appointment.service_type:
                variables["tipo_servicio"] = next_appointment.service_type

        return variables

    def preview(self, template_id: int, client_id: int, user: User) -> dict:
        template = self.get_template(template_id, user)
        client = (
            self.db.query(Client).filter(Client.id == client_id, Client.user_id == user.id).first()
        )
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        variables = self.client_variables(client, user)
        return {
            "subject": render_template(template.email_subject, variables) if template.email_subject else None,
            "content": render_template(template.content, variables),
            "variables": variables,
        }

    # ============================================================
    # CAMPAIGNS
    # ============================================================

    def get_campaigns(
        self, user: User, status: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> list[MarketingCampaign]:
        query = self.db.query(MarketingCampaign).filter(MarketingCampaign.user_id == user.id)
        if status:
            query = query.filter(MarketingCampaign.status == status)
        return (
            query.order_by(MarketingCampaign.created_at.desc(), MarketingCampaign.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_campaign(self, campaign_id: int, user: User) -> MarketingCampaign:
        campaign = (
            self.db.query(MarketingCampaign)
            .filter(MarketingCampaign.id == campaign_id, MarketingCampaign.user_id == user.id)
            .first()
        )
        if not campaign:
            raise HTTPException(status_code=404, detail="Campaign not found")
        return campaign

    def recipient_counts(self, campaign_id: int) -> dict[str, int]:
        rows = (
            self.db.query(CampaignRecipient.status, func.count(CampaignRecipient.id))
            .filter(CampaignRecipient.campaign_id == campaign_id)
            .group_by(CampaignRecipient.status)
            .all()
        )
        counts = {"pending": 0, "sent": 0, "failed": 0, "skipped": 0}
        counts.update({status: count for status, count in rows})
        return counts

    def get_recipients(self, campaign_id: int, user: User) -> list[CampaignRecipient]:
        self.get_campaign(campaign_id, user)
        return (
            self.db.query(CampaignRecipient)
            .filter(CampaignRecipient.campaign_id == campaign_id)
            .order_by(CampaignRecipient.queue_order)
            .all()
        )

    def message_history(
        self,
        user: User,
        client_id: Optional[int] = None,
        campaign_id: Optional[int] = None,
        channel: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CampaignRecipient]:
        """Generated campaign messages across the user's campaigns, newest first"""
        query = (
            self.db.query(CampaignRecipient)
            .join(MarketingCampaign, CampaignRecipient.campaign_id == MarketingCampaign.id)
            .filter(MarketingCampaign.user_id == user.id)
        )
        if client_id is not None:
            query = query.filter(CampaignRecipient.client_id == client_id)
        if campaign_id is not None:
            query = query.filter(CampaignRecipient.campaign_id == campaign_id)
        if channel:
            if channel not in CHANNELS:
                raise HTTPException(status_code=400, detail=f"Invalid channel: {channel}")
            query = query.join(MessageTemplate, MarketingCampaign.template_id == MessageTemplate.id).filter(
                MessageTemplate.channel.in_((channel, "all"))
            )
        sent_or_queued = func.coalesce(CampaignRecipient.sent_at, CampaignRecipient.created_at)
        return (
            query.order_by(sent_or_queued.desc(), CampaignRecipient.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def create_campaign(self, data: CampaignCreate, user: User) -> MarketingCampaign:
        self.get_template(data.templateId, user)

        campaign = MarketingCampaign(
            user_id=user.id,
            partner_id=user.partner_id,
            name=data.name.strip(),
            description=data.description,
            template_id=data.templateId,
            status="draft",
            recipient_filters=data.recipientFilters.model_dump(mode="json", exclude_none=True),
            scheduled_at=data.scheduledAt,
        )
        self.db.add(campaign)
        self.db.commit()
        self.db.refresh(campaign)
        logger.info(f"📣 Campaign {campaign.id} created for user {user.id}")
        return campaign

    def update_campaign(self, campaign_id: int, data: CampaignUpdate, user: User) -> MarketingCampaign:
        campaign = self.get_campaign(campaign_id, user)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("templateId") is not None:
            self.get_template(updates["templateId"], user)
            campaign.template_id = updates["templateId"]
        if updates.get("name"):
            campaign.name = updates["name"].strip()
        if "description" in updates:
            campaign.description = updates["description"]
        if "scheduledAt" in updates:
            campaign.scheduled_at = updates["scheduledAt"]
        if data.recipientFilters is not None:
            campaign.recipient_filters = data.recipientFilters.model_dump(mode="json", exclude_none=True)
        if updates.get("status"):
            self._apply_status(campaign, updates["status"])

        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    @staticmethod
    def _apply_status(campaign: MarketingCampaign, status: str) -> None:
        now = datetime.utcnow()
        if status == "in_progress" and campaign.started_at is None:
            campaign.started_at = now
        if status == "completed":
            campaign.completed_at = now
        campaign.status = status

    def delete_campaign(self, campaign_id: int, user: User) -> dict:
        campaign = self.get_campaign(campaign_id, user)
        self.db.delete(campaign)
        self.db.commit()
        return {"success": True, "message": "Campaign deleted"}

    def _matching_clients(self, user: User, filters: RecipientFilters) -> list[Client]:
        last_service = (
            self.db.query(
                ServiceRecord.client_id.label("client_id"),
                func.max(ServiceRecord.date).label("last_date"),
            )
            .filter(ServiceRecord.user_id == user.id)
            .group_by(ServiceRecord.client_id)
            .subquery()
        )

        query = (
            self.db.query(Client)
            .outerjoin(last_service, last_service.c.client_id == Client.id)
            .filter(Client.user_id == user.id)
        )
        if filters.clientTypes:
            query = query.filter(Client.client_type.in_(filters.clientTypes))
        if filters.requireEmail:
            query = query.filter(Client.email.isnot(None), Client.email != "")
        if filters.city:
            query = query.filter(func.lower(Client.city) == filters.city.strip().lower())
        if filters.lastServiceBefore:
            # Clients never serviced count as overdue
            query = query.filter(
                (last_service.c.last_date.is_(None)) | (last_service.c.last_date < filters.lastServiceBefore)
            )
        if filters.lastServiceAfter:
            query = query.filter(last_service.c.last_date > filters.lastServiceAfter)

        return query.order_by(Client.name, Client.id).all()

    def calculate_recipients(self, campaign_id: int, user: User) -> dict:
        """Rebuild the campaign's recipient queue from its filters"""
        campaign = self.get_campaign(campaign_id, user)
        template = self.get_template(campaign.template_id, user)
        filters = RecipientFilters(**(campaign.recipient_filters or {}))

        self.db.query(CampaignRecipient).filter(CampaignRecipient.campaign_id == campaign.id).delete(
            synchronize_session=False
        )

        clients = self._matching_clients(user, filters)
        for index, client in enumerate(clients, start=1):
            self.db.add(
                CampaignRecipient(
                    campaign_id=campaign.id,
                    client_id=client.id,
                    generated_message=render_template(template.content, self.client_variables(client, user)),
                    status="pending",
                    queue_order=index,
                )
            )

        campaign.total_recipients = len(clients)
        campaign.sent_count = 0
        campaign.failed_count = 0
        self.db.commit()
        logger.info(f"📣 Campaign {campaign.id}: {len(clients)} recipients calculated")
        return {"success": True, "totalRecipients": len(clients)}

    def get_stats(self, user: User) -> dict:
        total, draft, active, completed = (
            self.db.query(
                func.count(MarketingCampaign.id),
                func.sum(case((MarketingCampaign.status == "draft", 1), else_=0)),
                func.sum(case((MarketingCampaign.status.in_(("scheduled", "in_progress")), 1), else_=0)),
                func.sum(case((MarketingCampaign.status == "completed", 1), else_=0)),
            )
            .filter(MarketingCampaign.user_id == user.id)
            .one()
        )
        return {
            "total": total or 0,
            "draft": int(draft or 0),
            "active": int(active or 0),
            "completed": int(completed or 0),
        }
