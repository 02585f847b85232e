"""
Expire licenses and activation codes whose ``expires_at`` has passed

Owners of newly expired licenses get an in-app notification and, when
possible, an email with the renewal link.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..domain.notifications.service import create_notification
from ..email_service import deliver_email
from ..email_templates import license_expired_template
from ..models import User
from ..models_license import ActivationCode, License

logger = logging.getLogger(__name__)


def expire_licenses_and_codes(db: Session, now: datetime = None) -> dict:
    now = now or datetime.utcnow()
    summary = {"licenses_expired": 0, "codes_expired": 0, "emails_sent": 0, "emails_failed": 0}

    try:
        licenses = (
            db.query(License)
            .filter(License.status == "active", License.expires_at.isnot(None), License.expires_at < now)
            .all()
        )
        for lic in licenses:
            lic.status = "expired"
            summary["licenses_expired"] += 1
            create_notification(
                db,
                user_id=lic.user_id,
                type="license",
                title="Your license has expired",
                message=f"License expired on {lic.expires_at.strftime('%d/%m/%Y')}",
                data={"licenseId": lic.id, "storeUrl": lic.store_url},
            )

        summary["codes_expired"] = (
            db.query(ActivationCode)
            .filter(
                ActivationCode.status == "active",
                ActivationCode.expires_at.isnot(None),
                ActivationCode.expires_at < now,
            )
            .update({ActivationCode.status: "expired"}, synchronize_session=False)
        )
        db.commit()
    except Exception as e:
        logger.error(f"❌ License expiration failed: {str(e)}")
        db.rollback()
        raise

    for lic in licenses:
        user = db.query(User).filter(User.id == lic.user_id).first()
        if not user or not user.email or not user.notification_email_enabled:
            continue
        try:
            deliver_email(
                user.email,
                "Your license has expired",
                license_expired_template(user.name, lic.expires_at.strftime("%d/%m/%Y"), lic.store_url),
                user=user,
            )
            summary["emails_sent"] += 1
        except Exception as e:
            summary["emails_failed"] += 1
            logger.warning(f"⚠️ License expiry email failed for user {lic.user_id}: {e}")

    if summary["licenses_expired"] or summary["codes_expired"]:
        logger.info(f"📊 License expiration summary: {summary}")
    return summary
