import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from .config import DEFAULT_PARTNER_ID
from .database import get_db
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_session_token(token: str) -> dict:
    """Validate a bearer token and return its claims"""
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    payload = verify_jwt_token(token)
    if payload is None:
        raise HTTPException(
            status_code=401,
            detail="Token is invalid or has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the session token, provisioning unknown accounts"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    claims = decode_session_token(credentials.credentials)

    auth_uid = claims.get("sub") or claims.get("uid")
    email = claims.get("email")
    name = claims.get("name", "")

    if not auth_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.auth_uid == auth_uid).first()
    if user:
        user.last_signed_in = func.now()
        db.commit()
        db.refresh(user)
        return user

    # Same email under a different identity provider: re-link the account
    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(f"🔄 Re-linking user {email} from UID {existing_user.auth_uid} to {auth_uid}")
            existing_user.auth_uid = auth_uid
            if name and not existing_user.name:
                existing_user.name = name
            db.commit()
            db.refresh(existing_user)
            return existing_user

    logger.info(f"🆕 Creating new user: {email}")
    user = User(auth_uid=auth_uid, email=email, name=name, partner_id=DEFAULT_PARTNER_ID)
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        db.rollback()
        # Email taken between the lookup and the insert
        logger.error(f"❌ Email {email} was taken by another account (race condition)")
        raise HTTPException(
            status_code=409,
            detail="This email is already registered. Please sign in with your existing account.",
        ) from e

    logger.info(f"✅ New user created: {user.email}")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """
    Get current user and verify they are a platform administrator.
    Use this dependency for partner, license and translation management.
    """
    if user.role != "admin":
        logger.warning(f"⚠️ User {user.email} attempted to access an admin-only route")
        raise HTTPException(status_code=403, detail="Administrator access required")
    return user
