"""
Security utilities: JWT session tokens, SMTP secret encryption and HTML sanitization
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import bleach
from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError
from jose import jwt as jose_jwt

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY, SMTP_ENCRYPTION_KEY

logger = logging.getLogger(__name__)

# Initialize encryption for stored SMTP passwords
fernet = Fernet(SMTP_ENCRYPTION_KEY) if SMTP_ENCRYPTION_KEY else None


# ============================================================================
# TOKENS
# ============================================================================


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token (``sub``, ``email``, ``name``)
        expires_delta: Token expiration time (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# SMTP PASSWORD ENCRYPTION
# ============================================================================


def encrypt_password(password: str) -> str:
    """Encrypt SMTP password for storage"""
    if not fernet:
        logger.warning("SMTP_ENCRYPTION_KEY not set, storing password in plain text")
        return password
    return fernet.encrypt(password.encode()).decode()


def decrypt_password(encrypted: Optional[str]) -> str:
    """Decrypt SMTP password for use"""
    if not fernet or not encrypted:
        return encrypted or ""
    try:
        return fernet.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        # Stored before encryption was configured
        return encrypted


# ============================================================================
# INPUT SANITIZATION
# ============================================================================

ALLOWED_EMAIL_TAGS = [
    "p",
    "br",
    "strong",
    "em",
    "u",
    "a",
    "ul",
    "ol",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "blockquote",
    "span",
    "div",
]


def sanitize_html(html_content: str, allowed_tags: Optional[list] = None) -> str:
    """
    Sanitize user-authored HTML (email bodies) to prevent XSS

    Args:
        html_content: Raw HTML content
        allowed_tags: List of allowed HTML tags (default: safe subset)
    """
    if not html_content:
        return html_content

    allowed_attributes = {"a": ["href", "title", "target"], "*": ["class", "style"]}

    return bleach.clean(
        html_content,
        tags=allowed_tags or ALLOWED_EMAIL_TAGS,
        attributes=allowed_attributes,
        strip=True,
    )
