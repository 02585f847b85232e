import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pianomanager.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
APPROVAL_URL = os.getenv("APPROVAL_URL", f"{FRONTEND_URL}/workflows/approvals")

# Resend Email Configuration (fallback when a user has no live SMTP)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Piano Emotion Manager <noreply@pianoemotion.com>")

# Custom SMTP Encryption Key (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")
SMTP_ENCRYPTION_KEY = os.getenv("SMTP_ENCRYPTION_KEY")

# Workflow approvals older than this many hours get an email reminder
APPROVAL_STALE_HOURS = int(os.getenv("APPROVAL_STALE_HOURS", "24"))

# Tenant partner assigned to new accounts and records
DEFAULT_PARTNER_ID = int(os.getenv("DEFAULT_PARTNER_ID", "1"))

# Translation files: <LOCALES_DIR>/<lang>.json
LOCALES_DIR = os.getenv("LOCALES_DIR", str(Path(__file__).resolve().parent.parent / "locales"))

# Store link written on directly sold licenses
LICENSE_STORE_URL = os.getenv("LICENSE_STORE_URL", "https://pianoemotion.com/store")

# Invoice numbers: <INVOICE_PREFIX>-<year>-<sequence>
INVOICE_PREFIX = os.getenv("INVOICE_PREFIX", "INV")
