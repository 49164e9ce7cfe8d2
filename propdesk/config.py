import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./propdesk.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

# Frontend base URL for links in emails (public quotation page, ticket detail)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "PropDesk <noreply@propdesk.app>")

# Redis (rate limiting, cache, arq worker)
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"

# Business defaults applied when an agency has not configured its own values
DEFAULT_MAINTENANCE_COMMISSION_PERCENT = float(
    os.getenv("DEFAULT_MAINTENANCE_COMMISSION_PERCENT", "15")
)
DEFAULT_ADMIN_FEE_PERCENT = float(os.getenv("DEFAULT_ADMIN_FEE_PERCENT", "15"))
DEFAULT_RENTAL_COMMISSION_PERCENT = float(os.getenv("DEFAULT_RENTAL_COMMISSION_PERCENT", "10"))

# Resolved tickets are closed automatically after this many days
TICKET_AUTO_CLOSE_DAYS = int(os.getenv("TICKET_AUTO_CLOSE_DAYS", "7"))
