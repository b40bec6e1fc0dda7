import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reservations.db")
# False when running on the local SQLite fallback
DATABASE_CONFIGURED = bool(os.getenv("DATABASE_URL"))

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Public site URL, used in email links
SITE_URL = os.getenv("SITE_URL", "http://localhost:4321")
FRONTEND_ORIGINS = os.getenv("FRONTEND_ORIGINS", SITE_URL)

# SMTP Configuration (primary email transport)
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_SECURE = os.getenv("SMTP_SECURE", "false").lower() == "true"
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
SMTP_FROM = os.getenv("SMTP_FROM", "noreply@example.com")
SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "10"))

# Resend Email Configuration (fallback)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", SMTP_FROM)

# Optional shared store for the rate limiter; memory only when unset
REDIS_URL = os.getenv("REDIS_URL")

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# Version of the privacy policy the user agrees to
CONSENT_VERSION = os.getenv("CONSENT_VERSION", "1.0")

# Kindergarten details shown in emails and exports
KINDERGARTEN_NAME = "BRK Haus für Kinder - Leuchtturm"
KINDERGARTEN_SHORT_NAME = "Leuchtturm"
KINDERGARTEN_EMAIL = os.getenv("KINDERGARTEN_EMAIL", "leuchtturm@brk-muenchen.de")
KINDERGARTEN_STREET = "Kürnbergstraße 17a"
KINDERGARTEN_POSTAL_CODE = "81369"
KINDERGARTEN_CITY = "München"
DEFAULT_PICKUP_LOCATION = "Kindergarten Leuchtturm"

# GDPR export metadata
DATA_CONTROLLER = "Flaschenpost Magazin"
PRIVACY_CONTACT_EMAIL = os.getenv("PRIVACY_CONTACT_EMAIL", "datenschutz@flaschenpost-magazin.de")

# Pricing (EUR)
MAGAZINE_PRICE = float(os.getenv("MAGAZINE_PRICE", "2.50"))
SHIPPING_COST = float(os.getenv("SHIPPING_COST", "1.80"))
PAYPAL_ME_USERNAME = os.getenv("PAYPAL_ME_USERNAME", "flaschenpostleuchtturm")
PAYMENT_DEADLINE_DAYS = 7

# Retention rules
RESERVATION_EXPIRY_DAYS = 7
USER_DATA_RETENTION_DAYS = 365
AUDIT_LOG_RETENTION_YEARS = 7
