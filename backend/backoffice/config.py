# backend/backoffice/config.py
from __future__ import annotations
import os


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///backoffice.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin credential. Only a bcrypt hash is configured, never the password.
    # Generate one with: python -m flask admin hash-password
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "SaiSiddha333")
    ADMIN_PASSWORD_HASH = os.environ.get("ADMIN_PASSWORD_HASH", "")

    # Session / throttling policy
    SESSION_DURATION_MINUTES = int(os.environ.get("SESSION_DURATION_MINUTES", "30"))
    MAX_LOGIN_ATTEMPTS = int(os.environ.get("MAX_LOGIN_ATTEMPTS", "5"))
    LOCKOUT_WINDOW_MINUTES = int(os.environ.get("LOCKOUT_WINDOW_MINUTES", "15"))

    # CORS
    CORS_ALLOWED_ORIGINS = _split_csv(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,https://saisiddhafurniture.com",
    ))
    CORS_ALLOWED_ORIGIN_SUFFIX = os.environ.get("CORS_ALLOWED_ORIGIN_SUFFIX", ".lovable.app")
    CORS_DEFAULT_ORIGIN = os.environ.get("CORS_DEFAULT_ORIGIN", "https://saisiddhafurniture.com")

    # Invoice rendering. Without a TTF carrying the rupee glyph the invoice
    # falls back to Helvetica and an "Rs." prefix.
    INVOICE_FONT_PATH = os.environ.get("INVOICE_FONT_PATH")
    INVOICE_FONT_BOLD_PATH = os.environ.get("INVOICE_FONT_BOLD_PATH")

    # Seller profile printed on invoices
    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "Sai Siddha Furniture Work")
    BUSINESS_OWNER = os.environ.get("BUSINESS_OWNER", "Mr. Pritam Nandgaonkar")
    BUSINESS_LOCATION = os.environ.get("BUSINESS_LOCATION", "MIDC, Ratnagiri, Maharashtra, India")
    BUSINESS_PHONE1 = os.environ.get("BUSINESS_PHONE1", "9075700075")
    BUSINESS_PHONE2 = os.environ.get("BUSINESS_PHONE2", "9075000515")
    BUSINESS_EMAIL = os.environ.get("BUSINESS_EMAIL", "saisiddhafurnitureworks@gmail.com")
    BUSINESS_GSTIN = os.environ.get("BUSINESS_GSTIN", "")
    BUSINESS_PAN = os.environ.get("BUSINESS_PAN", "")
    BUSINESS_STATE = os.environ.get("BUSINESS_STATE", "Maharashtra")
    BUSINESS_STATE_CODE = os.environ.get("BUSINESS_STATE_CODE", "27")
    BUSINESS_BANK_NAME = os.environ.get("BUSINESS_BANK_NAME", "")
    BUSINESS_ACCOUNT_HOLDER = os.environ.get("BUSINESS_ACCOUNT_HOLDER", "Sai Siddha Furniture Work")
    BUSINESS_ACCOUNT_NUMBER = os.environ.get("BUSINESS_ACCOUNT_NUMBER", "")
    BUSINESS_IFSC = os.environ.get("BUSINESS_IFSC", "")
