# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

# never reach Twilio from tests
TWILIO_ACCOUNT_SID = ""
TWILIO_AUTH_TOKEN = ""
TWILIO_WHATSAPP_FROM = ""

CLINIC_NAME = "Test Clinic"
CLINIC_CURRENCY = "USD"

LOGGING["loggers"]["clinic_core"]["level"] = "WARNING"  # noqa: F405
