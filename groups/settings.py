import os

DEFAULT_CURRENCY = os.getenv("SPLITLEDGER_DEFAULT_CURRENCY", "EUR").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("SPLITLEDGER_CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("SPLITLEDGER_LOG_LEVEL", "INFO").upper()
