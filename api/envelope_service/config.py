import os

QUIK_BASE_URL = os.getenv("QUIK_BASE_URL")
QUIK_OAUTH_MASTER_USER = os.getenv("QUIK_OAUTH_MASTER_USER")
QUIK_OAUTH_MASTER_PASSWORD = os.getenv("QUIK_OAUTH_MASTER_PASSWORD")

DOCUSIGN_HOST_ENV = os.getenv("DOCUSIGN_HOST_ENV", "account-d.docusign.com")
DOCUSIGN_ACCESS_TOKEN = os.getenv("DOCUSIGN_ACCESS_TOKEN")
DOCUSIGN_ACCOUNT_ID = os.getenv("DOCUSIGN_ACCOUNT_ID")
DOCUSIGN_BASE_URL = os.getenv("DOCUSIGN_BASE_URL")

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SERVICE_NAME = "envelope-service"
