import os
from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./prepwise.db")

# Identity provider JWT (tokens are issued by the external auth provider)
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "dev-secret-key-change-in-production")
AUTH_JWT_ALGORITHM = "HS256"
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")

# Language model
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")
GEMINI_MAX_RETRIES = int(os.getenv("GEMINI_MAX_RETRIES", "3"))
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60"))

# Voice AI provider
VAPI_API_KEY = os.getenv("VAPI_API_KEY", "")
VAPI_API_URL = os.getenv("VAPI_API_URL", "https://api.vapi.ai")
VAPI_WORKFLOW_ID = os.getenv("VAPI_WORKFLOW_ID", "")
VAPI_REQUEST_TIMEOUT = 15

# Call lifecycle
CALL_CONNECT_TIMEOUT_SECONDS = float(os.getenv("CALL_CONNECT_TIMEOUT_SECONDS", "30"))

# Frontend URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")
