"""Complaint Service Configuration."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from service directory
service_dir = Path(__file__).parent
env_file = service_dir / ".env"
if env_file.exists():
    load_dotenv(env_file)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Service Configuration
PORT = int(os.getenv("PORT", "3001"))
SERVICE_NAME = os.getenv("SERVICE_NAME", "complaint")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


# Gemini; an empty key switches classification to the fallback
def gemini_api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")


GEMINI_API_KEY = gemini_api_key()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "true")
ENFORCE_STATUS_TRANSITIONS = _flag("ENFORCE_STATUS_TRANSITIONS", "false")
