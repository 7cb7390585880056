import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Full mesh over at most this many participants
MAX_MEMBERS = int(os.getenv("MAX_MEMBERS", 3))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", 50))

SYSTEM_SENDER = "system"
