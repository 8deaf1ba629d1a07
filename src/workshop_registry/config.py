"""Configuration loader for Workshop Registry with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY"),
    "anthropic_model": os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest"),
    "database_url": os.getenv("DATABASE_URL", "sqlite:///./workshop_registry.db"),
    "redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    "port": int(os.getenv("PORT", "8080")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "app_base_url": os.getenv("APP_BASE_URL", "http://localhost:8080"),
    "mailgun_api_key": os.getenv("MAILGUN_API_KEY"),
    "mailgun_domain": os.getenv("MAILGUN_DOMAIN"),
    "sender_email": os.getenv("SENDER_EMAIL"),
    "environment": os.getenv("ENVIRONMENT", "development"),
    # Sliding expiry for workshop drafts kept in Redis
    "draft_ttl_seconds": int(os.getenv("DRAFT_TTL_SECONDS", "1800")),
    # Conditional counter updates retried this many times before giving up as "full"
    "admission_max_attempts": int(os.getenv("ADMISSION_MAX_ATTEMPTS", "3")),
}
