"""Configuration settings for the SMS weather chat service."""

import os
from typing import Final
from dotenv import load_dotenv

load_dotenv()

# Weather provider (api.weather.gov)
NWS_API_BASE_URL: Final[str] = "https://api.weather.gov"
NWS_ACCEPT: Final[str] = "application/ld+json"
NWS_USER_AGENT: str = os.getenv("NWS_USER_AGENT", "(backcountry-chat, contact@example.com)")
NWS_TIMEOUT_SECONDS: float = float(os.getenv("NWS_TIMEOUT_SECONDS", "30"))

# Model provider
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "o3-2025-04-16")
OPENAI_REASONING_EFFORT: str = os.getenv("OPENAI_REASONING_EFFORT", "medium")
OPENAI_PROMPT_ID: str = os.getenv("OPENAI_PROMPT_ID", "")
OPENAI_PROMPT_VERSION: str = os.getenv("OPENAI_PROMPT_VERSION", "")
OPENAI_BACKGROUND: bool = os.getenv("OPENAI_BACKGROUND", "true").lower() == "true"
OPENAI_ENABLE_WEB_SEARCH: bool = os.getenv("OPENAI_ENABLE_WEB_SEARCH", "true").lower() == "true"
OPENAI_ENABLE_CODE_INTERPRETER: bool = os.getenv("OPENAI_ENABLE_CODE_INTERPRETER", "true").lower() == "true"
USER_LOCATION_COUNTRY: str = os.getenv("USER_LOCATION_COUNTRY", "US")
USER_LOCATION_REGION: str = os.getenv("USER_LOCATION_REGION", "California")

# Conversation loop
MAX_TOOL_ROUNDS: int = int(os.getenv("MAX_TOOL_ROUNDS", "10"))
POLL_BASE_DELAY_SECONDS: float = float(os.getenv("POLL_BASE_DELAY_SECONDS", "2"))
POLL_MAX_DELAY_SECONDS: float = float(os.getenv("POLL_MAX_DELAY_SECONDS", "30"))

# Durable step policies (attempts include the first try)
MODEL_STEP_MAX_ATTEMPTS: int = int(os.getenv("MODEL_STEP_MAX_ATTEMPTS", "6"))
MODEL_STEP_BASE_DELAY_SECONDS: float = float(os.getenv("MODEL_STEP_BASE_DELAY_SECONDS", "5"))
MODEL_STEP_BACKOFF: str = os.getenv("MODEL_STEP_BACKOFF", "exponential")
MODEL_STEP_TIMEOUT_SECONDS: float = float(os.getenv("MODEL_STEP_TIMEOUT_SECONDS", "900"))
SEND_STEP_MAX_ATTEMPTS: int = int(os.getenv("SEND_STEP_MAX_ATTEMPTS", "6"))
SEND_STEP_BASE_DELAY_SECONDS: float = float(os.getenv("SEND_STEP_BASE_DELAY_SECONDS", "2"))
SEND_STEP_BACKOFF: str = os.getenv("SEND_STEP_BACKOFF", "exponential")
SEND_STEP_TIMEOUT_SECONDS: float = float(os.getenv("SEND_STEP_TIMEOUT_SECONDS", "900"))

# SMS transport (Twilio)
TWILIO_TIMEOUT_SECONDS: float = float(os.getenv("TWILIO_TIMEOUT_SECONDS", "30"))
TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_VALIDATE_SIGNATURE: bool = os.getenv("TWILIO_VALIDATE_SIGNATURE", "true").lower() == "true"
WEBHOOK_PUBLIC_URL: str = os.getenv("WEBHOOK_PUBLIC_URL", "")

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Inbound rate limiting, per sender number
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "false").lower() == "true"
RATE_LIMIT_MESSAGES_PER_WINDOW: int = int(os.getenv("RATE_LIMIT_MESSAGES_PER_WINDOW", "10"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))
RATE_LIMIT_REDIS_KEY_PREFIX: str = os.getenv("RATE_LIMIT_REDIS_KEY_PREFIX", "sms_rate_limit")
