"""Main FastAPI application for the SMS weather chat service."""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI
from openai import AsyncOpenAI

from backcountry_chat.api.endpoints import router as sms_router
from backcountry_chat.chat.conversation import ConversationController
from backcountry_chat.chat.tools import ToolRegistry
from backcountry_chat.config import DEBUG, HOST, OPENAI_API_KEY, PORT, RATE_LIMIT_ENABLED, REDIS_URL
from backcountry_chat.logging_config import configure_logging
from backcountry_chat.rate_limiter import SenderRateLimiter
from backcountry_chat.sms.twilio_client import TwilioSmsClient
from backcountry_chat.weather.service import WeatherService
from backcountry_chat.workflow.sms_workflow import SmsChatWorkflow

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the shared clients and close them on shutdown."""
    try:
        weather_service = WeatherService()
        openai_client = AsyncOpenAI(api_key=OPENAI_API_KEY or None)
        sms_client = TwilioSmsClient()
        controller = ConversationController(openai_client, ToolRegistry(weather_service))
        app.state.workflow = SmsChatWorkflow(controller, sms_client)

        app.state.rate_limiter = None
        if RATE_LIMIT_ENABLED:
            logger.info(f"Connecting to Redis at {REDIS_URL}")
            app.state.rate_limiter = SenderRateLimiter(redis.from_url(REDIS_URL))

        logger.info("Starting Backcountry SMS Chat Service")
    except Exception as e:
        logger.error(f"Startup error: {e}")
        logger.error(traceback.format_exc())
        raise

    try:
        yield
    finally:
        logger.info("Shutting down Backcountry SMS Chat Service")
        await weather_service.aclose()
        await sms_client.aclose()
        await openai_client.close()
        if app.state.rate_limiter is not None:
            await app.state.rate_limiter.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Backcountry SMS Chat Service",
        description="Answers SMS with a reasoning model that can look up National Weather Service forecasts",
        version="0.1.0",
        lifespan=lifespan
    )
    app.include_router(sms_router)
    return app


# Create app instance for uvicorn
app = create_app()


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
