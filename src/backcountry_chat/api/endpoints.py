"""Webhook endpoints for inbound SMS."""

import logging
import math
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from pydantic import ValidationError
from twilio.request_validator import RequestValidator

from backcountry_chat.config import TWILIO_AUTH_TOKEN, TWILIO_VALIDATE_SIGNATURE, WEBHOOK_PUBLIC_URL
from backcountry_chat.rate_limiter import SenderRateLimiter
from backcountry_chat.sms.models import InboundSms
from backcountry_chat.workflow.sms_workflow import SmsChatWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sms"])

# Empty TwiML: acknowledge without an immediate reply
EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response/>'


def rate_limited_reply(retry_after: int) -> str:
    """Reply text for a sender over the message limit."""
    minutes = max(1, math.ceil(retry_after / 60))
    return f"Too many messages. Please try again in {minutes} minutes."


def get_workflow(request: Request) -> SmsChatWorkflow:
    """Dependency to get the workflow built at startup."""
    return request.app.state.workflow


def get_rate_limiter(request: Request) -> Optional[SenderRateLimiter]:
    """Dependency to get the sender rate limiter, None when disabled."""
    return request.app.state.rate_limiter


async def verify_twilio_signature(request: Request) -> None:
    """Reject webhook calls that were not signed with our auth token.

    Raises:
        HTTPException: If the X-Twilio-Signature header does not match
    """
    if not TWILIO_VALIDATE_SIGNATURE:
        return

    form = await request.form()
    url = WEBHOOK_PUBLIC_URL or str(request.url)
    signature = request.headers.get("X-Twilio-Signature", "")

    if not RequestValidator(TWILIO_AUTH_TOKEN).validate(url, dict(form), signature):
        logger.warning(f"Rejected webhook call with invalid signature for {url}")
        raise HTTPException(status_code=403, detail="Invalid Twilio signature")


@router.post("/sms")
async def receive_sms(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_twilio_signature),
    workflow: SmsChatWorkflow = Depends(get_workflow),
    rate_limiter: Optional[SenderRateLimiter] = Depends(get_rate_limiter)
) -> Response:
    """Accept an inbound SMS and answer it in the background.

    The model may take minutes, longer than Twilio waits for a webhook, so
    the reply is sent as a separate message once the workflow finishes.
    A sender over the rate limit gets a short notice instead of a model call.

    Returns:
        Empty TwiML response

    Raises:
        HTTPException: If the message is malformed
    """
    form = await request.form()
    try:
        message = InboundSms.model_validate(dict(form))
    except ValidationError as e:
        logger.warning(f"Rejected inbound message: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if rate_limiter is not None:
        is_allowed, retry_after = await rate_limiter.is_allowed(message.from_number)
        if not is_allowed:
            # The sender still gets exactly one reply, without a model call
            logger.warning(f"Rate limit exceeded for {message.from_number}")
            background_tasks.add_task(workflow.reply, message, rate_limited_reply(retry_after))
            return Response(content=EMPTY_TWIML, media_type="text/xml")

    background_tasks.add_task(workflow.run, message)
    logger.info(f"Accepted {len(message.body)} character message from {message.from_number}")

    return Response(content=EMPTY_TWIML, media_type="text/xml")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status response
    """
    return {"status": "healthy", "service": "backcountry-chat"}
