"""Data models for inbound and outbound SMS."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PHONE_NUMBER_PATTERN = r"^\+1[0-9]{10}$"


class InboundSms(BaseModel):
    """Message posted by the Twilio webhook. Other webhook fields are ignored."""
    model_config = ConfigDict(populate_by_name=True)

    from_number: str = Field(..., alias="From", pattern=PHONE_NUMBER_PATTERN, description="Sender, E.164")
    to_number: str = Field(..., alias="To", pattern=PHONE_NUMBER_PATTERN, description="Our number, E.164")
    body: str = Field(..., alias="Body", description="Message text")


class SmsSendResult(BaseModel):
    """Transport status of an outbound message, kept for logging only."""
    status_code: int
    body: Any = None
