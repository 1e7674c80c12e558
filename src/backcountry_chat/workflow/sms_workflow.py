"""Answer one inbound SMS: call the model, then send the reply."""

import logging
from typing import Awaitable, Callable, Optional

from backcountry_chat.chat.conversation import ConversationController
from backcountry_chat.config import (
    MODEL_STEP_BACKOFF, MODEL_STEP_BASE_DELAY_SECONDS, MODEL_STEP_MAX_ATTEMPTS, MODEL_STEP_TIMEOUT_SECONDS,
    SEND_STEP_BACKOFF, SEND_STEP_BASE_DELAY_SECONDS, SEND_STEP_MAX_ATTEMPTS, SEND_STEP_TIMEOUT_SECONDS
)
from backcountry_chat.sms.models import InboundSms, SmsSendResult
from backcountry_chat.sms.twilio_client import TwilioSmsClient
from backcountry_chat.workflow.steps import StepPolicy, run_step

logger = logging.getLogger(__name__)

MODEL_STEP_POLICY = StepPolicy(
    max_attempts=MODEL_STEP_MAX_ATTEMPTS,
    base_delay=MODEL_STEP_BASE_DELAY_SECONDS,
    backoff=MODEL_STEP_BACKOFF,
    timeout=MODEL_STEP_TIMEOUT_SECONDS,
)

SEND_STEP_POLICY = StepPolicy(
    max_attempts=SEND_STEP_MAX_ATTEMPTS,
    base_delay=SEND_STEP_BASE_DELAY_SECONDS,
    backoff=SEND_STEP_BACKOFF,
    timeout=SEND_STEP_TIMEOUT_SECONDS,
)

StepRunner = Callable[[str, StepPolicy, Callable[[], Awaitable]], Awaitable]


class SmsChatWorkflow:
    """Two durable steps per message: "call model" and "send sms".

    A message always gets exactly one reply attempt. When the model step
    fails after all retries, the reply is the error text instead. A send
    that fails after all retries is logged, not raised.
    """

    def __init__(
        self,
        controller: ConversationController,
        sms_client: TwilioSmsClient,
        model_step_policy: StepPolicy = MODEL_STEP_POLICY,
        send_step_policy: StepPolicy = SEND_STEP_POLICY,
        step_runner: Optional[StepRunner] = None
    ):
        self.controller = controller
        self.sms_client = sms_client
        self.model_step_policy = model_step_policy
        self.send_step_policy = send_step_policy
        self.step_runner = step_runner or run_step

    async def run(self, message: InboundSms) -> str:
        """Handle one inbound message.

        Args:
            message: Validated inbound SMS

        Returns:
            The text that was sent back
        """
        try:
            response_text = await self.step_runner(
                "call model",
                self.model_step_policy,
                lambda: self.controller.get_model_response(message.body)
            )
        except Exception as e:
            logger.error(f"Model step failed for message from {message.from_number}: {e!r}")
            response_text = f"Error calling model: {str(e) or type(e).__name__}"

        await self.reply(message, response_text)
        return response_text

    async def reply(self, message: InboundSms, text: str) -> Optional[SmsSendResult]:
        """Run the "send sms" step, answering from the number the message was sent to.

        Returns:
            The send result, or None when every attempt failed without a response
        """
        try:
            result: SmsSendResult = await self.step_runner(
                "send sms",
                self.send_step_policy,
                lambda: self.sms_client.send_message(
                    to=message.from_number,
                    from_=message.to_number,
                    body=text
                )
            )
        except Exception as e:
            logger.error(f"Send step failed for reply to {message.from_number}: {e!r}")
            return None

        logger.info(f"SMS send returned {result.status_code}: {result.body}")
        return result
