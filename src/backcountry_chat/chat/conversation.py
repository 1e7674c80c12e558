"""Tool-calling conversation loop against the OpenAI Responses API."""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from openai import AsyncOpenAI

from backcountry_chat.chat.models import ToolCall
from backcountry_chat.chat.prompts import SMS_INSTRUCTIONS
from backcountry_chat.chat.sms_charset import sms_character_replacement
from backcountry_chat.chat.tools import ToolRegistry
from backcountry_chat.config import (
    MAX_TOOL_ROUNDS, OPENAI_BACKGROUND, OPENAI_MODEL, OPENAI_PROMPT_ID,
    OPENAI_PROMPT_VERSION, OPENAI_REASONING_EFFORT,
    POLL_BASE_DELAY_SECONDS, POLL_MAX_DELAY_SECONDS
)

logger = logging.getLogger(__name__)

STILL_COMPUTING_STATUSES = frozenset({"queued", "in_progress"})


class ModelResponseError(Exception):
    """Raised when the model provider ends a turn without an answer."""
    pass


class TooManyToolCallsError(ModelResponseError):
    """Raised when the model keeps calling tools past the round limit."""
    pass


class ConversationState(str, Enum):
    """Where a conversation round currently is."""
    AWAITING_MODEL = "awaiting_model"
    POLLING = "polling"
    DISPATCHING_TOOLS = "dispatching_tools"


class ConversationController:
    """Drive one inbound message through model rounds and tool calls.

    Each round sends one turn to the model, polls while the provider is
    still computing, and either returns the final answer or runs the
    requested tools and sends their results as the next turn. Rounds are
    chained by previous_response_id, so only the new turn is sent.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        tool_registry: ToolRegistry,
        model: str = OPENAI_MODEL,
        reasoning_effort: str = OPENAI_REASONING_EFFORT,
        max_rounds: int = MAX_TOOL_ROUNDS,
        poll_base_delay: float = POLL_BASE_DELAY_SECONDS,
        poll_max_delay: float = POLL_MAX_DELAY_SECONDS,
        background: bool = OPENAI_BACKGROUND,
        prompt_id: str = OPENAI_PROMPT_ID,
        prompt_version: str = OPENAI_PROMPT_VERSION,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """Initialize the controller.

        Args:
            client: OpenAI client used for responses.create/retrieve
            tool_registry: Dispatch table for function tools
            model: Model name
            reasoning_effort: Reasoning effort for reasoning models
            max_rounds: Maximum model rounds per message
            poll_base_delay: First delay between polls, in seconds
            poll_max_delay: Upper bound for the doubling poll delay
            background: Run responses as provider background computations
            prompt_id: Stored prompt to use instead of the built-in instructions
            prompt_version: Version of the stored prompt (latest if empty)
            sleep: Awaitable sleep, replaceable in tests
        """
        self.client = client
        self.tool_registry = tool_registry
        self.model = model
        self.reasoning_effort = reasoning_effort
        self.max_rounds = max_rounds
        self.poll_base_delay = poll_base_delay
        self.poll_max_delay = poll_max_delay
        self.background = background
        self.prompt_id = prompt_id
        self.prompt_version = prompt_version
        self.sleep = sleep

    async def get_model_response(self, user_message: str) -> str:
        """Answer an inbound message.

        Args:
            user_message: Body text of the inbound SMS

        Returns:
            The model's final answer, transliterated for SMS

        Raises:
            ModelResponseError: If the provider fails the response
            TooManyToolCallsError: If no answer arrives within max_rounds
        """
        turn: List[Dict[str, Any]] = [{"role": "user", "content": user_message}]
        previous_response_id: Optional[str] = None
        logger.info(f"Starting conversation for a {len(user_message)} character message")

        for round_number in range(1, self.max_rounds + 1):
            logger.info(f"Round {round_number}: {ConversationState.AWAITING_MODEL.value}, {len(turn)} input items")
            response = await self._create_response(turn, previous_response_id)
            response = await self._wait_for_completion(response)
            previous_response_id = response.id

            tool_calls = extract_tool_calls(response)
            if not tool_calls:
                logger.info(f"Round {round_number}: final answer from response {response.id}")
                return sms_character_replacement(response.output_text)

            logger.info(
                f"Round {round_number}: {ConversationState.DISPATCHING_TOOLS.value} "
                f"{len(tool_calls)} tool calls"
            )
            results = await self.tool_registry.dispatch_all(tool_calls)
            turn = [result.to_input_item() for result in results]

        logger.error(f"No final answer after {self.max_rounds} rounds")
        raise TooManyToolCallsError("Model made too many tool calls")

    async def _create_response(self, turn: List[Dict[str, Any]], previous_response_id: Optional[str]):
        request: Dict[str, Any] = {
            "model": self.model,
            "reasoning": {"effort": self.reasoning_effort},
            "input": turn,
            "tools": self.tool_registry.declarations(),
            "store": True,
        }
        if self.prompt_id:
            request["prompt"] = {"id": self.prompt_id}
            if self.prompt_version:
                request["prompt"]["version"] = self.prompt_version
        else:
            request["instructions"] = SMS_INSTRUCTIONS
        if self.background:
            request["background"] = True
        if previous_response_id:
            request["previous_response_id"] = previous_response_id

        return await self.client.responses.create(**request)

    async def _wait_for_completion(self, response):
        """Poll a still-computing response until it reaches a terminal status.

        Delays start at poll_base_delay and double after every poll, capped
        at poll_max_delay.
        """
        delay = self.poll_base_delay
        while response.status in STILL_COMPUTING_STATUSES:
            logger.info(
                f"{ConversationState.POLLING.value}: response {response.id} is {response.status}, "
                f"retrieving again in {delay}s"
            )
            await self.sleep(delay)
            response = await self.client.responses.retrieve(response.id)
            delay = min(delay * 2, self.poll_max_delay)

        # Responses created without background come back with status completed or None
        if response.status not in (None, "completed"):
            message = describe_failure(response)
            logger.error(f"Response {response.id} ended with status {response.status}: {message}")
            raise ModelResponseError(message)

        return response


def extract_tool_calls(response) -> List[ToolCall]:
    """Function calls of a terminal response, in the order they were issued."""
    return [
        ToolCall(call_id=item.call_id, name=item.name, arguments=item.arguments)
        for item in response.output
        if item.type == "function_call"
    ]


def describe_failure(response) -> str:
    """Human-readable reason for a failed, cancelled or incomplete response."""
    error = getattr(response, "error", None)
    if error is not None and getattr(error, "message", None):
        return error.message

    details = getattr(response, "incomplete_details", None)
    if details is not None and getattr(details, "reason", None):
        return f"Model response incomplete: {details.reason}"

    return f"Model response {response.status}"
