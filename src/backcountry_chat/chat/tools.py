"""Tool declarations and dispatch for the model conversation."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Sequence, Type, Union

from pydantic import BaseModel, ValidationError

from backcountry_chat.chat.models import InvalidToolArguments, ToolCall, ToolResult
from backcountry_chat.config import (
    OPENAI_ENABLE_CODE_INTERPRETER, OPENAI_ENABLE_WEB_SEARCH,
    USER_LOCATION_COUNTRY, USER_LOCATION_REGION
)
from backcountry_chat.weather.models import WeatherToolArgs
from backcountry_chat.weather.service import WeatherService

logger = logging.getLogger(__name__)

WEATHER_TOOL_NAME = "get_weather"

WEATHER_TOOL_DECLARATION: Dict[str, Any] = {
    "type": "function",
    "name": WEATHER_TOOL_NAME,
    "description": "Fetches weather information based on latitude and longitude provided.",
    "parameters": {
        "type": "object",
        "required": ["lat", "lon", "type"],
        "properties": {
            "lat": {
                "type": "array",
                "description": "Latitude as [decimal degrees] or [degrees, minutes, seconds].",
                "items": {"type": "number", "description": "A latitude component."},
            },
            "lon": {
                "type": "array",
                "description": "Longitude as [decimal degrees] or [degrees, minutes, seconds].",
                "items": {"type": "number", "description": "A longitude component."},
            },
            "type": {
                "type": "string",
                "enum": ["forecast", "forecastHourly"],
                "description": "The type of weather information to retrieve.",
            },
        },
        "additionalProperties": False,
    },
    "strict": True,
}


class RegisteredTool(NamedTuple):
    declaration: Dict[str, Any]
    args_model: Type[BaseModel]
    handler: Callable[[Any], Awaitable[str]]


def provider_tools() -> List[Dict[str, Any]]:
    """Tools executed on the provider side, outside this service."""
    tools: List[Dict[str, Any]] = []
    if OPENAI_ENABLE_WEB_SEARCH:
        tools.append({
            "type": "web_search_preview",
            "search_context_size": "medium",
            "user_location": {
                "type": "approximate",
                "country": USER_LOCATION_COUNTRY,
                "region": USER_LOCATION_REGION,
            },
        })
    if OPENAI_ENABLE_CODE_INTERPRETER:
        tools.append({"type": "code_interpreter", "container": {"type": "auto"}})
    return tools


class ToolRegistry:
    """Dispatch table from declared tool name to argument model and handler."""

    def __init__(self, weather_service: WeatherService):
        self.weather_service = weather_service
        self._tools: Dict[str, RegisteredTool] = {
            WEATHER_TOOL_NAME: RegisteredTool(WEATHER_TOOL_DECLARATION, WeatherToolArgs, self._get_weather),
        }

    def declarations(self) -> List[Dict[str, Any]]:
        """Function tools followed by the enabled provider-side tools."""
        return [tool.declaration for tool in self._tools.values()] + provider_tools()

    def parse_arguments(self, call: ToolCall) -> Union[BaseModel, InvalidToolArguments]:
        """Validate a call's payload against the tool's argument model.

        Returns:
            The parsed arguments, or InvalidToolArguments describing why not
        """
        tool = self._tools.get(call.name)
        if tool is None:
            return InvalidToolArguments(tool_name=call.name, message=f"unknown tool '{call.name}'")

        try:
            return tool.args_model.model_validate_json(call.arguments)
        except ValidationError as e:
            return InvalidToolArguments(tool_name=call.name, message=str(e))

    async def dispatch(self, call: ToolCall) -> ToolResult:
        """Run one tool call. Failures are returned as result text."""
        logger.info(f"Tool call {call.call_id}: {call.name} {call.arguments}")
        args = self.parse_arguments(call)

        if isinstance(args, InvalidToolArguments):
            logger.warning(f"Tool call {call.call_id} rejected: {args.message}")
            return ToolResult(call_id=call.call_id, output=args.describe())

        output = await self._tools[call.name].handler(args)
        logger.info(f"Tool call {call.call_id} returned {len(output)} characters")
        return ToolResult(call_id=call.call_id, output=output)

    async def dispatch_all(self, calls: Sequence[ToolCall]) -> List[ToolResult]:
        """Run a round's calls concurrently; results keep the calls' order."""
        return list(await asyncio.gather(*(self.dispatch(call) for call in calls)))

    async def _get_weather(self, args: WeatherToolArgs) -> str:
        return await self.weather_service.get_weather_forecast(args.lat, args.lon, args.forecast_type)
