"""Tests for tool argument parsing and dispatch."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from backcountry_chat.chat.models import InvalidToolArguments, ToolCall
from backcountry_chat.chat.tools import WEATHER_TOOL_NAME, ToolRegistry
from backcountry_chat.weather.models import WeatherToolArgs
from conftest import weather_arguments


@pytest.fixture
def weather_service():
    """Create mock weather service."""
    mock = MagicMock()
    mock.get_weather_forecast = AsyncMock(return_value='{"timeZone": "America/Denver"}')
    return mock


@pytest.fixture
def registry(weather_service):
    return ToolRegistry(weather_service)


def call(arguments: str, call_id: str = "call_1", name: str = WEATHER_TOOL_NAME) -> ToolCall:
    return ToolCall(call_id=call_id, name=name, arguments=arguments)


class TestParseArguments:
    """Tests for ToolRegistry.parse_arguments."""

    @pytest.mark.parametrize("lat, lon", [
        (37.7749, -122.4194),
        ([37.7749], [-122.4194]),
        ([37, 46], [-122, 25]),
        ([37, 46, 30.5], [-122, 25, 9]),
    ])
    def test_accepts_coordinate_forms(self, registry, lat, lon):
        """Test decimal and degrees/minutes/seconds coordinates."""
        args = registry.parse_arguments(call(weather_arguments(lat, lon)))

        assert isinstance(args, WeatherToolArgs)
        assert args.forecast_type == "forecast"

    def test_rejects_unknown_forecast_type(self, registry):
        """Test the type enum is enforced."""
        args = registry.parse_arguments(call(weather_arguments(forecast_type="alerts")))

        assert isinstance(args, InvalidToolArguments)
        assert "type" in args.message

    def test_rejects_undeclared_arguments(self, registry):
        """Test extra properties are not accepted."""
        payload = json.dumps({"lat": [40.0], "lon": [-105.0], "type": "forecast", "units": "si"})

        args = registry.parse_arguments(call(payload))

        assert isinstance(args, InvalidToolArguments)
        assert "units" in args.message

    def test_rejects_field_name_in_place_of_declared_key(self, registry):
        """Test only the declared "type" key selects the forecast."""
        payload = json.dumps({"lat": [40.0], "lon": [-105.0], "forecast_type": "forecast"})

        args = registry.parse_arguments(call(payload))

        assert isinstance(args, InvalidToolArguments)
        assert "forecast_type" in args.message

    def test_rejects_fractional_degrees_with_minutes(self, registry):
        """Test degrees must be whole when minutes follow."""
        args = registry.parse_arguments(call(weather_arguments([37.5, 30], [-122.4])))

        assert isinstance(args, InvalidToolArguments)

    def test_rejects_too_many_components(self, registry):
        """Test coordinates longer than degrees/minutes/seconds."""
        args = registry.parse_arguments(call(weather_arguments([37, 46, 30, 1], [-122.4])))

        assert isinstance(args, InvalidToolArguments)

    def test_rejects_malformed_json(self, registry):
        """Test a payload that is not JSON."""
        args = registry.parse_arguments(call('{"lat": [37.7'))

        assert isinstance(args, InvalidToolArguments)

    def test_rejects_unknown_tool(self, registry):
        """Test calls to undeclared tools."""
        args = registry.parse_arguments(call("{}", name="get_stock_price"))

        assert isinstance(args, InvalidToolArguments)
        assert args.describe() == "Invalid arguments for get_stock_price: unknown tool 'get_stock_price'"

    def test_declarations_include_weather_tool(self, registry):
        """Test the function tool is declared strictly."""
        declarations = registry.declarations()
        weather = next(d for d in declarations if d.get("name") == WEATHER_TOOL_NAME)

        assert weather["strict"] is True
        assert weather["parameters"]["additionalProperties"] is False
        assert weather["parameters"]["required"] == ["lat", "lon", "type"]


@pytest.mark.asyncio
class TestDispatch:
    """Tests for ToolRegistry.dispatch and dispatch_all."""

    async def test_dispatch_calls_weather_service(self, registry, weather_service):
        """Test valid arguments reach the pipeline and its text is the result."""
        result = await registry.dispatch(call(weather_arguments([39, 44, 21], [-104, 59, 5], "forecastHourly")))

        assert result.call_id == "call_1"
        assert result.output == '{"timeZone": "America/Denver"}'
        weather_service.get_weather_forecast.assert_awaited_once_with(
            (39, 44.0, 21.0), (-104, 59.0, 5.0), "forecastHourly"
        )

    async def test_invalid_arguments_become_result_text(self, registry, weather_service):
        """Test malformed arguments are reported to the model instead of raised."""
        result = await registry.dispatch(call("not json", call_id="call_9"))

        assert result.call_id == "call_9"
        assert result.output.startswith("Invalid arguments for get_weather:")
        weather_service.get_weather_forecast.assert_not_awaited()

    async def test_dispatch_all_keeps_issue_order(self, weather_service):
        """Test results follow call order even when they finish in reverse."""
        completed = []

        async def slow_forecast(lat, lon, forecast_type):
            await asyncio.sleep(lat / 100)
            completed.append(lat)
            return f"forecast for {lat}"

        weather_service.get_weather_forecast = AsyncMock(side_effect=slow_forecast)
        registry = ToolRegistry(weather_service)
        calls = [
            call(weather_arguments(3.0, 0.0), call_id="call_a"),
            call(weather_arguments(2.0, 0.0), call_id="call_b"),
            call(weather_arguments(1.0, 0.0), call_id="call_c"),
        ]

        results = await registry.dispatch_all(calls)

        assert completed == [1.0, 2.0, 3.0]
        assert [r.call_id for r in results] == ["call_a", "call_b", "call_c"]
        assert [r.output for r in results] == ["forecast for 3.0", "forecast for 2.0", "forecast for 1.0"]

