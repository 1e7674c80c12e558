"""Data models for the model conversation."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """A function call requested by the model."""
    call_id: str = Field(..., description="Identifier the result must be keyed by")
    name: str = Field(..., description="Declared tool name")
    arguments: str = Field(..., description="JSON argument payload, not guaranteed well-formed")


class ToolResult(BaseModel):
    """Output of one tool call, fed back to the model on the next round."""
    call_id: str
    output: str

    def to_input_item(self) -> Dict[str, Any]:
        """Responses API input item for this result."""
        return {
            "type": "function_call_output",
            "call_id": self.call_id,
            "output": self.output,
        }


class InvalidToolArguments(BaseModel):
    """Arguments that could not be parsed for the named tool."""
    tool_name: str
    message: str

    def describe(self) -> str:
        return f"Invalid arguments for {self.tool_name}: {self.message}"
