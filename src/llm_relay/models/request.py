"""
Unified request models.
"""

from typing import Optional, List, Dict, Any, Union, Literal
from pydantic import BaseModel, Field


class FunctionDefinition(BaseModel):
    """Function definition for tool use."""
    name: str
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None


class Tool(BaseModel):
    """Tool definition."""
    type: Literal["function"] = "function"
    function: FunctionDefinition


class ToolCall(BaseModel):
    """Tool call in a message."""
    id: Optional[str] = None
    type: Literal["function"] = "function"
    function: Dict[str, Any]  # {"name": str, "arguments": str | dict}


class Message(BaseModel):
    """
    Unified message format.

    Supports:
    - System messages
    - User messages (text or multimodal)
    - Assistant messages (with optional tool calls)
    - Tool messages (results)
    """
    role: Literal["system", "user", "assistant", "tool"]
    content: Optional[Union[str, List[Dict[str, Any]]]] = None
    name: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None

    class Config:
        extra = "allow"

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict without unset fields."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class ChatRequest(BaseModel):
    """
    Unified chat completion request.

    OpenAI-compatible. `provider` names the upstream and is never
    forwarded; `model` may be omitted when the provider has a default.
    """
    provider: Optional[str] = None
    model: Optional[str] = Field(default=None, description="Model identifier")
    messages: List[Message] = Field(..., description="Conversation messages")

    # Optional parameters
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    stop: Optional[Union[str, List[str]]] = None
    user: Optional[str] = None

    # Tool use
    tools: Optional[List[Tool]] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None

    class Config:
        extra = "allow"

    @property
    def has_tools(self) -> bool:
        return bool(self.tools)

    def to_openai_format(self) -> Dict[str, Any]:
        """Convert to OpenAI API format."""
        data = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "stream": False,
        }

        optional_fields = [
            "temperature", "top_p", "max_tokens", "stop", "user",
        ]

        for field in optional_fields:
            value = getattr(self, field, None)
            if value is not None:
                data[field] = value

        if self.tools:
            data["tools"] = [t.model_dump(exclude_none=True) for t in self.tools]
            data["tool_choice"] = self.tool_choice or "auto"

        return data
