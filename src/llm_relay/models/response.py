"""
Unified response models.
"""

import json
import uuid
from typing import Optional, List, Dict, Any, Literal, Union
from datetime import datetime
from pydantic import BaseModel, Field
from enum import Enum


class FinishReason(str, Enum):
    """Reasons for completion finishing."""
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"


def _completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex[:24]}"


def _call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


class Usage(BaseModel):
    """Token usage information."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ToolCallResponse(BaseModel):
    """Tool call in response."""
    id: str = Field(default_factory=_call_id)
    type: Literal["function"] = "function"
    function: Dict[str, Any]  # {"name": str, "arguments": str}

    @property
    def name(self) -> str:
        return self.function.get("name", "")

    @property
    def arguments(self) -> Any:
        """Decoded arguments; the raw value if it is not a JSON string."""
        raw = self.function.get("arguments")
        if isinstance(raw, str):
            try:
                return json.loads(raw)
            except ValueError:
                return raw
        return raw


class ResponseMessage(BaseModel):
    """Message in response."""
    role: Literal["assistant"] = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCallResponse]] = None


class Choice(BaseModel):
    """A single completion choice."""
    index: int = 0
    message: ResponseMessage
    finish_reason: Optional[str] = None


class ChatResponse(BaseModel):
    """
    Unified chat completion response.

    Compatible with OpenAI API format. Always carries at least one choice.
    """
    id: str = Field(default_factory=_completion_id)
    object: str = Field(default="chat.completion")
    created: int = Field(default_factory=lambda: int(datetime.now().timestamp()))
    model: str = Field(default="")
    choices: List[Choice] = Field(..., min_length=1)
    usage: Optional[Usage] = None
    system_fingerprint: Optional[str] = None

    # Provider metadata
    provider: Optional[str] = None

    @classmethod
    def from_openai(cls, data: Dict[str, Any], provider: str = None) -> "ChatResponse":
        """Create from OpenAI API response."""
        choices = []
        for c in data.get("choices", []):
            message = c.get("message", {})
            choices.append(Choice(
                index=c.get("index", 0),
                message=ResponseMessage(
                    role="assistant",
                    content=message.get("content"),
                    tool_calls=[
                        ToolCallResponse(**tc) for tc in message.get("tool_calls", [])
                    ] if message.get("tool_calls") else None,
                ),
                finish_reason=c.get("finish_reason"),
            ))

        usage_data = data.get("usage")
        usage = Usage(
            prompt_tokens=usage_data.get("prompt_tokens", 0),
            completion_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0),
        ) if usage_data else None

        return cls(
            id=data.get("id") or _completion_id(),
            object=data.get("object", "chat.completion"),
            created=data.get("created", int(datetime.now().timestamp())),
            model=data.get("model", ""),
            choices=choices,
            usage=usage,
            system_fingerprint=data.get("system_fingerprint"),
            provider=provider,
        )

    @classmethod
    def from_text(
        cls,
        content: str,
        model: str = "",
        usage: Optional[Usage] = None,
        provider: str = None,
    ) -> "ChatResponse":
        """Single plain-text assistant choice."""
        return cls(
            model=model,
            choices=[Choice(
                index=0,
                message=ResponseMessage(content=content),
                finish_reason=FinishReason.STOP.value,
            )],
            usage=usage,
            provider=provider,
        )

    @classmethod
    def from_tool_call(
        cls,
        name: str,
        arguments: Union[str, Dict[str, Any]],
        model: str = "",
        usage: Optional[Usage] = None,
        provider: str = None,
    ) -> "ChatResponse":
        """Single tool-invocation choice; arguments are serialized to a JSON string."""
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(
            model=model,
            choices=[Choice(
                index=0,
                message=ResponseMessage(
                    content=None,
                    tool_calls=[ToolCallResponse(
                        function={"name": name, "arguments": arguments},
                    )],
                ),
                finish_reason=FinishReason.TOOL_CALLS.value,
            )],
            usage=usage,
            provider=provider,
        )

    def get_content(self) -> Optional[str]:
        """Get the content from the first choice."""
        if self.choices:
            return self.choices[0].message.content
        return None

    def get_tool_calls(self) -> List[ToolCallResponse]:
        """Get tool calls from the first choice."""
        if self.choices and self.choices[0].message.tool_calls:
            return self.choices[0].message.tool_calls
        return []
