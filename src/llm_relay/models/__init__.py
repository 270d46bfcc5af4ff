"""
Unified request/response data models.
"""

from .request import ChatRequest, Message, ToolCall, Tool, FunctionDefinition
from .response import (
    ChatResponse,
    Choice,
    ResponseMessage,
    ToolCallResponse,
    Usage,
    FinishReason,
)

__all__ = [
    "ChatRequest",
    "Message",
    "ToolCall",
    "Tool",
    "FunctionDefinition",
    "ChatResponse",
    "Choice",
    "ResponseMessage",
    "ToolCallResponse",
    "Usage",
    "FinishReason",
]
