"""
Tool-call emulation for upstreams without native function calling.

Request side: tool schemas become a system instruction that asks the
model to answer with a single JSON object, and structured turns from
earlier in the conversation are flattened to text.

Response side: the reply text is searched for that JSON object and
turned back into a tool-call or plain-text choice.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..core.errors import NormalizationDecodeError
from ..models.request import Message, Tool, ToolCall
from ..models.response import ChatResponse, Usage

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
_GREEDY_OBJECT = re.compile(r"\{[\s\S]*\}")

TOOL_RESULT_PREFIX = "Tool result from {name}:\n"

OUTPUT_CONTRACT = """IMPORTANT: When you need to use a tool, respond with ONLY a JSON object in this exact format:
{"tool":"<tool_name>","arguments":{<argument_name>:<value>,...}}
Do not include any other text or explanation outside of the JSON object.

CRITICAL JSON FORMATTING RULES:
- All argument values must be valid JSON types (string, number, boolean, object, array, null)
- For string values, use double quotes: "value"
- For object values, use proper JSON syntax: {"key": "value"}
- For array values, use proper JSON syntax: ["item1", "item2"]
- Do NOT nest JSON strings inside other JSON strings
- Do NOT escape quotes inside object values

EXAMPLES:
CORRECT: {"tool":"my_tool","arguments":{"param1":"string_value","param2":{"nested":"object"},"param3":["array","values"]}}
WRONG: {"tool":"my_tool","arguments":{"param1":"{\\"nested\\":\\"string\\"}"}}

When you have the final answer and don't need any tools, respond with ONLY a JSON object in this exact format:
{"final":"<your response>"}

Do not include any other text or explanation outside of the JSON object."""


# Request side

def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def build_tool_instruction(tools: Sequence[Tool]) -> str:
    """
    Render tool schemas plus the reply contract as one instruction block.

    Each tool is listed with its description and a compact JSON view of
    its parameter properties and required names.
    """
    lines = []
    for tool in tools:
        fn = tool.function
        parameters = fn.parameters or {}
        schema = {
            "properties": parameters.get("properties", {}),
            "required": parameters.get("required", []),
        }
        lines.append(
            f"- {fn.name}: {fn.description or ''}\n"
            f"  Parameters: {_compact_json(schema)}"
        )

    tool_descriptions = "\n".join(lines)
    return (
        "You have access to the following tools:\n\n"
        f"{tool_descriptions}\n\n"
        f"{OUTPUT_CONTRACT}"
    )


def inject_tool_instruction(messages: List[Dict[str, Any]], instruction: str) -> List[Dict[str, Any]]:
    """
    Add the tool instruction to a message list.

    Appended to the leading system message when there is one, otherwise
    inserted as a new leading system message. The input is not mutated.
    """
    if messages and messages[0].get("role") == "system":
        first = dict(messages[0])
        existing = first.get("content") or ""
        first["content"] = f"{existing}\n\n{instruction}" if existing else instruction
        return [first] + [dict(m) for m in messages[1:]]

    return [{"role": "system", "content": instruction}] + [dict(m) for m in messages]


def format_tool_call(tool_call: ToolCall) -> str:
    """Canonical one-line text form of a structured tool call."""
    fn = tool_call.function
    arguments = fn.get("arguments", {})
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except ValueError:
            pass
    return _compact_json({"tool": fn.get("name", ""), "arguments": arguments})


def _text_content(content: Any) -> str:
    """Collapse multimodal content parts to their text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "\n".join(parts)


def preprocess_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    """
    Flatten structured turns for an upstream that only knows plain text.

    - messages with tool_calls become one tool-call JSON line per call
    - role "tool" results become user turns naming the tool
    """
    processed = []
    for msg in messages:
        if msg.tool_calls:
            processed.append({
                "role": msg.role,
                "content": "\n".join(format_tool_call(tc) for tc in msg.tool_calls),
            })
        elif msg.role == "tool":
            prefix = TOOL_RESULT_PREFIX.format(name=msg.name or "tool")
            processed.append({
                "role": "user",
                "content": prefix + _text_content(msg.content),
            })
        else:
            processed.append({"role": msg.role, "content": _text_content(msg.content)})
    return processed


# Response side

@dataclass
class ParsedReply:
    """Decoded emulation reply: either a tool call or a final answer."""
    kind: str  # "tool_call" or "final"
    name: Optional[str] = None
    arguments: Any = field(default_factory=dict)
    text: Optional[str] = None

    @property
    def is_tool_call(self) -> bool:
        return self.kind == "tool_call"

    def to_response(self, model: str = "", usage: Optional[Usage] = None, provider: str = None) -> ChatResponse:
        if self.is_tool_call:
            return ChatResponse.from_tool_call(
                self.name, self.arguments, model=model, usage=usage, provider=provider,
            )
        return ChatResponse.from_text(self.text, model=model, usage=usage, provider=provider)


def find_balanced_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} span in text.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def _candidates(trimmed: str):
    """Yield (strategy, candidate) pairs in fallback order."""
    yield "whole", trimmed

    match = _FENCED_JSON.search(trimmed)
    if match:
        yield "fenced", match.group(1)

    balanced = find_balanced_object(trimmed)
    if balanced is not None:
        yield "balanced", balanced

    greedy = _GREEDY_OBJECT.search(trimmed)
    if greedy and greedy.group(0) != balanced:
        yield "greedy", greedy.group(0)


def _present(value: Any) -> bool:
    """Empty strings, null, zero and false count as missing; {} and [] do not."""
    return value is not None and value is not False and value != "" and value != 0


def _interpret(parsed: Any) -> Optional[ParsedReply]:
    if not isinstance(parsed, dict):
        return None

    tool = parsed.get("tool")
    arguments = parsed.get("arguments")
    if isinstance(tool, str) and tool and _present(arguments):
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except ValueError:
                pass
        return ParsedReply(kind="tool_call", name=tool, arguments=arguments)

    final = parsed.get("final")
    if _present(final):
        text = final if isinstance(final, str) else _compact_json(final)
        return ParsedReply(kind="final", text=text)

    return None


def parse_tool_reply(content: Optional[str], gateway: str = None) -> ParsedReply:
    """
    Decode an emulated tool-call reply.

    Tries, in order: the whole trimmed text, a fenced code block, the
    first balanced {...} span, the widest {...} span. The first candidate
    that parses to a "tool"+"arguments" or "final" object wins.

    Raises:
        NormalizationDecodeError: If no candidate yields a usable object
    """
    trimmed = (content or "").strip()
    trail: List[str] = []

    for strategy, candidate in _candidates(trimmed):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            trail.append(f"{strategy}: invalid json")
            continue

        reply = _interpret(parsed)
        if reply is not None:
            return reply
        trail.append(f"{strategy}: no 'tool' or 'final' found")

    raise NormalizationDecodeError(
        "Cannot decode tool-call reply",
        gateway=gateway,
        raw_text=content or "",
        trail=trail,
    )


def decode_tool_reply(content: Optional[str], gateway: str = None) -> Optional[ParsedReply]:
    """Lenient parse_tool_reply(): logs and returns None on failure."""
    try:
        return parse_tool_reply(content, gateway=gateway)
    except NormalizationDecodeError as e:
        logger.warning(
            f"[{gateway}] {e.message}; tried: {' -> '.join(e.trail) or 'nothing'}; "
            f"raw reply: {e.raw_text!r}"
        )
        return None
