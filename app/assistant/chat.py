"""Streams one assistant turn: model text, tool calls and tool results."""

import json
import time
from typing import Any, Callable, Dict, Iterator, List, Optional

from litellm import completion
from sqlalchemy.orm import Session

from app.assistant.prompts import get_system_prompt
from app.assistant.tools import ToolContext, execute_tool, tool_definitions
from app.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

class ChatTimeout(Exception):
    pass

class ChatOrchestrator:
    """Feeds the instruction set and tools to the model and relays its output.

    A turn is a sequence of model steps. When a step ends with tool calls the
    tools run, their results are appended to the conversation and the model
    is called again, up to `max_steps`. The whole turn shares one deadline.
    """

    def __init__(
        self,
        user_id: str,
        session_factory: Callable[[], Session],
        model: Optional[str] = None,
        max_steps: Optional[int] = None,
        max_duration: Optional[float] = None
    ):
        self.user_id = user_id
        self.session_factory = session_factory
        self.model = model or settings.LLM_MODEL
        self.max_steps = max_steps or settings.CHAT_MAX_STEPS
        self.max_duration = max_duration or settings.CHAT_MAX_DURATION_SECONDS

    def _litellm_kwargs(self) -> Dict[str, Any]:
        extra: Dict[str, Any] = {}
        if settings.LLM_API_KEY:
            extra["api_key"] = settings.LLM_API_KEY
        if settings.LLM_API_BASE:
            extra["api_base"] = settings.LLM_API_BASE
        return extra

    def stream(self, messages: List[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
        """Yield event dicts: text-delta, tool-call, tool-result, error, finish"""
        deadline = time.monotonic() + self.max_duration
        conversation = [{"role": "system", "content": get_system_prompt()}, *messages]
        tools = tool_definitions()

        with self.session_factory() as db:
            ctx = ToolContext(db=db, user_id=self.user_id)
            for step in range(self.max_steps):
                try:
                    text, tool_calls, finish_reason = yield from self._model_step(conversation, tools, deadline)
                except ChatTimeout:
                    logger.warning("Chat turn for user %s exceeded %.0fs", self.user_id, self.max_duration)
                    yield {"type": "error", "error": "The assistant took too long to respond."}
                    return
                except Exception:
                    logger.exception("Model call failed for user %s", self.user_id)
                    yield {"type": "error", "error": "The assistant is unavailable right now."}
                    return

                if not tool_calls:
                    yield {"type": "finish", "finishReason": finish_reason or "stop", "steps": step + 1}
                    return

                conversation.append({
                    "role": "assistant",
                    "content": text or None,
                    "tool_calls": [
                        {
                            "id": call["id"],
                            "type": "function",
                            "function": {"name": call["name"], "arguments": call["arguments"]},
                        }
                        for call in tool_calls
                    ],
                })
                for call in tool_calls:
                    yield {
                        "type": "tool-call",
                        "toolCallId": call["id"],
                        "toolName": call["name"],
                        "input": _parse_arguments(call["arguments"]),
                    }
                    result = execute_tool(call["name"], call["arguments"], ctx)
                    yield {
                        "type": "tool-result",
                        "toolCallId": call["id"],
                        "toolName": call["name"],
                        "output": result,
                    }
                    conversation.append({
                        "role": "tool",
                        "tool_call_id": call["id"],
                        "content": json.dumps(result),
                    })

            yield {"type": "finish", "finishReason": "max-steps", "steps": self.max_steps}

    def _model_step(self, conversation, tools, deadline):
        """Stream one completion; returns (text, tool_calls, finish_reason)"""
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ChatTimeout()

        response = completion(
            model=self.model,
            messages=conversation,
            tools=tools,
            stream=True,
            timeout=remaining,
            **self._litellm_kwargs()
        )

        text_parts: List[str] = []
        calls: Dict[int, Dict[str, str]] = {}
        finish_reason = None
        for chunk in response:
            if time.monotonic() > deadline:
                raise ChatTimeout()
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            delta = choice.delta
            content = getattr(delta, "content", None)
            if content:
                text_parts.append(content)
                yield {"type": "text-delta", "delta": content}
            # Tool call arguments arrive in fragments keyed by index
            for fragment in getattr(delta, "tool_calls", None) or []:
                index = getattr(fragment, "index", None) or 0
                call = calls.setdefault(index, {"id": "", "name": "", "arguments": ""})
                if getattr(fragment, "id", None):
                    call["id"] = fragment.id
                function = getattr(fragment, "function", None)
                if function is not None:
                    if getattr(function, "name", None):
                        call["name"] = function.name
                    if getattr(function, "arguments", None):
                        call["arguments"] += function.arguments
            if getattr(choice, "finish_reason", None):
                finish_reason = choice.finish_reason

        tool_calls = [calls[index] for index in sorted(calls) if calls[index]["name"]]
        for position, call in enumerate(tool_calls):
            if not call["id"]:
                call["id"] = f"call_{position}"
        return "".join(text_parts), tool_calls, finish_reason

    def sse_events(self, messages: List[Dict[str, Any]]) -> Iterator[Dict[str, str]]:
        """`stream` as server-sent-event dicts, closed by a [DONE] sentinel"""
        for event in self.stream(messages):
            yield {"data": json.dumps(event, default=str)}
        yield {"data": "[DONE]"}

def _parse_arguments(arguments: str) -> Any:
    try:
        return json.loads(arguments) if arguments else {}
    except json.JSONDecodeError:
        return arguments
