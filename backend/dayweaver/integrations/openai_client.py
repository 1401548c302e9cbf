import inspect
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from openai import OpenAI, OpenAIError

from dayweaver.config import CONFIG
from dayweaver.integrations.exceptions import IntegrationError, UpstreamAPIError

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Any]

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    global _client
    if _client is not None:
        return _client
    if not CONFIG.openai_api_key:
        raise IntegrationError("OPENAI_API_KEY not configured")
    _client = OpenAI(api_key=CONFIG.openai_api_key, timeout=CONFIG.openai_timeout_sec, max_retries=2)
    return _client


def call_gpt(prompt: str, model: Optional[str] = None, response_format=None) -> str:
    """Call GPT with optional response format for structured output"""

    kwargs = {
        "model": model or CONFIG.openai_model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": CONFIG.openai_temperature,
    }

    # Add response_format if specified
    if response_format:
        kwargs["response_format"] = response_format

    try:
        resp = get_client().chat.completions.create(**kwargs)
    except OpenAIError as e:
        raise UpstreamAPIError(f"OpenAI call failed: {e}") from e
    return resp.choices[0].message.content or ""


def _run_tool(handlers: Dict[str, ToolHandler], name: str, raw_args: str) -> str:
    """Execute one tool call and serialize its result for the model.

    Bad arguments or unknown tools are reported back to the model; errors
    raised by the handler itself propagate to the caller.
    """
    handler = handlers.get(name)
    if handler is None:
        return json.dumps({"error": f"unknown tool '{name}'"})
    try:
        args = json.loads(raw_args or "{}")
    except json.JSONDecodeError:
        return json.dumps({"error": "arguments were not valid JSON"})
    if not isinstance(args, dict):
        return json.dumps({"error": "arguments must be a JSON object"})

    try:
        inspect.signature(handler).bind(**args)
    except TypeError as e:
        logger.warning(f"Tool '{name}' called with bad arguments: {e}")
        return json.dumps({"error": f"invalid arguments for '{name}': {e}"})
    return json.dumps(handler(**args), default=str)


def call_gpt_with_tools(
    prompt: str,
    tools: List[Dict[str, Any]],
    handlers: Dict[str, ToolHandler],
    model: Optional[str] = None,
    system: Optional[str] = None,
    max_rounds: Optional[int] = None,
) -> str:
    """
    Run a function-calling conversation until the model answers with JSON text.

    The model may call any of `tools` as often as it likes within
    `max_rounds` round trips; each call is dispatched to `handlers[name]`.
    Returns the final message content (expected to be a JSON object string).
    """
    messages: List[Dict[str, Any]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    rounds = max_rounds or CONFIG.max_tool_rounds
    client = get_client()
    for round_no in range(1, rounds + 1):
        try:
            resp = client.chat.completions.create(
                model=model or CONFIG.openai_model,
                messages=messages,
                tools=tools,
                temperature=CONFIG.openai_temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            raise UpstreamAPIError(f"OpenAI call failed: {e}") from e

        msg = resp.choices[0].message
        if not msg.tool_calls:
            return msg.content or ""

        logger.info(f"Tool round {round_no}: {len(msg.tool_calls)} call(s)")
        messages.append({
            "role": "assistant",
            "content": msg.content,
            "tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                }
                for tc in msg.tool_calls
            ],
        })
        for tc in msg.tool_calls:
            messages.append({
                "role": "tool",
                "tool_call_id": tc.id,
                "content": _run_tool(handlers, tc.function.name, tc.function.arguments),
            })

    raise UpstreamAPIError(f"Model did not finish within {rounds} tool rounds")
