"""
Request building for the OpenAI Responses API.

Differences from Chat Completions that matter here:
- `input` replaces `messages`
- `instructions` carries the system framing
- role `developer` replaces `system` inside the input list
- `max_output_tokens` for every model
- JSON mode is `text.format.type = "json_object"`
"""
import re
import logging
from typing import Optional, Union

from legal_functions.services.openai_models import supports_temperature, supports_web_search

logger = logging.getLogger(__name__)

INPUT_ROLES = frozenset({'developer', 'user', 'assistant'})
CHAT_ROLES = frozenset({'system', 'user', 'assistant'})

MAX_WEB_SEARCH_DOMAINS = 100


def build_web_search_tool(
    allowed_domains: Optional[list] = None,
    user_location: Optional[dict] = None,
    search_context_size: Optional[str] = None
) -> dict:
    """
    Build a web_search tool descriptor.

    Args:
        allowed_domains: Domains to restrict the search to. Scheme and trailing
            slash are stripped; at most 100 are kept.
        user_location: Approximate location, e.g. {"type": "approximate", "country": "CO"}.
        search_context_size: 'low', 'medium' or 'high'.

    Returns:
        Tool descriptor dictionary.
    """
    tool = {
        'type': 'web_search',
        'web_search': {}
    }

    if allowed_domains:
        cleaned = [
            re.sub(r'/$', '', re.sub(r'^https?://', '', domain))
            for domain in allowed_domains
        ]
        tool['web_search']['allowed_domains'] = cleaned[:MAX_WEB_SEARCH_DOMAINS]

    if user_location:
        tool['web_search']['user_location'] = user_location

    if search_context_size:
        tool['web_search']['search_context_size'] = search_context_size

    return tool


def _validate_input(input_value: Union[str, list]) -> None:
    """
    Check the `input` field shape.

    Raises:
        ValueError: If a turn has an unknown role or empty content.
    """
    if isinstance(input_value, str):
        return

    if not isinstance(input_value, (list, tuple)):
        raise ValueError("input must be a string or a list of role-tagged turns")

    for index, turn in enumerate(input_value):
        if not isinstance(turn, dict):
            raise ValueError(f"input[{index}] must be a dict with 'role' and 'content'")

        role = turn.get('role')
        if role not in INPUT_ROLES:
            raise ValueError(f"input[{index}] has invalid role '{role}'")

        if not turn.get('content'):
            raise ValueError(f"input[{index}] has empty content")


def build_responses_request_params(
    model: str,
    input: Union[str, list],
    instructions: Optional[str] = None,
    max_output_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
    json_mode: bool = False,
    stream: Optional[bool] = None,
    store: Optional[bool] = None,
    tools: Optional[list] = None,
    tool_choice: Optional[Union[str, dict]] = None,
    reasoning: Optional[dict] = None,
    web_search: Optional[dict] = None
) -> dict:
    """
    Map request options onto Responses API field names.

    Optional fields only appear when the caller set them. No defaults are
    injected here; each call site owns its own token budget and temperature.

    Args:
        model: Model identifier.
        input: Prompt string or list of {role, content} turns.
        instructions: Top-level system framing.
        max_output_tokens: Output token cap.
        temperature: Sampling temperature (0 is a valid value).
        json_mode: Constrain output to a JSON object.
        stream: Streaming flag.
        store: Whether OpenAI may persist the response.
        tools: Function tool descriptors.
        tool_choice: Tool choice directive; only sent alongside tools.
        reasoning: Reasoning config, e.g. {"effort": "low"}.
        web_search: Tool from build_web_search_tool().

    Returns:
        Request body dictionary.

    Raises:
        ValueError: If the model is empty or the input turns are malformed.
    """
    if not model:
        raise ValueError("model is required")

    _validate_input(input)

    params = {
        'model': model,
        'input': input,
    }

    if instructions:
        params['instructions'] = instructions

    if max_output_tokens is not None:
        params['max_output_tokens'] = max_output_tokens

    # Reasoning models (GPT-5, o-series) reject temperature
    if temperature is not None:
        if supports_temperature(model):
            params['temperature'] = temperature
        else:
            logger.debug(f"Dropping temperature for reasoning model {model}")

    if json_mode:
        params['text'] = {'format': {'type': 'json_object'}}

    if stream is not None:
        params['stream'] = stream

    if store is not None:
        params['store'] = store

    all_tools = []

    if web_search:
        if supports_web_search(model):
            all_tools.append(web_search)
            domains = web_search.get('web_search', {}).get('allowed_domains') or 'all'
            logger.info(f"Web search enabled for model {model} with domains: {domains}")
        else:
            logger.warning(f"Model {model} does not support web_search, tool omitted")

    if tools:
        all_tools.extend(tools)

    if all_tools:
        params['tools'] = all_tools
        if tool_choice:
            params['tool_choice'] = tool_choice

    if reasoning:
        params['reasoning'] = reasoning

    return params


def convert_messages_to_responses_format(messages: list) -> dict:
    """
    Convert Chat Completions style messages to Responses API shape.

    The first system message becomes `instructions`; any later system
    message is kept in place as a `developer` turn.

    Args:
        messages: List of {"role": "system"|"user"|"assistant", "content": str}.

    Returns:
        {"instructions": str | None, "input": [{"role", "content"}, ...]}
    """
    instructions = None
    input_turns = []

    for message in messages:
        role = message.get('role')
        content = message.get('content')

        if role == 'system':
            if instructions is None:
                instructions = content
            else:
                input_turns.append({'role': 'developer', 'content': content})
        elif role in ('user', 'assistant'):
            input_turns.append({'role': role, 'content': content})
        else:
            logger.warning(f"Skipping message with unsupported role: {role}")

    return {'instructions': instructions, 'input': input_turns}
