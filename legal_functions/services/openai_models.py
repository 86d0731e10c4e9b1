"""
OpenAI model capability helpers.
Maps model identifiers to a generation and derives which request
parameters each generation accepts.
"""
import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Model generations
LEGACY = 'legacy'        # gpt-4o, gpt-4o-mini, gpt-4-turbo
GPT41 = 'gpt41'          # gpt-4.1, gpt-4.1-mini
GPT5 = 'gpt5'            # gpt-5, gpt-5-mini, gpt-5-nano
REASONING = 'reasoning'  # o1, o3, o4-mini

REASONING_EFFORTS = ('low', 'medium', 'high')

# Default effort per kind of work; system_config values override these
DEFAULT_REASONING_EFFORTS = {
    'text_generation': 'low',
    'analysis': 'medium',
    'strategy': 'high',
    'research': 'high',
}


def get_model_generation(model: str) -> str:
    """
    Detect the generation of an OpenAI model.

    Args:
        model: Model identifier (e.g. "gpt-4.1-2025-04-14").

    Returns:
        One of LEGACY, GPT41, GPT5 or REASONING.
    """
    if not model:
        return LEGACY

    lower_model = model.lower()

    if 'gpt-5' in lower_model:
        return GPT5

    if re.match(r'^o[134]', lower_model):
        return REASONING

    if 'gpt-4.1' in lower_model:
        return GPT41

    return LEGACY


def is_reasoning_model(model: str) -> bool:
    """Reasoning models spend internal tokens and take an effort hint."""
    return get_model_generation(model) in (GPT5, REASONING)


def supports_temperature(model: str) -> bool:
    """GPT-5 and o-series models reject the temperature parameter."""
    return not is_reasoning_model(model)


def supports_web_search(model: str) -> bool:
    """Only the full-size GPT-5 models can use the web_search tool."""
    lower_model = (model or '').lower()
    if 'nano' in lower_model:
        return False
    return 'gpt-5' in lower_model


def get_reasoning_effort_for_type(function_type: str, override: Optional[str] = None) -> str:
    """
    Resolve the reasoning effort for a kind of work.

    Args:
        function_type: Key of DEFAULT_REASONING_EFFORTS.
        override: Configured effort; used when it is a valid value.

    Returns:
        'low', 'medium' or 'high'.
    """
    if override:
        effort = override.strip().lower()
        if effort in REASONING_EFFORTS:
            return effort
        logger.warning(f"Ignoring invalid reasoning effort '{override}' for {function_type}")
    return DEFAULT_REASONING_EFFORTS.get(function_type, 'low')


def reasoning_config(model: str, effort: Optional[str]) -> Optional[dict]:
    """
    Build the `reasoning` request field for a model.

    Non-reasoning models get None so the field is left out of the request.
    """
    if not effort or not is_reasoning_model(model):
        return None

    effort = effort.strip().lower()
    if effort not in REASONING_EFFORTS:
        logger.warning(f"Unknown reasoning effort '{effort}', omitting reasoning config")
        return None

    return {'effort': effort}
