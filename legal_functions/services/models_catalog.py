"""
OpenAI model catalogue for the admin model pickers.
"""
import logging
from typing import Optional

from openai import OpenAI

logger = logging.getLogger(__name__)

# Substrings of GPT model ids that are not chat/text generation models
EXCLUDED_MODEL_MARKERS = (
    'instruct',
    'edit',
    'embedding',
    'whisper',
    'tts',
    'davinci-002',
    'babbage-002',
)


def _is_text_gpt_model(model_id: str) -> bool:
    return 'gpt' in model_id and not any(marker in model_id for marker in EXCLUDED_MODEL_MARKERS)


def list_gpt_models(api_key: str, client: Optional[OpenAI] = None, timeout: float = 30.0) -> dict:
    """
    List the GPT text models available to the API key.

    Args:
        api_key: OpenAI API key.
        client: Preconfigured OpenAI client (tests inject a fake).
        timeout: Request timeout in seconds.

    Returns:
        {"models": [{"id", "object", "created", "owned_by"}, ...], "total_models": int}

    Raises:
        openai.OpenAIError: On API failure.
    """
    client = client or OpenAI(api_key=api_key, timeout=timeout)

    all_models = [
        {
            'id': model.id,
            'object': model.object,
            'created': model.created,
            'owned_by': model.owned_by,
        }
        for model in client.models.list()
    ]

    gpt_models = sorted(
        (model for model in all_models if _is_text_gpt_model(model['id'])),
        key=lambda model: model['id']
    )

    logger.info(f"Found {len(all_models)} total models, filtered to {len(gpt_models)} GPT models")
    return {'models': gpt_models, 'total_models': len(all_models)}
