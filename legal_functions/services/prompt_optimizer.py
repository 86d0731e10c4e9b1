"""
Prompt optimizer for the admin console.
Fills the configured meta prompt with the function being tuned and asks the
model for an improved prompt.
"""
import logging
from typing import Optional

from legal_functions.services.responses_params import build_responses_request_params
from legal_functions.services.tool_base import LegalTool, UpstreamError, text_field

logger = logging.getLogger(__name__)

# Placeholder -> (request field, default text)
META_PROMPT_PLACEHOLDERS = (
    ('{{function_name}}', 'functionName', 'No especificado'),
    ('{{function_description}}', 'functionDescription', 'No especificada'),
    ('{{expected_output}}', 'expectedOutput', 'Texto estructurado'),
)


def fill_meta_prompt(meta_prompt: str, payload: dict) -> str:
    """Substitute request fields into the meta prompt placeholders."""
    filled = meta_prompt
    for placeholder, field, default in META_PROMPT_PLACEHOLDERS:
        filled = filled.replace(placeholder, text_field(payload, field) or default)
    return filled.replace('{{current_prompt}}', text_field(payload, 'prompt') or '')


class PromptOptimizerTool(LegalTool):
    name = 'optimize-prompt'

    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        prompt = text_field(payload, 'prompt')
        if not prompt:
            raise ValueError('El prompt es requerido')

        meta_prompt = self.prompt('prompt_optimizer_meta_prompt')
        model = self.model('prompt_optimizer_model')
        instructions = self.config.get('prompt_optimizer_instructions')

        params = build_responses_request_params(
            model,
            fill_meta_prompt(meta_prompt, payload),
            instructions=instructions or None,
            max_output_tokens=16000,
            reasoning=self.reasoning(model, 'reasoning_effort_prompt_optimizer', 'analysis')
        )
        result = self.call(params)

        if not result.text:
            raise UpstreamError('No se pudo generar el prompt optimizado')

        optimized_prompt = result.text.strip()
        logger.info(f"Optimized prompt: {len(prompt)} -> {len(optimized_prompt)} chars")

        return {
            'success': True,
            'optimizedPrompt': optimized_prompt,
            'originalLength': len(prompt),
            'optimizedLength': len(optimized_prompt),
            'model': model,
        }
