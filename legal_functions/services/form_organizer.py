"""
Groups template placeholder fields into logical form sections.
"""
import logging
from typing import Optional

from legal_functions.services.responses_params import build_responses_request_params
from legal_functions.services.tool_base import LegalTool, parse_json_text

logger = logging.getLogger(__name__)

GROUPING_FORMAT = """

Organiza estos campos en grupos lógicos (2-5 campos por grupo). Responde ÚNICAMENTE con JSON válido:
{
  "groups": [
    {"name": "Información Personal", "description": "Datos básicos", "fields": [0, 1, 2]},
    {"name": "Detalles del Documento", "description": "Información específica", "fields": [3, 4, 5]}
  ]
}

Los números en "fields" son índices (0-based) del array original."""


def single_group(field_count: int) -> dict:
    return {
        'groups': [{
            'name': 'Información del Documento',
            'description': 'Completa todos los campos requeridos',
            'fields': list(range(field_count)),
        }]
    }


def sanitize_groups(grouped: dict, field_count: int) -> Optional[dict]:
    """
    Keep only well-formed groups and in-range field indices.

    Returns:
        Cleaned {"groups": [...]} or None when nothing usable remains.
    """
    groups = grouped.get('groups')
    if not isinstance(groups, list):
        return None

    cleaned = []
    for group in groups:
        if not isinstance(group, dict):
            continue

        indices = [
            index for index in group.get('fields') or []
            if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < field_count
        ]
        if not indices:
            continue

        cleaned.append({
            'name': group.get('name') or 'Grupo',
            'description': group.get('description') or '',
            'fields': indices,
        })

    return {'groups': cleaned} if cleaned else None


class FormOrganizerTool(LegalTool):
    name = 'organize-form-groups'

    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        fields = payload.get('placeholder_fields')
        if not isinstance(fields, list):
            raise ValueError('placeholder_fields array is required')

        model = self.model('organize_form_ai_model')
        instructions = self.prompt('organize_form_prompt')

        field_lines = '\n'.join(
            f"{index + 1}. {field.get('field')}: {field.get('description')}"
            for index, field in enumerate(fields)
            if isinstance(field, dict)
        )
        user_input = (
            f"Contexto del documento: \"{payload.get('ai_prompt') or 'Documento legal'}\"\n\n"
            f"Campos disponibles:\n{field_lines}"
            f"{GROUPING_FORMAT}"
        )

        params = build_responses_request_params(
            model,
            user_input,
            instructions=instructions,
            max_output_tokens=2000,
            temperature=0.3,
            json_mode=True,
            store=False,
            reasoning=self.reasoning(model, 'reasoning_effort_organize_form', 'text_generation')
        )
        result = self.call(params)

        grouped = parse_json_text(result.text)
        cleaned = sanitize_groups(grouped, len(fields)) if grouped else None
        if cleaned is None:
            logger.error(f"Unusable grouping response, using a single group: {(result.text or '')[:200]}")
            return single_group(len(fields))

        return cleaned
