"""
Legal document drafting tool.
Generates a first draft of a Colombian legal document from a description.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from legal_functions.services.responses_params import build_responses_request_params
from legal_functions.services.tool_base import LegalTool, UpstreamError, parse_json_text, text_field

logger = logging.getLogger(__name__)

DRAFTING_GUIDELINES = """

Instrucciones específicas:
- Genera un borrador profesional del documento solicitado
- Sigue la estructura típica del tipo de documento
- Incluye todas las cláusulas esenciales
- Usa terminología jurídica apropiada para Colombia
- Marca con [ESPECIFICAR] los campos que requieren personalización
- Incluye cláusulas de protección estándar"""

DRAFTING_JSON_FORMAT = """

Responde en formato JSON con la siguiente estructura:
{
  "content": "Contenido completo del borrador en formato markdown",
  "sections": ["Lista", "de", "secciones", "incluidas"],
  "documentType": "Nombre completo del tipo de documento"
}"""


class DocumentDraftingTool(LegalTool):
    name = 'legal-document-drafting'
    tool_type = 'drafting'

    def _draft(self, model: str, instructions: str, user_input: str, json_mode: bool) -> Optional[str]:
        params = build_responses_request_params(
            model,
            user_input,
            instructions=instructions,
            max_output_tokens=4000,
            temperature=0.4,
            json_mode=json_mode,
            store=False,
            reasoning=self.reasoning(model, 'reasoning_effort_drafting', 'text_generation')
        )
        return self.call(params).text

    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        prompt = text_field(payload, 'prompt')
        document_type = text_field(payload, 'documentType')

        if not prompt or not document_type:
            raise ValueError('Prompt and document type are required')

        model = self.model('drafting_ai_model')
        base_prompt = self.prompt('drafting_ai_prompt') + DRAFTING_GUIDELINES

        user_input = (
            f"Genera un borrador de: {document_type}\n\n"
            f"Descripción específica: {prompt}\n\n"
            "El documento debe ser apropiado para Colombia y seguir las mejores prácticas legales."
        )

        logger.info(f"Drafting '{document_type}' with model {model}")

        text = self._draft(model, base_prompt + DRAFTING_JSON_FORMAT, user_input, json_mode=True)

        if not text:
            # Reasoning models can spend the whole budget without emitting JSON
            logger.warning("Empty drafting response in JSON mode, retrying as plain text")
            text = self._draft(model, base_prompt, user_input, json_mode=False)

        if not text:
            raise UpstreamError('No response from OpenAI')

        draft = parse_json_text(text)
        if draft is None:
            draft = {
                'content': text,
                'sections': ['Contenido Generado'],
                'documentType': document_type,
            }

        now = datetime.now(timezone.utc).isoformat()

        self.save_result(user_id, {'prompt': prompt, 'documentType': document_type}, draft)

        return {
            'success': True,
            'prompt': prompt,
            **draft,
            'timestamp': now,
        }
