"""
Clause improvement tool: rewrites a user-proposed clause in professional legal language.
"""
import json
import logging
from typing import Optional

from legal_functions.services.responses_params import build_responses_request_params
from legal_functions.services.tool_base import LegalTool, UpstreamError, text_field

logger = logging.getLogger(__name__)

CLAUSE_SYSTEM_PROMPT = 'Eres un experto abogado colombiano especializado en redacción de documentos legales.'

CLAUSE_PROMPT = """Documento: {document_type}
Contexto del documento: {context}

Cláusula propuesta por el usuario: "{clause}"

Tu tarea es mejorar y estructurar profesionalmente esta cláusula para que sea:
1. Legalmente sólida según la legislación colombiana
2. Clara y precisa en su redacción
3. Apropiada para el tipo de documento
4. Bien estructurada y profesional

Mejora la cláusula manteniendo la intención original del usuario pero con redacción jurídica profesional. Responde ÚNICAMENTE con la cláusula mejorada, sin explicaciones adicionales."""


class ClauseImproverTool(LegalTool):
    name = 'improve-clause-ai'

    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        clause = text_field(payload, 'clause')
        if not clause:
            raise ValueError('Clause text is required')

        model = self.model('clause_improver_model')

        params = build_responses_request_params(
            model,
            CLAUSE_PROMPT.format(
                document_type=payload.get('document_type') or 'No especificado',
                context=json.dumps(payload.get('context'), ensure_ascii=False),
                clause=clause
            ),
            instructions=CLAUSE_SYSTEM_PROMPT,
            max_output_tokens=1000,
            temperature=0.3,
            store=False
        )
        result = self.call(params)

        improved_clause = (result.text or '').strip()
        if not improved_clause:
            raise UpstreamError('No response from OpenAI')

        return {
            'improvedClause': improved_clause,
            'originalClause': clause,
        }
