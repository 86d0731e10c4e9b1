"""
Legal document analysis tool.

Detects the kind of legal document (contract, legal response, brief,
report, correspondence, agreement) and returns key clauses, risks and
recommendations as JSON.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from legal_functions.services.responses_params import build_responses_request_params
from legal_functions.services.text_extractor import extract_text_from_base64
from legal_functions.services.tool_base import LegalTool, UpstreamError, parse_json_text, text_field

logger = logging.getLogger(__name__)

# Characters of document content sent to the model
MAX_CONTENT_CHARS = 3000

# Filename keywords -> (document type, expected elements, priority areas)
DOCUMENT_TYPE_HINTS = [
    (
        ('contrato', 'contract'),
        'Contrato',
        [('Objeto del Contrato', 'medium'), ('Obligaciones de las Partes', 'high'),
         ('Condiciones de Pago', 'high'), ('Resolución de Conflictos', 'medium')],
        [('Términos de Pago', 'high'), ('Cláusulas de Rescisión', 'medium')],
    ),
    (
        ('respuesta', 'contestacion', 'replica', 'alegato'),
        'Respuesta Legal',
        [('Argumentos Principales', 'high'), ('Fundamentos de Derecho', 'high'),
         ('Pruebas Aportadas', 'medium'), ('Solicitudes', 'medium')],
        [('Argumentación Débil', 'high'), ('Falta de Fundamento Legal', 'high'),
         ('Inconsistencias', 'medium')],
    ),
    (
        ('escrito', 'memorial', 'demanda', 'peticion'),
        'Escrito Jurídico',
        [('Hechos', 'high'), ('Derecho Aplicable', 'high'),
         ('Pretensiones', 'high'), ('Pruebas', 'medium')],
        [('Claridad de Hechos', 'high'), ('Base Legal Insuficiente', 'high'),
         ('Pretensiones Mal Formuladas', 'medium')],
    ),
    (
        ('informe', 'reporte', 'analisis', 'dictamen'),
        'Informe Legal',
        [('Resumen Ejecutivo', 'medium'), ('Análisis de Situación', 'high'),
         ('Conclusiones', 'high'), ('Recomendaciones', 'medium')],
        [('Análisis Incompleto', 'high'), ('Conclusiones Ambiguas', 'medium'),
         ('Falta de Recomendaciones', 'low')],
    ),
    (
        ('carta', 'oficio', 'comunicacion', 'notificacion'),
        'Correspondencia Legal',
        [('Remitente y Destinatario', 'low'), ('Asunto', 'medium'),
         ('Contenido Principal', 'high'), ('Solicitud o Requerimiento', 'medium')],
        [('Claridad del Mensaje', 'medium'), ('Formalidades Legales', 'low'),
         ('Plazos Mencionados', 'medium')],
    ),
    (
        ('convenio', 'acuerdo', 'pacto'),
        'Convenio o Acuerdo',
        [('Términos del Acuerdo', 'high'), ('Responsabilidades', 'high'),
         ('Duración', 'medium'), ('Condiciones de Terminación', 'medium')],
        [('Cumplimiento de Términos', 'high'), ('Desequilibrio de Obligaciones', 'medium')],
    ),
]

ANALYSIS_OUTPUT_FORMAT = """

DETECCIÓN AUTOMÁTICA Y ANÁLISIS ADAPTATIVO:
1. Identifica el tipo de documento: contrato, respuesta legal, escrito jurídico, informe legal, correspondencia u otro.
2. Adapta el análisis al tipo detectado (cláusulas y riesgos para contratos, solidez argumentativa para respuestas y escritos, completitud y conclusiones para informes, claridad y plazos para correspondencia).

Responde SIEMPRE en formato JSON con esta estructura:
{
  "documentType": "Tipo específico detectado",
  "documentCategory": "contract|response|brief|report|correspondence|other",
  "clauses": [
    {"name": "Nombre del elemento clave", "content": "Extracto o descripción", "riskLevel": "low|medium|high", "recommendation": "Recomendación específica"}
  ],
  "risks": [
    {"type": "Tipo de riesgo/debilidad", "description": "Descripción contextual", "severity": "low|medium|high"}
  ],
  "recommendations": ["Recomendaciones específicas según tipo"]
}"""


def guess_document_type(file_name: str) -> tuple:
    """
    Guess the document type from keywords in the file name.

    Returns:
        (document_type, elements, risks); generic legal document when nothing matches.
    """
    lower_name = (file_name or '').lower()
    for keywords, document_type, elements, risks in DOCUMENT_TYPE_HINTS:
        if any(keyword in lower_name for keyword in keywords):
            return document_type, elements, risks
    return 'Documento Legal', [], []


def build_preliminary_outline(file_name: str, file_base64: str) -> str:
    """Describe an upload whose text could not be extracted, based on its name."""
    document_type, elements, risks = guess_document_type(file_name)

    element_lines = '\n'.join(f"- {name} (Nivel de importancia: {level})" for name, level in elements)
    risk_lines = '\n'.join(f"- {name} (Prioridad: {severity})" for name, severity in risks)

    return (
        f"Documento: {file_name}\n\n"
        f"ANÁLISIS PRELIMINAR BASADO EN ESTRUCTURA:\n"
        f"Tipo de documento identificado: {document_type}\n"
        f"Tamaño del archivo: {len(file_base64)} bytes (codificado)\n\n"
        f"ELEMENTOS TÍPICOS ESPERADOS:\n{element_lines}\n\n"
        f"ÁREAS DE ANÁLISIS PRIORITARIAS:\n{risk_lines}"
    )


def fallback_analysis(text: str) -> dict:
    """Structure returned when the model output is not valid JSON."""
    return {
        'documentType': 'Documento Legal',
        'clauses': [
            {
                'name': 'Análisis General',
                'content': text[:200] + '...',
                'riskLevel': 'medium',
                'recommendation': 'Revisar con detalle',
            }
        ],
        'risks': [
            {
                'type': 'Análisis Requerido',
                'description': 'El documento requiere revisión manual',
                'severity': 'medium',
            }
        ],
        'recommendations': ['Revisar documento manualmente', 'Consultar con especialista'],
    }


class DocumentAnalysisTool(LegalTool):
    name = 'legal-document-analysis'
    tool_type = 'analysis'

    def _resolve_content(self, payload: dict) -> Optional[str]:
        content = text_field(payload, 'documentContent')
        file_base64 = text_field(payload, 'fileBase64')
        file_name = text_field(payload, 'fileName') or ''

        if content or not file_base64:
            return content

        try:
            return extract_text_from_base64(file_base64, file_name)
        except RuntimeError as e:
            logger.warning(f"Text extraction failed for {file_name}, using filename outline: {e}")
            return build_preliminary_outline(file_name, file_base64)

    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        file_name = text_field(payload, 'fileName')
        file_base64 = text_field(payload, 'fileBase64')

        content = self._resolve_content(payload)
        if not content:
            raise ValueError('Document content is required')

        model = self.model('analysis_ai_model')
        instructions = self.prompt('analysis_ai_prompt') + ANALYSIS_OUTPUT_FORMAT

        logger.info(f"Analyzing {file_name or 'inline document'} ({len(content)} chars) with {model}")

        user_input = (
            "Analiza el siguiente documento legal con detección automática de tipo:\n\n"
            f"NOMBRE DEL ARCHIVO: {file_name or 'Documento'}\n\n"
            f"CONTENIDO (primeros {MAX_CONTENT_CHARS} caracteres):\n"
            f"{content[:MAX_CONTENT_CHARS]}\n\n"
            "Detecta automáticamente el tipo de documento y adapta el análisis según su naturaleza."
        )

        params = build_responses_request_params(
            model,
            user_input,
            instructions=instructions,
            max_output_tokens=2000,
            temperature=0.3,
            json_mode=True,
            store=False
        )
        result = self.call(params)

        if not result.text:
            raise UpstreamError('No response from OpenAI')

        analysis = parse_json_text(result.text)
        if analysis is None:
            analysis = fallback_analysis(result.text)

        now = datetime.now(timezone.utc).isoformat()

        self.save_result(
            user_id,
            {
                'documentContent': content[:500] + '...',
                'fileName': file_name,
                'fileSize': len(file_base64) if file_base64 else None,
            },
            analysis,
            {'originalFileSize': len(file_base64) if file_base64 else None, 'processedAt': now}
        )

        return {
            'success': True,
            'fileName': file_name or 'Documento',
            **analysis,
            'timestamp': now,
        }
