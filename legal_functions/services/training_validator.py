"""
AI training validator.

Scores a lawyer's answers to a training module (questions plus an optional
practical exercise) and records the evaluation in `training_validations`.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from legal_functions.services.tool_base import LegalTool, parse_json_text

logger = logging.getLogger(__name__)

PASSING_SCORE = 70
TRAINING_VALIDATIONS_TABLE = 'training_validations'

EVALUATOR_PROMPT = """Eres un experto evaluador en formación legal especializado en IA para abogados. Tu función es evaluar respuestas de abogados en formación sobre conceptos de Inteligencia Artificial aplicada al derecho.

CRITERIOS DE EVALUACIÓN:
- Precisión técnica (30%): Corrección de conceptos y términos
- Aplicabilidad práctica (25%): Relevancia para ejercicio legal real
- Completitud (20%): Cobertura integral de la pregunta
- Pensamiento crítico (15%): Análisis profundo y consideraciones éticas
- Claridad comunicativa (10%): Estructura y expresión clara

INSTRUCCIONES:
1. Evalúa cada respuesta objetivamente
2. Proporciona puntuación específica (0-100)
3. Incluye feedback constructivo detallado
4. Identifica fortalezas y áreas de mejora
5. Sugiere recursos adicionales si es necesario
6. Determina si el candidato debe aprobar (≥{passing} puntos)

FORMATO DE RESPUESTA:
Devuelve un JSON con esta estructura exacta:
{{
  "passed": boolean,
  "totalScore": number,
  "maxScore": number,
  "questionResults": [
    {{
      "questionId": "string",
      "score": number,
      "maxScore": number,
      "feedback": "string",
      "strengths": ["string"],
      "improvements": ["string"]
    }}
  ],
  "overallFeedback": "string",
  "recommendations": ["string"],
  "nextSteps": "string"
}}""".format(passing=PASSING_SCORE)

FALLBACK_EVALUATION = {
    'passed': False,
    'totalScore': 0,
    'maxScore': 100,
    'questionResults': [],
    'overallFeedback': 'Error en la evaluación automática. Por favor, contacta al administrador.',
    'recommendations': ['Revisar el sistema de evaluación'],
    'nextSteps': 'Contactar soporte técnico',
}


def _format_answer(question: dict, answer) -> str:
    if question.get('type') == 'multiple_choice' and isinstance(answer, int):
        return f"Opción seleccionada: {answer + 1}"
    return str(answer) if answer not in (None, '') else 'Sin respuesta'


def _format_correct_answer(correct) -> str:
    # Option indices are zero-based; anything else is shown as sent
    if isinstance(correct, int) and not isinstance(correct, bool):
        return f"Opción {correct + 1}"
    return str(correct)


def create_validation_prompt(
    module_title: str,
    questions: list,
    answers: dict,
    practical_exercise: Optional[dict] = None
) -> str:
    """Render questions, candidate answers and the practical exercise for evaluation."""
    parts = [f"MÓDULO DE FORMACIÓN: {module_title}\n\nEVALUACIÓN DE RESPUESTAS:\n"]

    for index, question in enumerate(questions):
        lines = [
            f"PREGUNTA {index + 1} ({question.get('points', 0)} puntos):",
            f"Tipo: {question.get('type')}",
            f"Enunciado: {question.get('question')}",
        ]
        options = question.get('options')
        if isinstance(options, list) and options:
            lines.append(f"Opciones: {', '.join(str(option) for option in options)}")
        if question.get('correctAnswer') is not None:
            lines.append(f"Respuesta correcta: {_format_correct_answer(question['correctAnswer'])}")
        if question.get('rubric'):
            lines.append(f"Criterios: {question['rubric']}")

        lines.append('')
        lines.append('RESPUESTA DEL CANDIDATO:')
        question_id = question.get('id')
        answer = answers.get(question_id) if isinstance(question_id, (str, int)) else None
        lines.append(_format_answer(question, answer))
        lines.append('---\n')
        parts.append('\n'.join(lines))

    if practical_exercise:
        expected = '\n'.join(
            f"{i + 1}. {output}" for i, output in enumerate(practical_exercise.get('expectedOutputs') or [])
        )
        criteria = '\n'.join(
            f"{i + 1}. {item}" for i, item in enumerate(practical_exercise.get('evaluationCriteria') or [])
        )
        parts.append(
            "EJERCICIO PRÁCTICO:\n"
            f"Título: {practical_exercise.get('title')}\n"
            f"Descripción: {practical_exercise.get('description')}\n"
            f"Instrucciones: {practical_exercise.get('prompt')}\n\n"
            f"Resultados esperados:\n{expected}\n\n"
            f"Criterios de evaluación:\n{criteria}\n\n"
            "RESPUESTA DEL CANDIDATO AL EJERCICIO:\n"
            f"{answers.get('practical_exercise') or 'Sin respuesta al ejercicio práctico'}\n---\n"
        )

    parts.append(
        "INSTRUCCIONES DE EVALUACIÓN:\n"
        "1. Evalúa cada respuesta según los criterios establecidos\n"
        "2. Para preguntas de opción múltiple, verifica si la respuesta es correcta\n"
        "3. Para preguntas abiertas, evalúa según la rúbrica proporcionada\n"
        "4. Considera el nivel de conocimiento esperado para un abogado en formación\n"
        "5. Proporciona feedback constructivo y específico\n"
        f"6. El puntaje mínimo para aprobar es {PASSING_SCORE}/100\n\n"
        "Evalúa con rigor profesional pero reconoce que el candidato está en proceso de aprendizaje."
    )

    return '\n'.join(parts)


class TrainingValidatorTool(LegalTool):
    name = 'ai-training-validator'

    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        questions = payload.get('questions')
        answers = payload.get('answers')

        if not isinstance(questions, list) or not isinstance(answers, dict):
            raise ValueError('questions (list) and answers (object) are required')

        if not all(isinstance(question, dict) for question in questions):
            raise ValueError('each question must be an object')

        practical_exercise = payload.get('practicalExercise')
        if practical_exercise is not None and not isinstance(practical_exercise, dict):
            raise ValueError('practicalExercise must be an object')

        module_id = payload.get('moduleId')
        module_title = payload.get('moduleTitle') or ''
        lawyer_id = payload.get('lawyerId') or user_id

        model = self.model('openai_model')
        logger.info(f"Validating training module {module_id} for lawyer {lawyer_id} with {model}")

        messages = [
            {'role': 'system', 'content': EVALUATOR_PROMPT},
            {
                'role': 'user',
                'content': create_validation_prompt(
                    module_title, questions, answers, practical_exercise
                ),
            },
        ]
        result = self.chat(messages, model, max_output_tokens=2500, temperature=0.3)

        evaluation = parse_json_text(result.text)
        if evaluation is None:
            logger.error("Could not parse training evaluation, using fallback result")
            evaluation = dict(FALLBACK_EVALUATION)

        total_score = evaluation.get('totalScore', 0)
        max_score = evaluation.get('maxScore', 100)
        passed = bool(evaluation.get('passed'))

        self.sink.insert({
            'lawyer_id': lawyer_id,
            'module_id': module_id,
            'module_title': module_title,
            'questions': questions,
            'answers': answers,
            'ai_evaluation': evaluation,
            'passed': passed,
            'score': total_score,
            'max_score': max_score,
            'validated_at': datetime.now(timezone.utc).isoformat(),
        }, table=TRAINING_VALIDATIONS_TABLE)

        if passed:
            message = f"¡Validación exitosa! Puntuación: {total_score}/{max_score}"
        else:
            message = f"Validación no superada. Puntuación: {total_score}/{max_score}"

        return {
            'success': True,
            'validation': evaluation,
            'message': message,
        }
