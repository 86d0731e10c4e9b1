"""
Unit tests for the /functions HTTP surface.
Collaborators are injected through create_app(); no network calls are made.
"""
import base64
import json
import time
import pytest
from unittest.mock import MagicMock, patch

from openai import APIConnectionError

from legal_functions.services.responses_client import ApiResult
from legal_functions.services.system_config import StaticConfigProvider
from main import create_app


def bearer(sub='lawyer-1', exp=None):
    def encode(data):
        return base64.urlsafe_b64encode(json.dumps(data).encode('utf-8')).decode('utf-8').rstrip('=')

    payload = {'sub': sub, 'exp': exp or int(time.time()) + 3600}
    return f"Bearer {encode({'alg': 'HS256'})}.{encode(payload)}.sig"


@pytest.fixture
def responses_client():
    return MagicMock()


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def sdk_client():
    return MagicMock()


@pytest.fixture
def app(responses_client, sink, sdk_client):
    config = StaticConfigProvider({
        'drafting_ai_prompt': 'Eres un redactor legal.',
        'organize_form_prompt': 'Agrupa los campos.',
    })
    flask_app = create_app(
        config_provider=config,
        responses_client=responses_client,
        results_sink=sink,
        openai_sdk_client=sdk_client
    )
    flask_app.config['TESTING'] = True
    flask_app.extensions['legal_tools']['openai_api_key'] = 'sk-test'
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


class TestToolRoutes:

    def test_runs_tool_and_saves_for_caller(self, client, responses_client, sink):
        responses_client.create.return_value = ApiResult.ok(
            {}, '{"content": "Poder general", "sections": ["Otorgamiento"], "documentType": "Poder"}'
        )

        response = client.post(
            '/functions/legal-document-drafting',
            json={'prompt': 'Poder para vender', 'documentType': 'Poder'},
            headers={'Authorization': bearer('lawyer-9')}
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['content'] == 'Poder general'
        assert response.headers['Access-Control-Allow-Origin'] == '*'
        assert sink.save_tool_result.call_args.args[:2] == ('lawyer-9', 'drafting')

    def test_validation_error_is_400(self, client):
        response = client.post('/functions/legal-document-drafting', json={'prompt': 'x'})

        assert response.status_code == 400
        assert response.get_json() == {'success': False, 'error': 'Prompt and document type are required'}

    def test_token_with_non_numeric_exp_runs_anonymously(self, client, responses_client, sink):
        responses_client.create.return_value = ApiResult.ok(
            {}, '{"content": "Poder general", "sections": [], "documentType": "Poder"}'
        )

        response = client.post(
            '/functions/legal-document-drafting',
            json={'prompt': 'Poder para vender', 'documentType': 'Poder'},
            headers={'Authorization': bearer('u1', exp='soon')}
        )

        assert response.status_code == 200
        assert response.get_json()['success'] is True
        sink.save_tool_result.assert_not_called()

    def test_non_string_field_is_400(self, client, responses_client):
        response = client.post('/functions/legal-document-analysis', json={'documentContent': 12345})

        assert response.status_code == 400
        assert response.get_json() == {'success': False, 'error': 'documentContent must be a string'}
        responses_client.create.assert_not_called()

    def test_training_validation_with_letter_answer_key(self, client, responses_client):
        responses_client.chat.return_value = ApiResult.ok(
            {}, '{"passed": true, "totalScore": 90, "maxScore": 100}'
        )

        response = client.post('/functions/ai-training-validator', json={
            'questions': [{'id': 'q1', 'type': 'multiple_choice', 'question': '¿Cuál?', 'correctAnswer': 'b'}],
            'answers': {'q1': 'b'},
        })

        assert response.status_code == 200
        assert response.get_json()['message'] == '¡Validación exitosa! Puntuación: 90/100'

    def test_non_object_question_is_400(self, client, responses_client):
        response = client.post('/functions/ai-training-validator', json={'questions': ['¿Cuál?'], 'answers': {}})

        assert response.status_code == 400
        responses_client.chat.assert_not_called()

    def test_non_json_body_is_400(self, client):
        response = client.post('/functions/improve-clause-ai', data='clause', content_type='text/plain')

        assert response.status_code == 400

    def test_unknown_tool_is_404(self, client):
        response = client.post('/functions/does-not-exist', json={})

        assert response.status_code == 404
        assert response.headers['Access-Control-Allow-Origin'] == '*'

    def test_missing_prompt_config_is_500_naming_key(self, client, responses_client):
        response = client.post('/functions/optimize-prompt', json={'prompt': 'Analiza'})

        assert response.status_code == 500
        assert 'prompt_optimizer_meta_prompt' in response.get_json()['error']
        responses_client.create.assert_not_called()

    def test_upstream_failure_is_500_without_details(self, client, responses_client):
        responses_client.create.return_value = ApiResult(
            success=False, error='OpenAI API error: 429 rate limited', status=429, attempts=3
        )

        response = client.post('/functions/improve-clause-ai', json={'clause': 'El comprador paga'})

        assert response.status_code == 500
        body = response.get_json()
        assert body['success'] is False
        assert '429' not in body['error']

    def test_missing_openai_key_is_500(self, app, client):
        app.extensions['legal_tools']['client'] = None

        response = client.post('/functions/improve-clause-ai', json={'clause': 'x'})

        assert response.status_code == 500
        assert 'OPENAI_API_KEY' in response.get_json()['error']

    def test_preflight(self, client):
        response = client.options('/functions/legal-document-analysis')

        assert response.status_code == 204
        assert response.headers['Access-Control-Allow-Origin'] == '*'
        assert 'authorization' in response.headers['Access-Control-Allow-Headers']


class TestModelsRoute:

    def test_lists_models(self, client):
        with patch('legal_functions.routes.functions_routes.list_gpt_models',
                   return_value={'models': [{'id': 'gpt-4.1'}], 'total_models': 12}) as mock_list:
            response = client.get('/functions/get-openai-models')

        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'models': [{'id': 'gpt-4.1'}], 'total_models': 12}
        assert 'no-store' in response.headers['Cache-Control']
        assert mock_list.call_args.args[0] == 'sk-test'

    def test_sdk_error_is_500(self, client, sdk_client):
        sdk_client.models.list.side_effect = APIConnectionError(request=MagicMock())

        response = client.get('/functions/get-openai-models')

        assert response.status_code == 500
        assert response.get_json()['success'] is False

    def test_missing_key_is_500(self, app, client):
        app.extensions['legal_tools']['openai_api_key'] = None

        response = client.get('/functions/get-openai-models')

        assert response.status_code == 500


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'ok'
        assert response.headers['Access-Control-Allow-Origin'] == '*'
