"""
HTTP surface for the legal AI tools.

POST /functions/<name> runs a registered tool with the JSON body.
Collaborators (config provider, Responses client, result sink, OpenAI key)
are read from current_app.extensions['legal_tools'], set up by create_app().
"""
import logging

from flask import Blueprint, current_app, jsonify, make_response, request
from openai import OpenAIError

from legal_functions.auth.token_guard import get_request_user_id
from legal_functions.services.models_catalog import list_gpt_models
from legal_functions.services.system_config import ConfigurationError
from legal_functions.services.tool_base import UpstreamError
from legal_functions.services.tool_registry import TOOL_REGISTRY, create_tool

functions_bp = Blueprint('functions', __name__, url_prefix='/functions')
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
}

NO_STORE_HEADERS = {
    'Cache-Control': 'no-store, no-cache, must-revalidate, proxy-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def add_cors_headers(response):
    """after_request hook: every response carries the CORS headers."""
    for header, value in CORS_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def _dependencies() -> dict:
    return current_app.extensions['legal_tools']


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def _preflight():
    return make_response('', 204)


@functions_bp.route('/get-openai-models', methods=['GET', 'OPTIONS'])
def get_openai_models():
    """List the GPT text models available to the configured API key."""
    if request.method == 'OPTIONS':
        return _preflight()

    api_key = _dependencies().get('openai_api_key')
    if not api_key:
        logger.error("OpenAI API key not configured")
        return _error('OpenAI API key no configurada', 500)

    try:
        catalog = list_gpt_models(api_key, client=_dependencies().get('openai_sdk_client'))
    except OpenAIError as e:
        logger.error(f"Error fetching OpenAI models: {type(e).__name__} - {str(e)}")
        return _error('Error interno obteniendo modelos de OpenAI', 500)

    response = jsonify({'success': True, **catalog})
    response.headers.update(NO_STORE_HEADERS)
    return response


@functions_bp.route('/<name>', methods=['POST', 'OPTIONS'])
def run_tool(name):
    """
    Run one legal tool.

    Status codes:
        400: Invalid JSON body or missing fields.
        404: Unknown tool name.
        500: Missing configuration or upstream (OpenAI) failure.
    """
    if request.method == 'OPTIONS':
        return _preflight()

    if name not in TOOL_REGISTRY:
        return _error(f'Unknown function: {name}', 404)

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error('Request body must be a JSON object', 400)

    deps = _dependencies()
    user_id = get_request_user_id(request.headers.get('Authorization'))

    tool = create_tool(name, deps['config'], client=deps.get('client'), sink=deps.get('sink'))

    try:
        return jsonify(tool.run(payload, user_id=user_id))

    except ValueError as e:
        logger.warning(f"[{name}] Invalid request: {e}")
        return _error(str(e), 400)

    except ConfigurationError as e:
        logger.error(f"[{name}] {e}")
        return _error(str(e), 500)

    except UpstreamError as e:
        logger.error(f"[{name}] Upstream failure (status={e.status}): {e}")
        return _error('Error calling the AI service', 500)
