from flask import Flask, jsonify
import os
import logging
from datetime import datetime, timezone
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix

# Load environment variables before anything reads them
load_dotenv()

from legal_functions.routes.functions_routes import functions_bp, add_cors_headers
from legal_functions.services.responses_client import ResponsesClient, RetryPolicy
from legal_functions.services.results_store import NullResultSink, SupabaseResultSink
from legal_functions.services.system_config import (
    CachedConfigProvider,
    StaticConfigProvider,
    SupabaseConfigProvider,
)

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


def _load_settings(app):
    app.config['OPENAI_API_KEY'] = os.getenv('OPENAI_API_KEY')
    app.config['OPENAI_API_TIMEOUT'] = float(os.getenv('OPENAI_API_TIMEOUT', '30'))
    app.config['OPENAI_MAX_RETRIES'] = int(os.getenv('OPENAI_MAX_RETRIES', '3'))
    app.config['SUPABASE_URL'] = os.getenv('SUPABASE_URL')
    app.config['SUPABASE_SERVICE_ROLE_KEY'] = os.getenv('SUPABASE_SERVICE_ROLE_KEY')
    app.config['CONFIG_CACHE_TTL'] = int(os.getenv('CONFIG_CACHE_TTL', '300'))


def _default_config_provider(app):
    if app.config['SUPABASE_URL'] and app.config['SUPABASE_SERVICE_ROLE_KEY']:
        inner = SupabaseConfigProvider(app.config['SUPABASE_URL'], app.config['SUPABASE_SERVICE_ROLE_KEY'])
        return CachedConfigProvider(inner, ttl=app.config['CONFIG_CACHE_TTL'])

    logger.warning("Supabase not configured, using empty static system config")
    return StaticConfigProvider()


def _default_results_sink(app):
    if app.config['SUPABASE_URL'] and app.config['SUPABASE_SERVICE_ROLE_KEY']:
        return SupabaseResultSink(app.config['SUPABASE_URL'], app.config['SUPABASE_SERVICE_ROLE_KEY'])
    return NullResultSink()


def _default_responses_client(app):
    if not app.config['OPENAI_API_KEY']:
        logger.warning("OPENAI_API_KEY not set; AI tools will return a configuration error")
        return None

    return ResponsesClient(
        app.config['OPENAI_API_KEY'],
        timeout=app.config['OPENAI_API_TIMEOUT'],
        retry_policy=RetryPolicy(max_attempts=app.config['OPENAI_MAX_RETRIES'])
    )


def create_app(config_provider=None, responses_client=None, results_sink=None, openai_sdk_client=None):
    """
    Build the Flask app.

    Collaborators default to ones built from environment variables; tests
    pass fakes instead.
    """
    app = Flask(__name__)

    # Behind a reverse proxy (App Service, Cloud Run)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    _load_settings(app)

    app.extensions['legal_tools'] = {
        'config': config_provider or _default_config_provider(app),
        'client': responses_client or _default_responses_client(app),
        'sink': results_sink or _default_results_sink(app),
        'openai_api_key': app.config['OPENAI_API_KEY'],
        'openai_sdk_client': openai_sdk_client,
    }

    app.register_blueprint(functions_bp)
    app.after_request(add_cors_headers)

    @app.route('/health')
    def health():
        """Liveness probe."""
        return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})

    logger.info("Legal functions app initialized")
    return app


app = create_app()


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', '5000')), debug=False)
