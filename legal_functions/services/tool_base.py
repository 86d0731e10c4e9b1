"""
Common plumbing for the legal AI tools.

Each tool receives its collaborators (config provider, Responses client,
result sink) through the constructor and implements run(). Tools raise
ValueError for bad input, ConfigurationError for missing settings and
UpstreamError for failed OpenAI calls; the HTTP layer maps them to
status codes.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from legal_functions.services.openai_models import get_reasoning_effort_for_type, reasoning_config
from legal_functions.services.responses_client import ApiResult, ResponsesClient, log_responses_request
from legal_functions.services.results_store import NullResultSink, ResultSink
from legal_functions.services.system_config import ConfigProvider, ConfigurationError

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """Raised when the OpenAI call fails or returns no usable text."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)

    @classmethod
    def from_result(cls, result: ApiResult) -> 'UpstreamError':
        return cls(result.error or 'Error calling OpenAI API', status=result.status)


def parse_json_text(text: Optional[str]) -> Optional[dict]:
    """
    Parse model output as a JSON object.

    Models sometimes wrap JSON in a markdown fence even in JSON mode, so a
    surrounding ```json fence is stripped first.

    Returns:
        The parsed object, or None when the text is empty or not a JSON object.
    """
    if not text:
        return None

    cleaned = text.strip()
    if cleaned.startswith('```'):
        cleaned = cleaned.split('\n', 1)[1] if '\n' in cleaned else ''
        if cleaned.rstrip().endswith('```'):
            cleaned = cleaned.rstrip()[:-3]

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON response: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Expected a JSON object, got {type(data).__name__}")
        return None

    return data


def text_field(payload: dict, field: str) -> Optional[str]:
    """
    Read an optional string field from a request body.

    Raises:
        ValueError: If the field is present with a non-string value.
    """
    value = payload.get(field)
    if value is not None and not isinstance(value, str):
        raise ValueError(f'{field} must be a string')
    return value


class LegalTool(ABC):
    """Base class for one HTTP-invocable legal tool."""

    # Route name under /functions/
    name: str = ''
    # tool_type recorded in legal_tools_results; None disables persistence
    tool_type: Optional[str] = None

    def __init__(
        self,
        config: ConfigProvider,
        client: Optional[ResponsesClient] = None,
        sink: Optional[ResultSink] = None
    ):
        self.config = config
        self.client = client
        self.sink = sink or NullResultSink()

    def model(self, config_key: str, default: Optional[str] = None) -> str:
        return self.config.model(config_key, default)

    def prompt(self, config_key: str) -> str:
        return self.config.require(config_key)

    def reasoning(self, model: str, config_key: str, function_type: str) -> Optional[dict]:
        """Reasoning block for `model`; a configured effort overrides the default for function_type."""
        effort = get_reasoning_effort_for_type(function_type, self.config.get(config_key))
        return reasoning_config(model, effort)

    def _require_client(self) -> ResponsesClient:
        if self.client is None:
            raise ConfigurationError('OPENAI_API_KEY')
        return self.client

    def call(self, params: dict) -> ApiResult:
        """
        Send prebuilt Responses parameters.

        Raises:
            ConfigurationError: If no OpenAI client is configured.
            UpstreamError: If the call fails after retries.
        """
        client = self._require_client()
        log_responses_request(params.get('model', ''), self.name, bool(params.get('instructions')))

        result = client.create(params)
        if not result.success:
            logger.error(f"[{self.name}] OpenAI call failed after {result.attempts} attempt(s): {result.error}")
            raise UpstreamError.from_result(result)
        return result

    def chat(self, messages: list, model: str, **options) -> ApiResult:
        """Chat Completions style call routed through the Responses API."""
        client = self._require_client()

        result = client.chat(messages, model, function_name=self.name, **options)
        if not result.success:
            logger.error(f"[{self.name}] OpenAI call failed after {result.attempts} attempt(s): {result.error}")
            raise UpstreamError.from_result(result)
        return result

    def save_result(
        self,
        user_id: Optional[str],
        input_data: dict,
        output_data: dict,
        metadata: Optional[dict] = None
    ) -> bool:
        """Persist the run for authenticated callers; anonymous runs are not saved."""
        if not user_id or not self.tool_type:
            return False
        return self.sink.save_tool_result(user_id, self.tool_type, input_data, output_data, metadata)

    @abstractmethod
    def run(self, payload: dict, user_id: Optional[str] = None) -> dict:
        """
        Execute the tool for one request body.

        Args:
            payload: Decoded JSON request body.
            user_id: Caller id from the bearer token, when present.

        Returns:
            JSON-serializable response body.
        """
