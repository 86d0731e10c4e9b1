"""
HTTP client for the OpenAI Responses API.

`call_responses_api` makes exactly one attempt and always returns an
ApiResult. Retrying on rate limits is layered on top through
RetryPolicy/with_retry (tenacity), and ResponsesClient applies that policy
for every call site.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import requests
from tenacity import Retrying, before_sleep_log, retry_if_result, stop_after_attempt, wait_exponential

from legal_functions.services.responses_output import extract_output_text
from legal_functions.services.responses_params import (
    build_responses_request_params,
    convert_messages_to_responses_format,
)

logger = logging.getLogger(__name__)

OPENAI_RESPONSES_ENDPOINT = 'https://api.openai.com/v1/responses'

# Upstream error bodies can be large HTML pages
MAX_ERROR_BODY_CHARS = 1000


@dataclass
class ApiResult:
    """Outcome of one Responses API call: success with payload, or failure."""
    success: bool
    data: Optional[dict] = None
    text: Optional[str] = None
    error: Optional[str] = None
    status: Optional[int] = None
    attempts: int = 1

    @classmethod
    def ok(cls, data: dict, text: Optional[str] = None) -> 'ApiResult':
        return cls(success=True, data=data, text=text)

    @classmethod
    def failure(cls, error: str, status: Optional[int] = None) -> 'ApiResult':
        return cls(success=False, error=error, status=status)


def call_responses_api(
    api_key: str,
    params: dict,
    session=None,
    timeout: Optional[float] = None,
    endpoint: str = OPENAI_RESPONSES_ENDPOINT
) -> ApiResult:
    """
    POST request parameters to the Responses API.

    Args:
        api_key: OpenAI API key.
        params: Body from build_responses_request_params().
        session: Optional requests.Session (or compatible) to send with.
        timeout: Request timeout in seconds; None leaves it to requests.
        endpoint: Responses API URL.

    Returns:
        ApiResult. Non-2xx statuses and transport or JSON errors become
        failure results; nothing is raised.
    """
    http = session or requests

    try:
        response = http.post(
            endpoint,
            headers={
                'Authorization': f'Bearer {api_key}',
                'Content-Type': 'application/json',
            },
            json=params,
            timeout=timeout
        )

        if not 200 <= response.status_code < 300:
            body = (response.text or '')[:MAX_ERROR_BODY_CHARS]
            logger.error(f"OpenAI Responses API error: {response.status_code} {body}")
            return ApiResult.failure(
                f"OpenAI API error: {response.status_code} {body}".strip(),
                status=response.status_code
            )

        data = response.json()
        text = extract_output_text(data)

        logger.debug(f"Extracted text: {text[:100] + '...' if text else None}")
        return ApiResult.ok(data, text)

    except (requests.RequestException, ValueError) as e:
        logger.error(f"OpenAI Responses API call failed: {type(e).__name__} - {str(e)}")
        return ApiResult.failure(str(e) or type(e).__name__)


def is_rate_limited(result: ApiResult) -> bool:
    """Failure predicate: HTTP 429 or a rate-limit message in the error text."""
    if result.success:
        return False
    if result.status == 429:
        return True
    return 'rate limit' in (result.error or '').lower()


@dataclass
class RetryPolicy:
    """
    When and how often to retry a failed call.

    Attributes:
        max_attempts: Total attempts including the first one.
        multiplier: Exponential backoff multiplier in seconds.
        min_wait: Lower bound between attempts in seconds.
        max_wait: Upper bound between attempts in seconds.
        should_retry: Predicate over the ApiResult of the last attempt.
    """
    max_attempts: int = 3
    multiplier: float = 1
    min_wait: float = 1
    max_wait: float = 10
    should_retry: Callable[[ApiResult], bool] = field(default=is_rate_limited)


NO_RETRY = RetryPolicy(max_attempts=1)


def with_retry(call: Callable[[dict], ApiResult], policy: RetryPolicy) -> Callable[[dict], ApiResult]:
    """
    Wrap a single-attempt caller with the retry policy.

    The wrapped function returns the last ApiResult when attempts run out,
    with `attempts` set to the number of calls made.
    """
    def wrapped(params: dict) -> ApiResult:
        attempts = 0

        def attempt() -> ApiResult:
            nonlocal attempts
            attempts += 1
            return call(params)

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_exponential(multiplier=policy.multiplier, min=policy.min_wait, max=policy.max_wait),
            retry=retry_if_result(policy.should_retry),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

        result = retrying(attempt)
        result.attempts = attempts
        if attempts > 1:
            logger.info(f"Responses API call finished after {attempts} attempts (success={result.success})")
        return result

    return wrapped


def log_responses_request(model: str, function_name: str, has_instructions: bool) -> None:
    logger.info(
        f"[{function_name}] Using Responses API with model: {model} "
        f"(instructions={has_instructions}, endpoint={OPENAI_RESPONSES_ENDPOINT})"
    )


class ResponsesClient:
    """Responses API caller bound to an API key and a retry policy."""

    def __init__(
        self,
        api_key: str,
        timeout: Optional[float] = 30,
        retry_policy: Optional[RetryPolicy] = None,
        session=None,
        endpoint: str = OPENAI_RESPONSES_ENDPOINT
    ):
        if not api_key:
            raise ValueError("OpenAI API key is required")

        self._api_key = api_key
        self._timeout = timeout
        self._session = session
        self._endpoint = endpoint
        self.retry_policy = retry_policy or RetryPolicy()
        self._call = with_retry(self._call_once, self.retry_policy)

    def _call_once(self, params: dict) -> ApiResult:
        return call_responses_api(
            self._api_key,
            params,
            session=self._session,
            timeout=self._timeout,
            endpoint=self._endpoint
        )

    def create(self, params: dict) -> ApiResult:
        """Send prebuilt request parameters."""
        return self._call(params)

    def chat(
        self,
        messages: list,
        model: str,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
        stream: Optional[bool] = None,
        reasoning: Optional[dict] = None,
        function_name: Optional[str] = None
    ) -> ApiResult:
        """
        Run a Chat Completions style message list through the Responses API.

        Responses are not stored upstream.
        """
        converted = convert_messages_to_responses_format(messages)

        if function_name:
            log_responses_request(model, function_name, bool(converted['instructions']))

        params = build_responses_request_params(
            model,
            converted['input'],
            instructions=converted['instructions'],
            max_output_tokens=max_output_tokens,
            temperature=temperature,
            json_mode=json_mode,
            stream=stream,
            store=False,
            reasoning=reasoning
        )

        return self.create(params)
