"""
Unit tests for the Responses API caller, retry policy and client.
HTTP is stubbed with a mocked requests session.
"""
import pytest
import requests
from unittest.mock import MagicMock, Mock

from legal_functions.services.responses_client import (
    NO_RETRY,
    OPENAI_RESPONSES_ENDPOINT,
    ApiResult,
    ResponsesClient,
    RetryPolicy,
    call_responses_api,
    is_rate_limited,
    with_retry,
)

FAST_RETRY = RetryPolicy(max_attempts=3, multiplier=0, min_wait=0, max_wait=0)


def http_response(status_code=200, json_data=None, text=''):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    return response


def session_returning(*responses):
    session = MagicMock()
    session.post.side_effect = list(responses)
    return session


class TestCallResponsesApi:
    """Tests for call_responses_api."""

    def test_success_extracts_text(self):
        session = session_returning(http_response(json_data={'output_text': '4'}))

        result = call_responses_api('sk-test', {'model': 'gpt-4.1', 'input': '2+2?'}, session=session, timeout=5)

        assert result.success is True
        assert result.text == '4'
        assert result.data == {'output_text': '4'}

        args, kwargs = session.post.call_args
        assert args[0] == OPENAI_RESPONSES_ENDPOINT
        assert kwargs['headers']['Authorization'] == 'Bearer sk-test'
        assert kwargs['json'] == {'model': 'gpt-4.1', 'input': '2+2?'}
        assert kwargs['timeout'] == 5

    def test_rate_limit_status_surfaced(self):
        session = session_returning(http_response(status_code=429, text='rate limited'))

        result = call_responses_api('sk-test', {'model': 'gpt-4.1', 'input': 'x'}, session=session)

        assert result.success is False
        assert result.status == 429
        assert '429' in result.error
        assert 'rate limited' in result.error

    def test_long_error_body_truncated(self):
        session = session_returning(http_response(status_code=500, text='x' * 5000))

        result = call_responses_api('sk-test', {'model': 'gpt-4.1', 'input': 'x'}, session=session)

        assert len(result.error) < 1100

    def test_success_without_text_is_still_success(self):
        session = session_returning(http_response(json_data={'output': []}))

        result = call_responses_api('sk-test', {'model': 'gpt-4.1', 'input': 'x'}, session=session)

        assert result.success is True
        assert result.text is None

    def test_transport_error_becomes_failure(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError('connection reset')

        result = call_responses_api('sk-test', {'model': 'gpt-4.1', 'input': 'x'}, session=session)

        assert result.success is False
        assert result.status is None
        assert 'connection reset' in result.error

    def test_invalid_json_becomes_failure(self):
        response = http_response()
        response.json.side_effect = ValueError('Expecting value')
        session = session_returning(response)

        result = call_responses_api('sk-test', {'model': 'gpt-4.1', 'input': 'x'}, session=session)

        assert result.success is False
        assert 'Expecting value' in result.error


class TestRetryPolicy:
    """Tests for is_rate_limited and with_retry."""

    def test_is_rate_limited(self):
        assert is_rate_limited(ApiResult.failure('OpenAI API error: 429', status=429))
        assert is_rate_limited(ApiResult.failure('Rate limit reached for gpt-4.1'))
        assert not is_rate_limited(ApiResult.failure('OpenAI API error: 500', status=500))
        assert not is_rate_limited(ApiResult.ok({'output_text': 'x'}, 'x'))

    def test_retries_rate_limits_until_success(self):
        call = Mock(side_effect=[
            ApiResult.failure('rate limited', status=429),
            ApiResult.failure('rate limited', status=429),
            ApiResult.ok({'output_text': 'ok'}, 'ok'),
        ])

        result = with_retry(call, FAST_RETRY)({'model': 'gpt-4.1'})

        assert result.success is True
        assert result.text == 'ok'
        assert result.attempts == 3
        assert call.call_count == 3

    def test_returns_last_failure_when_attempts_exhausted(self):
        call = Mock(return_value=ApiResult.failure('rate limited', status=429))

        result = with_retry(call, FAST_RETRY)({'model': 'gpt-4.1'})

        assert result.success is False
        assert result.status == 429
        assert result.attempts == 3

    def test_non_retryable_failure_returns_immediately(self):
        call = Mock(return_value=ApiResult.failure('bad request', status=400))

        result = with_retry(call, FAST_RETRY)({'model': 'gpt-4.1'})

        assert result.status == 400
        assert result.attempts == 1
        assert call.call_count == 1

    def test_no_retry_policy(self):
        call = Mock(return_value=ApiResult.failure('rate limited', status=429))

        result = with_retry(call, NO_RETRY)({'model': 'gpt-4.1'})

        assert result.attempts == 1

    def test_custom_predicate(self):
        policy = RetryPolicy(max_attempts=2, multiplier=0, min_wait=0, max_wait=0,
                             should_retry=lambda result: result.status == 503)
        call = Mock(side_effect=[
            ApiResult.failure('unavailable', status=503),
            ApiResult.ok({'output_text': 'ok'}, 'ok'),
        ])

        assert with_retry(call, policy)({}).success is True


class TestResponsesClient:
    """Tests for ResponsesClient."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="API key is required"):
            ResponsesClient('')

    def test_create_retries_rate_limits(self):
        session = session_returning(
            http_response(status_code=429, text='rate limited'),
            http_response(json_data={'output_text': 'listo'}),
        )
        client = ResponsesClient('sk-test', retry_policy=FAST_RETRY, session=session)

        result = client.create({'model': 'gpt-4.1', 'input': 'x'})

        assert result.text == 'listo'
        assert result.attempts == 2
        assert session.post.call_count == 2

    def test_chat_converts_messages(self):
        session = session_returning(http_response(json_data={'output_text': '4'}))
        client = ResponsesClient('sk-test', timeout=12, retry_policy=NO_RETRY, session=session)

        result = client.chat(
            [
                {'role': 'system', 'content': 'Be concise.'},
                {'role': 'user', 'content': '2+2?'},
            ],
            'gpt-4.1',
            max_output_tokens=50,
            temperature=0.3,
            function_name='test'
        )

        assert result.text == '4'
        body = session.post.call_args.kwargs['json']
        assert body == {
            'model': 'gpt-4.1',
            'input': [{'role': 'user', 'content': '2+2?'}],
            'instructions': 'Be concise.',
            'max_output_tokens': 50,
            'temperature': 0.3,
            'store': False,
        }
        assert session.post.call_args.kwargs['timeout'] == 12
