"""
Unit tests for Responses API payload parsing.
"""
import logging

from legal_functions.services.responses_output import (
    EmptyOutput,
    ShortcutOutput,
    StructuredOutput,
    extract_output_text,
    extract_web_search_citations,
    parse_response_output,
)


def message_item(*texts, content_type='output_text'):
    return {
        'type': 'message',
        'role': 'assistant',
        'content': [{'type': content_type, 'text': text} for text in texts],
    }


class TestParseResponseOutput:

    def test_shortcut(self):
        assert parse_response_output({'output_text': 'Hola'}) == ShortcutOutput(text='Hola')

    def test_structured(self):
        item = message_item('Hola')
        assert parse_response_output({'output': [item]}) == StructuredOutput(items=(item,))

    def test_empty_shortcut_falls_through_to_structured(self):
        output = parse_response_output({'output_text': '', 'output': []})
        assert isinstance(output, StructuredOutput)

    def test_empty(self):
        assert parse_response_output({}) == EmptyOutput()
        assert parse_response_output(None) == EmptyOutput()


class TestExtractOutputText:

    def test_shortcut_wins_over_structured_output(self):
        payload = {'output_text': 'Atajo', 'output': [message_item('Estructurado')]}

        assert extract_output_text(payload) == 'Atajo'

    def test_structured_fallback(self):
        assert extract_output_text({'output': [message_item('Hello')]}) == 'Hello'

    def test_plain_text_content_type(self):
        assert extract_output_text({'output': [message_item('Hola', content_type='text')]}) == 'Hola'

    def test_reasoning_items_are_skipped(self):
        payload = {
            'output': [
                {'type': 'reasoning', 'summary': []},
                message_item('Respuesta'),
            ]
        }

        assert extract_output_text(payload) == 'Respuesta'

    def test_message_without_text_continues_to_next_message(self):
        payload = {
            'output': [
                {'type': 'message', 'content': [{'type': 'refusal', 'refusal': 'no'}]},
                message_item('Segundo'),
            ]
        }

        assert extract_output_text(payload) == 'Segundo'

    def test_absent_text_returns_none_and_logs(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert extract_output_text({'id': 'resp_1', 'output': []}) is None
            assert extract_output_text({}) is None

        assert 'Could not extract text' in caplog.text

    def test_end_to_end_stub_response(self):
        assert extract_output_text({'output_text': '4'}) == '4'


class TestExtractWebSearchCitations:

    def test_collects_url_citations(self):
        payload = {
            'output': [
                {'type': 'web_search_call', 'status': 'completed'},
                {
                    'type': 'message',
                    'content': [{
                        'type': 'output_text',
                        'text': 'Según la Corte...',
                        'annotations': [
                            {'type': 'url_citation', 'url': 'https://corte.gov.co/t-123',
                             'title': 'Sentencia T-123', 'start_index': 0, 'end_index': 17},
                            {'type': 'file_citation', 'file_id': 'f1'},
                        ],
                    }],
                },
            ]
        }

        assert extract_web_search_citations(payload) == [{
            'url': 'https://corte.gov.co/t-123',
            'title': 'Sentencia T-123',
            'start_index': 0,
            'end_index': 17,
        }]

    def test_shortcut_payload_has_no_citations(self):
        assert extract_web_search_citations({'output_text': 'x'}) == []
