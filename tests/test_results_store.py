"""
Unit tests for result persistence sinks.
"""
import pytest
import requests
from unittest.mock import MagicMock, Mock

from legal_functions.services.results_store import (
    TOOL_RESULTS_TABLE,
    NullResultSink,
    ResultSink,
    SupabaseResultSink,
)


def make_sink(status_code=201, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = Mock(status_code=status_code, text='')
    return SupabaseResultSink('https://proj.supabase.co', 'service-key', session=session), session


class TestSupabaseResultSink:

    def test_save_tool_result_posts_row(self):
        sink, session = make_sink()

        saved = sink.save_tool_result(
            'lawyer-1', 'analysis', {'fileName': 'contrato.pdf'}, {'documentType': 'Contrato'}, {'fileSize': 10}
        )

        assert saved is True
        args, kwargs = session.post.call_args
        assert args[0] == f'https://proj.supabase.co/rest/v1/{TOOL_RESULTS_TABLE}'
        assert kwargs['headers']['Prefer'] == 'return=minimal'

        row = kwargs['json']
        assert row['lawyer_id'] == 'lawyer-1'
        assert row['tool_type'] == 'analysis'
        assert row['input_data'] == {'fileName': 'contrato.pdf'}
        assert row['output_data'] == {'documentType': 'Contrato'}
        assert row['metadata']['fileSize'] == 10
        assert 'timestamp' in row['metadata']

    def test_insert_into_other_table(self):
        sink, session = make_sink(status_code=204)

        assert sink.insert({'module_id': 'm1'}, table='training_validations') is True
        assert session.post.call_args.args[0].endswith('/rest/v1/training_validations')

    def test_http_error_returns_false(self):
        sink, _ = make_sink(status_code=400)

        assert sink.insert({'x': 1}) is False

    def test_transport_error_returns_false(self):
        sink, _ = make_sink(side_effect=requests.Timeout('timed out'))

        assert sink.insert({'x': 1}) is False


class TestNullResultSink:

    def test_drops_records(self):
        assert NullResultSink().save_tool_result('lawyer-1', 'drafting', {}, {}) is False


class TestResultSinkBase:

    def test_base_class_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            ResultSink()

    def test_subclass_gets_save_tool_result(self):
        class RecordingSink(ResultSink):
            def __init__(self):
                self.rows = []

            def insert(self, record, table=TOOL_RESULTS_TABLE):
                self.rows.append((table, record))
                return True

        sink = RecordingSink()

        assert sink.save_tool_result('lawyer-1', 'analysis', {'fileName': 'a.pdf'}, {'summary': 'ok'}) is True
        table, record = sink.rows[0]
        assert table == TOOL_RESULTS_TABLE
        assert record['lawyer_id'] == 'lawyer-1'
        assert record['tool_type'] == 'analysis'
        assert 'timestamp' in record['metadata']
