"""
Result persistence sink.
Writes legal tool outputs to Supabase tables for auditing and history.
Writes are fire-and-forget: failures are logged and reported as False,
never raised into the request that produced the result.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

import requests

logger = logging.getLogger(__name__)

TOOL_RESULTS_TABLE = 'legal_tools_results'


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResultSink(ABC):
    """Destination for tool results."""

    @abstractmethod
    def insert(self, record: dict, table: str = TOOL_RESULTS_TABLE) -> bool:
        """Write one row to `table`; True on success, never raises."""

    def save_tool_result(
        self,
        user_id: str,
        tool_type: str,
        input_data: dict,
        output_data: dict,
        metadata: Optional[dict] = None
    ) -> bool:
        """
        Save a tool run to legal_tools_results.

        Args:
            user_id: Lawyer the result belongs to.
            tool_type: 'analysis', 'drafting', ...
            input_data: Request summary (keep it small).
            output_data: Parsed model output.
            metadata: Extra fields; a timestamp is always added.
        """
        logger.info(f"Saving {tool_type} result for lawyer: {user_id}")
        return self.insert({
            'lawyer_id': user_id,
            'tool_type': tool_type,
            'input_data': input_data,
            'output_data': output_data,
            'metadata': {**(metadata or {}), 'timestamp': _utc_now()},
        })


class NullResultSink(ResultSink):
    """Used when no database is configured."""

    def insert(self, record: dict, table: str = TOOL_RESULTS_TABLE) -> bool:
        logger.debug(f"Result persistence disabled, dropping record for {table}")
        return False


class SupabaseResultSink(ResultSink):
    """Inserts rows through the Supabase PostgREST API."""

    def __init__(self, supabase_url: str, service_key: str, session=None, timeout: float = 10):
        if not supabase_url or not service_key:
            raise ValueError("Supabase URL and service role key are required")

        self._rest_base = f"{supabase_url.rstrip('/')}/rest/v1"
        self._service_key = service_key
        self._session = session or requests.Session()
        self._timeout = timeout

    def insert(self, record: dict, table: str = TOOL_RESULTS_TABLE) -> bool:
        """
        Insert one row.

        Returns:
            True if the row was written, False otherwise.
        """
        endpoint = f"{self._rest_base}/{table}"
        headers = {
            'apikey': self._service_key,
            'Authorization': f'Bearer {self._service_key}',
            'Content-Type': 'application/json',
            'Prefer': 'return=minimal',
        }

        try:
            response = self._session.post(endpoint, json=record, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(f"Exception saving row to {table}: {type(e).__name__} - {str(e)}")
            return False

        if response.status_code in (200, 201, 204):
            logger.info(f"Saved row to {table}")
            return True

        logger.error(f"Error saving row to {table}: {response.status_code} {response.text[:500]}")
        return False
