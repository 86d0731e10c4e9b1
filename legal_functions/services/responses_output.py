"""
Parsing of Responses API payloads.

A payload is classified once into one of three shapes and text extraction
dispatches on that shape:
- ShortcutOutput: the convenience `output_text` field is populated
- StructuredOutput: only the `output` item list is available
- EmptyOutput: neither is present
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPES = ('text', 'output_text')

# Cap on how much of a malformed payload ends up in the logs
DIAGNOSTIC_PAYLOAD_CHARS = 2000


@dataclass(frozen=True)
class ShortcutOutput:
    text: str


@dataclass(frozen=True)
class StructuredOutput:
    items: tuple


@dataclass(frozen=True)
class EmptyOutput:
    pass


ResponseOutput = Union[ShortcutOutput, StructuredOutput, EmptyOutput]


def parse_response_output(payload: dict) -> ResponseOutput:
    """Classify a response payload by where its text lives."""
    if not isinstance(payload, dict):
        return EmptyOutput()

    output_text = payload.get('output_text')
    if isinstance(output_text, str) and output_text:
        return ShortcutOutput(text=output_text)

    items = payload.get('output')
    if isinstance(items, list):
        return StructuredOutput(items=tuple(items))

    return EmptyOutput()


def _first_message_text(items: tuple) -> Optional[str]:
    for item in items:
        if not isinstance(item, dict) or item.get('type') != 'message':
            continue

        for content in item.get('content') or []:
            if not isinstance(content, dict):
                continue
            text = content.get('text')
            if content.get('type') in TEXT_CONTENT_TYPES and isinstance(text, str) and text:
                return text

    return None


def extract_output_text(payload: dict) -> Optional[str]:
    """
    Locate the generated text in a Responses API payload.

    Args:
        payload: Parsed JSON response body.

    Returns:
        The text, or None when the payload carries no text output.
        None is reported in the logs, never raised.
    """
    output = parse_response_output(payload)

    if isinstance(output, ShortcutOutput):
        return output.text

    text = None
    if isinstance(output, StructuredOutput):
        text = _first_message_text(output.items)

    if text is None:
        try:
            preview = json.dumps(payload, default=str)[:DIAGNOSTIC_PAYLOAD_CHARS]
        except (TypeError, ValueError):
            preview = repr(payload)[:DIAGNOSTIC_PAYLOAD_CHARS]
        logger.warning(f"Could not extract text from Responses API payload: {preview}")

    return text


def extract_web_search_citations(payload: dict) -> list:
    """
    Collect url_citation annotations from web-search grounded output.

    Returns:
        List of {"url", "title", "start_index", "end_index"} dictionaries.
    """
    citations = []

    output = parse_response_output(payload)
    if not isinstance(output, StructuredOutput):
        return citations

    for item in output.items:
        if not isinstance(item, dict) or item.get('type') != 'message':
            continue

        for content in item.get('content') or []:
            if not isinstance(content, dict) or content.get('type') != 'output_text':
                continue

            for annotation in content.get('annotations') or []:
                if annotation.get('type') == 'url_citation':
                    citations.append({
                        'url': annotation.get('url'),
                        'title': annotation.get('title'),
                        'start_index': annotation.get('start_index'),
                        'end_index': annotation.get('end_index'),
                    })

    return citations
