"""
Transport Module
Decodes transcription service responses into TranscriptionResult objects.

The service sometimes returns UTF-8 text that was decoded as Latin-1 on
its side, so every string in the payload is run through repair_object
once here, before anything else sees it.
"""

import json
import logging
from typing import Any, Dict, Union

from voice_history.exceptions import TranscriptionError
from voice_history.storage.history_store import TranscriptionResult
from voice_history.text_repair import repair_object

logger = logging.getLogger(__name__)


def decode_body(body: Union[str, bytes, Dict[str, Any]]) -> Any:
    """Parse a raw response body and repair any mis-decoded text in it."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise TranscriptionError(f"Response is not valid JSON: {e}") from e
    return repair_object(body)


def parse_response(body: Union[str, bytes, Dict[str, Any]]) -> TranscriptionResult:
    """
    Turn a service response into a TranscriptionResult.

    Args:
        body: Raw response body, or an already parsed JSON object

    Returns:
        TranscriptionResult with repaired text

    Raises:
        TranscriptionError: If the response is malformed or error-shaped
    """
    payload = decode_body(body)

    if not isinstance(payload, dict):
        raise TranscriptionError("Response is not a JSON object")

    error = payload.get("error")
    if error:
        raise TranscriptionError(str(error))

    if not isinstance(payload.get("message"), str):
        raise TranscriptionError("Response has no message")

    result = TranscriptionResult.from_dict(payload)
    logger.debug(f"Parsed transcription response (model={result.model or 'unknown'})")
    return result
