"""Recover a JSON array of test cases from free-form model output.

Models do not reliably honour "return only JSON". Each repair step below is a
pure text transform that leaves clean input untouched. ``parse_test_cases``
tries a plain parse first, then re-parses after every step and stops at the
first success.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from errors import UnparseableOutputError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```\s*$")
_ARRAY_SPAN = re.compile(r"\[.*\]", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json marker and a trailing ``` marker."""
    text = text.strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


def extract_array_span(text: str) -> str:
    """Keep only the span from the first ``[`` to the last ``]``."""
    match = _ARRAY_SPAN.search(text)
    return match.group(0) if match else text


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def balance_brackets(text: str) -> str:
    """Append at most one ``]`` and one ``}`` to close truncated output.

    Only a single missing bracket of each kind is repaired.
    """
    if text.count("[") > text.count("]"):
        text += "]"
    if text.count("{") > text.count("}"):
        text += "}"
    return text


REPAIR_STEPS: List[Callable[[str], str]] = [
    strip_code_fences,
    extract_array_span,
    remove_trailing_commas,
    balance_brackets,
]


def _try_parse(text: str) -> Optional[List[Any]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    # Scalars and strings are not a test-case table.
    return None


def parse_test_cases(text: str) -> List[Dict[str, Any]]:
    """Parse model output into a list of records, repairing it if needed.

    Raises
    ------
    UnparseableOutputError
        When no step produced a JSON array or object. The error carries the
        fully repaired text.
    """
    parsed = _try_parse(text)
    if parsed is not None:
        return parsed

    for step in REPAIR_STEPS:
        text = step(text)
        parsed = _try_parse(text)
        if parsed is not None:
            logger.debug("Model output parsed after %s", step.__name__)
            return parsed

    logger.error("Model output could not be parsed as JSON:\n%s", text)
    raise UnparseableOutputError("Failed to parse model output as JSON.", text)
