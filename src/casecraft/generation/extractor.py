"""
CaseCraft Response Extractor

Finds the JSON object embedded in a free-form AI reply.
"""

import json
import re
from typing import Any, Optional

from casecraft.core.exceptions import AIResponseMalformedJSONError, AIResponseNoJSONError

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")


def extract_json_span(text: Optional[str]) -> Optional[str]:
    """
    The span from the first "{" to the last "}" in the text.

    Greedy and not nesting-aware. Returns None when there is no such span.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def parse_json_payload(text: Optional[str]) -> dict[str, Any]:
    """
    Parse the JSON object embedded in an AI reply.

    Args:
        text: The raw reply text

    Returns:
        The parsed object

    Raises:
        AIResponseNoJSONError: If the text contains no braces
        AIResponseMalformedJSONError: If the span found does not parse
    """
    span = extract_json_span(text)
    if span is None:
        raise AIResponseNoJSONError(
            "Could not extract JSON from AI response",
            details={"preview": (text or "")[:200]},
        )

    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        # Prose between two JSON blocks breaks the greedy span; a fenced
        # block is the model's intended payload.
        fenced = _FENCED_JSON.search(text or "")
        if fenced is None:
            raise AIResponseMalformedJSONError(
                f"Failed to parse AI response JSON: {e}",
                details={"preview": span[:500]},
            ) from e
        try:
            data = json.loads(fenced.group(1))
        except json.JSONDecodeError:
            raise AIResponseMalformedJSONError(
                f"Failed to parse AI response JSON: {e}",
                details={"preview": span[:500]},
            ) from e

    return data
