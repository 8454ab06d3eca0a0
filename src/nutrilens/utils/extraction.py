"""Best-effort structured extraction from free-form generator output."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from nutrilens.logging import get_logger

logger = get_logger(__name__)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Extract one JSON object embedded in free text.

    The candidate is the span from the first ``{`` to the last ``}``, which tolerates prose or
    markdown fences around a single object. Returns ``None`` instead of raising when no
    object can be parsed; callers are expected to fall back.
    """

    if not text:
        return None

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        logger.debug("extract_json_object: no brace-delimited span found")
        return None

    candidate = text[start : end + 1]
    try:
        obj = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("extract_json_object: brace span is not valid JSON")
        return None

    if not isinstance(obj, dict):
        return None
    return obj
