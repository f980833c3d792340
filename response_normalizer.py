"""Turn raw model text into structured payloads.

Models are asked for JSON but frequently wrap it in markdown code fences or
surround it with prose. Normalization is best-effort: it never raises, and a
schema-backed result always has every top-level key the front end expects.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from schemas import FeaturePayload

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```\s*$")


@dataclass(frozen=True)
class NormalizedResult:
    payload: Dict[str, Any]
    raw_text: str
    parsed: bool


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if not text.startswith("```"):
        return text
    text = _OPENING_FENCE.sub("", text, count=1)
    text = _CLOSING_FENCE.sub("", text, count=1)
    return text.strip()


def _reject_constant(name: str):
    # NaN and Infinity are not JSON and cannot be sent back in a response.
    raise ValueError(f"Invalid JSON constant: {name}")


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_json_response(text: str) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from model output, or None if there isn't one.

    Tries the fence-stripped text first, then the span from the first '{' to
    the last '}'. Extra braces outside the real object defeat the second step.
    """
    if not text:
        return None
    candidate = strip_code_fences(text)

    data = _loads_object(candidate)
    if data is not None:
        return data

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start == -1 or end <= start:
        return None
    return _loads_object(candidate[start:end + 1])


def normalize_response(text: Optional[str], schema: Optional[Type[FeaturePayload]] = None) -> NormalizedResult:
    raw_text = (text or "").strip()
    data = parse_json_response(raw_text)

    if data is None:
        logger.warning("Failed to parse AI response as JSON, using fallback structure")
        if schema is None:
            return NormalizedResult(payload={"rawResponse": raw_text}, raw_text=raw_text, parsed=False)
        return NormalizedResult(payload=schema.default(raw_text), raw_text=raw_text, parsed=False)

    if schema is not None:
        data = schema.coerce(data)
    return NormalizedResult(payload=data, raw_text=raw_text, parsed=True)
