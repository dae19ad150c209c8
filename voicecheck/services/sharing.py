"""Share-link encoding of analysis results.

A result is serialized to camelCase JSON, UTF-8 encoded and wrapped in
URL-safe base64 so it survives as a single query parameter.
"""

import base64
import binascii
import json
from urllib.parse import urlencode, urlsplit, urlunsplit

from voicecheck.core.exceptions import ShareDecodeError
from voicecheck.core.models import AnalysisResult, SharedAnalysisResult
from voicecheck.services.analyzer.schema import validate_analysis
from voicecheck.services.location import SHARE_PARAM


def encode_share_payload(result: AnalysisResult) -> str:
    """Encode *result* as URL-safe base64 text."""
    raw = json.dumps(result.to_wire(), ensure_ascii=False, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_share_payload(token: str) -> SharedAnalysisResult:
    """Decode a share token back into a result.

    Accepts the URL-safe or standard base64 alphabet, padded or not.

    Raises:
        ShareDecodeError: If the token is not base64, not UTF-8 JSON, or
            lacks a numeric score and a metric set.
    """
    if not token:
        raise ShareDecodeError("Empty share payload")

    cleaned = token.strip().replace("+", "-").replace("/", "_").replace(" ", "-")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        raw = base64.urlsafe_b64decode(cleaned.encode("ascii"))
    except (binascii.Error, ValueError) as exc:
        raise ShareDecodeError(f"Share payload is not base64: {exc}") from exc

    outcome = validate_analysis(raw, shared=True)
    if not outcome.ok:
        raise ShareDecodeError(f"Share payload rejected: {outcome.error}")
    return outcome.result


def build_share_url(base_url: str, result: AnalysisResult) -> str:
    """Canonical *base_url* (query and fragment dropped) with ``?share=<token>``."""
    parts = urlsplit(base_url)
    query = urlencode({SHARE_PARAM: encode_share_payload(result)})
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, ""))
