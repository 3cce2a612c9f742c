"""Stable hashing of generation requests for the response cache."""

import hashlib
import json
from typing import Any, Dict, Optional


def calculate_request_hash(
    namespace: str,
    prompt: str,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Calculate a stable SHA-256 hash of a request.

    The options are serialized as sorted, compact JSON so that two
    requests differing only in key order hash identically.

    Args:
        namespace: Provider key and operation, e.g. "groq:text".
        prompt: Prompt or input text.
        options: Normalized options that affect the output.

    Returns:
        Cache key of the form ``"<namespace>:<sha256 hex>"``.
    """
    payload = json.dumps(
        {"prompt": prompt, "options": options or {}},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{namespace}:{digest}"
