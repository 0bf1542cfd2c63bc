import hashlib
import json
from typing import Any


def payload_hash(payload: Any) -> str:
    """sha256 of a canonical JSON dump; key order and pydantic models don't change the digest."""
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json", exclude_unset=True)
    s = json.dumps(payload or {}, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()
