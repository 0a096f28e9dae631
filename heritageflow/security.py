from typing import Optional

MAX_TOPIC_LENGTH = 200

MASK = "••••••••"


def mask_api_key(key: Optional[str], visible: int = 4) -> str:
    """Keep only the edges of a key so it can appear in logs."""
    if not key:
        return ""
    if len(key) <= 2 * visible:
        return MASK
    return f"{key[:visible]}{MASK}{key[-2:]}"


def safe_len(s: Optional[str]) -> int:
    return len(s or "")


def clean_topic(topic: Optional[str]) -> str:
    """Whitespace-trimmed topic; empty string when there is nothing usable."""
    return (topic or "").strip()
