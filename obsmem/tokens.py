"""
Character-based token estimation.
Precision is not the goal; estimates only need to be comparable against thresholds.
"""

import math

# Rough token estimation: 1 token ≈ 4 characters
_CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / _CHARS_PER_TOKEN)
