"""
Input screening for text that is interpolated into LLM prompts.

Used as Pydantic validators on the AI generation requests. Only characters
that hide text from a human reader are rejected (zero-width and direction
override characters, runs of control characters). Wording is never screened:
topics such as jailbreak defenses or `system:` messages are legitimate
interview material.
"""
from typing import Optional


# ==================== Hidden Characters ====================

# Zero-width characters
ZERO_WIDTH_CHARS = [
    '\u200b',  # Zero-width space
    '\u200c',  # Zero-width non-joiner
    '\u200d',  # Zero-width joiner
    '\ufeff',  # Zero-width no-break space
]

# Direction override characters
DIRECTION_CHARS = [
    '\u202a',  # Left-to-right embedding
    '\u202b',  # Right-to-left embedding
    '\u202c',  # Pop directional formatting
    '\u202d',  # Left-to-right override
    '\u202e',  # Right-to-left override
]


# ==================== Validation Functions ====================

def contains_suspicious_unicode(text: str) -> bool:
    """
    Detect characters used to hide instructions from a human reader.

    Flags any zero-width or direction-override character, and more than
    five control characters other than newline, carriage return and tab.
    """
    for char in ZERO_WIDTH_CHARS + DIRECTION_CHARS:
        if char in text:
            return True

    control_count = sum(1 for c in text if ord(c) < 32 and c not in ['\n', '\r', '\t'])
    return control_count > 5


def validate_prompt_text(text: Optional[str]) -> Optional[str]:
    """
    Pydantic-friendly validator for prompt-bound fields.

    Returns the text unchanged (None passes through).

    Raises:
        ValueError: If the text carries hidden characters
    """
    if text is None:
        return None

    if contains_suspicious_unicode(text):
        raise ValueError("contains suspicious characters")

    return text
