"""Input message validation and sanitization."""

import re

from mcp_script_runner.errors import InvalidInputError
from mcp_script_runner.logging import get_logger
from mcp_script_runner.types import SanitizedInput, SanitizeStatus

logger = get_logger(__name__)

# letters, digits, ASCII whitespace, '.', ',', '-', '_'
DISALLOWED_CHARS = re.compile(r"[^\w \t\n\r\f\v.,\-]")


def validate_input(message: str) -> None:
    """Raise InvalidInputError unless message is non-blank and fully allowed."""
    if not message or not message.strip():
        raise InvalidInputError("Input message must not be empty")

    invalid = DISALLOWED_CHARS.findall(message)
    if invalid:
        raise InvalidInputError(
            f"Input message contains disallowed characters: {''.join(sorted(set(invalid)))}",
            invalid_chars=invalid,
        )


def sanitize_input(message: str) -> SanitizedInput:
    """Validate message, stripping disallowed characters instead of failing.

    Never raises. The result records whether anything had to be removed, so an
    all-disallowed or empty message comes back as an empty SANITIZED string.
    """
    message = message or ""
    try:
        validate_input(message)
    except InvalidInputError as e:
        cleaned = DISALLOWED_CHARS.sub("", message)
        logger.warning(
            {
                "event": "input_sanitized",
                "reason": str(e),
                "removed": len(message) - len(cleaned),
            }
        )
        return SanitizedInput(message=cleaned, status=SanitizeStatus.SANITIZED)

    return SanitizedInput(message=message, status=SanitizeStatus.OK)
