import pytest

from mcp_script_runner.errors import InvalidInputError
from mcp_script_runner.types import SanitizeStatus
from mcp_script_runner.validation import sanitize_input, validate_input


@pytest.mark.parametrize(
    "message",
    [
        "Hello World",
        "list files, then stop.",
        "snake_case and kebab-case",
        "tabs\tand\nnewlines",
        "Ünïcödé letters 123",
    ],
)
def test_validate_accepts_allowed_characters(message):
    """Test allowed-only input passes validation"""
    validate_input(message)


@pytest.mark.parametrize(
    "message,bad",
    [
        ("Hello, World!", "!"),
        ("rm -rf /", "/"),
        ("$(whoami)", "$"),
        ("a; b", ";"),
        ("quote'd", "'"),
    ],
)
def test_validate_rejects_disallowed_characters(message, bad):
    """Test any disallowed character fails validation"""
    with pytest.raises(InvalidInputError) as exc:
        validate_input(message)
    assert bad in exc.value.details["invalid_chars"]


@pytest.mark.parametrize("message", ["", "   ", "\n\t"])
def test_validate_rejects_blank(message):
    """Test empty and whitespace-only input fails validation"""
    with pytest.raises(InvalidInputError):
        validate_input(message)


def test_sanitize_strips_disallowed():
    """Test sanitize removes the disallowed characters only"""
    result = sanitize_input("Hello, World!")
    assert result.message == "Hello, World"
    assert result.status == SanitizeStatus.SANITIZED
    assert result.was_sanitized


def test_sanitize_empty_input():
    """Test empty input sanitizes to an empty string without raising"""
    result = sanitize_input("")
    assert result.message == ""
    assert result.was_sanitized


def test_sanitize_all_disallowed():
    """Test input made only of disallowed characters becomes empty"""
    assert sanitize_input("!@#$%^&*()").message == ""


def test_sanitize_valid_input_unchanged():
    """Test valid input is returned as-is with OK status"""
    result = sanitize_input("plain text, nothing odd.")
    assert result.message == "plain text, nothing odd."
    assert result.status == SanitizeStatus.OK
    assert not result.was_sanitized


@pytest.mark.parametrize(
    "message",
    ["what's up?", "a/b\\c", "<script>alert(1)</script>", "50% off & more"],
)
def test_sanitize_output_is_valid_and_shorter(message):
    """Test sanitized output has no disallowed characters and never grows"""
    result = sanitize_input(message)
    assert len(result.message) <= len(message)
    assert result.message.strip()
    validate_input(result.message)


@pytest.mark.parametrize("sep", ["\x1c", "\x1d", "\x1e", "\x1f", "\x85"])
def test_unicode_separators_are_disallowed(sep):
    """Test control separators outside ASCII whitespace are rejected and stripped"""
    message = f"a{sep}b"
    with pytest.raises(InvalidInputError):
        validate_input(message)

    result = sanitize_input(message)
    assert result.message == "ab"
    assert result.was_sanitized
