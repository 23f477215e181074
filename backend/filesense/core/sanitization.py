"""
Input sanitization for file names, log lines and column headers.
"""
import re

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')


def sanitize_filename(filename: str, max_length: int = 255) -> str:
    """
    Strip path components and control characters from a file name.

    The result is embedded in prompts, report titles and log lines, so it
    never contains a newline. Empty input becomes "unknown".
    """
    if not filename:
        return "unknown"

    filename = filename.split('/')[-1].split('\\')[-1]
    filename = _CONTROL_CHARS.sub('', filename)
    filename = filename.strip('. ')

    if len(filename) > max_length:
        filename = filename[:max_length]

    return filename or "unknown"


def sanitize_for_logging(value: str, max_length: int = 500) -> str:
    """
    Sanitize value for safe logging (prevents log injection).

    Args:
        value: Value to sanitize
        max_length: Maximum length

    Returns:
        Sanitized value safe for logging
    """
    if not value:
        return ""

    value = re.sub(r'[\r\n]', ' ', value)
    value = _CONTROL_CHARS.sub('', value)

    if len(value) > max_length:
        value = value[:max_length] + "..."

    return value


def mask_secret(secret: str, visible: int = 4) -> str:
    """Show only the last few characters of a credential."""
    if not secret:
        return ""
    if len(secret) <= visible:
        return "*" * len(secret)
    return "*" * 8 + secret[-visible:]


def validate_column_name(name: str) -> bool:
    """
    Validate that a column header is safe to carry into prompts and reports.

    Newlines and tabs are allowed (common in spreadsheet headers); other
    control characters, path traversal and reserved device names are not.
    """
    if not name or len(name) > 1000:
        return False

    dangerous_patterns = [
        r'\.\.',
        r'[\x00-\x08\x0b\x0c\x0e-\x1f]',
        r'^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])$',
    ]

    for pattern in dangerous_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            return False

    return True
