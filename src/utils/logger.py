"""Windows-safe output handling with Unicode fallback for terminal compatibility.

Detects terminal encoding and provides ASCII alternatives for Unicode icons
to prevent crashes on Windows terminals that don't support UTF-8.
"""
import sys
import locale


# Unicode to ASCII icon mapping for Windows compatibility
ICON_MAP = {
    # Status icons
    '✓': '[OK]',      # check mark
    '✗': '[FAIL]',    # ballot x
    '⚠': '[WARN]',    # warning sign
    '⚡': '[!]',       # high voltage

    # Progress/action icons
    '→': '->',

    # Symbols
    '…': '...',
    '•': '*',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    # Try stdout encoding first
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        encoding = sys.stdout.encoding.lower()
        return encoding

    # Fallback to locale
    try:
        encoding = locale.getpreferredencoding().lower()
        return encoding
    except (locale.Error, ValueError):
        pass

    # Ultimate fallback
    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters.

    Returns:
        bool: True if terminal supports UTF-8, False otherwise
    """
    encoding = detect_terminal_encoding()

    # UTF-8 variants that support Unicode
    utf8_encodings = ['utf-8', 'utf8', 'utf_8']

    return encoding in utf8_encodings


def sanitize_for_terminal(text: str, force: bool = False) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons
        force: Sanitize even on a UTF-8 terminal

    Returns:
        str: Sanitized text safe for current terminal
    """
    if not force and is_utf8_capable():
        return text

    # Replace all known problematic Unicode characters
    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    return sanitized
