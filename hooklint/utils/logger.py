"""Terminal-safe console output for hooklint.

Warnings echo text from configuration files and snapshots, which may hold
characters a legacy Windows code page cannot encode. Output is routed through
``safe_print``, which degrades such text to ASCII-safe equivalents when the
terminal is not UTF-8 capable.
"""
import locale
import sys


# Characters that turn up in hook docs and plugin sources
ICON_MAP = {
    '→': '->',
    '…': '...',
    '“': '"',
    '”': '"',
    '’': "'",
}


def detect_terminal_encoding() -> str:
    """Encoding of stdout in lower case, falling back to the locale's."""
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        return 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Make text printable on the current terminal.

    Known symbols get ASCII replacements; anything else the terminal encoding
    cannot represent becomes ``?``.
    """
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)

    encoding = detect_terminal_encoding()
    try:
        return text.encode(encoding, errors='replace').decode(encoding)
    except LookupError:
        return text.encode('ascii', errors='replace').decode('ascii')


def safe_print(*args, **kwargs):
    """print() with string arguments passed through sanitize_for_terminal."""
    print(*(sanitize_for_terminal(a) if isinstance(a, str) else a for a in args), **kwargs)


def warn(source: str, message: str):
    """Print a component-tagged warning, e.g. ``[HookCatalog] Warning: ...``.

    Args:
        source: Component name shown in brackets
        message: Warning text
    """
    safe_print(f"[{source}] Warning: {message}", file=sys.stderr)
