"""
ESC/POS Encoder
===============

Turns receipt text into the printer's ESC/POS byte stream.

Turkish characters are mapped to their code page 857 positions in one pass
over the whole text, then each line is bracketed with the formatting codes
of the first rule whose marker it contains. The stream always opens with
the initialize / code page / character set sequence and ends with a cut.
"""

from datetime import datetime
from typing import NamedTuple, Optional, Sequence

from .exceptions import EncodingFailure

ESC = b'\x1b'
GS = b'\x1d'

# Structural codes
INIT = ESC + b'@'
CODEPAGE_PC857 = ESC + b't\x12'
CHARSET = ESC + b'R\x12'
CUT = GS + b'V\x00'
HEADER = INIT + CODEPAGE_PC857 + CHARSET

# Formatting
ALIGN_LEFT = ESC + b'a\x00'
ALIGN_CENTER = ESC + b'a\x01'
BOLD_ON = ESC + b'E\x01'
BOLD_OFF = ESC + b'E\x00'
SIZE_NORMAL = GS + b'!\x00'
SIZE_DOUBLE = GS + b'!\x11'
SIZE_DOUBLE_HEIGHT = GS + b'!\x10'

TURKISH_MAP = {
    'ç': '\x87', 'Ç': '\x80',
    'ğ': '\x83', 'Ğ': '\xa6',
    'ı': '\x8d', 'İ': '\x98',
    'ö': '\x94', 'Ö': '\x99',
    'ş': '\x9f', 'Ş': '\x9e',
    'ü': '\x81', 'Ü': '\x9a',
}
_TRANSLATION = str.maketrans(TURKISH_MAP)


class LineRule(NamedTuple):
    """A line containing ``marker`` is wrapped in ``before`` ... ``after``."""

    name: str
    marker: str
    before: bytes
    after: bytes

    def matches(self, line: str) -> bool:
        return self.marker in line


# Checked top-down, first match wins
DEFAULT_RULES = (
    LineRule('title', 'ISTANBUL RESTAURANT',
             ALIGN_CENTER + BOLD_ON + SIZE_DOUBLE, BOLD_OFF + SIZE_NORMAL),
    LineRule('total', 'TOPLAM:',
             BOLD_ON + SIZE_DOUBLE_HEIGHT, BOLD_OFF + SIZE_NORMAL),
    LineRule('rule', '===',
             ALIGN_CENTER, ALIGN_LEFT),
)


def substitute(text: str) -> str:
    """Replace every Turkish character with its code page byte."""
    return text.translate(_TRANSLATION)


def classify(line: str, rules: Sequence[LineRule] = DEFAULT_RULES) -> Optional[LineRule]:
    """Return the first rule matching ``line``, or None for a plain line."""
    for rule in rules:
        if rule.matches(line):
            return rule
    return None


def encode_control_codes(text: str, rules: Sequence[LineRule] = DEFAULT_RULES) -> bytes:
    """
    Encode receipt text as an ESC/POS byte stream.

    Args:
        text: Receipt text, newline separated
        rules: Line formatting rules in priority order

    Returns:
        The complete stream, header and cut included

    Raises:
        EncodingFailure: If ``text`` is not a string
    """
    if not isinstance(text, str):
        raise EncodingFailure(
            'Control-code format requires text',
            {'received': type(text).__name__}
        )

    substituted = substitute(text)
    lines = substituted.split('\n') if substituted else []

    data = bytearray(HEADER)
    for line in lines:
        body = line.encode('latin-1', errors='replace') + b'\n'
        rule = classify(line, rules)
        if rule is None:
            data.extend(body)
        else:
            data.extend(rule.before)
            data.extend(body)
            data.extend(rule.after)
    data.extend(CUT)

    return bytes(data)


def build_test_receipt(now: Optional[datetime] = None) -> str:
    """Built-in test receipt, exercising every rule and the Turkish map."""
    now = now or datetime.now()
    return (
        '\n'
        '================================\n'
        '     ISTANBUL RESTAURANT\n'
        '         Stuttgart\n'
        '================================\n'
        'TEST YAZDIRMA\n'
        f'Tarih: {now.strftime("%d.%m.%Y")}\n'
        f'Saat: {now.strftime("%H:%M:%S")}\n'
        '================================\n'
        'Bu bir test yazdirmasidir.\n'
        '\n'
        'Türkçe karakter testi:\n'
        'çığöşüÇİĞÖŞÜ\n'
        '\n'
        'TOPLAM: 0,00 EUR\n'
        'LAN Print Agent\n'
        '================================\n'
        '\n'
    )
