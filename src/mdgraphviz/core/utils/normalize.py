"""Identifier normalization for generated image names"""

SEPARATORS = {'_', '-'}


def normalize_id(text: str) -> str:
    """Lowercase ASCII alphanumerics, map whitespace/_/- to '_', drop the rest."""
    out = []
    for ch in text:
        if ch.isascii() and ch.isalnum():
            out.append(ch.lower())
        elif ch.isspace() or ch in SEPARATORS:
            out.append('_')
    return ''.join(out)
