"""
Text normalization helpers shared by models and the restriction engine.
"""
import re
import unicodedata

_NON_ALNUM = re.compile(r'[^A-Z0-9]')
_WHITESPACE = re.compile(r'\s+')


def normalize_plate(plate):
    """Uppercase a plate and strip everything that is not a letter or digit."""
    if not plate:
        return ''
    return _NON_ALNUM.sub('', plate.upper())


def normalize_username(username):
    if not username:
        return ''
    return _WHITESPACE.sub('', username).lower()


def fold_text(text):
    """
    Strip diacritics, case fold and collapse whitespace.

    >>> fold_text('  São   Paulo ')
    'sao paulo'
    """
    if not text:
        return ''
    decomposed = unicodedata.normalize('NFD', text)
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    return _WHITESPACE.sub(' ', stripped.casefold()).strip()
