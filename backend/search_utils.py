"""
Search Query Utilities

Text cleaning used to build Discogs search queries from Spotify track data.
Spotify titles carry qualifiers ("(feat. X)", "- Radio Edit", "- 2011 Remaster")
that Discogs release titles rarely do, so they are stripped before searching.

Functions in this module are stateless and can be used independently.
"""

import re
import unicodedata
from typing import Optional


# Version suffixes that follow a hyphen, e.g. "Song - Radio Edit".
# Everything from the hyphen to the end of the string is dropped.
VERSION_SUFFIX_PATTERN = re.compile(
    r'\s*-\s*(radio\s+edit|remix|extended\s+mix|club\s+mix|acoustic|live|remaster(ed)?|version|instrumental).*$',
    re.IGNORECASE
)

PARENTHETICAL_PATTERN = re.compile(r'\s*\([^)]*\)')

# Letters that don't decompose under NFD
CHARACTER_MAP = {
    'ø': 'o', 'Ø': 'O',
    'æ': 'ae', 'Æ': 'AE',
    'œ': 'oe', 'Œ': 'OE',
    'ß': 'ss',
    'ð': 'd', 'Ð': 'D',
    'þ': 'th', 'Þ': 'TH',
}

DASH_VARIANTS = ('–', '—', '‐', '−')


def normalize_dashes(text: str) -> str:
    """
    Replace en-dash, em-dash, Unicode hyphen and minus sign with '-'

    Examples:
        "Song – Radio Edit" -> "Song - Radio Edit"
    """
    for dash in DASH_VARIANTS:
        text = text.replace(dash, '-')
    return text


def strip_diacritics(text: str) -> str:
    """
    Remove combining marks and map the remaining special letters to ASCII

    Examples:
        "Sigur Rós" -> "Sigur Ros"
        "Mø" -> "Mo"
    """
    decomposed = unicodedata.normalize('NFD', text)
    without_marks = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return ''.join(CHARACTER_MAP.get(ch, ch) for ch in without_marks)


def clean_search_string(value: Optional[str]) -> str:
    """
    Clean a title or artist name for a Discogs search query.

    Examples:
        "Midnight City (feat. X)" -> "Midnight City"
        "Wonderwall - Remastered 2014" -> "Wonderwall"
        "Jóga - Live" -> "Joga"

    Returns:
        Cleaned string ('' for None)
    """
    if not value:
        return ''

    text = normalize_dashes(value)
    text = PARENTHETICAL_PATTERN.sub('', text)
    text = VERSION_SUFFIX_PATTERN.sub('', text)
    text = strip_diacritics(text)
    return re.sub(r'\s+', ' ', text).strip()


def build_search_query(artist: Optional[str], track: Optional[str], album: Optional[str] = None) -> str:
    """
    Build the free-text Discogs query "<artist> <track> [<album>]"

    Empty parts are skipped so the query never carries stray spaces.
    """
    parts = [clean_search_string(artist), clean_search_string(track)]
    if album:
        parts.append(clean_search_string(album))
    return ' '.join(part for part in parts if part)
