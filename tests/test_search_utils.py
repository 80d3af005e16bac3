"""Tests for search query cleaning"""
import pytest

from search_utils import build_search_query, clean_search_string, normalize_dashes, strip_diacritics


@pytest.mark.parametrize('raw,expected', [
    ('Midnight City (feat. X)', 'Midnight City'),
    ('Wonderwall - Remastered 2014', 'Wonderwall'),
    ('Song – Radio Edit', 'Song'),
    ('Jóga - Live', 'Joga'),
    ('  Plain   Title  ', 'Plain Title'),
    ('Self-Control', 'Self-Control'),
    (None, ''),
    ('', ''),
])
def test_clean_search_string(raw, expected):
    assert clean_search_string(raw) == expected


def test_normalize_dashes():
    assert normalize_dashes('a – b — c') == 'a - b - c'


def test_strip_diacritics():
    assert strip_diacritics('Sigur Rós') == 'Sigur Ros'
    assert strip_diacritics('Mø') == 'Mo'
    assert strip_diacritics('Straße') == 'Strasse'


def test_build_search_query():
    assert build_search_query('Daft Punk', 'One More Time (Radio Edit)', 'Discovery') == \
        'Daft Punk One More Time Discovery'
    assert build_search_query('Daft Punk', 'One More Time') == 'Daft Punk One More Time'
    assert build_search_query('', 'Title', None) == 'Title'
    assert build_search_query(None, None) == ''
