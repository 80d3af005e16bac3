"""Tests for track filtering and CSV export"""
import csv
import io

from models import EnrichedTrack, EnrichmentRecord, ReleaseFormat
from track_filters import (
    CSV_COLUMNS, TrackFilter, collect_genres, collect_styles, filter_tracks, format_duration,
    tracks_to_csv
)
from conftest import found_record, make_track


def sample_tracks():
    return [
        EnrichedTrack(make_track(0, title='Windowlicker', artist='Aphex Twin', album='Windowlicker'),
                      found_record(1, year=1999, genres=('Electronic',), styles=('IDM', 'Acid'))),
        EnrichedTrack(make_track(1, title='So What', artist='Miles Davis', album='Kind of Blue'),
                      found_record(2, year=1959, genres=('Jazz',), styles=('Modal',))),
        EnrichedTrack(make_track(2, title='Unknown Song'), EnrichmentRecord.not_found()),
        EnrichedTrack(make_track(3, title='Pending')),
    ]


def test_collect_facets_ignores_unmatched():
    tracks = sample_tracks()

    assert collect_genres(tracks) == ['Electronic', 'Jazz']
    assert collect_styles(tracks) == ['Acid', 'IDM', 'Modal']


def test_empty_filter_matches_everything():
    tracks = sample_tracks()

    assert filter_tracks(tracks, TrackFilter()) == tracks
    assert filter_tracks(tracks, None) == tracks
    assert TrackFilter().active_count == 0


def test_query_matches_title_artist_or_album():
    tracks = sample_tracks()

    assert [t.track.title for t in filter_tracks(tracks, TrackFilter(query='miles'))] == ['So What']
    assert [t.track.title for t in filter_tracks(tracks, TrackFilter(query='BLUE'))] == ['So What']


def test_genre_and_style_filters():
    tracks = sample_tracks()

    assert [t.track.position for t in filter_tracks(tracks, TrackFilter(genres=['Jazz']))] == [1]
    assert [t.track.position for t in filter_tracks(tracks, TrackFilter(styles=['Acid', 'Modal']))] == [0, 1]


def test_year_range_excludes_tracks_without_year():
    tracks = sample_tracks()

    selected = filter_tracks(tracks, TrackFilter(min_year=1950, max_year=1999))
    assert [t.track.position for t in selected] == [0, 1]

    selected = filter_tracks(tracks, TrackFilter(min_year=1990))
    assert [t.track.position for t in selected] == [0]

    track_filter = TrackFilter(genres=['Jazz'], query='so', max_year=1960)
    assert track_filter.active_count == 3


def test_format_duration():
    assert format_duration(215000) == '3:35'
    assert format_duration(59999) == '0:59'
    assert format_duration(None) == '0:00'


def test_csv_export():
    tracks = sample_tracks()
    tracks[0].record = EnrichmentRecord(
        found=True, catalog_id=1, title='Aphex Twin - Windowlicker', year=1999,
        genres=('Electronic',), styles=('IDM', 'Acid'), labels=('Warp Records',),
        formats=(ReleaseFormat('Vinyl', ('12"', 'Single')),), uri='https://www.discogs.com/release/1',
    )

    rows = list(csv.reader(io.StringIO(tracks_to_csv(tracks))))

    assert rows[0] == CSV_COLUMNS
    assert len(rows) == 5
    first = dict(zip(CSV_COLUMNS, rows[1]))
    assert first['Position'] == '1'
    assert first['Duration'] == '3:35'
    assert first['Discogs Match'] == 'yes'
    assert first['Styles'] == 'IDM; Acid'
    assert first['Formats'] == 'Vinyl (12", Single)'
    assert first['Discogs URL'] == 'https://www.discogs.com/release/1'

    unmatched = dict(zip(CSV_COLUMNS, rows[3]))
    assert unmatched['Discogs Match'] == 'no'
    assert unmatched['Year'] == ''
    assert dict(zip(CSV_COLUMNS, rows[4]))['Discogs Match'] == 'no'
