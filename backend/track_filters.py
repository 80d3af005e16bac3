"""
Track Filtering and Export

Browsing helpers over an enriched playlist:
- Genre / style facets collected from matched tracks
- TrackFilter: free-text, genre, style and year-range filtering
- CSV export of the (filtered) track list
"""

import csv
import io
from dataclasses import dataclass, field
from typing import IO, Iterable, List, Optional

from models import EnrichedTrack

CSV_COLUMNS = [
    'Position', 'Track', 'Artists', 'Album', 'Duration', 'Added At', 'Spotify URL',
    'Discogs Match', 'Discogs Title', 'Year', 'Country', 'Genres', 'Styles',
    'Labels', 'Formats', 'Discogs URL',
]

LIST_SEPARATOR = '; '


def collect_genres(tracks: Iterable[EnrichedTrack]) -> List[str]:
    """Sorted unique genres across all matched tracks"""
    return sorted({g for t in tracks if t.record and t.record.found for g in t.record.genres})


def collect_styles(tracks: Iterable[EnrichedTrack]) -> List[str]:
    """Sorted unique styles across all matched tracks"""
    return sorted({s for t in tracks if t.record and t.record.found for s in t.record.styles})


@dataclass
class TrackFilter:
    """
    Filter over enriched tracks. Empty criteria match everything.

    - query: case-insensitive substring of title, artists or album
    - genres / styles: the track must carry at least one of them
    - min_year / max_year: inclusive bounds; tracks without a year fail an active range
    """
    genres: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    query: str = ''
    min_year: Optional[int] = None
    max_year: Optional[int] = None

    @property
    def has_year_range(self) -> bool:
        return self.min_year is not None or self.max_year is not None

    @property
    def active_count(self) -> int:
        return (len(self.genres) + len(self.styles)
                + (1 if self.query else 0)
                + (1 if self.has_year_range else 0))

    def matches(self, enriched: EnrichedTrack) -> bool:
        track = enriched.track
        record = enriched.record if enriched.record and enriched.record.found else None

        if self.query:
            needle = self.query.lower()
            haystacks = (track.title, track.artists, track.album)
            if not any(needle in (h or '').lower() for h in haystacks):
                return False

        if self.genres:
            track_genres = record.genres if record else ()
            if not any(g in track_genres for g in self.genres):
                return False

        if self.styles:
            track_styles = record.styles if record else ()
            if not any(s in track_styles for s in self.styles):
                return False

        if self.has_year_range:
            year = record.year if record else None
            if not year:
                return False
            if self.min_year is not None and year < self.min_year:
                return False
            if self.max_year is not None and year > self.max_year:
                return False

        return True


def filter_tracks(tracks: Iterable[EnrichedTrack], track_filter: Optional[TrackFilter]) -> List[EnrichedTrack]:
    if track_filter is None:
        return list(tracks)
    return [t for t in tracks if track_filter.matches(t)]


def format_duration(ms: int) -> str:
    """Format milliseconds as m:ss"""
    ms = max(0, int(ms or 0))
    minutes = ms // 60000
    seconds = (ms % 60000) // 1000
    return f"{minutes}:{seconds:02d}"


def _csv_row(enriched: EnrichedTrack) -> List:
    track = enriched.track
    record = enriched.record
    found = bool(record and record.found)
    return [
        track.position + 1,
        track.title,
        track.artists,
        track.album,
        format_duration(track.duration_ms),
        track.added_at.isoformat() if track.added_at else '',
        track.external_url or '',
        'yes' if found else 'no',
        record.title if found else '',
        record.year if found and record.year else '',
        record.country if found and record.country else '',
        LIST_SEPARATOR.join(record.genres) if found else '',
        LIST_SEPARATOR.join(record.styles) if found else '',
        LIST_SEPARATOR.join(record.labels) if found else '',
        LIST_SEPARATOR.join(str(f) for f in record.formats) if found else '',
        record.uri if found and record.uri else '',
    ]


def write_csv(tracks: Iterable[EnrichedTrack], fh: IO[str]) -> int:
    """
    Write tracks as CSV with a header row

    Returns:
        Number of track rows written
    """
    writer = csv.writer(fh)
    writer.writerow(CSV_COLUMNS)
    count = 0
    for enriched in tracks:
        writer.writerow(_csv_row(enriched))
        count += 1
    return count


def tracks_to_csv(tracks: Iterable[EnrichedTrack]) -> str:
    buffer = io.StringIO()
    write_csv(tracks, buffer)
    return buffer.getvalue()
