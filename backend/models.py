"""
Data Model

Typed records for the two upstream catalogs:
- Track / PlaylistInfo / UserPlaylist parsed from Spotify payloads
- EnrichmentRecord / ReleaseFormat parsed from Discogs search results and release details
- EnrichedTrack / PlaylistResult, the pipeline's output

Every from_* constructor validates the raw payload and raises ValueError when
it is malformed, so callers map one exception type to their own fault.
to_dict() renders the JSON wire format used by the API.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


def _first_image_url(images) -> Optional[str]:
    if isinstance(images, list) and images and isinstance(images[0], dict):
        return images[0].get('url') or None
    return None


def _parse_timestamp(value) -> Optional[datetime]:
    """Parse Spotify's ISO-8601 timestamps ("2024-01-31T10:00:00Z")"""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


def parse_year(value) -> Optional[int]:
    """
    Parse a Discogs year, which arrives as an int, a digit string, 0 or ''

    Returns:
        Year as int, or None when unknown
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value or None
    if isinstance(value, str):
        match = re.match(r'\s*(\d{4})', value)
        if match:
            return int(match.group(1)) or None
    return None


def _string_list(values) -> Tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    return tuple(str(v) for v in values if v is not None and str(v).strip())


# ============================================================================
# SPOTIFY
# ============================================================================

@dataclass(frozen=True)
class Track:
    """A playlist entry from Spotify. Identity is `id`."""
    id: str
    title: str
    artist_names: Tuple[str, ...]
    primary_artist: str
    album: str
    duration_ms: int
    track_number: Optional[int]
    position: int
    external_url: Optional[str]
    album_image_url: Optional[str] = None
    added_at: Optional[datetime] = None

    @property
    def artists(self) -> str:
        return ', '.join(self.artist_names)

    @classmethod
    def from_spotify_item(cls, item: Dict[str, Any], position: int) -> 'Track':
        """
        Build a Track from one entry of a playlist's `tracks.items`

        Entries whose `track` is null (removed or local media) are kept as
        placeholders so the playlist order is preserved.

        Args:
            item: Raw playlist item ({'added_at': ..., 'track': {...}})
            position: Zero-based index of the item in the playlist
        """
        if not isinstance(item, dict):
            raise ValueError(f"Playlist item {position} is not an object")

        track = item.get('track') or {}
        if not isinstance(track, dict):
            raise ValueError(f"Playlist item {position} has a malformed track")

        artists = track.get('artists') or []
        if not isinstance(artists, list):
            raise ValueError(f"Playlist item {position} has malformed artists")
        artist_names = tuple(
            a.get('name') for a in artists if isinstance(a, dict) and a.get('name')
        )

        album = track.get('album') or {}
        if not isinstance(album, dict):
            album = {}

        try:
            duration_ms = max(0, int(track.get('duration_ms') or 0))
        except (TypeError, ValueError):
            raise ValueError(f"Playlist item {position} has a malformed duration")

        track_number = track.get('track_number')
        if not isinstance(track_number, int) or isinstance(track_number, bool):
            track_number = None

        track_id = track.get('id') or track.get('uri') or f"local:{position}"
        external_urls = track.get('external_urls') or {}

        return cls(
            id=str(track_id),
            title=track.get('name') or '',
            artist_names=artist_names,
            primary_artist=artist_names[0] if artist_names else '',
            album=album.get('name') or '',
            duration_ms=duration_ms,
            track_number=track_number,
            position=position,
            external_url=external_urls.get('spotify') if isinstance(external_urls, dict) else None,
            album_image_url=_first_image_url(album.get('images')),
            added_at=_parse_timestamp(item.get('added_at')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.title,
            'artists': self.artists,
            'artistNames': list(self.artist_names),
            'album': self.album,
            'duration': self.duration_ms,
            'trackNumber': self.track_number,
            'position': self.position,
            'externalUrl': self.external_url,
            'albumImageUrl': self.album_image_url,
            'addedAt': self.added_at,
        }


@dataclass(frozen=True)
class PlaylistInfo:
    id: str
    name: str
    description: Optional[str]
    owner: Optional[str]
    image_url: Optional[str]
    total_tracks: int

    @classmethod
    def from_spotify(cls, payload: Dict[str, Any]) -> 'PlaylistInfo':
        if not isinstance(payload, dict) or not payload.get('id'):
            raise ValueError("Playlist payload has no id")
        tracks = payload.get('tracks')
        if not isinstance(tracks, dict):
            raise ValueError("Playlist payload has no tracks object")
        owner = payload.get('owner') or {}
        return cls(
            id=payload['id'],
            name=payload.get('name') or '',
            description=payload.get('description') or None,
            owner=owner.get('display_name') if isinstance(owner, dict) else None,
            image_url=_first_image_url(payload.get('images')),
            total_tracks=int(tracks.get('total') or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'owner': self.owner,
            'imageUrl': self.image_url,
            'totalTracks': self.total_tracks,
        }


@dataclass(frozen=True)
class UserPlaylist:
    """One row of a user's public playlist listing"""
    id: str
    name: str
    description: Optional[str]
    tracks_count: int
    image_url: Optional[str]
    external_url: Optional[str]
    owner: Optional[str]

    @classmethod
    def from_spotify(cls, payload: Dict[str, Any]) -> 'UserPlaylist':
        if not isinstance(payload, dict) or not payload.get('id'):
            raise ValueError("User playlist entry has no id")
        owner = payload.get('owner') or {}
        tracks = payload.get('tracks') or {}
        external_urls = payload.get('external_urls') or {}
        return cls(
            id=payload['id'],
            name=payload.get('name') or '',
            description=payload.get('description') or None,
            tracks_count=int(tracks.get('total') or 0) if isinstance(tracks, dict) else 0,
            image_url=_first_image_url(payload.get('images')),
            external_url=external_urls.get('spotify') if isinstance(external_urls, dict) else None,
            owner=owner.get('display_name') if isinstance(owner, dict) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'tracksCount': self.tracks_count,
            'imageUrl': self.image_url,
            'externalUrl': self.external_url,
            'owner': self.owner,
        }


# ============================================================================
# DISCOGS
# ============================================================================

@dataclass(frozen=True)
class ReleaseFormat:
    name: str
    descriptions: Tuple[str, ...] = ()

    def __str__(self):
        if self.descriptions:
            return f"{self.name} ({', '.join(self.descriptions)})"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'descriptions': list(self.descriptions)}


def _parse_formats(result: Dict[str, Any]) -> Tuple[ReleaseFormat, ...]:
    """
    Release details carry `formats` as objects; search results carry `format`
    as a flat list like ["Vinyl", "LP", "Album"], which becomes one format.
    """
    formats = result.get('formats')
    if isinstance(formats, list) and formats:
        parsed = []
        for fmt in formats:
            if isinstance(fmt, dict) and fmt.get('name'):
                parsed.append(ReleaseFormat(fmt['name'], _string_list(fmt.get('descriptions'))))
            elif isinstance(fmt, str) and fmt.strip():
                parsed.append(ReleaseFormat(fmt))
        return tuple(parsed)

    flat = _string_list(result.get('format'))
    if flat:
        return (ReleaseFormat(flat[0], flat[1:]),)
    return ()


def _parse_labels(result: Dict[str, Any]) -> Tuple[str, ...]:
    labels = result.get('labels')
    if isinstance(labels, list) and labels:
        names = []
        for label in labels:
            name = label.get('name') if isinstance(label, dict) else label
            if name and name not in names:
                names.append(str(name))
        return tuple(names)
    return _string_list(result.get('label'))


@dataclass(frozen=True)
class EnrichmentRecord:
    """
    Discogs metadata for one track, or a not-found marker.

    When found is False every other field except message is empty.
    """
    found: bool
    catalog_id: Optional[int] = None
    title: Optional[str] = None
    year: Optional[int] = None
    country: Optional[str] = None
    genres: Tuple[str, ...] = ()
    styles: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()
    formats: Tuple[ReleaseFormat, ...] = ()
    thumb_url: Optional[str] = None
    cover_url: Optional[str] = None
    resource_url: Optional[str] = None
    uri: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def not_found(cls, message: Optional[str] = None) -> 'EnrichmentRecord':
        return cls(found=False, message=message)

    @classmethod
    def from_search_result(cls, result: Dict[str, Any]) -> 'EnrichmentRecord':
        """Build a found record from one entry of a /database/search response"""
        if not isinstance(result, dict) or result.get('id') is None:
            raise ValueError("Discogs search result has no id")
        cover = result.get('cover_image') or None
        return cls(
            found=True,
            catalog_id=result['id'],
            title=result.get('title'),
            year=parse_year(result.get('year')),
            country=result.get('country') or None,
            genres=_string_list(result.get('genre')),
            styles=_string_list(result.get('style')),
            labels=_parse_labels(result),
            formats=_parse_formats(result),
            thumb_url=result.get('thumb') or cover,
            cover_url=cover,
            resource_url=result.get('resource_url'),
            uri=result.get('uri'),
        )

    @classmethod
    def from_release(cls, release: Dict[str, Any],
                     search_result: Optional[Dict[str, Any]] = None) -> 'EnrichmentRecord':
        """
        Build a found record from a release detail payload, falling back to
        the search result for fields the detail lacks (thumbnails, uri).
        """
        if not isinstance(release, dict) or release.get('id') is None:
            raise ValueError("Discogs release has no id")
        search_result = search_result if isinstance(search_result, dict) else {}

        images = release.get('images') or []
        primary_image = None
        if isinstance(images, list) and images and isinstance(images[0], dict):
            primary_image = images[0].get('uri') or None
        cover = primary_image or search_result.get('cover_image') or None
        thumb = release.get('thumb') or search_result.get('thumb') or cover

        title = release.get('title')
        artists = release.get('artists_sort')
        if artists and title:
            title = f"{artists} - {title}"

        return cls(
            found=True,
            catalog_id=release['id'],
            title=title or search_result.get('title'),
            year=parse_year(release.get('year')) or parse_year(search_result.get('year')),
            country=release.get('country') or search_result.get('country') or None,
            genres=_string_list(release.get('genres')) or _string_list(search_result.get('genre')),
            styles=_string_list(release.get('styles')) or _string_list(search_result.get('style')),
            labels=_parse_labels(release) or _parse_labels(search_result),
            formats=_parse_formats(release) or _parse_formats(search_result),
            thumb_url=thumb,
            cover_url=cover,
            resource_url=release.get('resource_url') or search_result.get('resource_url'),
            uri=release.get('uri') or search_result.get('uri'),
        )

    def to_dict(self) -> Dict[str, Any]:
        if not self.found:
            data = {'found': False}
            if self.message:
                data['message'] = self.message
            return data
        return {
            'found': True,
            'id': self.catalog_id,
            'title': self.title,
            'year': self.year,
            'country': self.country,
            'genres': list(self.genres),
            'styles': list(self.styles),
            'labels': list(self.labels),
            'formats': [fmt.to_dict() for fmt in self.formats],
            'thumbUrl': self.thumb_url,
            'coverUrl': self.cover_url,
            'resourceUrl': self.resource_url,
            'uri': self.uri,
        }


# ============================================================================
# PIPELINE OUTPUT
# ============================================================================

@dataclass
class EnrichedTrack:
    """A Track plus its EnrichmentRecord, which stays None until processed"""
    track: Track
    record: Optional[EnrichmentRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.track.to_dict()
        data['discogs'] = self.record.to_dict() if self.record is not None else None
        return data


@dataclass
class PlaylistResult:
    playlist: PlaylistInfo
    tracks: List[EnrichedTrack] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'playlist': self.playlist.to_dict(),
            'tracks': [t.to_dict() for t in self.tracks],
        }
