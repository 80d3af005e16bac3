"""
Pipeline Events

The messages an enrichment run produces, in emission order:

    status*  playlist  (status  track_update)*  complete
    status*  error

Each event renders to a JSON-ready dict whose `type` field carries the tag.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models import EnrichedTrack, EnrichmentRecord, PlaylistInfo

EVENT_STATUS = 'status'
EVENT_PLAYLIST = 'playlist'
EVENT_TRACK_UPDATE = 'track_update'
EVENT_COMPLETE = 'complete'
EVENT_ERROR = 'error'

# ErrorEvent codes
ERROR_NOT_FOUND = 'not_found'
ERROR_UPSTREAM = 'upstream'
ERROR_INTERNAL = 'internal'


@dataclass(frozen=True)
class Progress:
    current: int
    total: int

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 100
        # Half up, so 1 of 8 reports 13
        return int(100 * self.current / self.total + 0.5)

    def to_dict(self) -> Dict[str, int]:
        return {'current': self.current, 'total': self.total, 'percentage': self.percentage}


@dataclass(frozen=True)
class StatusEvent:
    message: str
    progress: Optional[Progress] = None
    type: str = field(default=EVENT_STATUS, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {'type': self.type, 'message': self.message}
        if self.progress is not None:
            data['progress'] = self.progress.to_dict()
        return data


@dataclass(frozen=True)
class PlaylistEvent:
    """The initial batch: playlist metadata and every track, none enriched yet"""
    playlist: PlaylistInfo
    tracks: List[EnrichedTrack]
    type: str = field(default=EVENT_PLAYLIST, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'playlist': self.playlist.to_dict(),
            'tracks': [t.to_dict() for t in self.tracks],
        }


@dataclass(frozen=True)
class TrackUpdateEvent:
    track_id: str
    record: EnrichmentRecord
    position: int
    type: str = field(default=EVENT_TRACK_UPDATE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'trackId': self.track_id,
            'position': self.position,
            'discogs': self.record.to_dict(),
        }


@dataclass(frozen=True)
class CompleteEvent:
    type: str = field(default=EVENT_COMPLETE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type}


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    code: str = ERROR_UPSTREAM
    type: str = field(default=EVENT_ERROR, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'message': self.message, 'code': self.code}


def encode_sse(payload_json: str) -> str:
    """Frame one serialized event for a text/event-stream response"""
    return f"data: {payload_json}\n\n"
