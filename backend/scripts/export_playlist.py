#!/usr/bin/env python3
"""
Export an enriched Spotify playlist to CSV

Loads the playlist from Spotify, looks every track up on Discogs (one at a
time, paced to stay under the Discogs rate limit), applies the optional
filters and writes the result as CSV.

Examples:
    python export_playlist.py 37i9dQZF1DXcBWIGoYBM5M
    python export_playlist.py https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M \\
        --genre Electronic --min-year 1990 --max-year 1999 --output 90s.csv
"""

import sys
from pathlib import Path

from script_base import ScriptBase, run_script

from dotenv import load_dotenv

from config import ConfigurationError, Settings
from enrichment import build_sequencer
from event_stream import EnrichmentFailed, run_aggregated
from track_filters import TrackFilter, filter_tracks, write_csv
from utils.helpers import extract_playlist_id

load_dotenv()


def main():
    script = ScriptBase(
        name="export_playlist",
        description="Enrich a Spotify playlist with Discogs metadata and export it as CSV",
        epilog=__doc__.split('Examples:', 1)[1] if 'Examples:' in __doc__ else ""
    )
    script.add_playlist_arg()
    script.add_mode_arg()
    script.add_filter_args()
    script.add_debug_arg()
    script.parser.add_argument('--output', '-o', default=None,
                               help='CSV file to write (default: stdout)')

    args = script.parse_args()

    playlist_id = extract_playlist_id(args.playlist)
    if not playlist_id:
        script.logger.error(f"Not a playlist id or URL: {args.playlist}")
        return False

    try:
        settings = Settings.from_env().validate()
    except ConfigurationError as e:
        script.logger.error(f"Configuration error: {e}")
        return False

    mode = args.mode or settings.discogs_lookup_mode
    script.print_header({"DETAIL LOOKUP": mode == 'detail'})
    script.logger.info(f"Playlist: {playlist_id}")

    sequencer = build_sequencer(settings, mode=mode)
    try:
        result = run_aggregated(sequencer, playlist_id)
    except EnrichmentFailed as e:
        script.logger.error(f"Enrichment failed: {e.message}")
        return False

    track_filter = TrackFilter(
        genres=args.genre,
        styles=args.style,
        query=args.query,
        min_year=args.min_year,
        max_year=args.max_year,
    )
    tracks = filter_tracks(result.tracks, track_filter)

    if args.output:
        output_path = Path(args.output)
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            written = write_csv(tracks, f)
        script.logger.info(f"Wrote {output_path}")
    else:
        written = write_csv(tracks, sys.stdout)

    matched = sum(1 for t in result.tracks if t.record and t.record.found)
    script.print_summary({
        'playlist': result.playlist.name,
        'tracks': len(result.tracks),
        'discogs_matches': matched,
        'not_matched': len(result.tracks) - matched,
        'active_filters': track_filter.active_count,
        'rows_written': written,
    })
    return True


if __name__ == "__main__":
    run_script(main)
