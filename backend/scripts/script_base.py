#!/usr/bin/env python3
"""
Shared plumbing for the command-line tools in this directory

ScriptBase puts the backend modules on sys.path, logs to stdout and to
scripts/log/<name>.log, owns the argparse parser (with the playlist, lookup
mode, filter and --debug options the tools share) and prints the banner and
summary blocks. run_script() turns main()'s boolean into an exit status.
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, Optional

# Backend modules live one level up
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import LOG_FORMAT, LOOKUP_MODES

RULE = "=" * 80


class ScriptBase:
    """Logging, argument parsing and report output for one CLI tool"""

    def __init__(self, name: str, description: str, epilog: str = "",
                 log_dir: Optional[Path] = None):
        """
        Args:
            name: Tool name, also the log file's stem
            description: Shown at the top of --help
            epilog: Shown at the bottom of --help (usage examples)
            log_dir: Where the log file goes (scripts/log/ by default)
        """
        self.name = name
        self.log_dir = log_dir or Path(__file__).parent / 'log'
        self.logger = self._configure_logging()
        self.parser = argparse.ArgumentParser(
            prog=f"{name}.py",
            description=description,
            epilog=epilog,
            formatter_class=argparse.RawDescriptionHelpFormatter
        )

    def _configure_logging(self) -> logging.Logger:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = self.log_dir / f'{self.name}.log'
        logging.basicConfig(
            level=logging.INFO,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout), logging.FileHandler(log_file)]
        )
        return logging.getLogger(self.name)

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    def add_playlist_arg(self):
        self.parser.add_argument('playlist',
                                 help='Spotify playlist id, open.spotify.com URL or spotify:playlist: URI')

    def add_mode_arg(self):
        self.parser.add_argument('--mode', choices=LOOKUP_MODES, default=None,
                                 help='Discogs lookup mode (defaults to DISCOGS_LOOKUP_MODE, else search)')

    def add_filter_args(self):
        """--genre/--style (repeatable), --query, --min-year, --max-year"""
        filters = self.parser.add_argument_group('filters')
        filters.add_argument('--genre', action='append', default=[], metavar='GENRE',
                             help='Keep tracks with this Discogs genre (repeatable)')
        filters.add_argument('--style', action='append', default=[], metavar='STYLE',
                             help='Keep tracks with this Discogs style (repeatable)')
        filters.add_argument('--query', default='',
                             help='Keep tracks whose title, artists or album contain this text')
        filters.add_argument('--min-year', type=int, default=None, metavar='YEAR',
                             help='Earliest release year to keep')
        filters.add_argument('--max-year', type=int, default=None, metavar='YEAR',
                             help='Latest release year to keep')
        return filters

    def add_debug_arg(self):
        self.parser.add_argument('--debug', action='store_true', help='Log at DEBUG level')

    def parse_args(self, argv=None) -> argparse.Namespace:
        """Parse argv (sys.argv by default); --debug lowers the root log level"""
        args = self.parser.parse_args(argv)
        if getattr(args, 'debug', False):
            logging.getLogger().setLevel(logging.DEBUG)
            self.logger.debug("Debug logging enabled")
        return args

    # -------------------------------------------------------------------------
    # Report output
    # -------------------------------------------------------------------------

    def print_header(self, modes: Optional[Dict[str, bool]] = None, title: Optional[str] = None):
        """
        Log a banner with the tool's title, followed by one line per active mode

        Args:
            modes: e.g. {"DETAIL LOOKUP": True}; inactive modes are not shown
            title: Banner text (defaults to the tool name in title case)
        """
        self.logger.info(RULE)
        self.logger.info(title or self.name.replace('_', ' ').title())
        self.logger.info(RULE)
        for mode_name, active in (modes or {}).items():
            if active:
                self.logger.info(f"*** {mode_name} MODE ***")
        self.logger.info("")

    def print_summary(self, stats: Dict[str, object], title: str = "SUMMARY"):
        """Log stats as an aligned two-column block; keys are shown in title case"""
        self.logger.info("")
        self.logger.info(RULE)
        self.logger.info(title)
        self.logger.info(RULE)
        if stats:
            labels = {key: key.replace('_', ' ').title() for key in stats}
            width = max(len(label) for label in labels.values()) + 2
            for key, value in stats.items():
                self.logger.info(f"{labels[key]:<{width}} {value}")
        self.logger.info(RULE)


def run_script(main_func: Callable[[], bool]):
    """Call main_func and exit 0 if it returned True, 1 otherwise (or on error)"""
    try:
        ok = main_func()
    except KeyboardInterrupt:
        print("\nCancelled by user")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(0 if ok else 1)
