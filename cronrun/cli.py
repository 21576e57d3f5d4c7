"""
Command-line interface.

    cronrun FILE

Runs every job in a crontab-format FILE that is due in the current
minute. Meant to be called from cron itself once a minute:

    * * * * * /usr/local/bin/cronrun /var/www/mysite/crontab
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from cronrun import __version__
from cronrun.config import RunnerConfig
from cronrun.dispatch import run_jobs
from cronrun.errors import MalformedScheduleError
from cronrun.schedule import jobs_from_file

logger = logging.getLogger(__name__)

EPILOG = """\
Example file format:

  # Any line starting with a # character is ignored
  */5 * * * * /usr/local/bin/backup
  00 01 * * * /usr/bin/security_upgrades

Running cronrun on the example file will run /usr/local/bin/backup if the
current minute is divisible by 5, and /usr/bin/security_upgrades if the
time is 01:00.
"""


def setup_logging(log_file: str = None, verbose: bool = False, level: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level, logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cronrun',
        description='Run the scheduled jobs in a crontab-format file that are due now.',
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('file', help='Crontab-format file of jobs')
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file (default: $CRONRUN_LOG_FILE)'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))

    try:
        config = RunnerConfig(log_file=args.log_file)
    except ValueError as e:
        setup_logging(verbose=args.verbose)
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(
        log_file=config.logging.file,
        verbose=args.verbose,
        level=config.logging.level
    )

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 1

    try:
        specs = jobs_from_file(args.file)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {args.file}: {e}")
        return 1
    except MalformedScheduleError as e:
        logger.error(f"Failed to parse {args.file}: {e}")
        return 1

    # Sampled once so every job agrees on "now"
    now = datetime.now().astimezone()

    run_jobs(
        specs,
        now,
        executor=config.create_executor(),
        max_workers=config.execution.max_workers
    )

    # Job failures are logged by run_jobs and never fail the invocation
    return 0


if __name__ == '__main__':
    sys.exit(main())
