"""
Transcript storage in the log directory.

Files are named <timestamp>.<title>.md; the timestamp is fixed width, so
sorting filenames sorts them chronologically.
"""

import logging
import os
from datetime import datetime
from pathlib import Path

from config import LOG_FILE_SUFFIX, TIMESTAMP_FORMAT
from chat.errors import LogWriteError

logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime | None = None) -> str:
    """Local time as YYYY-MM-DD--HH-MM-SS-ZZZ."""
    if moment is None:
        moment = datetime.now()
    return moment.astimezone().strftime(TIMESTAMP_FORMAT)


def build_log_filename(timestamp: str, title: str) -> str:
    return f"{timestamp}.{title}{LOG_FILE_SUFFIX}"


def save_transcript(log_dir: Path, timestamp: str, title: str, content: str) -> Path:
    """
    Write a rendered transcript to the log directory.

    Args:
        log_dir: Directory holding transcripts (created if missing)
        timestamp: Output of format_timestamp()
        title: Topic slug for the filename
        content: Markdown document

    Returns:
        Path to the saved file

    Raises:
        LogWriteError: if the directory or file cannot be written
    """
    filepath = Path(log_dir) / build_log_filename(timestamp, title)
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
    except (OSError, ValueError) as e:
        raise LogWriteError(f"could not write log file '{filepath}': {e}") from e

    logger.debug("Wrote transcript %s", filepath)
    return filepath


def find_latest_log(log_dir: Path) -> Path | None:
    """
    Most recently modified file anywhere under log_dir.

    Returns:
        Path of the newest file, or None if there are no files
    """
    latest_path = None
    latest_mtime = None

    for root, _dirs, files in os.walk(log_dir):
        for name in files:
            path = Path(root) / name
            mtime = path.stat().st_mtime
            if latest_mtime is None or mtime > latest_mtime:
                latest_path = path
                latest_mtime = mtime

    return latest_path
