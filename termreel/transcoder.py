"""
Convert raw screen recordings to MP4 with ffmpeg.
"""

import logging
import subprocess
from pathlib import Path
from typing import List

from .errors import TranscodeError

logger = logging.getLogger(__name__)


def build_ffmpeg_command(raw_path: Path, final_path: Path) -> List[str]:
    """H.264 / yuv420p / faststart: plays in browsers, Slack and QuickTime."""
    return [
        "ffmpeg", "-y",
        "-i", str(raw_path),
        "-c:v", "libx264",
        "-pix_fmt", "yuv420p",
        "-movflags", "+faststart",
        "-c:a", "aac",
        str(final_path),
    ]


def error_log_path(final_path: Path) -> Path:
    return Path(final_path).with_suffix(".ffmpeg.log")


def transcode(raw_path: Path, final_path: Path) -> Path:
    """
    Transcode a raw capture into the final MP4.

    The source file is left untouched; deleting it is up to the caller.
    On failure ffmpeg's output is written next to the target as
    <name>.ffmpeg.log.

    Raises:
        TranscodeError: ffmpeg is missing or exited non-zero
    """
    raw_path = Path(raw_path)
    final_path = Path(final_path)

    logger.info(f"Converting {raw_path.name} to {final_path.name}")
    try:
        result = subprocess.run(
            build_ffmpeg_command(raw_path, final_path),
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise TranscodeError("ffmpeg not found") from e

    if result.returncode != 0 or not final_path.exists():
        log_path = error_log_path(final_path)
        log_path.write_text(result.stderr or "")
        raise TranscodeError(
            f"ffmpeg exited with code {result.returncode}; see {log_path}",
            output=result.stderr,
        )

    return final_path
