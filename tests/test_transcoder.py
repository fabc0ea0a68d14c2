"""Tests for ffmpeg transcoding."""

from unittest.mock import MagicMock, patch

import pytest

from termreel.errors import TranscodeError
from termreel.transcoder import build_ffmpeg_command, error_log_path, transcode


class TestBuildFfmpegCommand:
    """Tests for build_ffmpeg_command function."""

    def test_command(self, tmp_path):
        raw = tmp_path / "a.mov"
        final = tmp_path / "a.mp4"

        cmd = build_ffmpeg_command(raw, final)

        assert cmd[:4] == ["ffmpeg", "-y", "-i", str(raw)]
        assert cmd[-1] == str(final)
        assert "libx264" in cmd
        assert "yuv420p" in cmd
        assert "+faststart" in cmd


class TestTranscode:
    """Tests for transcode function."""

    @patch("termreel.transcoder.subprocess.run")
    def test_success_keeps_source(self, mock_run, tmp_path):
        """Should return the final path and leave the raw file alone."""
        raw = tmp_path / "a.mov"
        raw.write_bytes(b"raw")
        final = tmp_path / "a.mp4"

        def fake_ffmpeg(cmd, **kwargs):
            final.write_bytes(b"mp4")
            return MagicMock(returncode=0, stderr="")

        mock_run.side_effect = fake_ffmpeg

        assert transcode(raw, final) == final
        assert raw.exists()

    @patch("termreel.transcoder.subprocess.run")
    def test_failure_writes_log(self, mock_run, tmp_path):
        """Should raise with ffmpeg output and keep it in a log file."""
        raw = tmp_path / "a.mov"
        raw.write_bytes(b"raw")
        final = tmp_path / "a.mp4"
        mock_run.return_value = MagicMock(returncode=1, stderr="moov atom not found")

        with pytest.raises(TranscodeError) as exc_info:
            transcode(raw, final)

        assert exc_info.value.output == "moov atom not found"
        assert error_log_path(final).read_text() == "moov atom not found"
        assert raw.exists()

    @patch("termreel.transcoder.subprocess.run")
    def test_zero_exit_without_output(self, mock_run, tmp_path):
        """Should fail when ffmpeg reports success but wrote nothing."""
        mock_run.return_value = MagicMock(returncode=0, stderr="")

        with pytest.raises(TranscodeError):
            transcode(tmp_path / "a.mov", tmp_path / "a.mp4")

    @patch("termreel.transcoder.subprocess.run")
    def test_missing_ffmpeg(self, mock_run, tmp_path):
        mock_run.side_effect = FileNotFoundError("ffmpeg")

        with pytest.raises(TranscodeError, match="ffmpeg not found"):
            transcode(tmp_path / "a.mov", tmp_path / "a.mp4")

    def test_transcode_error_is_not_fatal(self):
        assert TranscodeError("x").fatal is False


class TestErrorLogPath:
    def test_next_to_target(self, tmp_path):
        assert error_log_path(tmp_path / "rec.mp4") == tmp_path / "rec.ffmpeg.log"
