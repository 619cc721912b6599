"""Tests for the ffmpeg transcoder wrappers."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from speech_clipper.media.exceptions import TranscoderError, TranscoderNotFoundError
from speech_clipper.media.transcoder import (
    check_ffmpeg_available,
    cut_clip,
    extract_audio,
)


def completed(returncode: int = 0, stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stderr = stderr
    result.stdout = ""
    return result


@pytest.fixture
def video(tmp_path: Path) -> Path:
    path = tmp_path / "talk.mp4"
    path.write_bytes(b"not really a video")
    return path


@pytest.mark.unit
class TestCheckFfmpegAvailable:
    """Test cases for ffmpeg detection."""

    def test_available(self) -> None:
        with patch("speech_clipper.media.transcoder.subprocess.run") as mock_run:
            mock_run.return_value = completed()

            assert check_ffmpeg_available() is True
            assert mock_run.call_args[0][0] == ["ffmpeg", "-version"]

    def test_missing_binary(self) -> None:
        with patch(
            "speech_clipper.media.transcoder.subprocess.run",
            side_effect=FileNotFoundError("ffmpeg"),
        ):
            assert check_ffmpeg_available() is False


@pytest.mark.unit
class TestExtractAudio:
    """Test cases for audio extraction."""

    def test_builds_mono_16k_pcm_command(self, video: Path, tmp_path: Path) -> None:
        output = tmp_path / "talk.wav"
        with patch("speech_clipper.media.transcoder.subprocess.run") as mock_run:
            mock_run.return_value = completed()

            assert extract_audio(video, output) == output

            cmd = mock_run.call_args[0][0]
            assert cmd[0] == "ffmpeg"
            assert cmd[cmd.index("-i") + 1] == str(video)
            assert cmd[cmd.index("-acodec") + 1] == "pcm_s16le"
            assert cmd[cmd.index("-ac") + 1] == "1"
            assert cmd[cmd.index("-ar") + 1] == "16000"
            assert "-vn" in cmd
            assert cmd[-1] == str(output)

    def test_ffmpeg_failure_reports_stderr(self, video: Path, tmp_path: Path) -> None:
        with patch("speech_clipper.media.transcoder.subprocess.run") as mock_run:
            mock_run.return_value = completed(returncode=1, stderr="Invalid data found\n")

            with pytest.raises(TranscoderError, match="Invalid data found"):
                extract_audio(video, tmp_path / "out.wav")

    def test_missing_ffmpeg(self, video: Path, tmp_path: Path) -> None:
        with patch(
            "speech_clipper.media.transcoder.subprocess.run",
            side_effect=FileNotFoundError("ffmpeg"),
        ):
            with pytest.raises(TranscoderNotFoundError):
                extract_audio(video, tmp_path / "out.wav")

    def test_timeout(self, video: Path, tmp_path: Path) -> None:
        with patch(
            "speech_clipper.media.transcoder.subprocess.run",
            side_effect=subprocess.TimeoutExpired("ffmpeg", 120),
        ):
            with pytest.raises(TranscoderError, match="timed out"):
                extract_audio(video, tmp_path / "out.wav")

    def test_missing_input(self, tmp_path: Path) -> None:
        with pytest.raises(TranscoderError, match="Input file not found"):
            extract_audio(tmp_path / "missing.mp4", tmp_path / "out.wav")


@pytest.mark.unit
class TestCutClip:
    """Test cases for clip cutting."""

    def test_builds_seek_and_duration(self, video: Path, tmp_path: Path) -> None:
        output = tmp_path / "clip.mp4"

        def fake_run(cmd, **kwargs):
            output.write_bytes(b"clip")
            return completed()

        with patch("speech_clipper.media.transcoder.subprocess.run", side_effect=fake_run) as mock_run:
            assert cut_clip(video, output, 3.0, 9.5) == output

            cmd = mock_run.call_args[0][0]
            assert cmd[cmd.index("-ss") + 1] == "3.000"
            assert cmd[cmd.index("-t") + 1] == "6.500"
            assert cmd[cmd.index("-c:v") + 1] == "libx264"

    def test_invalid_range(self, video: Path, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Invalid clip range"):
            cut_clip(video, tmp_path / "clip.mp4", 5.0, 5.0)

    def test_failure_removes_partial_output(self, video: Path, tmp_path: Path) -> None:
        output = tmp_path / "clip.mp4"

        def failing_run(cmd, **kwargs):
            output.write_bytes(b"partial")
            return completed(returncode=1, stderr="encoder error")

        with patch("speech_clipper.media.transcoder.subprocess.run", side_effect=failing_run):
            with pytest.raises(TranscoderError, match="encoder error"):
                cut_clip(video, output, 0.0, 1.0)

        assert not output.exists()

    def test_missing_output_is_an_error(self, video: Path, tmp_path: Path) -> None:
        with patch("speech_clipper.media.transcoder.subprocess.run") as mock_run:
            mock_run.return_value = completed()

            with pytest.raises(TranscoderError, match="did not create"):
                cut_clip(video, tmp_path / "clip.mp4", 0.0, 1.0)
