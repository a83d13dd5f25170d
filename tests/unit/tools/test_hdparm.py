"""Unit tests for the hdparm adapter."""

from pathlib import Path
import subprocess
from unittest.mock import patch

import pytest
from trimctl.core.errors import (
    AllocationFailedError,
    DeviceResolutionError,
    EnvironmentCheckError,
    MetadataUnavailableError,
    TrimCommandFailedError,
)
from trimctl.models.extent import FreeExtent
from trimctl.tools.hdparm import Hdparm, parse_fibmap
from trimctl.utils.shell import CommandResult


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", returncode=0)


class TestParseFibmap:
    """Tests for parse_fibmap()."""

    def test_data_rows(self, mock_fibmap_output: str) -> None:
        """Only four-column data rows are used."""
        extents = list(parse_fibmap(mock_fibmap_output.splitlines()))

        assert extents == [FreeExtent(526336, 131072), FreeExtent(1050624, 4096)]

    def test_zero_sector_rows_skipped(self) -> None:
        """Rows with no sectors are ignored."""
        assert list(parse_fibmap(["0 100 99 0"])) == []


class TestHdparm:
    """Tests for the Hdparm adapter."""

    @pytest.fixture
    def hdparm(self) -> Hdparm:
        """Create Hdparm instance."""
        return Hdparm()

    def test_is_available(self, hdparm: Hdparm) -> None:
        """is_available() checks the PATH."""
        with patch("trimctl.tools.hdparm.command_exists", return_value=True) as mock_exists:
            assert hdparm.is_available() is True
        mock_exists.assert_called_once_with("hdparm")

    def test_version(self, hdparm: Hdparm) -> None:
        """version() strips the leading 'v'."""
        with patch("trimctl.tools.hdparm.run_command", return_value=_ok("hdparm v9.60\n")):
            assert hdparm.version() == "9.60"

    def test_version_unparseable(self, hdparm: Hdparm) -> None:
        """Unexpected output gives None."""
        with patch("trimctl.tools.hdparm.run_command", return_value=_ok("")):
            assert hdparm.version() is None

    def test_supports_trim(self, hdparm: Hdparm, mock_hdparm_identify_trim: str) -> None:
        """The starred DSM/TRIM feature line means supported."""
        with patch(
            "trimctl.tools.hdparm.run_command",
            return_value=_ok(mock_hdparm_identify_trim),
        ) as mock_run:
            assert hdparm.supports_trim("/dev/sda") is True
        assert mock_run.call_args[0][0] == ["hdparm", "-I", "/dev/sda"]

    def test_trim_not_enabled(self, hdparm: Hdparm) -> None:
        """Without the star the feature is not enabled."""
        output = "\t\tData Set Management TRIM supported (limit 8 blocks)\n"
        with patch("trimctl.tools.hdparm.run_command", return_value=_ok(output)):
            assert hdparm.supports_trim("/dev/sda") is False

    def test_start_sector(self, hdparm: Hdparm) -> None:
        """start_sector() reads the last field of the geometry line."""
        output = (
            "\n/dev/sda1:\n"
            " geometry      = 60801/255/63, sectors = 976771072, start = 2048\n"
        )
        with patch("trimctl.tools.hdparm.run_command", return_value=_ok(output)):
            assert hdparm.start_sector("/dev/sda1") == 2048

    def test_start_sector_failure(self, hdparm: Hdparm) -> None:
        """A failing geometry query gives None."""
        failed = CommandResult(stdout="", stderr="No such device", returncode=2)
        with patch("trimctl.tools.hdparm.run_command", return_value=failed):
            assert hdparm.start_sector("/dev/sdz1") is None

    def test_allocate(self, hdparm: Hdparm) -> None:
        """allocate() runs --fallocate in the file's directory."""
        path = Path("/mnt/data/TRIMCTL_TMPFILE.42")
        with patch("trimctl.tools.hdparm.run_command", return_value=_ok()) as mock_run:
            hdparm.allocate(path, 12500)

        args = mock_run.call_args[0][0]
        assert args == ["hdparm", "--fallocate", "12500", "TRIMCTL_TMPFILE.42"]
        assert mock_run.call_args.kwargs["cwd"] == "/mnt/data"
        assert mock_run.call_args.kwargs["timeout"] is None

    def test_allocate_failure(self, hdparm: Hdparm) -> None:
        """A failing --fallocate raises with the exit code."""
        failed = CommandResult(stdout="", stderr="Operation not supported", returncode=95)
        with (
            patch("trimctl.tools.hdparm.run_command", return_value=failed),
            pytest.raises(AllocationFailedError) as exc_info,
        ):
            hdparm.allocate(Path("/mnt/TRIMCTL_TMPFILE.42"), 100)

        assert exc_info.value.exit_code == 95
        assert "Operation not supported" in str(exc_info.value)

    def test_extent_map(self, hdparm: Hdparm, mock_fibmap_output: str) -> None:
        """extent_map() parses --fibmap output."""
        with patch(
            "trimctl.tools.hdparm.run_command",
            return_value=_ok(mock_fibmap_output),
        ) as mock_run:
            extents = list(hdparm.extent_map(Path("/mnt/TRIMCTL_TMPFILE.4242")))

        assert len(extents) == 2
        assert mock_run.call_args[0][0] == ["hdparm", "--fibmap", "TRIMCTL_TMPFILE.4242"]

    def test_extent_map_failure(self, hdparm: Hdparm) -> None:
        """A failing --fibmap is fatal."""
        failed = CommandResult(stdout="", stderr="FIBMAP: Invalid argument", returncode=22)
        with (
            patch("trimctl.tools.hdparm.run_command", return_value=failed),
            pytest.raises(MetadataUnavailableError, match="extent map"),
        ):
            list(hdparm.extent_map(Path("/mnt/TRIMCTL_TMPFILE.1")))

    def test_trim_command(self, hdparm: Hdparm) -> None:
        """The TRIM command passes one argument per range."""
        command = hdparm.trim_command("/dev/sda", "2848:40 3648:8 ")

        assert command == [
            "hdparm",
            "--please-destroy-my-drive",
            "--trim-sector-ranges",
            "2848:40",
            "3648:8",
            "/dev/sda",
        ]

    def test_trim(self, hdparm: Hdparm) -> None:
        """trim() runs the TRIM command without a timeout."""
        with patch("trimctl.tools.hdparm.run_command", return_value=_ok()) as mock_run:
            result = hdparm.trim("/dev/sda", "2848:40 ")

        assert result.success
        assert mock_run.call_args[0][0][-1] == "/dev/sda"
        assert mock_run.call_args.kwargs["timeout"] is None

    def test_custom_executable(self) -> None:
        """A configured executable path is used."""
        hdparm = Hdparm("/opt/hdparm/sbin/hdparm")
        assert hdparm.trim_command("/dev/sda", "0:1 ")[0] == "/opt/hdparm/sbin/hdparm"


class TestHdparmFailures:
    """Tests for hdparm runs that cannot complete."""

    @pytest.fixture
    def hdparm(self) -> Hdparm:
        """Create Hdparm instance."""
        return Hdparm()

    def test_version_not_startable(self, hdparm: Hdparm) -> None:
        """An hdparm that cannot be started fails the environment check."""
        with (
            patch("trimctl.tools.hdparm.run_command", side_effect=FileNotFoundError(2, "missing")),
            pytest.raises(EnvironmentCheckError, match="hdparm -V"),
        ):
            hdparm.version()

    def test_identify_timeout(self, hdparm: Hdparm) -> None:
        """A timed-out capability query fails device resolution."""
        timeout = subprocess.TimeoutExpired(["hdparm", "-I", "/dev/sda"], 120)
        with (
            patch("trimctl.tools.hdparm.run_command", side_effect=timeout),
            pytest.raises(DeviceResolutionError, match="timed out after 120s"),
        ):
            hdparm.supports_trim("/dev/sda")

    def test_geometry_timeout(self, hdparm: Hdparm) -> None:
        """A timed-out geometry query fails device resolution."""
        timeout = subprocess.TimeoutExpired(["hdparm", "-g", "/dev/sda1"], 120)
        with (
            patch("trimctl.tools.hdparm.run_command", side_effect=timeout),
            pytest.raises(DeviceResolutionError, match="hdparm -g /dev/sda1"),
        ):
            hdparm.start_sector("/dev/sda1")

    def test_allocate_not_startable(self, hdparm: Hdparm, tmp_path: Path) -> None:
        """An allocation that cannot be started is an allocation failure."""
        with (
            patch("trimctl.tools.hdparm.run_command", side_effect=OSError(5, "I/O error")),
            pytest.raises(AllocationFailedError, match="I/O error"),
        ):
            hdparm.allocate(tmp_path / "TRIMCTL_TMPFILE.1", 1000)

    def test_extent_map_not_startable(self, hdparm: Hdparm, tmp_path: Path) -> None:
        """An extent map that cannot be read is a metadata error."""
        with (
            patch("trimctl.tools.hdparm.run_command", side_effect=OSError(5, "I/O error")),
            pytest.raises(MetadataUnavailableError),
        ):
            list(hdparm.extent_map(tmp_path / "TRIMCTL_TMPFILE.1"))

    def test_trim_not_startable(self, hdparm: Hdparm) -> None:
        """A TRIM command that cannot be started fails the run."""
        with (
            patch("trimctl.tools.hdparm.run_command", side_effect=FileNotFoundError(2, "missing")),
            pytest.raises(TrimCommandFailedError) as exc_info,
        ):
            hdparm.trim("/dev/sda", "100:8 ")

        assert exc_info.value.exit_code == 1
