"""Unit tests for the online free-space provider."""

import os
from pathlib import Path

import pytest
from fakes import FakeDisk, FakeSpace, SyncCounter
from trimctl.core.errors import (
    AllocationFailedError,
    EnvironmentCheckError,
    ErrorKind,
    InsufficientSpaceError,
    MetadataUnavailableError,
    UnsupportedFilesystemError,
)
from trimctl.models.device import Device, FilesystemDescriptor
from trimctl.models.extent import FreeExtent
from trimctl.models.mode import OperatingMode
from trimctl.providers.online import AllocationPlan, OnlineFreeSpaceProvider, plan_allocation


@pytest.fixture
def device() -> Device:
    """Root partition on /dev/sda."""
    return Device(raw_device="/dev/sda", fs_device="/dev/sda1", offset=2048, trim_supported=True)


def _provider(
    device: Device,
    workdir: Path,
    *,
    fstype: str = "ext4",
    disk: FakeDisk | None = None,
    free_kb: int | None = 20000,
    sync: SyncCounter | None = None,
) -> OnlineFreeSpaceProvider:
    return OnlineFreeSpaceProvider(
        device,
        FilesystemDescriptor.from_name(fstype),
        workdir,
        disk or FakeDisk(),
        FakeSpace(free_kb=free_kb),
        sync or SyncCounter(),
    )


class TestPlanAllocation:
    """Tests for plan_allocation()."""

    def test_too_full(self) -> None:
        """Less than 15000 KB free is rejected."""
        with pytest.raises(InsufficientSpaceError) as exc_info:
            plan_allocation(10000)

        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_SPACE

    def test_minimum_reserve(self) -> None:
        """Small filesystems keep 7500 KB in reserve."""
        assert plan_allocation(20000) == AllocationPlan(
            free_kb=20000, reserved_kb=7500, allocate_kb=12500
        )

    def test_percent_reserve(self) -> None:
        """Large filesystems keep 1% in reserve."""
        plan = plan_allocation(10_000_000)

        assert plan.reserved_kb == 100_000
        assert plan.allocate_kb == 9_900_000

    def test_exact_minimum(self) -> None:
        """Exactly the minimum free space is accepted."""
        assert plan_allocation(15000).allocate_kb == 7500

    def test_custom_limits(self) -> None:
        """Limits can be overridden."""
        plan = plan_allocation(50000, min_free_kb=40000, reserve_min_kb=1000, reserve_percent=10)
        assert plan.reserved_kb == 5000


class TestOnlineFreeSpaceProvider:
    """Tests for OnlineFreeSpaceProvider."""

    def test_mode_and_tmpfile_name(self, device: Device, tmp_path: Path) -> None:
        """Provider is online and names the file after the process id."""
        provider = _provider(device, tmp_path)

        assert provider.mode == OperatingMode.ONLINE
        assert provider.tmpfile == tmp_path / f"TRIMCTL_TMPFILE.{os.getpid()}"

    def test_prepare_sizes_allocation(self, device: Device, tmp_path: Path) -> None:
        """prepare() computes the allocation plan."""
        provider = _provider(device, tmp_path, free_kb=20000)
        provider.prepare()

        assert provider.plan is not None
        assert provider.plan.allocate_kb == 12500

    def test_prepare_insufficient_space(self, device: Device, tmp_path: Path) -> None:
        """prepare() rejects a nearly full filesystem."""
        provider = _provider(device, tmp_path, free_kb=10000)

        with pytest.raises(InsufficientSpaceError, match=str(tmp_path)):
            provider.prepare()

    def test_prepare_unknown_free_space(self, device: Device, tmp_path: Path) -> None:
        """prepare() fails if free space cannot be queried."""
        provider = _provider(device, tmp_path, free_kb=None)

        with pytest.raises(MetadataUnavailableError):
            provider.prepare()

    @pytest.mark.parametrize("fstype", ["ext2", "ext3"])
    def test_prepare_no_fallocate(self, device: Device, tmp_path: Path, fstype: str) -> None:
        """ext2/ext3 cannot be trimmed while mounted read-write."""
        provider = _provider(device, tmp_path, fstype=fstype)

        with pytest.raises(UnsupportedFilesystemError, match=fstype):
            provider.prepare()

    def test_prepare_tool_missing(self, device: Device, tmp_path: Path) -> None:
        """A missing allocation tool aborts."""
        provider = _provider(device, tmp_path, disk=FakeDisk(available=False))

        with pytest.raises(EnvironmentCheckError):
            provider.prepare()

    def test_session_before_prepare(self, device: Device, tmp_path: Path) -> None:
        """session() requires prepare()."""
        provider = _provider(device, tmp_path)

        with pytest.raises(RuntimeError), provider.session():
            pass

    def test_session_allocates_and_cleans_up(self, device: Device, tmp_path: Path) -> None:
        """The file exists during the session and is removed afterwards."""
        sync = SyncCounter()
        disk = FakeDisk(extents=[FreeExtent(526336, 8)])
        provider = _provider(device, tmp_path, disk=disk, sync=sync)
        provider.prepare()

        with provider.session():
            assert provider.tmpfile.exists()
            assert list(provider.extents()) == [FreeExtent(526336, 8)]

        assert not provider.tmpfile.exists()
        assert disk.allocations == [(provider.tmpfile, 12500)]
        assert sync.calls == 1

    def test_session_allocation_failure(self, device: Device, tmp_path: Path) -> None:
        """A rejected allocation names the filesystem and keeps the exit code."""
        provider = _provider(device, tmp_path, fstype="xfs", disk=FakeDisk(allocate_error=True))
        provider.prepare()

        with pytest.raises(AllocationFailedError) as exc_info, provider.session():
            pass

        assert "may not support 'fallocate' on a xfs filesystem" in str(exc_info.value)
        assert exc_info.value.exit_code == 95
        assert not provider.tmpfile.exists()

    def test_stale_tmpfile_replaced(self, device: Device, tmp_path: Path) -> None:
        """A leftover file from an earlier run is removed first."""
        provider = _provider(device, tmp_path)
        provider.tmpfile.write_bytes(b"stale")
        provider.prepare()

        with provider.session():
            assert provider.tmpfile.read_bytes() == b""
