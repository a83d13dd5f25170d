"""Unit tests for mount and device models."""

import pytest
from trimctl.models.device import Device, FilesystemDescriptor, FilesystemType
from trimctl.models.mount import MountInfo


class TestMountInfo:
    """Tests for MountInfo."""

    def test_read_write(self) -> None:
        """'rw' leading option is read-write."""
        mount = MountInfo("/dev/sda1", "/", "ext4", ("rw", "relatime"))
        assert mount.read_write is True
        assert mount.mode_label == "read-write"

    def test_read_only(self) -> None:
        """'ro' leading option is read-only."""
        mount = MountInfo("/dev/sda1", "/", "ext4", ("ro", "relatime"))
        assert mount.read_write is False
        assert mount.mode_label == "read-only"

    def test_unknown_leading_option(self) -> None:
        """Any other leading option leaves the state undetermined."""
        mount = MountInfo("/dev/sda1", "/", "ext4", ("relatime", "rw"))
        assert mount.read_write is None
        assert mount.mode_label == "unknown"

    def test_no_options(self) -> None:
        """No options leaves the state undetermined."""
        assert MountInfo("/dev/sda1", "/", "ext4").read_write is None


class TestDevice:
    """Tests for Device."""

    def test_valid_device(self) -> None:
        """Device stores its fields."""
        device = Device("/dev/sda", "/dev/sda1", 2048, True)
        assert device.raw_device == "/dev/sda"
        assert device.offset == 2048

    def test_negative_offset_rejected(self) -> None:
        """Negative offset raises ValueError."""
        with pytest.raises(ValueError, match="negative"):
            Device("/dev/sda", "/dev/sda1", -1, True)


class TestFilesystemDescriptor:
    """Tests for FilesystemDescriptor."""

    @pytest.mark.parametrize(
        ("name", "fs_type"),
        [
            ("ext2", FilesystemType.EXT2),
            ("ext3", FilesystemType.EXT3),
            ("ext4", FilesystemType.EXT4),
            ("xfs", FilesystemType.XFS),
            ("btrfs", FilesystemType.UNKNOWN),
        ],
    )
    def test_from_name(self, name: str, fs_type: FilesystemType) -> None:
        """Type names map to their family."""
        descriptor = FilesystemDescriptor.from_name(name)
        assert descriptor.name == name
        assert descriptor.fs_type == fs_type

    @pytest.mark.parametrize("name", ["ext2", "ext3", "ext4"])
    def test_is_ext(self, name: str) -> None:
        """ext family is detected."""
        assert FilesystemDescriptor.from_name(name).is_ext

    def test_xfs_is_not_ext(self) -> None:
        """xfs is not ext."""
        assert not FilesystemDescriptor.from_name("xfs").is_ext

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("ext2", False), ("ext3", False), ("ext4", True), ("xfs", True), ("btrfs", True)],
    )
    def test_supports_fallocate(self, name: str, expected: bool) -> None:
        """Only ext2 and ext3 lack fallocate."""
        assert FilesystemDescriptor.from_name(name).supports_fallocate is expected
