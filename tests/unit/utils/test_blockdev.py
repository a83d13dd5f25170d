"""Unit tests for block device node helpers."""

from pathlib import Path

from trimctl.utils.blockdev import is_block_device, is_plain_directory, path_exists


class TestBlockdev:
    """Tests for the os.stat wrappers."""

    def test_directory_is_plain(self, tmp_path: Path) -> None:
        """A real directory is plain."""
        assert is_plain_directory(str(tmp_path)) is True

    def test_symlink_is_not_plain(self, tmp_path: Path) -> None:
        """A symlink to a directory is not plain."""
        link = tmp_path / "link"
        link.symlink_to(tmp_path)
        assert is_plain_directory(str(link)) is False

    def test_regular_file_not_block(self, tmp_path: Path) -> None:
        """A regular file is not a block device."""
        path = tmp_path / "file"
        path.write_text("x")
        assert is_block_device(str(path)) is False

    def test_missing_not_block(self, tmp_path: Path) -> None:
        """A missing path is not a block device."""
        assert is_block_device(str(tmp_path / "missing")) is False
        assert path_exists(str(tmp_path / "missing")) is False
