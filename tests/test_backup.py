"""Tests for timestamped directory snapshots."""

from __future__ import annotations

from datetime import datetime

import pytest

from svxstream.backup import backup_path, create_backup


class TestBackup:
    def test_name_from_timestamp(self, tmp_path):
        when = datetime(2025, 1, 2, 3, 4, 5)
        assert backup_path(tmp_path / "web", when) == tmp_path / "web_backup_20250102_030405"

    def test_copies_tree_verbatim(self, tmp_path):
        src = tmp_path / "web"
        (src / "images").mkdir(parents=True)
        (src / "status.xsl").write_bytes(b"Icecast2\r\n")
        (src / "images" / "logo.png").write_bytes(b"\x89PNG\x00")
        (src / "link.xsl").symlink_to("status.xsl")

        dest = create_backup(src, datetime(2025, 1, 2, 3, 4, 5))

        assert (dest / "status.xsl").read_bytes() == b"Icecast2\r\n"
        assert (dest / "images" / "logo.png").read_bytes() == b"\x89PNG\x00"
        assert (dest / "link.xsl").is_symlink()

    def test_never_overwrites_existing_snapshot(self, tmp_path):
        src = tmp_path / "web"
        src.mkdir()
        when = datetime(2025, 1, 2, 3, 4, 5)
        create_backup(src, when)
        with pytest.raises(FileExistsError):
            create_backup(src, when)
