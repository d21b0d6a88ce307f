"""Tests for the section splitter and the atomic rewrite primitive."""

from __future__ import annotations

import os
import re
import stat
from unittest.mock import patch

import pytest

from svxstream.rewrite import (
    APPLIED,
    MISSING,
    UNCHANGED,
    Rule,
    apply_rules,
    atomic_write,
    literal,
    patch_file,
    section_names,
    split_sections,
)


def _upper_rule(section=None):
    return Rule("upper", re.compile(r"^foo$"), literal("FOO"), section=section)


class TestSplitSections:
    def test_preamble_and_sections(self):
        lines = ["# top\n", "[A]\n", "x=1\n", "  [B]\n", "y=2\n"]
        sections = split_sections(lines)
        assert [s.name for s in sections] == [None, "A", "B"]
        assert sections[1].lines == ["[A]\n", "x=1\n"]
        assert sections[2].lines == ["  [B]\n", "y=2\n"]

    def test_section_names(self):
        assert section_names("[One]\na=1\n[Two]\n") == ["One", "Two"]

    def test_empty_text(self):
        assert section_names("") == []


class TestApplyRules:
    def test_whole_file_rule(self):
        text, hits = apply_rules("foo\n[A]\nfoo\n", [_upper_rule()])
        assert text == "FOO\n[A]\nFOO\n"
        assert hits == 2

    def test_scoped_rule_only_touches_its_section(self):
        text, hits = apply_rules("foo\n[A]\nfoo\n[B]\nfoo\n", [_upper_rule("A")])
        assert text == "foo\n[A]\nFOO\n[B]\nfoo\n"
        assert hits == 1

    def test_line_endings_preserved(self):
        text, _ = apply_rules("foo\r\nbar\r\nfoo", [_upper_rule()])
        assert text == "FOO\r\nbar\r\nFOO"

    def test_replacement_is_literal(self):
        rule = Rule("r", re.compile("x"), literal(r"\1&\g<0>/"))
        text, _ = apply_rules("x\n", [rule])
        assert text == "\\1&\\g<0>/\n"


class TestPatchFile:
    def test_missing(self, tmp_path):
        result = patch_file(tmp_path / "nope.cfg", [_upper_rule()])
        assert result.status == MISSING

    def test_applied(self, tmp_path):
        f = tmp_path / "a.cfg"
        f.write_text("foo\nbar\n")
        result = patch_file(f, [_upper_rule()])
        assert result.status == APPLIED
        assert result.hits == 1
        assert f.read_text() == "FOO\nbar\n"

    def test_unchanged_file_is_not_rewritten(self, tmp_path):
        f = tmp_path / "a.cfg"
        f.write_bytes(b"bar\r\nbaz")
        with patch("svxstream.rewrite.os.replace") as mock_replace:
            result = patch_file(f, [_upper_rule()])
        assert result.status == UNCHANGED
        mock_replace.assert_not_called()
        assert f.read_bytes() == b"bar\r\nbaz"

    def test_no_temp_files_left(self, tmp_path):
        f = tmp_path / "a.cfg"
        f.write_text("foo\n")
        patch_file(f, [_upper_rule()])
        assert [p.name for p in tmp_path.iterdir()] == ["a.cfg"]


class TestAtomicWrite:
    def test_keeps_permissions(self, tmp_path):
        f = tmp_path / "secret.cfg"
        f.write_text("old\n")
        f.chmod(0o640)
        atomic_write(f, "new\n")
        assert f.read_text() == "new\n"
        assert stat.S_IMODE(f.stat().st_mode) == 0o640

    def test_failed_replace_leaves_original(self, tmp_path):
        f = tmp_path / "a.cfg"
        f.write_text("original\n")
        with patch("svxstream.rewrite.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write(f, "new\n")
        assert f.read_text() == "original\n"
        assert [p.name for p in tmp_path.iterdir()] == ["a.cfg"]

    def test_temp_name_is_process_unique(self, tmp_path):
        f = tmp_path / "a.cfg"
        f.write_text("x\n")
        seen = []
        real_replace = os.replace

        def _spy(src, dst):
            seen.append(os.path.basename(src))
            real_replace(src, dst)

        with patch("svxstream.rewrite.os.replace", side_effect=_spy):
            atomic_write(f, "y\n")
        assert seen and f".a.cfg.{os.getpid()}." in seen[0]
