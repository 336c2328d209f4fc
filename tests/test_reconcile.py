"""Tests for clearing previously generated output."""

import os

import pytest

from trackgen.codegen.generator import AUTOGENERATED_FILE_WARNING
from trackgen.reconcile import clear_generated_files, is_generated


@pytest.fixture
def output_dir(tmp_path):
    directory = tmp_path / "analytics"
    directory.mkdir()
    return directory


def _generated(path):
    path.write_text(f"# {AUTOGENERATED_FILE_WARNING}\nx = 1\n", encoding="utf-8")
    return path


class TestIsGenerated:
    def test_marker_anywhere_in_file(self, tmp_path):
        path = tmp_path / "late.ts"
        path.write_text("\n" * 50 + f"// {AUTOGENERATED_FILE_WARNING}\n")
        assert is_generated(path)

    def test_similar_text_is_not_the_marker(self, tmp_path):
        path = tmp_path / "notes.md"
        path.write_text("This client was automatically generated by hand.\n")
        assert not is_generated(path)


class TestClearGeneratedFiles:
    def test_only_marked_files_removed(self, output_dir):
        generated = _generated(output_dir / "index.ts")
        handwritten = output_dir / "helpers.ts"
        handwritten.write_text("export const x = 1\n")
        (output_dir / "plan.json").write_text("{}")

        result = clear_generated_files(output_dir)

        assert result.removed == [generated]
        assert not generated.exists()
        assert handwritten.exists()
        assert (output_dir / "plan.json").exists()
        assert result.skipped == []

    def test_missing_directory(self, tmp_path):
        result = clear_generated_files(tmp_path / "nope")
        assert result.removed == [] and result.skipped == []

    def test_output_path_is_a_file(self, tmp_path):
        path = _generated(tmp_path / "analytics")
        result = clear_generated_files(path)
        assert result.removed == []
        assert result.warnings == [f"Skipped {path}: not a directory"]
        assert path.exists()

    def test_subdirectories_untouched(self, output_dir):
        nested = output_dir / "nested"
        nested.mkdir()
        inner = _generated(nested / "index.ts")
        clear_generated_files(output_dir)
        assert inner.exists()

    def test_binary_files_skipped_with_note(self, output_dir):
        blob = output_dir / "logo.png"
        blob.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\x00\x00")
        result = clear_generated_files(output_dir)
        assert blob.exists()
        assert result.skipped == [(blob, "not UTF-8 text")]
        assert result.warnings == [f"Skipped {blob}: not UTF-8 text"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinks_not_followed(self, output_dir, tmp_path):
        target = _generated(tmp_path / "elsewhere.py")
        link = output_dir / "link.py"
        link.symlink_to(target)
        clear_generated_files(output_dir)
        assert link.is_symlink()
        assert target.exists()

    def test_custom_marker(self, output_dir):
        path = output_dir / "custom.txt"
        path.write_text("GENERATED\n")
        assert clear_generated_files(output_dir, marker="GENERATED").removed == [path]
