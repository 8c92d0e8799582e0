"""Tests for rendering and writing the ``.targets`` artifact.

Covers:
- Compile item filtering and root-relative naming
- XML rendering and escaping
- Artifact path derivation
- Atomic and direct write flows
- Project file touching
"""

from __future__ import annotations

import os
import shutil
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from afterorder.core.config import ResolverConfig
from afterorder.core.output_writer import (
    ArtifactWriter,
    WriteResult,
    compile_items,
    render_targets,
    targets_path,
    touch,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def writer() -> ArtifactWriter:
    """Create an ArtifactWriter with atomic writes enabled."""
    return ArtifactWriter()


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Make the temporary directory the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ============================================================================
# Test Class: TestRendering
# ============================================================================


class TestRendering:
    """Artifact content tests."""

    def test_items_are_relative_to_root(self, in_tmp: Path):
        order = ["proj/Types.fs", "proj/sub/Util.fs", "proj/Main.fs"]
        assert compile_items("proj", order) == ["Types.fs", "sub/Util.fs", "Main.fs"]

    def test_auxiliary_files_are_filtered(self, in_tmp: Path):
        order = ["proj/Notes.txt", "proj/A.fs", "proj/Module.TXT"]
        items = compile_items("proj", order, ResolverConfig().is_auxiliary)
        assert items == ["A.fs"]

    def test_files_outside_root_keep_parent_segments(self, in_tmp: Path):
        assert compile_items("proj", ["proj/../shared/A.fs"]) == ["../shared/A.fs"]

    def test_render_targets(self, in_tmp: Path):
        content = render_targets("proj", ["proj/Types.fs", "proj/sub/Util.fs", "proj/Main.fs"])
        assert content == (
            '<Project><ItemGroup><Compile Include="Types.fs;sub/Util.fs;Main.fs"/>'
            "</ItemGroup></Project>"
        )

    def test_render_empty_order(self, in_tmp: Path):
        assert render_targets("proj", []) == (
            '<Project><ItemGroup><Compile Include=""/></ItemGroup></Project>'
        )

    def test_special_characters_are_escaped(self, in_tmp: Path):
        content = render_targets("proj", ["proj/A&B.fs", "proj/<C>.fs"])
        assert content == (
            '<Project><ItemGroup><Compile Include="A&amp;B.fs;&lt;C&gt;.fs"/>'
            "</ItemGroup></Project>"
        )

    def test_absolute_root(self, tmp_path: Path):
        root = tmp_path.as_posix()
        content = render_targets(root, [f"{root}/A.fs", f"{root}/b/B.fs"])
        assert 'Include="A.fs;b/B.fs"' in content


class TestTargetsPath:
    """Artifact location tests."""

    def test_beside_project_file(self):
        assert targets_path("proj/App.fsproj") == Path("proj/App.targets")

    def test_custom_suffix(self):
        assert targets_path("proj/App.fsproj", ".order.targets") == Path("proj/App.order.targets")

    def test_project_in_working_directory(self):
        assert targets_path("App.fsproj") == Path("App.targets")


# ============================================================================
# Test Class: TestArtifactWriter
# ============================================================================


class TestArtifactWriter:
    """Write path and fallback behavior tests."""

    def test_atomic_write_success(self, writer: ArtifactWriter, tmp_path: Path):
        target = tmp_path / "App.targets"
        result = writer.write(target, "<Project/>")

        assert result == WriteResult(success=True, output_path=target, was_atomic=True)
        assert target.read_text(encoding="utf-8") == "<Project/>"

    def test_atomic_write_replaces_existing_file(self, writer: ArtifactWriter, tmp_path: Path):
        target = tmp_path / "App.targets"
        target.write_text("old", encoding="utf-8")

        with patch(
            "afterorder.core.output_writer.shutil.move",
            wraps=shutil.move,
        ) as mock_move:
            result = writer.write(target, "new")

        assert result.success
        assert mock_move.called, "Expected atomic move operation"
        assert target.read_text(encoding="utf-8") == "new"

    def test_no_temp_files_left_behind(self, writer: ArtifactWriter, tmp_path: Path):
        writer.write(tmp_path / "App.targets", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["App.targets"]

    def test_atomic_write_uses_temp_file_in_target_directory(
        self, writer: ArtifactWriter, tmp_path: Path
    ):
        target = tmp_path / "App.targets"

        fake = MagicMock()
        fake.__enter__.return_value = fake
        fake.name = str(tmp_path / ".App.targets.tmp")
        fake.fileno.return_value = 11

        with (
            patch(
                "afterorder.core.output_writer.tempfile.NamedTemporaryFile",
                return_value=fake,
            ) as mock_temp,
            patch("afterorder.core.output_writer.os.fsync") as mock_fsync,
            patch("afterorder.core.output_writer.shutil.move") as mock_move,
        ):
            writer._write_atomic(target, "<Project/>")

        assert mock_temp.call_args.kwargs["dir"] == str(tmp_path)
        fake.write.assert_called_once_with("<Project/>")
        mock_fsync.assert_called_once_with(11)
        mock_move.assert_called_once_with(fake.name, str(target))

    def test_atomic_failure_removes_temp_file(self, writer: ArtifactWriter, tmp_path: Path):
        target = tmp_path / "App.targets"

        def failing_move(source, destination):
            raise OSError("forced move failure")

        with patch("afterorder.core.output_writer.shutil.move", side_effect=failing_move):
            with pytest.raises(OSError, match="forced move failure"):
                writer._write_atomic(target, "content")

        assert list(tmp_path.iterdir()) == []

    def test_fallback_to_direct_write(self, writer: ArtifactWriter, tmp_path: Path):
        target = tmp_path / "App.targets"

        with patch.object(writer, "_write_atomic", side_effect=OSError("atomic failed")):
            result = writer.write(target, "direct")

        assert result.success is True
        assert result.was_atomic is False
        assert target.read_text(encoding="utf-8") == "direct"

    def test_direct_write_when_atomic_disabled(self, tmp_path: Path):
        writer = ArtifactWriter(use_atomic_writes=False)
        target = tmp_path / "App.targets"

        with patch.object(writer, "_write_atomic") as mock_atomic:
            result = writer.write(target, "x")

        assert result.success is True
        assert result.was_atomic is False
        mock_atomic.assert_not_called()

    def test_both_strategies_failing_returns_error(self, writer: ArtifactWriter, tmp_path: Path):
        with (
            patch.object(writer, "_write_atomic", side_effect=OSError("atomic failed")),
            patch.object(writer, "_write_direct", side_effect=OSError("disk full")),
        ):
            result = writer.write(tmp_path / "App.targets", "x")

        assert result.success is False
        assert result.output_path is None
        assert result.error == "disk full"

    def test_missing_directory_is_reported(self, writer: ArtifactWriter, tmp_path: Path):
        result = writer.write(tmp_path / "nope" / "App.targets", "x")

        assert result.success is False
        assert "does not exist" in result.error
        assert not (tmp_path / "nope").exists()

    def test_utf8_content_is_preserved(self, writer: ArtifactWriter, tmp_path: Path):
        target = tmp_path / "App.targets"
        content = '<Project><ItemGroup><Compile Include="Módulo.fs"/></ItemGroup></Project>'

        writer.write(target, content)

        assert target.read_text(encoding="utf-8") == content


class TestTouch:
    """Project file modification time tests."""

    def test_touch_updates_mtime(self, tmp_path: Path):
        project = tmp_path / "App.fsproj"
        project.write_text("<Project/>", encoding="utf-8")
        past = time.time() - 3600
        os.utime(project, (past, past))

        touch(project)

        assert project.stat().st_mtime > past + 1800

    def test_touch_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            touch(tmp_path / "missing.fsproj")
