"""
Tests for the publish command.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from invoke import Context, Exit

from gallerypub.cli.publish import namespace, publish, program
from gallerypub.services.publisher import PublishResult


def test_task_is_registered():
    assert "publish" in namespace.task_names
    assert program.namespace is namespace


def test_dry_run_lists_files(source_dir: Path, tmp_path: Path, capsys):
    publish(Context(), directory=str(source_dir), gallery="senior-night", env_file=str(tmp_path / "none.env"), dry_run=True)

    output = capsys.readouterr().out
    assert "Dry Run Mode" in output
    for name in ("a.png", "b.png", "c.png"):
        assert name in output
    assert len(list(source_dir.glob("*.png"))) == 3


def test_env_file_is_loaded(source_dir: Path, tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GALLERY_DB_PATH", raising=False)
    env_file = tmp_path / "gallery.env"
    env_file.write_text(f"GALLERY_DB_PATH={tmp_path / 'from-env.duckdb'}\n")

    with patch.dict(os.environ), patch("gallerypub.cli.publish.GalleryPublisher") as mock_publisher_class:
        mock_publisher_class.return_value.publish.return_value = PublishResult(gallery="g")
        publish(Context(), directory=str(source_dir), gallery="g", env_file=str(env_file))

        assert os.environ["GALLERY_DB_PATH"] == str(tmp_path / "from-env.duckdb")


def test_flags_build_config(source_dir: Path, tmp_path: Path):
    with patch("gallerypub.cli.publish.GalleryPublisher") as mock_publisher_class:
        mock_publisher_class.return_value.publish.return_value = PublishResult(gallery="g")

        publish(
            Context(),
            directory=str(source_dir),
            gallery="g",
            prefix="attie",
            no_watermark=True,
            no_metadata=True,
            keep_sources=True,
            env_file=str(tmp_path / "none.env"),
        )

    config = mock_publisher_class.call_args.args[0]
    assert config.gallery_name == "g"
    assert config.filename_prefix == "attie"
    assert config.with_watermark is False
    assert config.with_metadata_store is False
    assert config.delete_sources is False
    mock_publisher_class.return_value.publish.assert_called_once_with(dry_run=False)
    mock_publisher_class.return_value.close.assert_called_once()


def test_failure_exits_non_zero(tmp_path: Path):
    empty = tmp_path / "empty"
    empty.mkdir()

    with pytest.raises(Exit) as exc_info:
        publish(Context(), directory=str(empty), gallery="g", env_file=str(tmp_path / "none.env"), dry_run=True)

    assert exc_info.value.code == 1
    assert "No images found" in str(exc_info.value.message)
