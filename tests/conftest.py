"""
Pytest configuration and fixtures for gallerypub tests.
"""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from PIL import Image

from gallerypub.config import get_config


@pytest.fixture(autouse=True)
def clear_config_cache() -> Generator[None, None, None]:
    """Environment patches must not leak through the config cache."""
    get_config().clear_cache()
    yield
    get_config().clear_cache()


@pytest.fixture
def storage_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Provide the object storage settings."""
    env = {"GCS_BUCKET": "test-gallery-bucket", "GOOGLE_CLOUD_PROJECT": "test-project"}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture
def make_image() -> Callable[..., Path]:
    """Write a solid colour image to disk and return its path."""

    def _make_image(
        path: Path, size: tuple[int, int] = (400, 300), color: str | tuple = "gray", mode: str = "RGB"
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        image = Image.new(mode, size, color=color)
        image.save(path)
        return path

    return _make_image


@pytest.fixture
def source_dir(tmp_path: Path, make_image: Callable[..., Path]) -> Path:
    """A source folder holding three PNG pictures and one unrelated file."""
    folder = tmp_path / "exports"
    make_image(folder / "b.png", (400, 300))
    make_image(folder / "a.png", (300, 400))
    make_image(folder / "c.png", (250, 250))
    (folder / "notes.txt").write_text("not a picture")
    return folder
