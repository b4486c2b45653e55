"""
conftest.py

Test configuration for chameo tests.

Defines Pytest fixtures for supplying test data to tests across the entire test suite. Test
images are drawn with Pillow into pytest's tmp_path so no binary test data lives in the repo.
Fixtures used within only a single module are defined directly in that module.
"""

import io
import subprocess
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from chameo.catalog_handler import Candidate
from chameo.config import ChameoConfig

QUADRANT_COLORS = ((200, 30, 30), (30, 200, 30), (30, 30, 200), (240, 240, 240))


def draw_quadrants(size=(64, 64), mode="RGB") -> Image.Image:
    """Four flat colored quadrants, so quantizing yields exactly QUADRANT_COLORS."""

    width, height = size
    image = Image.new(mode, size)
    boxes = (
        (0, 0, width // 2, height // 2),
        (width // 2, 0, width, height // 2),
        (0, height // 2, width // 2, height),
        (width // 2, height // 2, width, height),
    )
    for box, color in zip(boxes, QUADRANT_COLORS):
        fill = color if mode == "RGB" else (*color, 128)
        image.paste(fill, box)
    return image


@pytest.fixture
def test_image(tmp_path) -> Path:
    """A small PNG with four flat colors."""

    path = tmp_path / "quadrants.png"
    draw_quadrants().save(path)
    return path


@pytest.fixture
def image_bytes() -> bytes:
    """PNG encoded bytes, used as the body of mocked downloads."""

    buffer = io.BytesIO()
    draw_quadrants().save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def candidates() -> list[Candidate]:
    """50 catalog entries, 3 of which are at least 2560x1440."""

    small = [
        Candidate(url=f"https://w.wallhaven.cc/full/aa/wallhaven-s{i}.jpg", width=1920, height=1080)
        for i in range(47)
    ]
    large = [
        Candidate(url=f"https://w.wallhaven.cc/full/bb/wallhaven-l{i}.png", width=3840, height=2160)
        for i in range(3)
    ]
    return small + large


@pytest.fixture
def chameo_config(tmp_path, monkeypatch) -> ChameoConfig:
    """A config whose every path lives under tmp_path. Also written to CHAMEO_CONFIG_DIR."""

    config_dir = tmp_path / "config"
    monkeypatch.setenv("CHAMEO_CONFIG_DIR", str(config_dir))

    config = ChameoConfig(
        CHAMEO_CONFIG_DIR=config_dir,
        CHAMEO_WALLPAPER_DIR=tmp_path / "wallpapers",
        KITTY_CONFIG=tmp_path / "kitty" / "kitty.conf",
        HYPRLAND_CONFIG=tmp_path / "hypr" / "hyprland.conf",
        LOCK_TIMEOUT=0.5,
    )
    config.generate_config_json()
    return config


@pytest.fixture
def fake_system(monkeypatch):
    """
    Stand in for the external programs chameo drives. Every swww / pgrep invocation is recorded
    in calls. running maps a process name to the PIDs pgrep should report for it.
    """

    calls = []
    running = {"swww-daemon": [4242]}

    def fake_run(cmd, *args, **kwargs):
        calls.append(list(cmd))

        if Path(cmd[0]).name == "pgrep":
            pids = running.get(cmd[-1], [])
            return subprocess.CompletedProcess(
                cmd,
                0 if pids else 1,
                stdout="".join(f"{pid}\n" for pid in pids),
                stderr="",
            )

        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    popen = MagicMock()

    monkeypatch.setattr("chameo.wallpaper_handler.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("chameo.wallpaper_handler.subprocess.run", fake_run)
    monkeypatch.setattr("chameo.wallpaper_handler.subprocess.Popen", popen)
    monkeypatch.setattr("chameo.wallpaper_handler.time.sleep", lambda seconds: None)

    def swww_calls():
        return [call for call in calls if Path(call[0]).name == "swww"]

    return SimpleNamespace(calls=calls, running=running, popen=popen, swww_calls=swww_calls)


@pytest.fixture
def fake_wallhaven(monkeypatch, candidates, image_bytes):
    """
    Stand in for wallhaven. Catalog queries (requests carrying params) answer with candidates,
    any other GET is a download answered with image_bytes. Put a query number (1 based) in
    fail_on to make that query fail with a connection error.
    """

    state = SimpleNamespace(candidates=candidates, queries=0, fail_on=set(), downloads=[])

    def fake_get(url, params=None, headers=None, timeout=None):
        response = MagicMock()

        if params is not None:
            state.queries += 1
            if state.queries in state.fail_on:
                raise requests.exceptions.ConnectionError("offline")

            response.json.return_value = {
                "data": [
                    {"path": c.url, "dimension_x": c.width, "dimension_y": c.height}
                    for c in state.candidates
                ]
            }

        else:
            state.downloads.append(url)
            response.content = image_bytes

        return response

    monkeypatch.setattr("chameo.catalog_handler.requests.get", fake_get)
    return state
