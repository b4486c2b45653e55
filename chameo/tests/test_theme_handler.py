"""
Tests for theme_handler.py

Config files are written to tmp_path. Running kitty instances are simulated by patching
signal_processes where theme_handler looks it up, so no real process is ever signalled.
"""

import signal
import unittest.mock

import pytest

# following entities are tested in this module:
from chameo.theme_handler import ThemeMapping
from chameo.theme_handler import KittyConfig
from chameo.theme_handler import KittyTarget
from chameo.theme_handler import HyprlandTarget
from chameo.theme_handler import DirectiveMatcher
from chameo.theme_handler import apply_theme
from chameo.theme_handler import backup
from chameo.theme_handler import write_atomic
from chameo.theme_handler import KITTY_HEADER
from chameo.palette import Palette
from chameo.errors import TargetNotFound

HYPRLAND_CONF = """\
monitor=,preferred,auto,1

general {
    gaps_in = 5
    col.active_border = rgba(33ccffee) rgba(00ff99ee) 45deg
    col.inactive_border = rgba(595959aa)
    layout = dwindle
}
"""


@pytest.fixture
def palette() -> Palette:
    """16 distinct grays, index i is '#iiiiii' in hex digits."""

    return Palette(colors=tuple(f"#{i:X}{i:X}{i:X}{i:X}{i:X}{i:X}" for i in range(16)))


@pytest.fixture
def kitty_conf(tmp_path):
    return tmp_path / "kitty" / "kitty.conf"


@pytest.fixture
def hyprland_conf(tmp_path):
    path = tmp_path / "hypr" / "hyprland.conf"
    path.parent.mkdir(parents=True)
    path.write_text(HYPRLAND_CONF)
    return path


"""
Mapping
"""


def test_default_mapping_roles(palette):

    roles = ThemeMapping().roles(palette)

    assert roles["background"] == "#000000"
    assert roles["foreground"] == "#FFFFFF"
    assert roles["cursor"] == "#777777"
    assert roles["selection_background"] == "#888888"
    assert roles["selection_foreground"] == "#000000"
    assert roles["active_border"] == "#EEEEEE"
    assert roles["inactive_border"] == "#000000"


"""
kitty
"""


def test_kitty_serialize_contains_every_color(palette):

    text = KittyConfig().with_palette(palette).serialize()

    assert text.startswith(KITTY_HEADER)
    assert "background #000000\n" in text
    assert "foreground #FFFFFF\n" in text
    assert "cursor #777777\n" in text
    assert "selection_background #888888\n" in text
    assert "selection_foreground #000000\n" in text
    for index in range(16):
        assert f"color{index} {palette[index]}\n" in text
    assert "background_opacity 0.85\n" in text
    assert "background_blur 1\n" in text


def test_kitty_parse_preserves_user_lines():

    text = "\n".join(
        [
            "font_family JetBrains Mono",
            "background #123456",
            "color3 #abcdef",
            "# my own comment",
            "background_opacity 0.95",
            "cursor_text_color background",
            "map ctrl+shift+t new_tab",
        ]
    )

    config = KittyConfig.parse(text)

    assert config.colors == {"background": "#123456", "color3": "#ABCDEF"}
    assert config.preserved == [
        "font_family JetBrains Mono",
        "# my own comment",
        "background_opacity 0.95",
        "cursor_text_color background",
        "map ctrl+shift+t new_tab",
    ]


def test_kitty_reapplying_is_stable(palette):

    first = KittyConfig.parse("font_size 11.0\n").with_palette(palette).serialize()
    second = KittyConfig.parse(first).with_palette(palette).serialize()

    assert first == second
    assert second.count("font_size 11.0") == 1
    assert second.count("background_opacity 0.85") == 1


@unittest.mock.patch("chameo.theme_handler.signal_processes", autospec=True)
def test_kitty_target_first_write(mock_signal, kitty_conf, palette):

    mock_signal.return_value = []

    path = KittyTarget(kitty_conf).apply(palette)

    assert path == kitty_conf
    assert "color15 #FFFFFF" in kitty_conf.read_text()
    assert not kitty_conf.with_name("kitty.conf.backup").exists()
    mock_signal.assert_called_once_with("kitty", signal.SIGUSR1)


@unittest.mock.patch("chameo.theme_handler.signal_processes", autospec=True)
def test_kitty_target_backs_up_and_keeps_settings(mock_signal, kitty_conf, palette):

    original = "background #111111\nbackground_opacity 0.95\nfont_size 12\n"
    kitty_conf.parent.mkdir(parents=True)
    kitty_conf.write_text(original)
    mock_signal.return_value = [101, 202]

    KittyTarget(kitty_conf).apply(palette)

    text = kitty_conf.read_text()
    assert kitty_conf.with_name("kitty.conf.backup").read_text() == original
    assert "background #000000" in text
    assert "background #111111" not in text
    assert "background_opacity 0.95" in text.splitlines()
    assert "font_size 12" in text.splitlines()
    # the user's opacity comes after the generated default, so kitty uses the user's value
    lines = text.splitlines()
    assert lines.index("background_opacity 0.95") > lines.index("background_opacity 0.85")


def test_write_atomic_follows_symlink(tmp_path):

    real = tmp_path / "dotfiles" / "kitty.conf"
    real.parent.mkdir()
    real.write_text("old")
    link = tmp_path / "kitty.conf"
    link.symlink_to(real)

    write_atomic(link, "new")

    assert link.is_symlink()
    assert real.read_text() == "new"
    assert sorted(p.name for p in real.parent.iterdir()) == ["kitty.conf"]


def test_backup_missing_file(tmp_path):

    assert backup(tmp_path / "nothing.conf") is None


"""
Hyprland
"""


@pytest.mark.parametrize(
    "line, expected",
    [
        (
            "    col.active_border = rgba(33ccffee) rgba(00ff99ee) 45deg\n",
            "    col.active_border = rgba(ABCDEFee) rgba(00ff99ee) 45deg\n",
        ),
        (
            "col.active_border=rgba(33ccff)  # bright\n",
            "col.active_border=rgba(ABCDEFee)  # bright\n",
        ),
    ],
)
def test_directive_substitute(line, expected):

    patched, replaced = DirectiveMatcher("col.active_border").substitute(line, "#abcdef", "ee")

    assert replaced
    assert patched == expected


@pytest.mark.parametrize(
    "line",
    [
        "# col.active_border = rgba(33ccffee)\n",
        "col.active_border = 0xff33ccff\n",
        "col.inactive_border = rgba(595959aa)\n",
        "col.active_border = rgba(51, 204, 255, 0.9)\n",
        "col.active_border = rgb(33ccff)\n",
    ],
)
def test_directive_no_match(line):

    assert DirectiveMatcher("col.active_border").substitute(line, "#abcdef", "ee") == (
        line,
        False,
    )


def test_directive_match_reads_value():

    directive = DirectiveMatcher("col.inactive_border").match(
        "  col.inactive_border = rgba(595959AA)"
    )

    assert directive.color == "#595959"
    assert directive.alpha == "aa"


def test_hyprland_target_updates_borders(hyprland_conf, palette):

    HyprlandTarget(hyprland_conf).apply(palette)

    text = hyprland_conf.read_text()
    assert "    col.active_border = rgba(EEEEEEee) rgba(00ff99ee) 45deg\n" in text
    assert "    col.inactive_border = rgba(000000aa)\n" in text
    assert hyprland_conf.with_name("hyprland.conf.backup").read_text() == HYPRLAND_CONF

    # everything except the two border lines is untouched
    untouched = [line for line in HYPRLAND_CONF.splitlines() if "border" not in line]
    assert [line for line in text.splitlines() if "border" not in line] == untouched


def test_hyprland_target_without_border_lines(tmp_path, palette):

    path = tmp_path / "hyprland.conf"
    path.write_text("monitor=,preferred,auto,1\n")

    HyprlandTarget(path).apply(palette)

    assert path.read_text() == "monitor=,preferred,auto,1\n"


def test_hyprland_target_missing_file(tmp_path, palette):

    with pytest.raises(TargetNotFound):
        HyprlandTarget(tmp_path / "hyprland.conf").apply(palette)


"""
apply_theme
"""


@unittest.mock.patch("chameo.theme_handler.signal_processes", autospec=True)
def test_apply_theme_skips_failed_target(mock_signal, tmp_path, kitty_conf, palette):

    mock_signal.return_value = []
    targets = [HyprlandTarget(tmp_path / "missing.conf"), KittyTarget(kitty_conf)]

    results = apply_theme(palette, targets)

    assert not results["hyprland"].ok
    assert isinstance(results["hyprland"].error, TargetNotFound)
    assert results["kitty"].ok
    assert kitty_conf.is_file()


@unittest.mock.patch("chameo.theme_handler.signal_processes", autospec=True)
def test_apply_theme_non_utf8_config(mock_signal, kitty_conf, hyprland_conf, palette):
    """A Latin-1 byte in kitty.conf is kept as-is and doesn't stop the Hyprland target."""

    mock_signal.return_value = []
    kitty_conf.parent.mkdir(parents=True)
    kitty_conf.write_bytes(b"font_family Caf\xe9 Mono\nbackground #111111\n")

    results = apply_theme(palette, [KittyTarget(kitty_conf), HyprlandTarget(hyprland_conf)])

    assert results["kitty"].ok
    assert results["hyprland"].ok
    assert b"font_family Caf\xe9 Mono\n" in kitty_conf.read_bytes()
    assert b"background #000000\n" in kitty_conf.read_bytes()
    assert "rgba(EEEEEEee)" in hyprland_conf.read_text()
