"""
Theme Handler

Writes a Palette into the configs of the programs that should follow the wallpaper:

    kitty     ~/.config/kitty/kitty.conf    regenerated from a structured model
    Hyprland  ~/.config/hypr/hyprland.conf  only the two border color lines are rewritten

Which palette entry ends up in which role is decided by a fixed ThemeMapping, not by any
contrast analysis. With the default 'raw' palette order the quantizer decides what sits at
index 0 and 15, so background and foreground are only approximately dark and light. Use the
'sorted' palette order to get a guaranteed dark background and light foreground.

Every target backs up the file it is about to change to '<name>.backup' and replaces the file
in one rename so a running program never reads a half-written config.
"""

import os
import re
import shutil
import signal
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from chameo.errors import TargetNotFound
from chameo.palette import Palette
from chameo.palette import PALETTE_SIZE
from chameo.palette import normalize_hex
from chameo.wallpaper_handler import signal_processes
from chameo.console import describe
from chameo.console import confirm_success
from chameo.console import warn


@dataclass(frozen=True)
class ThemeMapping:
    """Palette index used for each semantic role."""

    background: int = 0
    foreground: int = 15
    cursor: int = 7
    selection_background: int = 8
    selection_foreground: int = 0
    active_border: int = 14
    inactive_border: int = 0

    def roles(self, palette: Palette) -> dict[str, str]:
        return {role: palette[index] for role, index in self.__dict__.items()}


DEFAULT_MAPPING = ThemeMapping()


def backup(path: Path) -> Path | None:
    """
    Copy path to a sibling '<name>.backup', replacing any previous backup. Returns the backup
    path, or None if there was nothing to back up.
    """

    if not path.is_file():
        return None

    backup_path = path.with_name(f"{path.name}.backup")
    shutil.copy2(path, backup_path)
    return backup_path


def read_config(path: Path) -> str:
    """
    Read a config as UTF-8. Undecodable bytes (a Latin-1 comment, say) are carried as
    surrogates so write_atomic puts them back unchanged.
    """

    return path.read_text(encoding="utf-8", errors="surrogateescape")


def write_atomic(path: Path, text: str):
    """Write text to a temporary sibling of path and rename it over path."""

    # follow symlinks so a dotfiles-managed config stays a symlink
    path = path.resolve()
    partial_path = path.with_name(f".{path.name}.chameo")
    try:
        partial_path.write_text(text, encoding="utf-8", errors="surrogateescape")
        if path.exists():
            shutil.copymode(path, partial_path)
        os.replace(partial_path, path)
    finally:
        partial_path.unlink(missing_ok=True)


"""
kitty
"""

KITTY_HEADER = "# Auto-generated kitty color configuration from wallpaper"
KITTY_PRESERVED_MARKER = "# Previous custom settings (non-color related)"
GENERATED_COMMENTS = (
    KITTY_HEADER,
    KITTY_PRESERVED_MARKER,
    "# Generated by chameo",
    "# Include any custom kitty settings that were previously defined",
    "# You may want to add your custom settings below this line",
    "# Generated on",
)

KITTY_COLOR_KEYS = (
    "foreground",
    "background",
    "cursor",
    *[f"color{index}" for index in range(PALETTE_SIZE)],
    "selection_foreground",
    "selection_background",
)

AMBIENT_SETTINGS = (
    ("background_opacity", "0.85"),
    ("background_blur", "1"),
)


def line_key(line: str) -> str:
    parts = line.split(maxsplit=1)
    return parts[0] if parts else ""


@dataclass
class KittyConfig:
    """
    kitty.conf split into what chameo owns and what it doesn't. colors maps every key in
    KITTY_COLOR_KEYS to a hex color, preserved holds every other line of the file verbatim
    and in order.
    """

    colors: dict[str, str] = field(default_factory=dict)
    preserved: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "KittyConfig":
        """
        Read a kitty.conf. Color keys go into colors, lines chameo generated itself (its comments,
        its ambient defaults, blank lines) are dropped, anything else is preserved.
        """

        config = cls()
        generated_ambient = {f"{key} {value}" for key, value in AMBIENT_SETTINGS}

        for raw_line in text.splitlines():
            line = raw_line.rstrip()
            stripped = line.strip()

            if not stripped:
                continue

            if stripped.startswith(GENERATED_COMMENTS):
                continue

            key = line_key(stripped)
            if key in KITTY_COLOR_KEYS:
                parts = stripped.split(maxsplit=1)
                value = parts[1] if len(parts) > 1 else ""
                try:
                    config.colors[key] = normalize_hex(value)
                except ValueError:
                    # kitty also accepts names like 'none' for some keys, keep those as-is
                    config.colors[key] = value
                continue

            if stripped in generated_ambient:
                continue

            config.preserved.append(line)

        return config

    def with_palette(self, palette: Palette, mapping: ThemeMapping = DEFAULT_MAPPING):
        """Return a copy whose colors come from palette. Preserved lines are kept."""

        roles = mapping.roles(palette)
        colors = {
            "foreground": roles["foreground"],
            "background": roles["background"],
            "cursor": roles["cursor"],
        }
        colors.update({f"color{index}": palette[index] for index in range(PALETTE_SIZE)})
        colors["selection_foreground"] = roles["selection_foreground"]
        colors["selection_background"] = roles["selection_background"]

        return KittyConfig(colors=colors, preserved=list(self.preserved))

    def serialize(self) -> str:
        """Render the config. The same model always renders to the same text."""

        lines = [KITTY_HEADER, "# Generated by chameo", ""]
        lines += [
            f"{key} {self.colors[key]}" for key in KITTY_COLOR_KEYS if key in self.colors
        ]
        lines += [
            "",
            "# Include any custom kitty settings that were previously defined",
            "# You may want to add your custom settings below this line",
            "",
        ]
        lines += [f"{key} {value}" for key, value in AMBIENT_SETTINGS]

        if self.preserved:
            lines += ["", KITTY_PRESERVED_MARKER]
            lines += self.preserved

        return "\n".join(lines) + "\n"


"""
Hyprland
"""


@dataclass(frozen=True)
class Directive:
    """One 'key = rgba(RRGGBBAA)' occurrence found on a config line."""

    key: str
    color: str
    alpha: str
    start: int
    end: int

    def render(self, color: str, alpha: str) -> str:
        return f"rgba({normalize_hex(color)[1:]}{alpha})"


class DirectiveMatcher:
    """
    Finds and rewrites the rgba() value of a single Hyprland directive, e.g.

        col.active_border = rgba(33ccffee) rgba(00ff99ee) 45deg

    Only the first rgba() after the '=' is replaced; indentation, gradients and trailing
    comments stay as they are.

    Only the hex form rgba(RRGGBB) / rgba(RRGGBBAA) is recognised. A border written as
    decimal rgba(r, g, b, a), rgb(...) or 0xAARRGGBB is left alone and HyprlandTarget warns
    that it found nothing to update.
    """

    def __init__(self, key: str):
        self.key = key
        self.pattern = re.compile(
            rf"(?P<lead>^\s*{re.escape(key)}\s*=\s*)"
            r"rgba\((?P<color>[0-9a-fA-F]{6})(?P<alpha>[0-9a-fA-F]{2})?\)"
        )

    def match(self, line: str) -> Directive | None:
        found = self.pattern.search(line)
        if found is None:
            return None

        return Directive(
            key=self.key,
            color=f"#{found.group('color').upper()}",
            alpha=(found.group("alpha") or "").lower(),
            start=found.end("lead"),
            end=found.end(),
        )

    def substitute(self, line: str, color: str, alpha: str) -> tuple[str, bool]:
        """Return (line, True) with the value replaced, or (line, False) if it didn't match."""

        directive = self.match(line)
        if directive is None:
            return line, False

        rendered = directive.render(color, alpha)
        return line[: directive.start] + rendered + line[directive.end :], True


ACTIVE_ALPHA = "ee"
INACTIVE_ALPHA = "aa"


"""
Targets
"""


@dataclass
class TargetResult:
    name: str
    path: Path
    ok: bool
    error: Exception = None


class KittyTarget:
    """
    Structured target: kitty.conf is regenerated in full, keeping the user's non-color lines.
    Running kitty instances are sent SIGUSR1 which makes them reload their config.
    """

    name = "kitty"

    def __init__(
        self,
        path: Path,
        process_name: str = "kitty",
        reload_signal: int = signal.SIGUSR1,
    ):
        self.path = Path(path).expanduser()
        self.process_name = process_name
        self.reload_signal = reload_signal

    def apply(self, palette: Palette, mapping: ThemeMapping = DEFAULT_MAPPING) -> Path:
        describe(":art-emoji: applying colors to kitty terminal configuration...")

        self.path.parent.mkdir(parents=True, exist_ok=True)

        existing = KittyConfig()
        backup_path = backup(self.path)
        if backup_path is not None:
            describe(f"backed up existing kitty config to {backup_path}")
            existing = KittyConfig.parse(read_config(backup_path))

        write_atomic(self.path, existing.with_palette(palette, mapping).serialize())
        confirm_success(f":white_check_mark-emoji: kitty colors saved to {self.path}")

        self.reload()
        return self.path

    def reload(self) -> list[int]:
        pids = signal_processes(self.process_name, self.reload_signal)
        if pids:
            describe(f"reloaded kitty configuration ({len(pids)} running)")
        return pids


class HyprlandTarget:
    """
    Directive target: only the active and inactive border color lines of hyprland.conf are
    rewritten. The file has to exist already.
    """

    name = "hyprland"

    def __init__(
        self,
        path: Path,
        active_key: str = "col.active_border",
        inactive_key: str = "col.inactive_border",
    ):
        self.path = Path(path).expanduser()
        self.active = DirectiveMatcher(active_key)
        self.inactive = DirectiveMatcher(inactive_key)

    def patch(self, text: str, active: str, inactive: str) -> tuple[str, int]:
        """Return the patched text and how many lines were changed."""

        lines = text.splitlines(keepends=True)
        changed = 0

        for number, line in enumerate(lines):
            for matcher, color, alpha in (
                (self.active, active, ACTIVE_ALPHA),
                (self.inactive, inactive, INACTIVE_ALPHA),
            ):
                line, replaced = matcher.substitute(line, color, alpha)
                if replaced:
                    changed += 1
                    break
            lines[number] = line

        return "".join(lines), changed

    def apply(self, palette: Palette, mapping: ThemeMapping = DEFAULT_MAPPING) -> Path:
        describe(":art-emoji: applying wallpaper colors to Hyprland configuration...")

        if not self.path.is_file():
            raise TargetNotFound(f"Hyprland config not found at {self.path}")

        roles = mapping.roles(palette)
        backup_path = backup(self.path)
        describe(f"backed up existing Hyprland config to {backup_path}")

        text, changed = self.patch(
            read_config(backup_path), roles["active_border"], roles["inactive_border"]
        )

        if not changed:
            warn(f"no border color lines found in {self.path}, nothing to update")
            return self.path

        write_atomic(self.path, text)
        confirm_success(
            f":white_check_mark-emoji: Hyprland border colors updated "
            f"(active {roles['active_border']}, inactive {roles['inactive_border']})"
        )
        describe("to apply these changes reload Hyprland (hyprctl reload) or restart it")

        return self.path


def default_targets(kitty_config: Path, hyprland_config: Path) -> list:
    return [KittyTarget(kitty_config), HyprlandTarget(hyprland_config)]


def apply_theme(
    palette: Palette, targets: list, mapping: ThemeMapping = DEFAULT_MAPPING
) -> dict[str, TargetResult]:
    """
    Apply palette to every target. A target that fails is reported and skipped, the others
    still run. Returns a TargetResult per target name.
    """

    results = {}

    for target in targets:
        try:
            target.apply(palette, mapping)
            results[target.name] = TargetResult(name=target.name, path=target.path, ok=True)

        except (TargetNotFound, OSError, UnicodeError) as error:
            warn(f"skipping {target.name}: {error}")
            results[target.name] = TargetResult(
                name=target.name, path=target.path, ok=False, error=error
            )

    return results
