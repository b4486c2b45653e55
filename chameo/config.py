"""
chameo Configuration Management

This file handles utilities related to generating and loading variables from a configuration file.
ChameoConfig should be loaded by the CLI before the pipeline runs. Raise a ChameoConfigError for
any issues that arise in processing or retrieving these configuration variables.

The configuration file is "config.json" and is saved at ~/.config/chameo/config.json as per
modern Linux app conventions. Set CHAMEO_CONFIG_DIR in the environment to point chameo at
another directory (handy for systemd units and for tests).
"""

import json
import os
from dataclasses import dataclass
from dataclasses import asdict
from dataclasses import fields
from pathlib import Path, PurePath

from chameo.errors import ChameoError
from chameo.console import warn


class ChameoConfigError(ChameoError):
    """Raise when an issue occurs with handling chameo configuration."""

    pass


class PathEncoder(json.JSONEncoder):
    """
    custom encoder adds support for serializing pathlib objects as strings
    """

    def default(self, o):
        if isinstance(o, PurePath):
            return str(o)

        else:
            return json.JSONEncoder.default(self, o)


PATH_FIELDS = (
    "CHAMEO_CONFIG_DIR",
    "CHAMEO_WALLPAPER_DIR",
    "KITTY_CONFIG",
    "HYPRLAND_CONFIG",
)


@dataclass
class ChameoConfig:
    """
    Dataclass to represent configuration variables for chameo. Provides a namespace and identifiers
    for the directories and tunables chameo uses on every run.

    The pattern applied is to instantiate a ChameoConfig by supplying variadic keyword arguments from
    a deserialized json object. That way application code references the identifiers in the
    dataclass without ever touching brittle dictionary keys. The json object is kept flat.
    """

    CHAMEO_CONFIG_DIR: Path = Path("~/.config/chameo").expanduser()
    CHAMEO_WALLPAPER_DIR: Path = Path("~/Pictures/chameo").expanduser()
    KITTY_CONFIG: Path = Path("~/.config/kitty/kitty.conf").expanduser()
    HYPRLAND_CONFIG: Path = Path("~/.config/hypr/hyprland.conf").expanduser()

    CATALOG_URL: str = "https://wallhaven.cc/api/v1/search"
    API_KEY: str = ""
    REQUEST_TIMEOUT: float = 30.0

    # 2K minimum
    MIN_WIDTH: int = 2560
    MIN_HEIGHT: int = 1440
    MAX_ATTEMPTS: int = 10

    PALETTE_ORDER: str = "raw"
    LOCK_TIMEOUT: float = 5.0

    TRANSITION_TYPE: str = "random"
    TRANSITION_POS: str = "center"

    def __post_init__(self):
        """
        Handle the case where a new ChameoConfig is created from JSON, which cannot
        deserialize a str into a Path.
        """

        for name in PATH_FIELDS:
            setattr(self, name, Path(getattr(self, name)).expanduser())

        if self.PALETTE_ORDER not in ("raw", "sorted"):
            raise ChameoConfigError(
                f"PALETTE_ORDER must be 'raw' or 'sorted', got '{self.PALETTE_ORDER}'."
            )

    @property
    def lock_file(self) -> Path:
        return self.CHAMEO_WALLPAPER_DIR / ".chameo.lock"

    def generate_config_json(self) -> Path:
        """
        Write the ChameoConfig to file, serializing to JSON. Returns filepath of written
        config.json file located at CHAMEO_CONFIG_DIR.

        Warning: will overwrite any existing config file for chameo.
        """

        try:
            to_json = json.dumps(
                asdict(self), sort_keys=True, indent=4, cls=PathEncoder
            )

        except TypeError as error:
            raise ChameoConfigError(
                f"There was an error trying to serialize config data to JSON: {error}"
            )

        try:
            self.CHAMEO_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

            dest_file = self.CHAMEO_CONFIG_DIR / "config.json"
            with open(dest_file, "w") as file:

                file.write(to_json)

        except OSError as error:
            raise ChameoConfigError(
                f"There was an error saving the configuration file: {error}."
            )

        return dest_file


def config_dir() -> Path:
    """Directory holding config.json, from CHAMEO_CONFIG_DIR or the default location."""

    try:
        return Path(os.environ["CHAMEO_CONFIG_DIR"]).expanduser()

    except KeyError:
        return Path("~/.config/chameo").expanduser()


def init() -> ChameoConfig:
    """load the chameo config, generating a default one on first use"""

    try:
        config: ChameoConfig = load_config()

    except FileNotFoundError:

        config = ChameoConfig(CHAMEO_CONFIG_DIR=config_dir())
        config.generate_config_json()

    return config


def load_config() -> ChameoConfig:
    """
    Load config.json from CHAMEO_CONFIG_DIR (or ~/.config/chameo) and instantiate variables as a
    ChameoConfig dataclass. FileNotFoundError propagates so init() can generate a fresh file;
    any other problem with the file raises ChameoConfigError.
    """

    config_src = config_dir() / "config.json"

    try:
        with config_src.open("r") as file:

            from_json = json.loads(file.read())

    except json.JSONDecodeError as error:
        raise ChameoConfigError(f"There was an issue reading the config: {error}")

    # ignore keys this version doesn't know about rather than failing the whole run
    known = {field.name for field in fields(ChameoConfig)}
    unknown = set(from_json) - known
    if unknown:
        warn(f"ignoring unknown config keys: {', '.join(sorted(unknown))}")

    try:
        return ChameoConfig(**{k: v for k, v in from_json.items() if k in known})

    except TypeError as error:
        raise ChameoConfigError(f"There was an issue loading the config: {error}")
