"""
chameo

Rotate your desktop wallpaper through wallhaven's most popular images and theme kitty and
Hyprland to match.

This module defines the entry point to the chameo CLI. Meant to be run from a systemd timer or
by hand; every run advances the wallpaper by one:

    $ chameo            # top wallpapers of the past month, 16x9
    $ chameo 1w         # top wallpapers of the past week
    $ chameo 1y 21x9    # top ultrawide wallpapers of the past year
"""

import sys
from functools import wraps

import click

from chameo import config as chameo_config
from chameo import pipeline
from chameo.console import fail
from chameo.console import quiet as quiet_console


def catch_errors(func):
    """
    Catch and format errors with the "fail" console template and gracefully
    exit the application with an error code.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as error:
            fail(str(error))
            sys.exit(1)

    return wrapper


@click.command(name="chameo")
@click.argument("timeframe", default="1M")
@click.argument("ratios", default="16x9")
@click.option(
    "--palette-order",
    type=click.Choice(["raw", "sorted"]),
    default=None,
    help="Keep the palette in quantizer order (raw) or sort it dark to light (sorted). Defaults to PALETTE_ORDER from config.json.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Silence status output. Warnings and errors are still printed to stderr.",
)
@click.version_option(package_name="chameo")
@catch_errors
def cli(timeframe: str, ratios: str, palette_order: str, quiet: bool):
    """
    Rotate the wallpaper and re-theme kitty and Hyprland.

    TIMEFRAME is the toplist range to pick from: 1d, 3d, 1w, 1M, 3M, 6M or 1y (default 1M).

    RATIOS is the aspect ratio filter passed to wallhaven, e.g. 16x9 or 21x9 (default 16x9).
    """

    if quiet:
        quiet_console()

    config = chameo_config.init()

    if palette_order:
        config.PALETTE_ORDER = palette_order

    pipeline.run(config, timeframe=timeframe, ratios=ratios)


def main():
    cli()


if __name__ == "__main__":
    main()
