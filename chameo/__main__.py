"""
__main__.py

This file adds support for running chameo as a python module (python -m chameo) instead of
invoking the "chameo" command line entrypoint.
"""

from chameo.cli import main


if __name__ == "__main__":
    main()
