"""Entry point for running bankai as a module or installed script.

Usage:
    bankai <command> ... / python -m bankai <command> ...
"""

from bankai.cli import main


def run() -> None:
    """Entry point for the ``bankai`` console script."""
    main()


if __name__ == "__main__":
    run()
