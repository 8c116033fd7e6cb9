"""Allow ``python -m toolguard``."""

from toolguard.cli import main

main()
