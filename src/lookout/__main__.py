"""Allow ``python -m lookout``."""

from lookout._cli import main

main()
