"""Allow ``python -m synclaude``."""

from synclaude.cli.cli import main

if __name__ == "__main__":
    main()
