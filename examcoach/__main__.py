"""Allow ``python -m examcoach``."""

from examcoach.cli.main import main

if __name__ == "__main__":
    main()
