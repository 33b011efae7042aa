"""Allow ``python -m swipe_triage``."""

from .cli import main

if __name__ == "__main__":
    main()
