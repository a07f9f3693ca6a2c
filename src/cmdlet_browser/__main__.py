import sys

from .cli import main

# No error handling here. All catch-all handling lives in cli.main() so that
# both `python -m cmdlet_browser` and the installed script behave the same.
if __name__ == "__main__":
    sys.exit(main())
