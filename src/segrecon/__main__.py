"""
Run the segrecon command-line interface with `python -m segrecon`.
"""
import sys

from segrecon.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
