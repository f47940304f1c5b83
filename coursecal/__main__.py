"""
Package entry point.

Allows running the application via:

    python -m coursecal

This simply forwards execution to coursecal.cli.main().
"""

from coursecal.cli import main

if __name__ == "__main__":
    main()
