"""Main entry point when executing promptgate as a package.

This allows running the package using python -m promptgate.
"""

from promptgate.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
