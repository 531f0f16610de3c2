"""Main entry point for SheetFusion.

This module provides the main entry point that can be called
from the command line or imported as a module.
"""

import sys
from sheet_fusion.cli import main
from sheet_fusion.utils.logger import shutdown_logging


def run() -> None:
    """Main entry point function."""
    try:
        main()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        shutdown_logging()


if __name__ == '__main__':
    run()
