"""Entry point for 'python -m linkauth' command.

This module allows the LinkAuth CLI to be invoked using
'python -m linkauth serve'.
"""

from linkauth.cli import main

if __name__ == "__main__":
    main()
