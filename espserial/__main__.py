"""
espserial entry point

Runs the ESP8266 serial test suite
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
