"""
Command line entry points.

    espserial-test --port /dev/ttyUSB0 --duration 2
    espserial-ports
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .commands import (
    CONNECT_TIMEOUT_S,
    DEFAULT_BAUDRATE,
    DEFAULT_PORT,
    DEFAULT_SUITE_SENSOR_DURATION_S,
)
from .port_scanner import scan_ports
from .runner import DeviceTestRunner
from .session import SerialSession, SessionConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ESP8266 serial test suite")
    parser.add_argument('--port', '-p', default=DEFAULT_PORT,
                        help=f'Serial port (default: {DEFAULT_PORT})')
    parser.add_argument('--baudrate', '-b', type=int, default=DEFAULT_BAUDRATE,
                        help=f'Baudrate (default: {DEFAULT_BAUDRATE})')
    parser.add_argument('--duration', type=float, default=DEFAULT_SUITE_SENSOR_DURATION_S,
                        help='Seconds to listen after each sensor command '
                             f'(default: {DEFAULT_SUITE_SENSOR_DURATION_S})')
    parser.add_argument('--timeout', dest='connect_timeout', type=float,
                        default=CONNECT_TIMEOUT_S,
                        help=f'Connect timeout in seconds (default: {CONNECT_TIMEOUT_S})')
    parser.add_argument('--scan', action='store_true',
                        help='List serial ports before running')
    parser.add_argument('--json-out', metavar='PATH',
                        help='Also write the results as JSON to PATH')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for `espserial-test`."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    print("ESP8266 Serial Testing Suite")
    print("============================")

    if args.scan:
        scan_ports()

    runner = DeviceTestRunner(SerialSession(SessionConfig.from_args(args)))
    exit_code = 0
    try:
        results = runner.run_all(args.duration)
        if not results:
            exit_code = 1
        else:
            dump = json.dumps([r.to_dict() for r in results], indent=2)
            print("\nTest Results:", dump)
            if args.json_out:
                with open(args.json_out, 'w', encoding='utf-8') as fh:
                    fh.write(dump + "\n")
    except Exception as e:
        logger.error("Test suite error: %s", e, exc_info=args.verbose)
        exit_code = 1
    finally:
        runner.cleanup()

    return exit_code


def ports_main() -> int:
    """Entry point for `espserial-ports`."""
    _configure_logging(False)
    scan_ports()
    return 0


if __name__ == '__main__':
    sys.exit(main())
