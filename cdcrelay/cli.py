#!/usr/bin/env python3
"""
CLI for the CDC relay

Reads a transaction log, filters it for one peer and writes the surviving
transactions as JSON lines.
"""

import argparse
import asyncio
import logging
import signal
import sys

from .exceptions import RelayException
from .relay_service import RelayService
from .models.config import RelayConfig
from .services import ConfigService
from .utils.logger import setup_logging, get_logger


class RelayCLI:
    """Command line front end for RelayService"""

    def __init__(self, config: RelayConfig):
        self.logger = get_logger()
        self.service = RelayService(config)
        self._setup_signal_handlers()

    def _setup_signal_handlers(self) -> None:
        """Request a graceful stop on SIGINT and SIGTERM"""
        def signal_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            self.logger.info("Received signal, initiating graceful shutdown", signal=signal_name)
            self.service.request_shutdown()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self, output_path: str = None) -> int:
        """Stream filtered transactions to a file or stdout"""
        if output_path:
            with open(output_path, 'a', encoding='utf-8') as output:
                return asyncio.run(self.service.run(output))
        return asyncio.run(self.service.run(sys.stdout))

    def resolve(self) -> int:
        """Print the commit id the log would be opened at"""
        commit_id = self.service.start_position.commit_id
        print(commit_id)
        self.service.reader.close()
        return commit_id


def main(argv=None):
    """Entry point of the ``cdcrelay`` command"""
    parser = argparse.ArgumentParser(description='CDC relay: filtered, resumable transaction log reader')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Stream filtered transactions')
    run_parser.add_argument('config', help='Path to the configuration file')
    run_parser.add_argument('--output', help='Append transactions to this file instead of stdout')
    run_parser.add_argument('--log-level', help='Logging level')
    run_parser.add_argument('--log-format', choices=['json', 'console'], help='Logging format')

    resolve_parser = subparsers.add_parser('resolve', help='Print the resolved start commit id')
    resolve_parser.add_argument('config', help='Path to the configuration file')
    resolve_parser.add_argument('--log-level', help='Logging level')
    resolve_parser.add_argument('--log-format', choices=['json', 'console'], help='Logging format')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    try:
        config = ConfigService().load_config(args.config)
    except RelayException as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(level=args.log_level or config.logging.level,
                  format_type=args.log_format or config.logging.format)

    try:
        cli = RelayCLI(config)
        if args.command == 'run':
            cli.run(args.output)
        elif args.command == 'resolve':
            cli.resolve()
    except RelayException as e:
        logging.error(f"Relay error: {e}")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
