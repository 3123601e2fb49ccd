#!/usr/bin/env python3
"""
Stock Pulse Dashboard Launcher

Connects to a Socket.IO market data server and renders the live symbol list
and, optionally, one symbol's detail view in the terminal.
"""

import sys
import argparse
import asyncio
import logging
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))


def setup_logging(config):
    """Route package logging to the rotating log file; the terminal belongs to the dashboard"""
    config.get_logger('stock_pulse', console=False)

    # engineio/socketio are chatty at DEBUG
    if config.logger_config['level'] > logging.DEBUG:
        logging.getLogger('engineio').setLevel(logging.WARNING)
        logging.getLogger('socketio').setLevel(logging.WARNING)

    return config.log_file


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Launch the Stock Pulse live market dashboard"
    )

    parser.add_argument(
        '--server',
        type=str,
        help='Socket.IO server URL (default: STOCK_PULSE_SERVER_URL or http://localhost:4000)'
    )

    parser.add_argument(
        '--symbol', '-s',
        type=str,
        help='Symbol to open in the detail view'
    )

    parser.add_argument(
        '--query', '-q',
        type=str,
        default='',
        help='Filter the symbol list by symbol or name'
    )

    parser.add_argument(
        '--min-interval',
        type=float,
        help='Minimum seconds between redraws (default: 0.040)'
    )

    parser.add_argument(
        '--follow-updates',
        action='store_true',
        help='Also chart market_update entries for the detail symbol'
    )

    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        help='Enable debug logging'
    )

    return parser.parse_args()


def main():
    """Main entry point"""
    args = parse_arguments()

    from socketio.exceptions import ConnectionError as SocketIOConnectionError
    from stock_pulse.config import get_config
    from stock_pulse.app import StockPulseApp

    overrides = {'enable_file_logging': True}
    if args.debug:
        overrides['log_level'] = 'DEBUG'
    if args.server:
        overrides['server_url'] = args.server
    if args.min_interval is not None:
        overrides['min_flush_interval'] = args.min_interval
    config = get_config(**overrides)

    log_file = setup_logging(config)
    logger = logging.getLogger('stock_pulse.launcher')

    logger.info("=" * 60)
    logger.info("Stock Pulse Dashboard Starting")
    logger.info(f"Server: {config.server_url}")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 60)

    app = StockPulseApp(
        config,
        follow_market_updates=args.follow_updates,
        query=args.query,
    )

    try:
        asyncio.run(app.run(symbol=args.symbol))
    except SocketIOConnectionError as e:
        logger.error(f"Could not connect to {config.server_url}: {e}")
        print(f"Could not connect to {config.server_url}: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Dashboard closed by user")

    sys.exit(0)


if __name__ == "__main__":
    main()
