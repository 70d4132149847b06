"""
Volume Divergence Flag - Main Entry Point

Usage:
    python main.py AAPL                   # Chart mode (one year, all zones)
    python main.py AAPL MSFT --mode scan  # Scan mode (recent 90 days)
    python main.py AAPL --json            # Raw result as JSON
"""

from __future__ import annotations
import asyncio
import argparse
import json
import sys

from rich.console import Console

from config.config_manager import ConfigManager
from src.domain.signals.config.schema import ConfigError
from src.domain.signals.errors import UpstreamFetchError
from src.infrastructure.adapters.yahoo.intraday_adapter import YahooIntradayAdapter
from src.presentation.vdf_report import render_entry
from src.services import VDFService
from src.utils import get_logger, set_log_timezone, setup_category_logging, shutdown_logging


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Volume Divergence Flag - stealth accumulation detector",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py TSLA                   # Chart mode, recent zones
  python main.py TSLA --all-zones       # Every zone over the year
  python main.py TSLA NVDA --mode scan  # Lighter scan of the last 90 days
        """
    )

    parser.add_argument(
        "symbols",
        nargs="+",
        help="Ticker symbols to analyze"
    )

    parser.add_argument(
        "--mode",
        type=str,
        default="chart",
        choices=["chart", "scan"],
        help="chart: one year of history (default); scan: last 90 days with 30-day baseline"
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        help="Environment to load config for (default: dev)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Directory holding base.yaml and overrides (default: config)"
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Recompute even if today's result is cached"
    )

    parser.add_argument(
        "--all-zones",
        action="store_true",
        help="Show zones over the whole scanned history, not just the recent horizon"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON instead of tables"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set log level (default: from config, ignored if --verbose is set)"
    )

    return parser.parse_args()


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    config = ConfigManager(config_dir=args.config_dir, env=args.env).load()

    # Set timezone for logging (before creating loggers)
    log_tz = config.logging.timezone
    if log_tz and log_tz.lower() != "local":
        set_log_timezone(log_tz)
    else:
        set_log_timezone(None)

    setup_category_logging(
        env=args.env,
        log_dir=config.logging.log_dir,
        level=args.log_level or config.logging.level,
        console=config.logging.console and not args.json,
        verbose=args.verbose,
    )
    logger = get_logger(__name__)
    logger.info(f"Starting detection for {len(args.symbols)} symbols in {args.mode} mode")

    adapter = YahooIntradayAdapter(
        rate_limit_per_sec=config.yahoo.rate_limit_per_sec,
        prepost=config.yahoo.prepost,
    )
    service = VDFService(adapter, config.vdf)
    console = Console()

    exit_code = 0
    results = {}
    for symbol in args.symbols:
        try:
            entry = await service.detect(symbol, mode=args.mode, force=args.force)
        except UpstreamFetchError as e:
            logger.error(str(e))
            console.print(f"[red]{symbol}: {e}[/red]")
            exit_code = 1
            continue

        if args.json:
            results[symbol.upper()] = entry.to_dict()
        else:
            console.print(render_entry(symbol, entry, show_all_zones=args.all_zones))

    if args.json:
        print(json.dumps(results, indent=2, default=str))

    return exit_code


def main() -> None:
    """Main entry point."""
    args = parse_args()

    try:
        exit_code = asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("Shutdown requested")
        exit_code = 0
    except (ConfigError, FileNotFoundError) as e:
        print(f"Configuration error: {e}")
        exit_code = 2
    finally:
        shutdown_logging()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
