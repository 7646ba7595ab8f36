#!/usr/bin/env python3
"""
Meter Dashboard Runner
Starts the electricity-meter dashboard pages and prints their state.

Each selected page polls the power API on its own schedule:
- realtime: latest 7 samples every 5s, gauge focus cycles every 3s
- analysis: peak usage, load pattern, power factor and statistics
- history: trend per time filter, statistics and daily usage
- alerts: alert list and summary every 30s
- reports: monthly reports, current month and statistics every 5 minutes
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add current directory to path for imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from dashboard_config import load_config
from pages import PAGE_REGISTRY, DashboardPage
from power_api_client import PowerApiClient

project_root = Path(__file__).parent.parent
logs_dir = project_root / "logs"

logger = logging.getLogger(__name__)


def setup_logging(config: Dict[str, Any]):
    """Console plus file logging, level taken from the config"""
    logging_config = config.get('logging', {})
    logs_dir.mkdir(exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(logs_dir / logging_config.get('file', 'meter_dashboard.log')),
            logging.StreamHandler()
        ]
    )
    log_level = str(logging_config.get('level', 'INFO')).upper()
    logging.getLogger().setLevel(getattr(logging, log_level, logging.INFO))


class DashboardRunner:
    """Owns the API client and the lifecycle of every selected page"""

    def __init__(self, config: Dict[str, Any], page_names: List[str],
                 api_client: Optional[PowerApiClient] = None):
        self.config = config
        self.api_client = api_client or PowerApiClient(config)
        self.pages: List[DashboardPage] = [PAGE_REGISTRY[name](self.api_client, config) for name in page_names]
        self.render_interval_seconds = float(config.get('dashboard', {}).get('render_interval_seconds', 10))
        self.is_running = False
        self.start_time: Optional[datetime] = None

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully"""
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        self.is_running = False

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    async def run_once(self) -> List[str]:
        """Load every page once and return the combined render."""
        lines: List[str] = []
        for page in self.pages:
            await page.load()
            lines.extend(page.render())
            lines.append("")
        return lines

    def render_all(self) -> List[str]:
        lines: List[str] = []
        for page in self.pages:
            lines.extend(page.render())
        return lines

    async def start(self):
        """Start all pages and render until stopped."""
        self.is_running = True
        self.start_time = datetime.now()
        logger.info(f"Starting dashboard with pages: {', '.join(p.name for p in self.pages)}")
        try:
            for page in self.pages:
                page.start()
            while self.is_running:
                await asyncio.sleep(self.render_interval_seconds)
                if not self.is_running:
                    break
                for line in self.render_all():
                    logger.info(line)
        finally:
            await self.stop()

    async def stop(self):
        self.is_running = False
        for page in self.pages:
            await page.stop()
        logger.info(f"Dashboard stopped. API stats: {self.api_client.get_stats()}")

    def get_status(self) -> Dict[str, Any]:
        uptime = (datetime.now() - self.start_time).total_seconds() if self.start_time else 0
        return {
            'is_running': self.is_running,
            'uptime_seconds': uptime,
            'pages': [page.name for page in self.pages],
            'api': self.api_client.get_stats(),
        }


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Electricity Meter Dashboard',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run every page
  python dashboard_runner.py

  # Only the realtime monitor, custom config
  python dashboard_runner.py --page realtime --config my_config.yaml

  # Load each page once, print it and exit
  python dashboard_runner.py --once

  # Show resolved configuration
  python dashboard_runner.py --status
        """
    )

    parser.add_argument(
        '--config', '-c',
        default=None,
        help='Configuration file path (default: config/dashboard_config.yaml)'
    )

    parser.add_argument(
        '--page', '-p',
        choices=sorted(PAGE_REGISTRY) + ['all'],
        default='all',
        help='Page to run (default: all)'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Load each page once, print it and exit'
    )

    parser.add_argument(
        '--status', '-s',
        action='store_true',
        help='Show resolved configuration and exit'
    )

    return parser.parse_args(argv)


def selected_pages(page: str) -> List[str]:
    if page == 'all':
        return list(PAGE_REGISTRY)
    return [page]


async def run(args) -> int:
    config = load_config(args.config)
    setup_logging(config)

    if args.status:
        print("\n" + "=" * 60)
        print("METER DASHBOARD CONFIGURATION")
        print("=" * 60)
        print(json.dumps(config, indent=2, default=str))
        return 0

    runner = DashboardRunner(config, selected_pages(args.page))

    if args.once:
        for line in await runner.run_once():
            print(line)
        return 0

    print("Starting Meter Dashboard...")
    print("Press Ctrl+C to stop")
    runner.install_signal_handlers()
    try:
        await runner.start()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    return 0


def main():
    """Console entry point"""
    args = parse_arguments()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
