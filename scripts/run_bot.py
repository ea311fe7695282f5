#!/usr/bin/env python3
"""
Run the ticket bot against a live Chrome session.

Opens the event page, boots the engine from the persisted record and
issues START once the page has had a moment to settle. Runs until
interrupted.

Run: python scripts/run_bot.py --url https://... --prices "2800, 3200"
"""

import argparse
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tpbot_app.config.validation import parse_price_string
from tpbot_app.dom.selenium_adapter import SeleniumDocument, launch_chrome
from tpbot_app.engine import TicketBotEngine
from tpbot_app.logging.config import configure_logging, get_logger
from tpbot_app.persistence.config_store import JsonConfigStore
from tpbot_app.utils.timers import WallClockScheduler

# The page needs to finish its first render before the bot looks at it
PAGE_SETTLE_MS = 1000

logger = get_logger("scripts.run_bot")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TicketPlus ticket bot")
    parser.add_argument("--url", required=True, help="Event page URL")
    parser.add_argument("--prices", default="", help='Target prices, e.g. "2800, 3200"')
    parser.add_argument("--priority", type=int, default=None, help="Priority price")
    parser.add_argument("--count", type=int, default=1, help="Tickets per purchase")
    parser.add_argument("--grab-all", action="store_true", help="Take any available area")
    parser.add_argument("--account", default="", help="Login phone number")
    parser.add_argument("--password", default="", help="Login password")
    parser.add_argument("--debug", action="store_true", help="Log every step")
    parser.add_argument("--store", default="storage.json", help="Persisted config file")
    parser.add_argument("--config-dir", default=None, help="Directory with timing/selectors YAML")
    parser.add_argument("--profile-dir", default=None, help="Chrome user data dir")
    parser.add_argument("--show-images", action="store_true", help="Do not block images")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(level="DEBUG" if args.debug else "INFO", format_json=args.json_logs)

    start_request = {
        "action": "START",
        "config": {
            "url": args.url,
            "targetPrices": parse_price_string(args.prices),
            "priorityPrice": args.priority,
            "ticketCount": args.count,
            "grabAll": args.grab_all,
            "account": args.account,
            "password": args.password,
            "debug": args.debug,
        },
    }

    driver = launch_chrome(block_images=not args.show_images, profile_dir=args.profile_dir)
    engine = None
    try:
        driver.get(args.url)

        document = SeleniumDocument(driver)
        scheduler = WallClockScheduler()
        engine = TicketBotEngine(
            document, document, scheduler,
            JsonConfigStore(args.store),
            config_dir=args.config_dir,
        )
        engine.boot()

        def send_start() -> None:
            if not engine.handle_command(start_request):
                logger.error("START rejected, see validation errors above")

        scheduler.call_later(PAGE_SETTLE_MS, send_start)
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping bot")
        if engine is not None:
            engine.handle_command({"action": "STOP"})
    finally:
        driver.quit()

    return 0


if __name__ == "__main__":
    sys.exit(main())
