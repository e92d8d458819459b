#!/usr/bin/env python3
"""
Main entry point for the Family Schedule Assistant

Runs the API server, triggers the cron jobs by hand, parses a single
free-text request, or smoke-tests a running server.
"""

import json
import logging
import sys
from pathlib import Path

# Add the project directory to the Python path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import Config
from utils.logger import FamilyScheduleLogger


def run_server(host=None, port=None, debug=False):
    """Run the Flask API server"""
    from src.api.flask_server import FamilyScheduleAPI

    FamilyScheduleLogger.setup_logging(log_level=Config.LOG_LEVEL, log_file=Config.LOG_FILE)
    logger = logging.getLogger(__name__)

    logger.info("Starting Family Schedule Assistant...")

    try:
        api = FamilyScheduleAPI()
        api.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise


def run_cron(job: str):
    """Run one cron job against the configured storage and Telegram"""
    from src.scheduler.family_scheduler import FamilyScheduler

    FamilyScheduleLogger.setup_logging(log_level=Config.LOG_LEVEL)
    scheduler = FamilyScheduler()
    try:
        if job == "check-reminders":
            result = scheduler.check_reminders()
        else:
            result = scheduler.send_daily_schedule()
    finally:
        scheduler.shutdown()
    print(json.dumps(result, ensure_ascii=False, indent=2))
    return result


def run_parse(text: str):
    """Parse a single request with the AI and print the fields"""
    from src.scheduler.family_scheduler import FamilyScheduler

    FamilyScheduleLogger.setup_logging(log_level="WARNING")
    scheduler = FamilyScheduler()
    try:
        parsed = scheduler.parse_event(text)
    finally:
        scheduler.shutdown()
    print(json.dumps(parsed, ensure_ascii=False, indent=2))
    return parsed


def run_tests(api_url="http://localhost:5000"):
    """Run smoke tests against a running server"""
    from scripts.smoke_client import FamilyScheduleSmokeClient

    FamilyScheduleLogger.setup_logging(log_level="INFO")
    logger = logging.getLogger(__name__)

    logger.info(f"Running smoke tests against {api_url}")

    client = FamilyScheduleSmokeClient(api_url)
    results = client.run_test_suite()

    summary = results["summary"]
    print(f"\nTest Results:")
    print(f"  Total: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")
    print(f"  Success rate: {(summary['passed']/summary['total']*100) if summary['total'] > 0 else 0:.1f}%")
    print(f"  Avg response time: {summary['avg_response_time']:.2f}s")

    return results


def main():
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Family Schedule Assistant')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    server_parser = subparsers.add_parser('server', help='Run API server')
    server_parser.add_argument('--host', default=None, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    server_parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    subparsers.add_parser('check-reminders', help='Send reminders that are due now')
    subparsers.add_parser('daily-schedule', help="Send today's schedule to all chats")

    parse_parser = subparsers.add_parser('parse', help='Parse a free-text event request')
    parse_parser.add_argument('text', help='Request text, e.g. "אימון יום שני 18:00"')

    test_parser = subparsers.add_parser('test', help='Smoke-test a running server')
    test_parser.add_argument('--url', default='http://localhost:5000', help='API URL to test')

    args = parser.parse_args()

    if args.command == 'server':
        run_server(host=args.host, port=args.port, debug=args.debug)

    elif args.command in ('check-reminders', 'daily-schedule'):
        run_cron(args.command)

    elif args.command == 'parse':
        run_parse(args.text)

    elif args.command == 'test':
        results = run_tests(api_url=args.url)
        sys.exit(0 if results["summary"]["failed"] == 0 else 1)

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
