#!/usr/bin/env python3
"""
Main entry point for the Tab AI Scheduler

Runs the API server, previews how a single request would be scheduled, or
smoke-tests a running server.
"""
import json
import logging

from config.settings import Config
from utils.logger import SmartCalendarLogger


def run_server(host=None, port=None, debug=False):
    """Run the Flask API server"""
    from src.api.flask_server import SmartCalendarAPI

    SmartCalendarLogger.setup_logging(log_level=Config.LOG_LEVEL, log_file=Config.LOG_FILE)
    logger = logging.getLogger(__name__)
    logger.info("Starting Tab AI Scheduler...")

    api = SmartCalendarAPI()
    api.run(host=host, port=port, debug=debug)


def preview_event(utterance: str) -> dict:
    """Extract and materialize an event without touching any calendar"""
    from src.ai_agent.intent_extractor import IntentExtractor
    from src.ai_agent.llm_client import create_llm_client
    from src.scheduler.event_materializer import EventMaterializer
    from src.scheduler.smart_scheduler import local_now

    config = Config()
    SmartCalendarLogger.setup_logging(log_level="WARNING")

    now = local_now(config.TIME_ZONE)
    intent = IntentExtractor(create_llm_client(config), config).extract(utterance, now)
    event = EventMaterializer(config).materialize(intent, utterance, now)
    return {"intent": intent.to_dict(), "event": event.to_body()}


def run_smoke(api_url: str, user_id: str):
    """Smoke-test a running server"""
    from tests.live_client import SmartCalendarLiveClient

    SmartCalendarLogger.setup_logging(log_level="INFO")
    client = SmartCalendarLiveClient(api_url)
    results = client.run_smoke_suite(user_id)

    summary = results["summary"]
    print("\nSmoke Results:")
    print(f"  Total: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")
    return results


def main():
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Tab AI Scheduler')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    server_parser = subparsers.add_parser('server', help='Run the API server')
    server_parser.add_argument('--host', default=None, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    server_parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    parse_parser = subparsers.add_parser('parse', help='Preview the event for one request')
    parse_parser.add_argument('utterance', help='Natural-language scheduling request')

    smoke_parser = subparsers.add_parser('smoke', help='Smoke-test a running server')
    smoke_parser.add_argument('--url', default=f'http://localhost:{Config.API_PORT}', help='API URL to test')
    smoke_parser.add_argument('--user-id', default='smoke-test-user', help='User id to probe with')

    args = parser.parse_args()

    if args.command == 'server':
        run_server(host=args.host, port=args.port, debug=args.debug)
    elif args.command == 'parse':
        print(json.dumps(preview_event(args.utterance), indent=2))
    elif args.command == 'smoke':
        run_smoke(args.url, args.user_id)
    else:
        parser.print_help()


if __name__ == '__main__':
    main()
