#!/usr/bin/env python3
"""Run the worker over newline-delimited JSON.

Each input line is one request envelope; each output line is the matching
response envelope. This stands in for a message queue consumer.
"""

import json
import sys

from handlers.processor import MessageProcessor
from logger import get_logger
from models.message import Message

logger = get_logger()


def serve_stream(processor: MessageProcessor, input_stream, output_stream) -> int:
    """Process requests from ``input_stream`` until it is exhausted.

    Returns:
        Number of requests handled.
    """
    handled = 0
    for line in input_stream:
        line = line.strip()
        if not line:
            continue

        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.info(f"Skipping malformed line: {e.msg}")
            response = Message.error(f"Invalid JSON: {e.msg}", 400).to_dict()
        else:
            response = processor.process(message)

        output_stream.write(json.dumps(response) + "\n")
        output_stream.flush()
        handled += 1

    return handled


def cmd_serve(args, services):
    """Bootstrap global categories and serve requests."""
    basic = services.categories.get_basic_categories()
    logger.info(f"Global categories ready: {basic}")

    processor = MessageProcessor(services)

    if args.input:
        with open(args.input, "r") as f:
            handled = serve_stream(processor, f, sys.stdout)
    else:
        handled = serve_stream(processor, sys.stdin, sys.stdout)

    logger.info(f"Handled {handled} request(s)")


def setup_parser(subparsers):
    """Setup serve subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "serve",
        help="Process JSON requests",
        description="Read one request envelope per line and write one response per line",
    )
    parser.add_argument(
        "--input", help="Read requests from this file instead of stdin"
    )
    parser.set_defaults(func=cmd_serve)
