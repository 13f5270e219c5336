#!/usr/bin/env python3
"""
Command-line client for the Feedback API
Usage:
    python scripts/feedback_cli.py submit --name Ada --feedback "Great tool!"
    python scripts/feedback_cli.py prompt
    python scripts/feedback_cli.py list
    python scripts/feedback_cli.py carousel
"""
import argparse
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from feedback_api.client import (
    DEFAULT_BASE_URL,
    FeedbackClient,
    guided_prompt,
    run_carousel,
    show_list,
    submit_form,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Feedback API client")
    parser.add_argument(
        "--url",
        default=os.getenv("FEEDBACK_API_URL", DEFAULT_BASE_URL),
        help="Base URL of the feedback API",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    submit = sub.add_parser("submit", help="Submit feedback in one go")
    submit.add_argument("--name", required=True)
    submit.add_argument("--feedback", required=True)

    sub.add_parser("prompt", help="Answer questions one at a time, then submit")
    sub.add_parser("list", help="Show all feedback")

    carousel = sub.add_parser("carousel", help="Browse feedback a few cards at a time")
    carousel.add_argument("--size", type=int, default=3, help="Cards shown at once")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    client = FeedbackClient(args.url)

    if args.command == "submit":
        return 0 if submit_form(client, args.name, args.feedback) else 1
    if args.command == "prompt":
        try:
            return 0 if guided_prompt(client) else 1
        except (KeyboardInterrupt, EOFError):
            print("\nCancelled.")
            return 1
    if args.command == "list":
        show_list(client)
        return 0
    if args.command == "carousel":
        run_carousel(client, size=args.size)
        return 0
    return 2


if __name__ == "__main__":
    sys.exit(main())
