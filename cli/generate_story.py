#!/usr/bin/env python3
"""
CLI for generating pet stories without running the API server.

Usage:
    python cli/generate_story.py Rex dog Alice
    python cli/generate_story.py Luna cat Sam --breed Siamese --age 3 --length short
    python cli/generate_story.py Rex dog Alice --theme mystery --output rex.md
    python cli/generate_story.py Rex dog Alice --moderate --stdout
"""

import argparse
import asyncio
import re
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from petstory.api.dependencies import ServiceContainer
from petstory.api.models.requests import StoryLength, validate_story_request
from petstory.config import Settings
from petstory.core.errors import ConfigurationError, PetStoryError, ValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a story about a pet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python cli/generate_story.py Rex dog Alice
    python cli/generate_story.py Luna cat Sam --breed Siamese --age 3
    python cli/generate_story.py Rex dog Alice --length long --theme bedtime
        """,
    )

    parser.add_argument("pet_name", help="The pet's name")
    parser.add_argument("pet_type", help="The kind of animal, e.g. dog")
    parser.add_argument("owner_name", help="The owner's name")

    parser.add_argument("--breed", default=None, help="The pet's breed")
    parser.add_argument("--age", type=float, default=None, help="The pet's age in years")
    parser.add_argument("--theme", default=None, help="Story theme (default: adventure)")
    parser.add_argument(
        "--length",
        choices=[length.value for length in StoryLength],
        default=None,
        help="Story length (default: medium)",
    )
    parser.add_argument(
        "--moderate",
        action="store_true",
        help="Run the story through content moderation",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file name (saved to output/ directory). Auto-generated if not specified.",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print to terminal instead of saving to file",
    )
    return parser


def request_body_from_args(args: argparse.Namespace) -> dict:
    """Translate CLI arguments into a story request body."""
    body = {
        "petName": args.pet_name,
        "petType": args.pet_type,
        "ownerName": args.owner_name,
        "moderationCheck": args.moderate,
    }
    if args.breed:
        body["petBreed"] = args.breed
    if args.age is not None:
        body["petAge"] = args.age
    if args.theme:
        body["storyTheme"] = args.theme
    if args.length:
        body["storyLength"] = args.length
    return body


async def generate(settings: Settings, body: dict):
    services = ServiceContainer.from_settings(settings)
    try:
        return await services.story_service.generate_story(validate_story_request(body))
    finally:
        await services.aclose()


def main():
    args = build_parser().parse_args()

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        result = asyncio.run(generate(settings, request_body_from_args(args)))
    except ValidationError as e:
        for detail in e.details:
            print(f"{detail['field']}: {detail['message']}", file=sys.stderr)
        sys.exit(2)
    except PetStoryError as e:
        print(f"{e.error} {e.detail or ''}".strip(), file=sys.stderr)
        sys.exit(1)

    if args.stdout:
        print(result.story)
    else:
        output_dir = Path(__file__).parent.parent / "output"
        output_dir.mkdir(exist_ok=True)

        if args.output:
            filename = args.output if args.output.endswith(".md") else f"{args.output}.md"
        else:
            slug = re.sub(r"[^a-z0-9]+", "_", args.pet_name.lower())[:30].strip("_")
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{slug}_{timestamp}.md"

        output_path = output_dir / filename
        output_path.write_text(f"# {args.pet_name}'s {result.metadata.theme} story\n\n{result.story}\n")
        print(f"Story saved to: {output_path}")

    print(f"Word count: {result.metadata.wordCount}", file=sys.stderr)
    if result.metadata.moderation and result.metadata.moderation.flagged:
        print("Warning: story was flagged by moderation", file=sys.stderr)


if __name__ == "__main__":
    main()
