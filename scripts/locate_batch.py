#!/usr/bin/env python3
"""CLI script to geocode a batch of place names from the terminal."""
import argparse
import sys
from pathlib import Path
from placemapper.core.config import API_THROTTLE_MS, ISO_LOOKUP_PATH, LOG_LEVEL
from placemapper.core.geocode_queue import ProcessorState
from placemapper.core.session import LocatorSession, create_session
from placemapper.utils.logging import setup_logging


def ask_choice(context) -> int:
    """Prompt for one of the pending choices; -1 means skip."""
    print(f"\n❓ {context.prompt}")
    for i, candidate in enumerate(context.choices, 1):
        print(f"  {i}. {candidate.display_name} (importance {candidate.importance:.3f})")
    while True:
        answer = input("Pick a number, or press Enter to skip: ").strip()
        if not answer:
            return -1
        if answer.isdigit() and 1 <= int(answer) <= len(context.choices):
            return int(answer) - 1
        print(f"Please enter a number between 1 and {len(context.choices)}.")


def run_batch(session: LocatorSession, raw_text: str, auto_skip: bool = False) -> int:
    """
    Drain a batch to completion, resolving ambiguities on stdin.

    Returns:
        Number of queries submitted
    """
    processor = session.processor
    submitted = processor.submit_batch(raw_text)
    while processor.drain() == ProcessorState.AMBIGUITY_PENDING:
        choice = -1 if auto_skip else ask_choice(processor.ambiguity)
        if choice < 0:
            processor.skip_ambiguity()
        else:
            processor.resolve_ambiguity(choice)
    return submitted


def print_summary(session: LocatorSession):
    registry = session.registry
    print("\n📍 Placed locations:")
    for location in registry.locations:
        country = location.country_code or "---"
        print(f"  {location.label:<30} {location.lat:>10.5f} {location.lon:>11.5f}  {country}")
    if registry.unresolved:
        print("\n⚠️  Unresolved:")
        for entry in registry.unresolved:
            print(f'  "{entry.query}" - {entry.message}')
    countries = ", ".join(sorted(registry.located_countries)) or "none"
    print(f"\n🌍 Countries: {countries}")


def main():
    parser = argparse.ArgumentParser(description="Geocode a batch of place names with Nominatim")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Place names separated by ';' or newlines")
    source.add_argument("--file", type=Path, help="File with one place name per line")
    parser.add_argument("--delay-ms", type=int, default=API_THROTTLE_MS,
                        help="Delay between lookups in milliseconds")
    parser.add_argument("--iso-lookup", type=Path, default=ISO_LOOKUP_PATH,
                        help="Alpha-2 to alpha-3 country code JSON")
    parser.add_argument("--auto-skip", action="store_true",
                        help="Skip ambiguous names instead of prompting")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)

    raw_text = args.text if args.text is not None else args.file.read_text(encoding="utf-8")
    session = create_session(iso_lookup_path=args.iso_lookup, delay_ms=args.delay_ms)
    try:
        submitted = run_batch(session, raw_text, auto_skip=args.auto_skip)
        if not submitted:
            print("Nothing to look up.")
            return 1
        print_summary(session)
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
