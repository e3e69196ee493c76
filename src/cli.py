"""CLI entry point for the resume link tagger."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from src.models.document import LinkOutcome
from src.models.pipeline import TagRequest
from src.pipeline.orchestrator import process


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Set the ?tag= parameter on every tracking link in a PDF resume",
    )
    parser.add_argument("document", help="Path to the PDF to tag")
    parser.add_argument("--tag", "-t", required=True, help="Tag value, e.g. acme-2024")
    parser.add_argument("--output", "-o", default="",
                        help="Output filename (default: tagged_<input name>)")
    parser.add_argument("--output-dir", default="", help="Output directory")
    parser.add_argument("--base-url", default="",
                        help="Tracking URL prefix (default: $LINK_TAGGER_BASE_URL)")
    parser.add_argument("--no-verify", action="store_true",
                        help="Skip re-reading the output to check the tags")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")

    args = parser.parse_args()

    if not args.tag.strip():
        parser.error("--tag cannot be empty")

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    request = TagRequest(
        document_path=args.document,
        tag=args.tag,
        base_url=args.base_url,
        output_filename=args.output,
        output_dir=args.output_dir,
        verify=not args.no_verify,
    )

    result = process(request)

    if args.json:
        print(result.model_dump_json(indent=2))
        if not result.success:
            sys.exit(1)
    else:
        if result.success:
            print(f"\n{result.summary}")
            print(f"  Input:  {result.input_path}")
            print(f"  Output: {result.output_path}")
            for link in result.links:
                if link.outcome == LinkOutcome.UPDATED:
                    print(f"    p{link.page_number}: {link.original_uri} → {link.new_uri}")
            if result.warnings:
                print(f"\n  Warnings:")
                for warning in result.warnings:
                    print(f"    - {warning}")
        else:
            print(f"\nTagging failed: {result.error}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
