#!/usr/bin/env python3
"""
Local Compliance Check

Run a compliance check on a content file against a brand snapshot.

Usage:
    python scripts/check_content.py brand.json post.txt
    python scripts/check_content.py brand.json post.txt --content-type email --fix
    python scripts/check_content.py brand.json post.txt --predict -o result.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from brand_compliance import ComplianceError, ComplianceService


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ]
    )


async def run_check(args) -> dict:
    """Run the requested check and return a JSON-serializable payload."""
    brand = json.loads(Path(args.brand).read_text(encoding="utf-8"))
    content = Path(args.content).read_text(encoding="utf-8")

    config = {
        "content_type": args.content_type,
        "channel": args.channel,
        "use_cache": False,
    }

    service = ComplianceService()

    if args.predict:
        issues = service.predict_violations(content, brand, config)
        return {"predicted_issues": [i.to_dict() for i in issues]}

    result = await service.validate_content(content, brand, config)
    payload = result.to_dict()
    if not args.features:
        payload.pop("features", None)

    if args.fix and result.violations:
        payload["auto_fix"] = service.auto_fix(content, result, brand).to_dict()

    return payload


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Check content against a brand's guidelines"
    )
    parser.add_argument(
        "brand",
        help="Path to a brand snapshot JSON file"
    )
    parser.add_argument(
        "content",
        help="Path to a text file with the content to check"
    )
    parser.add_argument(
        "--content-type",
        default=None,
        help="Content type passed as evaluation context (e.g., email)"
    )
    parser.add_argument(
        "--channel",
        default=None,
        help="Channel passed as evaluation context (e.g., social)"
    )
    parser.add_argument(
        "--predict",
        action="store_true",
        help="Run the fast prediction check instead of a full evaluation"
    )
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Include auto-fix output for mechanically fixable violations"
    )
    parser.add_argument(
        "--features",
        action="store_true",
        help="Include the full feature bundle in the output"
    )
    parser.add_argument(
        "--output", "-o",
        help="Save results to JSON file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    load_dotenv()
    setup_logging(args.verbose)

    try:
        payload = asyncio.run(run_check(args))
    except ComplianceError as e:
        print(f"ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    output = json.dumps(payload, indent=2, default=str)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Results saved to: {args.output}")
    else:
        print(output)

    if "is_compliant" in payload and not payload["is_compliant"]:
        sys.exit(2)


if __name__ == "__main__":
    main()
