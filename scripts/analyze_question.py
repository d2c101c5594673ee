#!/usr/bin/env python
import argparse
import json
import mimetypes
import sys
from dataclasses import asdict
from pathlib import Path

from question_pool.config import configure_logging, load_settings
from question_pool.gemini_service import (
    AIServiceError,
    MissingAPIKeyError,
    analyze_question_image,
    get_client,
    search_study_resources,
)
from question_pool.images import check_upload


def build_report(image_path: Path, with_search: bool, client) -> dict:
    mime_type = mimetypes.guess_type(image_path.name)[0] or ""
    data = image_path.read_bytes()
    check_upload(data, mime_type)

    result = analyze_question_image(data, mime_type, client=client)
    report = {
        "file": str(image_path),
        "subject": result.subject.value,
        "topic": result.topic,
        "extractedText": result.extracted_text,
        "explanation": result.explanation,
    }

    if with_search and result.topic:
        resources = search_study_resources(result.topic, client=client)
        report["resources"] = {
            "text": resources.text,
            "links": [asdict(link) for link in resources.links],
        }

    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Classify a photographed LGS question with Gemini and print the result as JSON."
    )
    parser.add_argument("image", help="Path to the question photo (PNG/JPG, max 5MB)")
    parser.add_argument(
        "--search",
        action="store_true",
        help="Also run a search-grounded resource lookup for the detected topic",
    )
    parser.add_argument("--api-key", help="Gemini API key (defaults to GEMINI_API_KEY / API_KEY)")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"File not found: {image_path}", file=sys.stderr)
        return 1

    try:
        client = get_client(args.api_key or settings.api_key)
        report = build_report(image_path, args.search, client)
    except (MissingAPIKeyError, AIServiceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
