#!/usr/bin/env python3
"""CLI tool to parse jianpu files and export to JSON.

Usage:
    python examples/parse_score.py <input_file> [-o output_file]

Examples:
    python examples/parse_score.py scores/twinkle.txt
    python examples/parse_score.py scores/twinkle.txt -o twinkle.json --pretty
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from jianpu_parser import (
    Breath,
    Measure,
    Note,
    NoteElement,
    ParseError,
    ParseResult,
    Rest,
    Tie,
    note_to_frequency,
    parse,
)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def element_to_dict(element: NoteElement, key: str) -> dict[str, Any]:
    """Convert a note element to a JSON-serializable dict."""
    if isinstance(element, Note):
        return {
            "type": "note",
            "pitch": element.pitch,
            "octave": element.octave,
            "accidental": element.accidental,
            "duration": {"base": element.duration.base, "dots": element.duration.dots},
            "is_grace": element.is_grace,
            "grace_type": element.grace_type,
            "trill_type": element.trill_type,
            "beam_group": element.beam_group,
            "slur_group": element.slur_group,
            "frequency": round(note_to_frequency(element, key), 2),
        }

    if isinstance(element, (Rest, Tie)):
        return {
            "type": "rest" if isinstance(element, Rest) else "tie",
            "duration": {"base": element.duration.base, "dots": element.duration.dots},
        }

    if isinstance(element, Breath):
        return {"type": "breath"}

    return {"type": "unknown"}


def measure_to_dict(measure: Measure, key: str) -> dict[str, Any]:
    """Convert a Measure to a JSON-serializable dict."""
    data: dict[str, Any] = {
        "number": measure.number,
        "notes": [element_to_dict(e, key) for e in measure.notes],
    }
    if measure.lyrics is not None:
        data["lyrics"] = [
            {"text": s.text, "placeholder": s.is_placeholder, "group": s.is_group}
            for s in measure.lyrics.syllables
        ]
    if measure.source_range is not None:
        data["source_range"] = [measure.source_range.start, measure.source_range.end]
    return data


def error_to_dict(error: ParseError) -> dict[str, Any]:
    """Convert a ParseError to a JSON-serializable dict."""
    return {
        "message": error.message,
        "line": error.position.line,
        "column": error.position.column,
        "offset": error.position.offset,
        "length": error.length,
    }


def result_to_dict(result: ParseResult) -> dict[str, Any]:
    """Convert a ParseResult to a JSON-serializable dict."""
    data: dict[str, Any] = {
        "score": None,
        "errors": [error_to_dict(e) for e in result.errors],
    }
    if result.score is not None:
        metadata = result.score.metadata
        data["score"] = {
            "metadata": {
                "title": metadata.title,
                "key": metadata.key,
                "time_signature": [
                    metadata.time_signature.beats,
                    metadata.time_signature.beat_value,
                ],
                "tempo": metadata.tempo,
                "other": metadata.other,
            },
            "measures": [measure_to_dict(m, metadata.key) for m in result.score.measures],
        }
    return data


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Parse a jianpu file and export to JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s scores/twinkle.txt
  %(prog)s scores/twinkle.txt -o twinkle.json
  %(prog)s scores/twinkle.txt --pretty --debug
        """,
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Input jianpu file to parse",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON file (default: stdout)",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log parser stages to stderr",
    )

    args = parser.parse_args()
    setup_logging(args.debug)

    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    result = parse(args.input.read_text(encoding="utf-8"))
    for error in result.errors:
        print(
            f"{args.input}:{error.position.line}:{error.position.column}: {error.message}",
            file=sys.stderr,
        )

    indent = 2 if args.pretty else None
    json_output = json.dumps(result_to_dict(result), indent=indent, ensure_ascii=False)

    if args.output:
        args.output.write_text(json_output, encoding="utf-8")
        print(f"Wrote output to {args.output}")
    else:
        print(json_output)

    return 0 if result.score is not None else 1


if __name__ == "__main__":
    sys.exit(main())
