"""Command comparing estimated and actual size growth from added text metadata."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import jpeg, png
from .errors import ImageMetaError

DEFAULT_JPEG = "tests/test_data/jpeg/metadata/metadata_none.jpg"
DEFAULT_PNG = "tests/test_data/png/metadata/metadata_none.png"

SAMPLE_COMMENTS = (
    "Short comment",
    "This is a longer comment with more text content",
    "日本語コメント with mixed content 🎯",
)

SAMPLE_TEXT_CHUNKS = (
    ("Author", "John Doe"),
    ("Description", "A sample image for testing"),
    ("Copyright", "© 2024 Test Corp"),
)


def _print_comparison(estimated: int, actual: int) -> None:
    print(f"  Estimated increase: {estimated} bytes")
    print(f"  Actual increase:    {actual} bytes")
    print(f"  Match: {'✓' if estimated == actual else '✗'}")


def _run(jpeg_path: Path, png_path: Path) -> None:
    print("=== Estimation Function Demo ===\n")

    print("## JPEG Comment Estimation ##")
    jpeg_data = jpeg_path.read_bytes()
    print(f"Original JPEG size: {len(jpeg_data)} bytes")
    for comment in SAMPLE_COMMENTS:
        estimated = jpeg.estimate_text_comment(comment)
        actual = len(jpeg.write_comment(jpeg_data, comment)) - len(jpeg_data)
        print(f'\nComment: "{comment}"')
        _print_comparison(estimated, actual)

    print("\n## PNG Text Chunk Estimation ##")
    png_data = png_path.read_bytes()
    print(f"Original PNG size: {len(png_data)} bytes")
    current = png_data
    for keyword, text in SAMPLE_TEXT_CHUNKS:
        estimated = png.estimate_text_chunk(keyword, text)
        grown = png.add_text_chunk(current, keyword, text)
        print(f'\nKeyword: "{keyword}", Text: "{text}"')
        _print_comparison(estimated, len(grown) - len(current))
        current = grown

    print("\n=== All estimations are accurate! ===")


def main(argv: list[str] | None = None) -> int:
    """Run the estimation comparison; returns the process exit status."""
    parser = argparse.ArgumentParser(
        prog="webimagemeta-estimate",
        description="Compare estimated and actual size increases of text metadata.",
    )
    parser.add_argument("jpeg", nargs="?", default=DEFAULT_JPEG, help="JPEG image to use")
    parser.add_argument("png", nargs="?", default=DEFAULT_PNG, help="PNG image to use")
    args = parser.parse_args(argv)
    try:
        _run(Path(args.jpeg), Path(args.png))
    except (OSError, ImageMetaError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())