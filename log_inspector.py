"""CLI log inspector: list, read, verify and search log segments."""

import argparse
import os
import sys

from logengine.inspector import list_segments, read_segment, search_segments, verify_segment


def _size_str(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect log segments")
    parser.add_argument("--log-dir", default=os.environ.get("LOG_DIR", "./logs"),
                        help="Directory containing log segments")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", action="store_true", help="List all segments")
    group.add_argument("--read", metavar="FILENAME", help="Print one segment")
    group.add_argument("--verify", action="store_true",
                       help="Check that every line of every segment is a complete JSON entry")
    group.add_argument("--search", metavar="TEXT", help="Search text across all segments")
    args = parser.parse_args(argv)

    if args.list:
        names = list_segments(args.log_dir)
        if not names:
            print("No log segments found.")
            return 0
        for name in names:
            size = os.path.getsize(os.path.join(args.log_dir, name))
            print(f"  {name}  ({_size_str(size)})")

    elif args.read:
        try:
            sys.stdout.write(read_segment(args.log_dir, args.read))
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    elif args.verify:
        failed = False
        for name in list_segments(args.log_dir):
            for line_num, problem in verify_segment(os.path.join(args.log_dir, name)):
                failed = True
                print(f"  [{name}:{line_num}] {problem}")
        if not failed:
            print("All segments verified.")
        return 1 if failed else 0

    elif args.search:
        results = search_segments(args.log_dir, args.search)
        if not results:
            print(f"No matches found for '{args.search}'.")
            return 0
        for filename, line_num, line in results:
            print(f"  [{filename}:{line_num}] {line}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
