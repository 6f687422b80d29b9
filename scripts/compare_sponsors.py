# Script to compare two generated sponsors.json documents, e.g. yesterday's published copy and a fresh run.
# Usage example:
# python scripts/compare_sponsors.py --old generated/sponsors.backup.json --new generated/sponsors.json --table --rate 83.5
import sys
import argparse

from sponsortiers.export import load_document
from sponsortiers.reports import format_changes, format_overview

def compare(old_path: str, new_path: str, show_table: bool, rate: float, currency: str) -> list:
    """Build the report lines for two documents"""
    old_document = load_document(old_path)
    if old_document is None:
        raise FileNotFoundError(f"Could not load {old_path}")
    new_document = load_document(new_path)
    if new_document is None:
        raise FileNotFoundError(f"Could not load {new_path}")

    lines = format_changes(old_document, new_document)
    if show_table:
        lines.extend(format_overview(new_document, rate, currency))
    return lines

def main():
    parser = argparse.ArgumentParser(description='Compare two generated sponsors.json documents')
    parser.add_argument('--old', required=True, help='Path to the previous sponsors.json')
    parser.add_argument('--new', required=True, help='Path to the current sponsors.json')
    parser.add_argument('--table', action='store_true', help='Also print the overview table')
    parser.add_argument('--rate', type=float, default=83.5, help='USD exchange rate used in the table')
    parser.add_argument('--currency', default='INR', help='Currency shown next to USD')

    args = parser.parse_args()

    try:
        for line in compare(args.old, args.new, args.table, args.rate, args.currency):
            print(line)
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)

if __name__ == '__main__':
    main()
