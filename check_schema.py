#!/usr/bin/env python3
"""
Check the incidence CSV against the expected column schema
"""

import sys

import pandas as pd

from incidence_loader import RECORD_FIELDS, SOURCE_COLUMNS, normalise_column_name
from report_config import ReportConfig


def check_file_schema(path: str) -> bool:
    """Print the file's columns and flag any expected field that is missing."""

    print(f"\n{'='*60}")
    print(f"📋 {path}")
    print(f"{'='*60}")

    try:
        sample = pd.read_csv(path, dtype=str, nrows=200)
    except FileNotFoundError:
        print(f"❌ File not found: {path}")
        return False

    normalised = {normalise_column_name(c): c for c in sample.columns}

    print(f"Columns ({len(sample.columns)}):")
    for name, original in normalised.items():
        print(f"  • {original} -> {name}")

    print("\nExpected fields:")
    field_sources = {field: source for source, field in SOURCE_COLUMNS.items()}
    ok = True
    for field in RECORD_FIELDS:
        source = field_sources.get(field, field)
        if field in normalised or source in normalised:
            print(f"  ✅ {field}")
        else:
            print(f"  ❌ {field} (looked for '{source}')")
            ok = False

    hb_column = normalised.get('hb') or normalised.get('health_board')
    if hb_column:
        boards = sorted(sample[hb_column].dropna().unique())
        print(f"\nHealth boards in first {len(sample)} rows: {', '.join(boards)}")

    print(f"\nSample data:")
    print(sample.head(3).to_string())

    return ok


def main():
    print("🔍 Checking incidence file schema")
    config = ReportConfig.from_env()
    path = sys.argv[1] if len(sys.argv) > 1 else str(config.data_path)
    if not check_file_schema(path):
        sys.exit(1)


if __name__ == "__main__":
    main()
