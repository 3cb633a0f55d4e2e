# Check the FinTrack tables on a live Supabase project
from __future__ import annotations
import sys
import io
from pathlib import Path

sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import toml

from fintrack_core.stores.supabase_store import (
    AUDIT_TABLE,
    PROFILES_TABLE,
    REPORTS_TABLE,
    SETTINGS_TABLE,
)

EXPECTED_COLUMNS = {
    PROFILES_TABLE: ["id", "email", "name", "role", "status", "created_at", "last_login"],
    REPORTS_TABLE: ["id", "type", "year", "date", "data"],
    SETTINGS_TABLE: ["key", "value"],
    AUDIT_TABLE: ["id", "user_email", "action", "details", "timestamp"],
}


def main():
    from supabase import create_client

    secrets_path = project_root / ".streamlit" / "secrets.toml"
    secrets = toml.load(secrets_path)
    client = create_client(secrets["supabase"]["url"], secrets["supabase"]["key"])

    problems = 0
    for table, expected in EXPECTED_COLUMNS.items():
        print(f"\n{'='*60}")
        print(f"Table: {table}")
        print(f"{'='*60}")
        try:
            # Fetch one row to see column structure
            response = client.table(table).select("*").limit(1).execute()
            if response.data:
                row = response.data[0]
                print("Columns:")
                for key, value in row.items():
                    print(f"  - {key}: {type(value).__name__} = {repr(value)[:50]}")
                missing = [c for c in expected if c not in row]
                if missing:
                    problems += 1
                    print(f"  MISSING: {', '.join(missing)}")
            else:
                print("  (no data found - table exists but is empty)")
        except Exception as e:
            problems += 1
            print(f"  Error: {e}")

    print(f"\n{problems} table(s) with problems. See scripts/create_tables.sql")
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
