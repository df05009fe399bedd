#!/usr/bin/env python3
"""
Link Building Catalog API: launch the HTTP server.

Usage:
    python main.py                          # http://localhost:8000
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 127.0.0.1         # bind to localhost only
    python main.py --db /path/to/catalog.sqlite
    python main.py --init-db                # create the tables, then exit
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sqlite3
import sys
from pathlib import Path

from utils.database import create_schema, init_pragmas


def init_db(db_path: Path) -> None:
    """Create the resource and provider tables at db_path."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    try:
        init_pragmas(conn)
        create_schema(conn)
    finally:
        conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the Link Building Catalog API.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8000")),
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Path to SQLite database (default: link_catalog.sqlite or APP_DB_PATH env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--init-db", action="store_true",
        help="Create the database schema and exit",
    )
    args = parser.parse_args()

    # Set DB path env var if provided via CLI
    if args.db is not None:
        os.environ["APP_DB_PATH"] = str(args.db)

    db_path = Path(os.getenv("APP_DB_PATH", "link_catalog.sqlite"))

    if args.init_db:
        init_db(db_path)
        print(f"Initialised database at {db_path}")
        return

    if not db_path.exists():
        print(f"Warning: Database not found at {db_path}")
        print("  Run 'python main.py --init-db' to create it,")
        print("  or pass --db /path/to/your/database.sqlite")
        print()

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    print(f"Starting Link Building Catalog API at http://{args.host}:{args.port}")
    print(f"Database: {db_path}")
    print()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
