#!/usr/bin/env python3
# backend/init_db.py
"""
Database initialization script.

This script can be run from any directory:
    python backend/init_db.py
    cd backend && python init_db.py

Pass --seed to also load the demo portfolio.
"""
import argparse
import sys
from pathlib import Path

# Add the backend directory to Python path so 'app' package is importable
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from app.config import settings
from app.database import init_db
from app.utils import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Create database tables")
    parser.add_argument("--seed", action="store_true", help="Load the demo portfolio afterwards")
    args = parser.parse_args()

    setup_logging()
    print(f"Creating database tables ({settings.database_url})...")
    init_db()
    print("Tables created successfully!")

    if args.seed:
        from scripts.seed_sample_data import seed
        seed()


if __name__ == "__main__":
    main()
