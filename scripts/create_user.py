"""Create a user directly in the database.

Usage:
  python scripts/create_user.py --name Alice --email alice@example.com --password '...'

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from postboard.auth.crud import create_user
from postboard.config import load_config
from postboard.db import connect, init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--name", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        u = create_user(conn, name=args.name, email=args.email, password=args.password)

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()
