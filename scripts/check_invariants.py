"""
One-shot check: read every node of a treestore database and report any
nested-set invariant the stored intervals violate.

Run it against a stopped server (or a copy of the database file); it opens
the file read-only and never modifies it.

Usage:
    python scripts/check_invariants.py [path/to/treestore.db]

Exits with status 1 if any violation is found.
"""

import sqlite3
import sys
from pathlib import Path

from treestore.models import Node
from treestore.nestedset.invariants import find_violations


def get_db_path() -> Path:
    """Database path from argv, else treestore.db in the project directory."""
    if len(sys.argv) > 1:
        return Path(sys.argv[1])
    return Path(__file__).resolve().parent.parent / "treestore.db"


def load_nodes(db_path: Path) -> list[Node]:
    conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
    conn.row_factory = sqlite3.Row
    try:
        rows = conn.execute(
            "SELECT id, title, lft, rgt, attachment FROM nodes ORDER BY lft"
        ).fetchall()
    finally:
        conn.close()
    return [Node(**dict(row)) for row in rows]


def main() -> int:
    db_path = get_db_path()
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        return 1

    nodes = load_nodes(db_path)
    problems = find_violations(nodes)
    if not problems:
        print(f"OK: {len(nodes)} nodes, intervals are consistent.")
        return 0

    print(f"Found {len(problems)} problem(s) in {len(nodes)} nodes:")
    for problem in problems:
        print(f"  - {problem}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
