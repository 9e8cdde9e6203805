"""Database schema DDL. All objects use CREATE IF NOT EXISTS for idempotency."""

TITLE_COLUMN_LENGTH = 64

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS nodes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL CHECK (length(title) BETWEEN 1 AND {TITLE_COLUMN_LENGTH}),
    lft INTEGER NOT NULL,
    rgt INTEGER NOT NULL,
    attachment TEXT,
    CHECK (lft < rgt)
);

CREATE INDEX IF NOT EXISTS idx_nodes_lft ON nodes(lft);
CREATE INDEX IF NOT EXISTS idx_nodes_rgt ON nodes(rgt);
CREATE INDEX IF NOT EXISTS idx_nodes_title ON nodes(title);
"""
