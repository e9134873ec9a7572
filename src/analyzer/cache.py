"""Findings cache for repeat runs.

Cache Strategy:
- Store serialised findings per file
- Use file mtime + size as cache key
- Tie every entry to a fingerprint of the active rule set, so changing the
  configured rules or targets invalidates it
- If file unchanged, skip parsing, lowering and classification

Cache Format: SQLite database for performance and simplicity
Location: .result_janitor_cache/ in project root (configurable)
"""

import sqlite3
import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class FindingsCache:
    """Cache of per-file findings keyed by file state and rule set."""

    def __init__(self, cache_dir: Path):
        """Initialize cache database.

        Args:
            cache_dir: Directory holding the SQLite file (created if missing)
        """
        self.cache_dir = Path(cache_dir)
        self.cache_file = self.cache_dir / 'findings.db'

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(self.cache_file))
        self._init_database()

    def _init_database(self):
        """Create cache tables if they don't exist."""
        cursor = self.conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS file_findings (
                file_path TEXT PRIMARY KEY,
                mtime REAL NOT NULL,
                size INTEGER NOT NULL,
                rules_fingerprint TEXT NOT NULL,
                findings TEXT NOT NULL
            )
        ''')

        self.conn.commit()

    def _get_cache_key(self, file_path: Path) -> Optional[Tuple[float, int]]:
        """Return (mtime, size) for a file, or None if it doesn't exist.

        LOW-LATENCY: Use mtime + size (fast) instead of hashing the content.
        """
        try:
            stat = file_path.stat()
            return (stat.st_mtime, stat.st_size)
        except (OSError, FileNotFoundError):
            return None

    def get_findings(self, file_path: Path, rules_fingerprint: str) -> Optional[List[Dict]]:
        """Get cached findings for a file.

        Args:
            file_path: Path to file
            rules_fingerprint: Fingerprint of the active rule set

        Returns:
            List of finding dicts, or None if not cached or stale
        """
        cache_key = self._get_cache_key(file_path)
        if cache_key is None:
            return None

        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT mtime, size, rules_fingerprint, findings FROM file_findings
            WHERE file_path = ?
        ''', (str(file_path),))

        result = cursor.fetchone()
        if not result:
            return None

        cached_mtime, cached_size, cached_fingerprint, findings = result
        if (cached_mtime, cached_size) != cache_key or cached_fingerprint != rules_fingerprint:
            return None

        try:
            return json.loads(findings)
        except json.JSONDecodeError:
            return None

    def set_findings(self, file_path: Path, rules_fingerprint: str, findings: List[Dict]):
        """Cache findings for a file.

        Args:
            file_path: Path to file
            rules_fingerprint: Fingerprint of the active rule set
            findings: List of finding dicts
        """
        cache_key = self._get_cache_key(file_path)
        if cache_key is None:
            return

        mtime, size = cache_key
        cursor = self.conn.cursor()
        cursor.execute('''
            INSERT OR REPLACE INTO file_findings (file_path, mtime, size, rules_fingerprint, findings)
            VALUES (?, ?, ?, ?, ?)
        ''', (str(file_path), mtime, size, rules_fingerprint, json.dumps(findings)))

        self.conn.commit()

    def invalidate_file(self, file_path: Path):
        """Invalidate cache for a specific file."""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM file_findings WHERE file_path = ?', (str(file_path),))
        self.conn.commit()

    def clear_cache(self):
        """Clear all cached data."""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM file_findings')
        self.conn.commit()

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        cursor = self.conn.cursor()
        cursor.execute('SELECT COUNT(*) FROM file_findings')
        total_files = cursor.fetchone()[0]

        cursor.execute('SELECT findings FROM file_findings')
        total_findings = 0
        for (findings,) in cursor.fetchall():
            try:
                total_findings += len(json.loads(findings))
            except json.JSONDecodeError:
                continue

        return {
            'total_files': total_files,
            'findings_cached': total_findings,
        }

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
