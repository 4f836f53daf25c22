"""PostgreSQL record store for report documents."""
import psycopg2
from psycopg2.extras import Json, RealDictCursor
from typing import Optional, Tuple
from contextlib import contextmanager

from report_relay.logging_conf import logger
from report_relay.models import Entity


class RecordStore:
    """Upsert-only sink: one JSONB document per (tenant, report id)."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._conn = None

    @property
    def conn(self):
        """Get or create database connection."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.database_url)
        return self._conn

    def close(self):
        """Close database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            self._conn = None

    @contextmanager
    def cursor(self):
        """Context manager for cursor with auto-commit/rollback."""
        cur = self.conn.cursor(cursor_factory=RealDictCursor)
        try:
            yield cur
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cur.close()

    def ensure_schema(self) -> None:
        with self.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS reports (
                    id TEXT NOT NULL,
                    tenant_key TEXT NOT NULL,
                    document JSONB NOT NULL,
                    location JSONB,
                    last_updated TIMESTAMPTZ,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (tenant_key, id)
                )
            """)

    def upsert(self, entity: Entity, tenant_key: str, location: Optional[Tuple[float, float]]) -> None:
        """Insert or replace the document of one report."""
        logger.info(f'Saving details for message "{entity.id}" to database')
        document = {**entity.to_dict(), "tenantKey": tenant_key, "location": list(location) if location else None}
        with self.cursor() as cur:
            cur.execute("""
                INSERT INTO reports (id, tenant_key, document, location, last_updated, updated_at)
                VALUES (%s, %s, %s, %s, %s, NOW())
                ON CONFLICT (tenant_key, id) DO UPDATE
                SET document = EXCLUDED.document,
                    location = EXCLUDED.location,
                    last_updated = EXCLUDED.last_updated,
                    updated_at = NOW()
            """, (
                str(entity.id),
                tenant_key,
                Json(document),
                Json(list(location)) if location else None,
                entity.last_updated,
            ))
