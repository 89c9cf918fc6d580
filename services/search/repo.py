"""SQLAlchemy repository for the food order search index.

Each indexed food order is one row in the ``documents`` table: the order
id and a flattened text made of its searchable attributes. Matching is a
plain case-insensitive substring test per query term, which keeps the
service portable between PostgreSQL and SQLite.

The connection comes from ``SEARCH_DATABASE_URL`` when set, otherwise it
is assembled from the ``DB_*`` variables.
"""

import os
from contextlib import contextmanager
from typing import List

from sqlalchemy import BigInteger, Text, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Session, mapped_column

DB_HOST = os.getenv("DB_HOST", "search-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "search")
DB_USER = os.getenv("DB_USER", "search_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "search-pass")

DATABASE_URL = os.getenv(
    "SEARCH_DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
engine = create_engine(DATABASE_URL, pool_pre_ping=True)


class Base(DeclarativeBase): pass


class Document(Base):
    """Indexed text for one food order.

    Attributes:
        id: Food order id (primary key, assigned by the orders API).
        text: Whitespace separated searchable attributes.
    """
    __tablename__ = "documents"
    id = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    text = mapped_column(Text, nullable=False, default="")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def init_db() -> None:
    Base.metadata.create_all(engine)


@contextmanager
def get_session():
    """Yield a SQLAlchemy session that is closed on exit."""
    with Session(engine) as s:
        yield s


class SearchRepo:
    """Repository for document upserts, deletes and term queries."""

    def upsert(self, doc_id: int, text: str) -> None:
        with get_session() as s:
            s.merge(Document(id=doc_id, text=text))
            s.commit()

    def delete(self, doc_id: int) -> bool:
        """Delete a document.

        Returns:
            bool: False when there was no document with that id.
        """
        with get_session() as s:
            obj = s.get(Document, doc_id)
            if obj is None:
                return False
            s.delete(obj)
            s.commit()
            return True

    def search(self, query: str, limit: int) -> List[int]:
        """Return ids of documents containing every term of ``query``.

        Args:
            query: Free text; split on whitespace.
            limit: Maximum number of ids returned.

        Returns:
            list[int]: Matching ids in ascending order, empty for a blank
                query.
        """
        terms = query.split()
        if not terms:
            return []
        stmt = select(Document.id)
        for term in terms:
            stmt = stmt.where(Document.text.ilike(f"%{_escape_like(term)}%", escape="\\"))
        stmt = stmt.order_by(Document.id).limit(limit)
        with get_session() as s:
            return list(s.scalars(stmt))
