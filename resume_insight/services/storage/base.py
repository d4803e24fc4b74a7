import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import Table, and_, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...exceptions import StorageError

logger = logging.getLogger("item_store")


class ItemStore:
    """
    Point reads/writes by (pk, sk) plus the two range queries the pipeline
    needs: every item under a partition with a sort-key prefix, and every item
    of a type for one user.
    """

    def __init__(self, session_factory: sessionmaker, table: Table):
        self.session_factory = session_factory
        self.table = table

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Storage operation on {self.table.name} failed: {e}")
            raise StorageError(f"Storage operation failed: {e}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def put(
        self,
        pk: str,
        sk: str,
        entity_type: str,
        resume_id: str,
        data: Dict[str, Any],
        user_id: Optional[str] = None,
        user_timestamp: Optional[str] = None,
        s3_key: Optional[str] = None,
    ) -> None:
        """Whole-item overwrite; the last writer wins."""
        t = self.table
        with self.session() as db:
            db.execute(delete(t).where(and_(t.c.pk == pk, t.c.sk == sk)))
            db.execute(insert(t).values(
                pk=pk,
                sk=sk,
                entity_type=entity_type,
                resume_id=resume_id,
                user_id=user_id,
                user_timestamp=user_timestamp,
                s3_key=s3_key,
                data=data,
            ))

    def get(self, pk: str, sk: str) -> Optional[Dict[str, Any]]:
        t = self.table
        with self.session() as db:
            row = db.execute(select(t.c.data).where(and_(t.c.pk == pk, t.c.sk == sk))).first()
        return row.data if row else None

    def query_partition(self, pk: str, sk_prefix: str = "") -> List[Dict[str, Any]]:
        t = self.table
        stmt = select(t.c.data).where(t.c.pk == pk)
        if sk_prefix:
            stmt = stmt.where(t.c.sk.startswith(sk_prefix, autoescape=True))
        with self.session() as db:
            rows = db.execute(stmt.order_by(t.c.sk)).all()
        return [row.data for row in rows]

    def query_user(self, user_id: str, entity_type: str) -> List[Dict[str, Any]]:
        t = self.table
        stmt = (
            select(t.c.data)
            .where(and_(t.c.user_id == user_id, t.c.entity_type == entity_type))
            .order_by(t.c.user_timestamp)
        )
        with self.session() as db:
            rows = db.execute(stmt).all()
        return [row.data for row in rows]

    def find_by_s3_key(self, s3_key: str, entity_type: str) -> Optional[Dict[str, Any]]:
        t = self.table
        stmt = select(t.c.data).where(and_(t.c.s3_key == s3_key, t.c.entity_type == entity_type))
        with self.session() as db:
            row = db.execute(stmt).first()
        return row.data if row else None
