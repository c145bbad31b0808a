"""Relational store for persisted selection pixels (SQLAlchemy Core).

Works against any SQLAlchemy backend; SQLite is the default so no server is
required.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import List, Sequence

from dotenv import load_dotenv
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import InsertError, PrepareError
from ..models.shape_row import MAX_FILE_NAME_LENGTH, ShapeRow

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/shape_data.db"


def _ensure_sqlite_dir(url: str) -> None:
    prefix = "sqlite:///"
    if url.startswith(prefix) and url != "sqlite:///:memory:":
        Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


class ShapeRepository:
    """
    Batch inserts of ShapeRow records into the shape_data table.
    Each batch is one all-or-nothing transaction.
    """

    def __init__(self, database_url: str | None = None, table_name: str | None = None):
        self.database_url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        table_name = table_name or os.getenv("SHAPE_TABLE_NAME", "shape_data")
        _ensure_sqlite_dir(self.database_url)

        self.engine: Engine = create_engine(self.database_url, pool_pre_ping=True)
        self.metadata = MetaData()
        self.table = Table(
            table_name,
            self.metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("file_name", String(MAX_FILE_NAME_LENGTH), nullable=False),
            Column("x", Integer, nullable=False),
            Column("y", Integer, nullable=False),
            Column("R", Integer, nullable=False),
            Column("G", Integer, nullable=False),
            Column("B", Integer, nullable=False),
            Column("T", String(32), nullable=False),
        )
        self.metadata.create_all(self.engine)
        logger.info(f"Shape store ready: {self.database_url.split('@')[-1]} (table {table_name})")

    def insert_rows(self, rows: Sequence[ShapeRow]) -> int:
        """
        Insert every row inside a single transaction.

        Rows are executed one by one so the first failure stops the batch;
        the whole transaction is then rolled back.

        Returns:
            int: Number of inserted rows (always len(rows) on success).

        Raises:
            PrepareError: the connection or transaction could not be opened.
            InsertError: a row failed; nothing from this batch was committed.
        """
        statement = insert(self.table)
        try:
            conn = self.engine.connect()
            trans = conn.begin()
        except SQLAlchemyError as e:
            raise PrepareError(str(e)) from e

        try:
            for index, row in enumerate(rows):
                try:
                    conn.execute(statement, row.as_record())
                except Exception as e:  # driver-level errors (e.g. OverflowError) too
                    trans.rollback()
                    detail = str(getattr(e, "orig", None) or e)
                    logger.warning(f"Insert failed on row {index}, batch rolled back: {detail}")
                    raise InsertError(detail, row_index=index) from e
            trans.commit()
        except BaseException:
            if trans.is_active:
                trans.rollback()
            raise
        finally:
            conn.close()

        return len(rows)

    def count_rows(self) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(select(func.count()).select_from(self.table)).scalar_one())

    def fetch_rows(self) -> List[ShapeRow]:
        """All stored rows in insertion order."""
        columns = [self.table.c[name] for name in ("file_name", "x", "y", "R", "G", "B", "T")]
        with self.engine.connect() as conn:
            result = conn.execute(select(*columns).order_by(self.table.c.id))
            return [ShapeRow(*record) for record in result]

    def dispose(self) -> None:
        self.engine.dispose()
