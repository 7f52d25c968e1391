"""Persistence adapter for library entries.

Every statement is keyed on ``(owner, collection_kind, external_movie_id)``
and runs as a single atomic call; conflicting writes on the same key are
serialized by the database's unique constraint, not by this module.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from errors import StorageUnavailable
from models import db
from models.library_entry import LibraryEntry


logger = logging.getLogger(__name__)

UNIQUE_KEY = ["owner", "collection_kind", "external_movie_id"]

# Dialects with an "INSERT ... ON CONFLICT" construct
_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class LibraryRepository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # =================================
    #         Conditional writes
    # =================================

    def insert_or_keep(self, values):
        """Insert a new entry, or leave an existing one untouched.

        Returns the stored entry in either case. The conflict branch rewrites
        ``owner`` with its own value so RETURNING yields the existing row.
        """
        stmt = self._insert().values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=UNIQUE_KEY,
            set_={"owner": stmt.excluded.owner},
        ).returning(LibraryEntry)
        return self._write(stmt)

    def upsert_comment(self, values):
        """Insert a new entry, or overwrite only ``comment`` on conflict.

        Returns the stored entry in either case.
        """
        stmt = self._insert().values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=UNIQUE_KEY,
            set_={"comment": stmt.excluded.comment},
        ).returning(LibraryEntry)
        return self._write(stmt)

    def delete(self, owner, kind, external_movie_id):
        stmt = delete(LibraryEntry).where(
            LibraryEntry.owner == owner,
            LibraryEntry.collection_kind == kind,
            LibraryEntry.external_movie_id == external_movie_id,
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("delete", exc)
        return result.rowcount

    # =================================
    #              Reads
    # =================================

    def get(self, owner, kind, external_movie_id):
        stmt = select(LibraryEntry).where(
            LibraryEntry.owner == owner,
            LibraryEntry.collection_kind == kind,
            LibraryEntry.external_movie_id == external_movie_id,
        )
        try:
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            self._fail("get", exc)

    def list_for_owner(self, owner, kind):
        stmt = (
            select(LibraryEntry)
            .where(
                LibraryEntry.owner == owner,
                LibraryEntry.collection_kind == kind,
            )
            .order_by(LibraryEntry.created_at.desc(), LibraryEntry.id.desc())
        )
        try:
            return self.session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            self._fail("list", exc)

    # =================================
    #         Helper Functions
    # =================================

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect](LibraryEntry)
        except KeyError:
            raise StorageUnavailable(
                f"Conditional writes are not supported on '{dialect}'."
            ) from None

    def _write(self, stmt):
        try:
            entry = self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            ).first()
            # Detach so the returned values survive expire-on-commit
            # without another round trip.
            if entry is not None:
                self.session.expunge(entry)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("write", exc)
        return entry

    def _fail(self, operation, exc):
        self.session.rollback()
        logger.error("Library %s failed: %s", operation, exc)
        raise StorageUnavailable(str(exc)) from exc
