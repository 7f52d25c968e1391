from datetime import datetime, timezone

from . import db


WATCHLIST = "watchlist"
WATCHED = "watched"
COLLECTION_KINDS = (WATCHLIST, WATCHED)


def utcnow():
    # Stored without tzinfo so values compare equal after a round trip on
    # both PostgreSQL and SQLite.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LibraryEntry(db.Model):
    __tablename__ = "library_entries"

    id = db.Column(db.Integer, primary_key=True)
    owner = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    collection_kind = db.Column(
        db.Enum(*COLLECTION_KINDS, name="collection_kind"), nullable=False
    )
    external_movie_id = db.Column(db.String(32), nullable=False)  # IMDb id
    title = db.Column(db.String(255), nullable=False)
    poster_url = db.Column(db.String(1024), nullable=True)
    year = db.Column(db.String(16), nullable=True)  # "1994" or "2010–2015"
    comment = db.Column(db.Text, nullable=True)  # watched only
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # One entry per movie per collection per user
    __table_args__ = (
        db.UniqueConstraint(
            "owner",
            "collection_kind",
            "external_movie_id",
            name="uq_library_entry_owner_kind_movie",
        ),
        db.Index("ix_library_entry_owner_kind_created", "owner", "collection_kind", "created_at"),
    )

    def to_dict(self):
        return {
            "externalMovieId": self.external_movie_id,
            "collectionKind": self.collection_kind,
            "title": self.title,
            "posterUrl": self.poster_url,
            "year": self.year,
            "comment": self.comment,
            "createdAt": self.created_at.isoformat() + "Z",
        }

    def __repr__(self):
        return (
            f"<LibraryEntry owner={self.owner}, kind={self.collection_kind}, "
            f"movie={self.external_movie_id}, title={self.title}>"
        )
