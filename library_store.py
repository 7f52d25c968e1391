"""Per-user watchlist and watched collections.

Every operation takes the caller's ``owner`` id, resolved by the identity
layer, and never reads ownership from client input. Adding a movie that is
already in the watchlist changes nothing; adding one that is already in the
watched list only replaces its comment (last write wins).
"""

import logging
from collections import namedtuple

from errors import InvalidArgument, Unauthorized
from library_repository import LibraryRepository
from models.library_entry import COLLECTION_KINDS, WATCHLIST, utcnow


logger = logging.getLogger(__name__)

# created is False when the key already existed (no-op or comment update)
AddResult = namedtuple("AddResult", ["entry", "created"])

# Column sizes from models.library_entry
MAX_LENGTHS = {
    "externalMovieId": 32,
    "title": 255,
    "posterUrl": 1024,
    "year": 16,
}


class LibraryStore:
    def __init__(self, repository=None, clock=utcnow):
        self.repository = (
            repository if repository is not None else LibraryRepository()
        )
        self.clock = clock

    def list(self, owner, kind):
        """Return the owner's entries of ``kind``, newest first."""
        self._check(owner, kind)
        return list(self.repository.list_for_owner(owner, kind))

    def get(self, owner, kind, external_movie_id):
        self._check(owner, kind)
        return self.repository.get(
            owner, kind, _clean("externalMovieId", external_movie_id)
        )

    def add(
        self,
        owner,
        kind,
        external_movie_id,
        title,
        poster_url=None,
        year=None,
        comment=None,
    ):
        self._check(owner, kind)
        external_movie_id = _clean("externalMovieId", external_movie_id)
        title = _clean("title", title)
        if not external_movie_id or not title:
            raise InvalidArgument(
                "Missing movie details (externalMovieId, title)."
            )

        now = self.clock()
        values = {
            "owner": owner,
            "collection_kind": kind,
            "external_movie_id": external_movie_id,
            "title": title,
            "poster_url": _clean("posterUrl", poster_url),
            "year": _clean("year", year),
            "created_at": now,
        }

        if kind == WATCHLIST:
            entry = self.repository.insert_or_keep(values)
        else:
            values["comment"] = _clean_comment(comment)
            entry = self.repository.upsert_comment(values)

        # On conflict the stored created_at is kept, so it only matches
        # ours when this call inserted the row.
        created = entry.created_at == now
        logger.debug(
            "%s %s for owner %s (%s)",
            kind,
            external_movie_id,
            owner,
            "created" if created else "already present",
        )
        return AddResult(entry, created)

    def remove(self, owner, kind, external_movie_id):
        self._check(owner, kind)
        external_movie_id = str(external_movie_id or "").strip()
        # Blank or oversized ids can never have been stored
        if not external_movie_id or (
            len(external_movie_id) > MAX_LENGTHS["externalMovieId"]
        ):
            return
        self.repository.delete(owner, kind, external_movie_id)

    # =================================
    #         Helper Functions
    # =================================

    @staticmethod
    def _check(owner, kind):
        # Identity comes first: nothing touches storage without an owner.
        if owner is None:
            raise Unauthorized()
        if kind not in COLLECTION_KINDS:
            raise InvalidArgument(f"Unknown collection '{kind}'.")


def _clean(field, value):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidArgument(f"'{field}' must be a string.")
    value = str(value).strip()
    if len(value) > MAX_LENGTHS[field]:
        raise InvalidArgument(
            f"'{field}' is longer than {MAX_LENGTHS[field]} characters."
        )
    return value or None


def _clean_comment(comment):
    if comment is None:
        return None
    if not isinstance(comment, str):
        raise InvalidArgument("'comment' must be a string.")
    return comment
