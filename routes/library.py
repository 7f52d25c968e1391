from flask import Blueprint, request, jsonify

from errors import InvalidArgument
from identity import owner_required
from library_store import LibraryStore
from models.library_entry import WATCHLIST


library_api_bp = Blueprint("library", __name__)

KIND = "<any(watchlist, watched):kind>"

# Body keys, camelCase first, then the OMDb spelling a search result carries
FIELD_ALIASES = {
    "external_movie_id": ("externalMovieId", "imdbID"),
    "title": ("title", "Title"),
    "poster_url": ("posterUrl", "Poster"),
    "year": ("year", "Year"),
    "comment": ("comment",),
}


def _movie_fields(data):
    fields = {}
    for name, keys in FIELD_ALIASES.items():
        fields[name] = next(
            (data[key] for key in keys if data.get(key) is not None), None
        )
    # OMDb uses "N/A" for a missing poster
    if fields["poster_url"] == "N/A":
        fields["poster_url"] = None
    return fields


# =================================
#        Library Endpoints
# =================================


@library_api_bp.route(f"/library/{KIND}", methods=["GET"])
@owner_required
def list_entries(kind, owner):
    entries = LibraryStore().list(owner, kind)
    return jsonify([entry.to_dict() for entry in entries]), 200


@library_api_bp.route(f"/library/{KIND}", methods=["POST"])
@owner_required
def add_entry(kind, owner):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgument("Request body must be a JSON object.")

    # Any user id in the body is ignored; the owner is the caller.
    result = LibraryStore().add(owner, kind, **_movie_fields(data))

    body = result.entry.to_dict()
    if result.created:
        return jsonify(body), 201
    if kind == WATCHLIST:
        body["message"] = "Already in watchlist"
    return jsonify(body), 200


@library_api_bp.route(f"/library/{KIND}/<external_movie_id>", methods=["DELETE"])
@owner_required
def remove_entry(kind, external_movie_id, owner):
    LibraryStore().remove(owner, kind, external_movie_id)
    return jsonify({"message": f"Removed from {kind}"}), 200
