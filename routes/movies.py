import logging

from flask import Blueprint, request, jsonify, current_app

from errors import InvalidArgument


logger = logging.getLogger(__name__)

movies_api_bp = Blueprint("movies", __name__)


# =================================
#     Movie Metadata Endpoints
# =================================


@movies_api_bp.route("/movies/search", methods=["GET"])
def search_movies():
    query = request.args.get("q", "").strip()
    logger.info("Received /movies/search with query: %s", query)
    if not query:
        raise InvalidArgument("Missing search query")

    return jsonify(current_app.omdb.search(query)), 200


@movies_api_bp.route("/movies/<imdb_id>", methods=["GET"])
def get_movie_details(imdb_id):
    logger.info("Received /movies/%s", imdb_id)
    return jsonify(current_app.omdb.fetch_movie(imdb_id)), 200
