from flask import Blueprint, jsonify


other_api_bp = Blueprint("other", __name__)


@other_api_bp.route("/", methods=["GET"])
def health_check():
    return jsonify({"status": "Movie Library Service is running!"}), 200
