import logging

import requests

from errors import NotFound, UpstreamUnavailable


logger = logging.getLogger(__name__)


class OMDbClient:
    """
    Simple wrapper for the OMDb API: title search and lookup by IMDb id.
    """

    BASE_URL = "https://www.omdbapi.com/"

    def __init__(self, api_key, base_url=None, timeout=5):
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout

    def search(self, title):
        return self._get({"s": title})

    def fetch_movie(self, imdb_id):
        return self._get({"i": imdb_id, "plot": "full"})

    def _get(self, params):
        params = {"apikey": self.api_key, **params}
        try:
            resp = requests.get(self.base_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Error fetching from OMDb: %s", exc)
            raise UpstreamUnavailable() from exc

        # OMDb reports misses with HTTP 200 and Response "False"
        if data.get("Response") == "False":
            logger.warning("OMDb API returned error: %s", data.get("Error"))
            raise NotFound(data.get("Error") or "Movie not found!")
        return data
