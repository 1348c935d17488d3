"""Movie catalog client.

Wraps the TMDB REST API behind `MovieProvider.fetch_candidates(topic, count)`.
Upstream failures never reach the caller: any request or decoding error is
logged and the bundled fallback catalog is returned instead.
"""
import datetime
import logging
import random
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from moviematch.models import Movie
from .fallback_movies import get_fallback_movies

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = 'popular'
FALLBACK_TOPIC = 'fallback'
SEARCH_PREFIX = 'search:'
CUSTOM_TOPIC = 'custom'

# Named categories -> (path, extra query params)
TOPIC_ENDPOINTS: Dict[str, Tuple[str, dict]] = {
    'popular': ('/movie/popular', {}),
    'topRated': ('/movie/top_rated', {}),
    'nowPlaying': ('/movie/now_playing', {}),
    'upcoming': ('/movie/upcoming', {}),
    'animation': ('/discover/movie', {'with_genres': 16}),
    'action': ('/discover/movie', {'with_genres': 28}),
    'comedy': ('/discover/movie', {'with_genres': 35}),
    'horror': ('/discover/movie', {'with_genres': 27}),
    'sciFi': ('/discover/movie', {'with_genres': 878}),
    'romance': ('/discover/movie', {'with_genres': 10749}),
    'documentary': ('/discover/movie', {'with_genres': 99}),
    'classic': ('/discover/movie', {'primary_release_date.lte': '1990-01-01'}),
}

# Time-range categories -> (first year, last year); None means the current year
YEAR_RANGES: Dict[str, Tuple[int, Optional[int]]] = {
    'classics': (1930, 1980),
    'modern': (2010, None),
    '90s': (1990, 1999),
    '80s': (1980, 1989),
}


def list_topics() -> List[str]:
    return list(TOPIC_ENDPOINTS) + list(YEAR_RANGES) + [FALLBACK_TOPIC]


def select_movies(pool: Sequence[Movie], count: int, rng=random) -> List[Movie]:
    """Uniformly sample up to `count` distinct movies from `pool`."""
    return rng.sample(list(pool), min(count, len(pool)))


class MovieProvider:
    def __init__(self, api_key: Optional[str] = None,
                 base_url: str = 'https://api.themoviedb.org/3',
                 image_base_url: str = 'https://image.tmdb.org/t/p/w500',
                 timeout: float = 5.0,
                 session: Optional[requests.Session] = None,
                 cache_size: int = 128):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.image_base_url = image_base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache_size = cache_size
        # Per-provider LRU; failed or empty loads raise, so only real listings are kept
        self._load_listing = lru_cache(maxsize=cache_size)(self._fetch_listing)

    @classmethod
    def from_config(cls, config) -> 'MovieProvider':
        return cls(
            api_key=config.get('TMDB_API_KEY'),
            base_url=config.get('TMDB_BASE_URL', 'https://api.themoviedb.org/3'),
            image_base_url=config.get('TMDB_IMAGE_BASE_URL', 'https://image.tmdb.org/t/p/w500'),
            timeout=float(config.get('TMDB_TIMEOUT_SEC', 5)),
            cache_size=int(config.get('TMDB_CACHE_SIZE', 128)),
        )

    # ---- Public contract ----

    def fetch_candidates(self, topic: str = DEFAULT_TOPIC, count: int = 15) -> List[Movie]:
        """Ordered, non-empty candidate list for a topic."""
        topic = (topic or DEFAULT_TOPIC).strip()
        if topic == FALLBACK_TOPIC:
            return get_fallback_movies(count)
        if topic in YEAR_RANGES:
            start, end = YEAR_RANGES[topic]
            return self.fetch_by_year_range(start, end or datetime.date.today().year, count)
        if topic.startswith(SEARCH_PREFIX):
            query = topic[len(SEARCH_PREFIX):].strip()
            if not query:
                return self.fetch_by_topic(DEFAULT_TOPIC, count)
            return self.search(query, count)
        return self.fetch_by_topic(topic, count)

    def fetch_by_topic(self, topic: str, count: int) -> List[Movie]:
        path, extra = TOPIC_ENDPOINTS.get(topic, TOPIC_ENDPOINTS[DEFAULT_TOPIC])
        params = dict(extra, page=1)
        return self._listing(path, params, count)

    def fetch_by_year_range(self, start_year: int, end_year: int, count: int) -> List[Movie]:
        params = {
            'sort_by': 'popularity.desc',
            'primary_release_date.gte': f"{start_year}-01-01",
            'primary_release_date.lte': f"{end_year}-12-31",
            'page': 1,
        }
        return self._listing('/discover/movie', params, count)

    def search(self, query: str, count: int) -> List[Movie]:
        params = {'query': query, 'page': 1}
        return self._listing('/search/movie', params, count)

    def fetch_custom(self, titles: Sequence[str], count: int) -> List[Movie]:
        """Resolve caller-supplied titles, one best match each, in order.

        A title without a match (or whose lookup fails) becomes a
        placeholder movie carrying just the title.
        """
        movies = []
        for index, title in enumerate(list(titles)[:count]):
            movie_id = f"m{index + 1}"
            movie = None
            if self.api_key:
                try:
                    data = self._get('/search/movie', {'query': title, 'include_adult': 'false'})
                    results = data.get('results') or []
                    if results:
                        movie = self._to_movie(movie_id, results[0])
                    else:
                        logger.info("No catalog match for custom title %r", title)
                except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
                    logger.warning("Custom title lookup failed for %r: %s", title, exc)
            movies.append(movie or Movie(id=movie_id, title=title))
        return movies

    # ---- Internals ----

    def _listing(self, path: str, params: dict, count: int) -> List[Movie]:
        if not self.api_key:
            logger.warning("TMDB_API_KEY is not set; serving fallback movies")
            return get_fallback_movies(count)
        try:
            movies = self._load_listing(path, tuple(sorted(params.items())), count)
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            logger.warning("Movie catalog request failed (%s): %s; serving fallback movies", path, exc)
            return get_fallback_movies(count)
        return list(movies)

    def _fetch_listing(self, path: str, params: tuple, count: int) -> Tuple[Movie, ...]:
        movies = self._list_movies(path, dict(params), count)
        if not movies:
            raise ValueError(f"no results for {dict(params)}")
        return tuple(movies)

    def _get(self, path: str, params: dict) -> dict:
        query = dict(params, api_key=self.api_key, language='en-US')
        response = self.session.get(f"{self.base_url}{path}", params=query, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _list_movies(self, path: str, params: dict, count: int) -> List[Movie]:
        data = self._get(path, params)
        basic = (data.get('results') or [])[:count]
        return [self._to_movie(f"m{index + 1}", item) for index, item in enumerate(basic)]

    def _fetch_runtime(self, tmdb_id) -> int:
        try:
            details = self._get(f"/movie/{tmdb_id}", {})
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Could not fetch details for movie %s: %s", tmdb_id, exc)
            return 0
        return int(details.get('runtime') or 0)

    def _to_movie(self, movie_id: str, item: dict) -> Movie:
        poster = item.get('poster_path')
        release_date = item.get('release_date') or ''
        return Movie(
            id=movie_id,
            title=item['title'],
            image_url=f"{self.image_base_url}{poster}" if poster else None,
            release_year=release_date.split('-')[0] if release_date else '',
            rating=item.get('vote_average') or 0,
            duration=self._fetch_runtime(item['id']),
            description=item.get('overview') or '',
            tmdb_id=item.get('id'),
        )
