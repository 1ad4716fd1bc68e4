import os
from flask import Flask

from .cache import DEFAULT_TTL, open_cache
from .config import env_int, env_list
from .upstream import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, CachedFetcher, ResultsClient


def _init_pg_backend(app, cache) -> None:
    """Start the connection pool and create the cache table.

    Neither step is fatal: without a pool ``cache_pg`` connects directly, and
    a missing table only fails the requests that touch it.
    """
    from . import cache_pg as _pg
    try:
        _pg.init_pool(minconn=env_int("DB_POOL_MIN", 1), maxconn=env_int("DB_POOL_MAX", 10))
    except Exception:  # pylint: disable=broad-except
        app.logger.exception("PostgreSQL pool initialization failed; continuing without pool")
    try:
        cache.ensure_schema()
    except Exception:  # pylint: disable=broad-except
        app.logger.exception("Cache schema initialization failed; requests will fail until it exists")


def create_app(cache=None, session=None):
    """Application factory.

    ``cache`` and ``session`` default to the store selected by the environment
    and a fresh ``requests.Session``; tests pass fakes.
    """
    app = Flask(__name__)
    # Registry and category views are ordered; keep that order in responses
    app.json.sort_keys = False
    app.config.update(
        RESULTS_API_BASE=os.environ.get("RESULTS_API_BASE", DEFAULT_BASE_URL),
        TOURNAMENT_IDS=env_list("TOURNAMENT_IDS", "4221"),
        CACHE_TTL=env_int("CACHE_TTL", DEFAULT_TTL),
        FETCH_TIMEOUT=env_int("FETCH_TIMEOUT", DEFAULT_TIMEOUT),
    )

    if cache is None:
        cache = open_cache()
        if cache.backend == "postgres":
            _init_pg_backend(app, cache)
    app.logger.info("Using %s cache backend", getattr(cache, "backend", type(cache).__name__))

    fetcher = CachedFetcher(
        cache,
        session=session,
        ttl=app.config["CACHE_TTL"],
        timeout=app.config["FETCH_TIMEOUT"],
    )
    app.extensions["archery"] = {
        "cache": cache,
        "client": ResultsClient(fetcher, base_url=app.config["RESULTS_API_BASE"]),
    }

    from . import routes  # type: ignore
    app.register_blueprint(routes.bp)

    @app.cli.command("flush-cache")
    def flush_cache_command():
        """Drop every cached upstream payload."""
        count = cache.flush()
        print(f"Flushed {count} cache entries")

    return app
