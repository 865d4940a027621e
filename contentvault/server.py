import argparse
import logging
import os

from aiohttp import web

from .api import STORE_KEY, error_middleware, setup_routes
from .constants import APP_NAME, DEFAULT_HOST, DEFAULT_PORT, SCHEMA_VERSION, VERSION
from .db import ContentVaultStore
from .paths import get_static_dir
from .seed import seed_if_empty

logger = logging.getLogger("ContentVault")

ADMIN_PAGE = "admin.html"
INDEX_PAGE = "index.html"


def _page_handler(static_dir, filename):
    path = os.path.join(static_dir, filename)

    async def handler(_request):
        if not os.path.isfile(path):
            raise web.HTTPNotFound()
        return web.FileResponse(path)

    return handler


def create_app(store=None, static_dir=None, seed=True):
    """Build the application around an explicitly provided store.

    The store is opened (and seeded when empty) on startup and closed on cleanup.
    """
    store = store or ContentVaultStore()
    static_dir = static_dir or get_static_dir()

    app = web.Application(middlewares=[error_middleware])
    app[STORE_KEY] = store

    async def on_startup(app):
        app[STORE_KEY].open()
        if seed:
            seed_if_empty(app[STORE_KEY])

    async def on_cleanup(app):
        app[STORE_KEY].close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    setup_routes(app)
    app.router.add_get("/admin", _page_handler(static_dir, ADMIN_PAGE))
    app.router.add_get("/", _page_handler(static_dir, INDEX_PAGE))
    if os.path.isdir(static_dir):
        # Registered last so the API and page routes take precedence.
        app.router.add_static("/", static_dir, show_index=False)
    else:
        logger.warning("Static directory %s not found; static assets disabled", static_dir)
    return app


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="contentvault", description=f"{APP_NAME} content server")
    parser.add_argument("--host", default=os.environ.get("HOST") or DEFAULT_HOST)
    try:
        env_port = int(os.environ.get("PORT") or DEFAULT_PORT)
    except ValueError:
        env_port = DEFAULT_PORT
    parser.add_argument("--port", type=int, default=env_port)
    parser.add_argument("--data-dir", default=None, help="directory holding content.db")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    level = os.environ.get("CONTENTVAULT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if args.data_dir:
        os.environ["CONTENTVAULT_DATA_DIR"] = args.data_dir

    store = ContentVaultStore()
    app = create_app(store=store)

    _banner = f" {APP_NAME} "
    logger.info("=" * 30 + _banner + "=" * 30)
    logger.info(f"Version: {VERSION}")
    logger.info(f"Schema version: {SCHEMA_VERSION}")
    logger.info(f"Datastore: {store.db_path}")
    logger.info(f"Server running on http://{args.host}:{args.port}")
    logger.info("=" * (60 + len(_banner)))

    web.run_app(app, host=args.host, port=args.port, print=None)
