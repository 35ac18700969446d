import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yahtzee.config import Settings, get_settings
from yahtzee.dependencies.redis import close_redis_client, create_redis_client
from yahtzee.routers import games, ws
from yahtzee.services.game.engine import Randomizer, StandardRandomizer
from yahtzee.services.session import SessionCoordinator
from yahtzee.services.store import GameStore, MemoryStore, RedisStore
from yahtzee.services.websocket import ConnectionManager

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    store: GameStore | None = None,
    randomizer: Randomizer | None = None,
) -> FastAPI:
    """Build the API. ``store`` and ``randomizer`` override the configured ones."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Yahtzee API")
        logger.debug("Debug mode: %s", settings.DEBUG)

        redis_client = None
        game_store = store
        if game_store is None:
            if settings.STORE_BACKEND == "redis":
                redis_client = create_redis_client(settings)
                game_store = RedisStore(
                    redis_client,
                    key_prefix=settings.REDIS_KEY_PREFIX,
                    restore_rolls_left=settings.RESTORE_ROLLS_LEFT,
                )
            else:
                game_store = MemoryStore()
        logger.info("Game store initialized: %s", type(game_store).__name__)

        # WebSocket connection manager doubles as the broadcaster
        connection_manager = ConnectionManager(
            heartbeat_interval=settings.WS_HEARTBEAT_INTERVAL,
            connection_timeout=settings.WS_CONNECTION_TIMEOUT,
        )
        await connection_manager.start_cleanup_task()

        app.state.connection_manager = connection_manager
        app.state.coordinator = SessionCoordinator(
            store=game_store,
            broadcaster=connection_manager,
            randomizer=randomizer or StandardRandomizer(settings.RANDOM_SEED),
        )
        logger.info("Session coordinator initialized")

        yield

        logger.info("Shutting down Yahtzee API")
        await connection_manager.stop_cleanup_task()
        await connection_manager.close_all_connections()
        await close_redis_client(redis_client)
        logger.info("WebSocket and Redis cleanup complete")

    app = FastAPI(
        title="Yahtzee API",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.debug("CORS configured with origins: %s", settings.CORS_ORIGINS)

    app.include_router(games.router, prefix="/api/v1")
    app.include_router(ws.router, prefix="/api/v1")
    logger.debug("Routers registered: /api/v1/pending-games, /api/v1/games, /api/v1/ws")

    @app.get("/")
    def root():
        return {"message": "Yahtzee API"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
