# social_service/main.py
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from social_service.api import ads, auth, chats, groups, socket, users
from social_service.api.socket import ChatSocketHandler
from social_service.config import AppConfig
from social_service.domain.errors import DomainError
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure.connection_manager import ConnectionManager
from social_service.infrastructure.database import create_database
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.event_handlers import (
    EventHandlers,
    SocketEventHandlers,
)
from social_service.infrastructure.presence import (
    InMemoryPresenceStore,
    PresenceTracker,
    RedisPresenceStore,
)
from social_service.infrastructure.push import FcmPushNotifier, LoggingPushNotifier
from social_service.infrastructure.redis_client import RedisClient
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.sweeper import ExpirySweeper
from social_service.infrastructure.uow import UnitOfWork


class Application:
    def __init__(self, config: AppConfig, engine: AsyncEngine | None = None):
        self.config = config
        self.logger = self.setup_logger()
        engine = engine or create_async_engine(config.DATABASE_URL, echo=False)
        self.database = create_database(engine)
        self.redis_client = RedisClient(
            config.REDIS_HOST, config.REDIS_PORT, self.logger
        )
        self.event_dispatcher = EventDispatcher(self.logger)
        self.security_service = SecurityService(config)
        self.connections = ConnectionManager(self.logger)
        self.presence = PresenceTracker(
            self.setup_presence_store(),
            self.write_presence,
            self.connections,
            self.logger,
        )
        self.connections.add_drop_listener(self.presence.connection_dropped)
        self.push_notifier = self.setup_push_notifier()
        self.sweeper = ExpirySweeper(
            self.database, self.logger, interval=config.SWEEP_INTERVAL_SECONDS
        )
        self.socket_handler = ChatSocketHandler(
            self.database,
            self.connections,
            self.presence,
            self.event_dispatcher,
            self.push_notifier,
            self.logger,
        )

        # Register event handlers
        self.event_handlers = EventHandlers(self.redis_client)
        self.socket_event_handlers = SocketEventHandlers(
            self.connections, self.presence
        )
        self.event_dispatcher.register(
            "MessageCreated", self.socket_event_handlers.deliver_message_created
        )
        self.event_dispatcher.register(
            "MessageCreated", self.event_handlers.publish_message_created
        )
        self.event_dispatcher.register(
            "MessagePinned", self.socket_event_handlers.deliver_message_pinned
        )
        self.event_dispatcher.register(
            "MessagePinned", self.event_handlers.publish_message_pinned
        )
        self.event_dispatcher.register(
            "MessageRead", self.socket_event_handlers.deliver_message_read
        )
        self.event_dispatcher.register(
            "MessageRead", self.event_handlers.publish_message_read
        )

    def setup_presence_store(self):
        if self.config.PRESENCE_BACKEND == "redis":
            return RedisPresenceStore(self.redis_client)
        return InMemoryPresenceStore()

    def setup_push_notifier(self):
        if self.config.FCM_SERVER_KEY:
            return FcmPushNotifier(
                self.config.FCM_ENDPOINT,
                self.config.FCM_SERVER_KEY,
                self.logger,
                timeout=self.config.PUSH_TIMEOUT_SECONDS,
            )
        return LoggingPushNotifier(self.logger)

    async def write_presence(self, user_id: int, is_online: bool, at: datetime) -> None:
        async with self.database.session() as session:
            gateway = UserGateway(session, UnitOfWork(session))
            await gateway.set_presence(user_id, is_online, at)
            await session.commit()

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.database.connect()
        await self.redis_client.connect()
        if self.config.SWEEPER_ENABLED:
            self.sweeper.start()
        yield
        await self.sweeper.stop()
        await self.database.disconnect()
        await self.redis_client.disconnect()

    def setup_logger(self):
        logger = logging.getLogger("SocialAPI")
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            c_handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            c_handler.setFormatter(formatter)
            logger.addHandler(c_handler)

        return logger

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title=self.config.PROJECT_NAME,
            version=self.config.PROJECT_VERSION,
            description=self.config.PROJECT_DESCRIPTION,
            openapi_url=f"{self.config.API_V1_STR}/openapi.json",
            lifespan=self.lifespan,
        )

        app.state.config = self.config
        app.state.security_service = self.security_service
        app.state.event_dispatcher = self.event_dispatcher
        app.state.database = self.database
        app.state.logger = self.logger
        app.state.connections = self.connections
        app.state.presence = self.presence
        app.state.push_notifier = self.push_notifier
        app.state.sweeper = self.sweeper
        app.state.socket_handler = self.socket_handler

        # Create routers
        prefix = self.config.API_V1_STR
        app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
        app.include_router(users.router, prefix=f"{prefix}/users", tags=["users"])
        app.include_router(chats.router, prefix=f"{prefix}/chat", tags=["chat"])
        app.include_router(groups.router, prefix=f"{prefix}/group", tags=["group"])
        app.include_router(ads.router, prefix=f"{prefix}/ad", tags=["ad"])
        app.include_router(socket.router, tags=["socket"])

        @app.exception_handler(DomainError)
        async def domain_exception_handler(request: Request, exc: DomainError):
            return JSONResponse(
                status_code=exc.status_code, content={"detail": exc.message}
            )

        @app.exception_handler(RequestValidationError)
        async def validation_exception_handler(
            request: Request, exc: RequestValidationError
        ):
            return JSONResponse(
                status_code=400, content={"detail": jsonable_encoder(exc.errors())}
            )

        @app.exception_handler(Exception)
        async def global_exception_handler(request: Request, exc: Exception):
            self.logger.error(f"Unhandled error on {request.url.path}: {exc!s}")
            return JSONResponse(
                status_code=500,
                content={"message": f"An unexpected error occurred: {str(exc)}"},
            )

        return app


def create():
    config = AppConfig()
    application = Application(config)
    app = application.create_app()
    application.logger.info("Application created and configured")

    return app


app = create()


@app.get("/")
async def root():
    return {"message": "Welcome to the Social API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
