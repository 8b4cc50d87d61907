# social_service/api/dependencies.py
import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.config import AppConfig
from social_service.gateways.ad_gateway import AdGateway
from social_service.gateways.chat_gateway import ChatGateway
from social_service.gateways.message_gateway import MessageGateway
from social_service.gateways.token_gateway import TokenGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.connection_manager import ConnectionManager
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.presence import PresenceTracker
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork
from social_service.interactors.billing_interactor import BillingInteractor
from social_service.interactors.chat_interactor import ChatInteractor
from social_service.interactors.room_interactor import RoomInteractor
from social_service.interactors.token_interactor import TokenInteractor
from social_service.interactors.user_interactor import UserInteractor

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_logger(request: Request) -> logging.Logger:
    return request.app.state.logger


def get_security_service(request: Request) -> SecurityService:
    return request.app.state.security_service


def get_event_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.event_dispatcher


def get_presence(request: Request) -> PresenceTracker:
    return request.app.state.presence


def get_connections(request: Request) -> ConnectionManager:
    return request.app.state.connections


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_uow(session: AsyncSession = Depends(get_session)) -> UnitOfWork:
    return UnitOfWork(session)


async def get_user_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return UserGateway(session, uow)


async def get_chat_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return ChatGateway(session, uow)


async def get_message_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return MessageGateway(session, uow)


async def get_token_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return TokenGateway(session, uow)


async def get_ad_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return AdGateway(session, uow)


async def get_user_interactor(
    uow: UnitOfWork = Depends(get_uow),
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
):
    return UserInteractor(uow, security_service, user_gateway)


async def get_token_interactor(
    uow: UnitOfWork = Depends(get_uow),
    token_gateway: TokenGateway = Depends(get_token_gateway),
):
    return TokenInteractor(uow, token_gateway)


async def get_chat_interactor(
    uow: UnitOfWork = Depends(get_uow),
    chat_gateway: ChatGateway = Depends(get_chat_gateway),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    logger: logging.Logger = Depends(get_logger),
):
    return ChatInteractor(uow, chat_gateway, message_gateway, user_gateway, logger)


async def get_room_interactor(
    uow: UnitOfWork = Depends(get_uow),
    chat_gateway: ChatGateway = Depends(get_chat_gateway),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    event_dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    connections: ConnectionManager = Depends(get_connections),
    presence: PresenceTracker = Depends(get_presence),
    logger: logging.Logger = Depends(get_logger),
):
    return RoomInteractor(
        uow,
        chat_gateway,
        message_gateway,
        user_gateway,
        event_dispatcher,
        connections,
        presence,
        logger,
    )


async def get_billing_interactor(
    uow: UnitOfWork = Depends(get_uow),
    ad_gateway: AdGateway = Depends(get_ad_gateway),
    config: AppConfig = Depends(get_config),
    logger: logging.Logger = Depends(get_logger),
):
    return BillingInteractor(uow, ad_gateway, config, logger)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
    token_gateway: TokenGateway = Depends(get_token_gateway),
) -> schemas.User:
    username = security_service.decode_access_token(token)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_model = await user_gateway.get_by_username(username)
    valid_token = await token_gateway.get_by_access_token(token)
    if user_model is None or valid_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return schemas.User.model_validate(user_model._model)


async def get_current_active_user(
    current_user: schemas.User = Depends(get_current_user),
) -> schemas.User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def resolve_acting_user(claimed_id: int | None, current_user: schemas.User) -> int:
    """Bodies may name the acting user; it has to be the authenticated one."""
    if claimed_id is not None and claimed_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only act on your own behalf",
        )
    return current_user.id
