# social_service/interactors/token_interactor.py

from social_service.gateways.interfaces import ITokenGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.uow import UnitOfWork


class TokenInteractor:
    def __init__(self, uow: UnitOfWork, token_gateway: ITokenGateway):
        self.uow = uow
        self.token_gateway = token_gateway

    async def get_token_by_access_token(
        self, access_token: str
    ) -> schemas.Token | None:
        token = await self.token_gateway.get_by_access_token(access_token)
        return schemas.Token.model_validate(token._model) if token else None

    async def get_token_by_refresh_token(
        self, refresh_token: str
    ) -> schemas.Token | None:
        token = await self.token_gateway.get_by_refresh_token(refresh_token)
        return schemas.Token.model_validate(token._model) if token else None

    async def delete_token_by_access_token(self, access_token: str) -> bool:
        deleted = await self.token_gateway.delete_token_by_access_token(access_token)
        if deleted:
            await self.uow.commit()
        return deleted

    async def delete_token_by_refresh_token(self, refresh_token: str) -> bool:
        deleted = await self.token_gateway.delete_token_by_refresh_token(refresh_token)
        if deleted:
            await self.uow.commit()
        return deleted

    async def create_token(
        self, token_create: schemas.TokenCreate
    ) -> schemas.TokenResponse:
        token = await self.token_gateway.create_token(token_create)
        await self.uow.commit()
        return schemas.TokenResponse.model_validate(token._model, from_attributes=True)
