from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session
from app.api.schemas.catalog import (
    ClientCreateRequest,
    ClientPublic,
    ServiceCreateRequest,
    ServicePublic,
)
from app.services.catalog_service import create_client, create_service

router = APIRouter(tags=["catalog"])


@router.post("/services", response_model=ServicePublic, status_code=status.HTTP_201_CREATED)
async def add_service(
    body: ServiceCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> ServicePublic:
    service = await create_service(session, body.name, body.duration)
    return ServicePublic.model_validate(service)


@router.post("/clients", response_model=ClientPublic, status_code=status.HTTP_201_CREATED)
async def add_client(
    body: ClientCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> ClientPublic:
    client = await create_client(session, body.first_name, body.last_name, email=body.email, phone=body.phone)
    return ClientPublic.model_validate(client)
