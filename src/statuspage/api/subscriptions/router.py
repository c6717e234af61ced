"""Subscription router, mounted for any authenticated role."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.api.auth.dependencies import get_current_principal
from statuspage.api.auth.models import Principal
from statuspage.api.schemas import DataResponse
from statuspage.api.subscriptions.schemas import SubscriptionResponse, SubscriptionUpdate
from statuspage.db.database import get_db
from statuspage.db.repositories import SubscriberRepository
from statuspage.notifications.subscriptions import SubscriptionService

router = APIRouter(tags=["subscriptions"])


async def get_subscription_service(
    session: AsyncSession = Depends(get_db),
) -> SubscriptionService:
    """Dependency injection for SubscriptionService."""
    return SubscriptionService(SubscriberRepository(session))


@router.get("/me/subscriptions", response_model=DataResponse[SubscriptionResponse])
async def get_subscription(
    service: SubscriptionService = Depends(get_subscription_service),
    principal: Principal = Depends(get_current_principal),
) -> DataResponse[SubscriptionResponse]:
    """The caller's subscription; an empty one is created on first access."""
    subscription = await service.get_or_create(principal.user_id)
    return DataResponse(data=SubscriptionResponse.from_subscription(subscription))


@router.post("/me/subscriptions", response_model=DataResponse[SubscriptionResponse])
async def update_subscription(
    request: SubscriptionUpdate,
    service: SubscriptionService = Depends(get_subscription_service),
    principal: Principal = Depends(get_current_principal),
) -> DataResponse[SubscriptionResponse]:
    """Replace the services the caller is subscribed to."""
    subscription = await service.update_services(principal.user_id, request.service_ids)
    return DataResponse(data=SubscriptionResponse.from_subscription(subscription))


@router.delete("/me/subscriptions", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscription(
    service: SubscriptionService = Depends(get_subscription_service),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    """Remove the caller's subscription."""
    await service.delete(principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
