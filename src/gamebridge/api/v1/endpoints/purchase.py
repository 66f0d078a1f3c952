"""Purchase preparation API endpoint."""

from fastapi import APIRouter, Query

from gamebridge.services.dependencies import Services
from gamebridge.services.purchase import PurchaseResponse

router = APIRouter(prefix="/purchase", tags=["Purchase"])


@router.get("", response_model=PurchaseResponse)
async def prepare_purchase(
    services: Services,
    amount: str | None = Query(None, description="Stable token amount, e.g. \"1.5\""),
) -> PurchaseResponse:
    """Build an unsigned TokenStore.buy transaction.

    The client wallet signs and sends the returned ``{to, data, value}``.
    """
    tx = services.purchase_builder.build_purchase(amount, services.settings.usdt_decimals)
    return PurchaseResponse(to=tx.to, data=tx.data, value=str(tx.value))
