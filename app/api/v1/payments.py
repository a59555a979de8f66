import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.dependencies import get_mpesa_client
from app.schemas.payment import PaymentRequest
from app.services.mpesa import MpesaClient

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])


@router.post("/pay")
async def pay(
    payment_request: PaymentRequest,
    client: MpesaClient = Depends(get_mpesa_client),
) -> Dict[str, Any]:
    """Prompt the payer's phone for an M-Pesa payment"""

    logger.info("Initiating STK push of %s", payment_request.amount)
    return await client.initiate_payment(payment_request.phone, payment_request.amount)
