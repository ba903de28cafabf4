from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Header, HTTPException, Request, status

from ..services.realtime import ChangeHub, TableChange

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/hooks", tags=["hooks"])


@router.post("/changes", status_code=status.HTTP_202_ACCEPTED, summary="Database change webhook")
async def receive_change(
    change: TableChange,
    request: Request,
    x_webhook_secret: str | None = Header(default=None, alias="X-Webhook-Secret"),
):
    """Fan a backend table change out to every open dashboard as a refresh hint."""

    configured = (request.app.state.settings.WEBHOOK_SECRET or "").strip()
    if not configured:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Webhooks are disabled")
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret.strip(), configured):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    hub: ChangeHub = request.app.state.hub
    delivered = await hub.publish(change)
    logger.info(
        "realtime.change_received",
        extra={"extra_data": {"table": change.table.value, "type": change.type.value, "delivered": delivered}},
    )
    return {"delivered": delivered}
