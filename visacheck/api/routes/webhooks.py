from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from visacheck.api.dependencies import get_services
from visacheck.api.services import Services

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    services: Services = Depends(get_services),
):
    """Receive subscription lifecycle events from Stripe.

    The raw body is needed for signature verification, so this route reads
    it itself and runs the database work in the thread pool.
    """
    payload = await request.body()
    event = services.require_webhook_verifier().verify(payload, stripe_signature)
    await run_in_threadpool(services.subscription_events.handle, event)
    return {"success": True, "received": True}
