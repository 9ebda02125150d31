"""Webhook routes."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from kyc_relay.config import settings
from kyc_relay.dependencies import get_reconciler, get_run_store
from kyc_relay.exceptions import RunNotFoundError
from kyc_relay.schemas.webhook import RunRecord
from kyc_relay.services.reconciler import WebhookReconciler
from kyc_relay.services.run_store import RunStore
from kyc_relay.services.signatures import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/webhook/onfido", response_class=PlainTextResponse)
async def onfido_webhook(
    request: Request,
    reconciler: WebhookReconciler = Depends(get_reconciler),
):
    """
    Receive an Onfido webhook.

    Always answers 200 "ok": Onfido redelivers aggressively on anything else,
    so malformed, unsigned or failing deliveries are logged and dropped.
    """
    try:
        raw = await request.body()

        secret = settings.ONFIDO_WEBHOOK_TOKEN
        if secret and not verify_signature(raw, request.headers.get(SIGNATURE_HEADER), secret):
            logger.warning("Webhook signature mismatch, discarding")
            return "ok"

        await reconciler.ingest(raw)
    except Exception:
        logger.exception("Webhook processing failed")

    return "ok"


@router.get("/api/webhook_runs/{run_id}", response_model=RunRecord)
async def get_webhook_run(
    run_id: str,
    store: RunStore = Depends(get_run_store),
):
    """Get the accumulated webhook record for a run."""
    record = await store.get(run_id)
    if record is None:
        raise RunNotFoundError(run_id)
    return record
