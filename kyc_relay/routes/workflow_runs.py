"""Workflow run routes."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from kyc_relay.dependencies import get_aggregator, get_onfido_client
from kyc_relay.schemas.onfido import RunView
from kyc_relay.services.aggregator import RunStatusAggregator
from kyc_relay.services.onfido_client import OnfidoClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workflow_runs", tags=["workflow_runs"])


@router.post("")
async def create_workflow_run(
    data: Optional[Dict[str, Any]] = Body(default=None),
    client: OnfidoClient = Depends(get_onfido_client),
):
    """
    Start a workflow run.

    The body (workflow_id, applicant_id, ...) is passed through untouched;
    the response includes the sdk_token the client SDK needs.
    """
    run = await client.create_workflow_run(data or {})

    if isinstance(run, dict):
        logger.info(f"Created workflow run {run.get('id')} for applicant {run.get('applicant_id')}")

    return run


@router.get("/{run_id}", response_model=RunView)
async def get_workflow_run(
    run_id: str,
    aggregator: RunStatusAggregator = Depends(get_aggregator),
):
    """Get a workflow run merged with webhook data, with applicant name fallback."""
    return await aggregator.get_run_view(run_id)
