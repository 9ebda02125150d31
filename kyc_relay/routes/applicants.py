"""Applicant routes."""

import logging

from fastapi import APIRouter, Depends

from kyc_relay.dependencies import get_onfido_client
from kyc_relay.schemas.onfido import ApplicantCreate
from kyc_relay.services.onfido_client import OnfidoClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applicants", tags=["applicants"])


@router.post("")
async def create_applicant(
    data: ApplicantCreate,
    client: OnfidoClient = Depends(get_onfido_client),
):
    """Create an Onfido applicant and return it verbatim."""
    applicant = await client.create_applicant(data.model_dump(exclude_none=True))

    if isinstance(applicant, dict):
        logger.info(f"Created applicant {applicant.get('id')}")

    return applicant


@router.get("/{applicant_id}")
async def get_applicant(
    applicant_id: str,
    client: OnfidoClient = Depends(get_onfido_client),
):
    """Proxy an applicant lookup."""
    return await client.get_applicant(applicant_id)
