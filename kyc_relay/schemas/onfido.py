"""Onfido-facing request and response schemas."""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel


class ApplicantCreate(BaseModel):
    """Schema for creating an applicant."""

    first_name: str
    last_name: str
    email: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    phone_number: Optional[str] = None


class RunView(BaseModel):
    """Live workflow run merged with accumulated webhook data."""

    workflow_run_id: str
    status: Optional[str] = None
    applicant_id: Optional[str] = None

    # Document
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    dob: Optional[str] = None
    date_expiry: Optional[str] = None
    gender: Optional[str] = None

    # Name
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None

    # Address
    address: Optional[Union[Dict[str, Any], str]] = None
    address_formatted: Optional[str] = None

    dashboard_url: Optional[str] = None

    # Webhook
    result: Optional[str] = None
    sub_result: Optional[str] = None
    breakdown: Optional[Dict[str, Any]] = None
    webhook_received_at: Optional[str] = None

    raw_output: Dict[str, Any]
