"""Webhook-related Pydantic schemas."""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class RunRecord(BaseModel):
    """Accumulated webhook state for one workflow run."""

    workflow_run_id: str
    status: Optional[str] = None  # 'processing', 'approved', 'declined', ...
    result: Optional[str] = None
    sub_result: Optional[str] = None
    breakdown: Optional[Dict[str, Any]] = None
    breakdowns: Dict[str, Dict[str, Any]] = Field(default_factory=dict)  # task key -> breakdown
    document_breakdown: Optional[Dict[str, Any]] = None
    device_breakdown: Optional[Dict[str, Any]] = None
    raw_output: Dict[str, Any] = Field(default_factory=dict)
    applicant_id: Optional[str] = None

    # Flat copies of accumulated output fields
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    date_expiry: Optional[str] = None
    address: Optional[Union[Dict[str, Any], str]] = None

    received_at: Optional[str] = None  # ISO-8601, UTC
    raw_payload: Optional[Any] = None  # Last accepted delivery
