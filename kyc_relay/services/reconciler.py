"""Webhook reconciliation: fold partial Onfido deliveries into one run record."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from kyc_relay.schemas.webhook import RunRecord
from kyc_relay.services.run_store import RunStore

logger = logging.getLogger(__name__)

PROCESSING_STATUS = "processing"
WORKFLOW_RUN_TYPE = "workflow_run"

# Breakdown preferred after a promoted document breakdown
PRIMARY_TASK_KEY = "document_check"

DOCUMENT_BREAKDOWN_MARKERS = ("visual_authenticity",)
DEVICE_BREAKDOWN_MARKERS = ("device_integrity", "device")

# Output fields mirrored flat on the record
FLAT_OUTPUT_FIELDS = (
    "full_name",
    "first_name",
    "last_name",
    "gender",
    "dob",
    "document_type",
    "document_number",
    "date_expiry",
)

# Containers lifted out of output instead of being merged verbatim
_NESTED_OUTPUT_KEYS = ("properties", "breakdown")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_present(*values: Any) -> Optional[Any]:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def _scalar_text(value: Any) -> Optional[str]:
    """Render a scalar as text; containers and empty values are skipped."""
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value) or None


def resolve_status(current: Optional[str], incoming: Optional[str]) -> Optional[str]:
    """
    Pick the run status after an update.

    The first status ever seen is accepted as is; afterwards "processing"
    can no longer replace what is recorded.
    """
    if incoming is None:
        return current
    if current is None or incoming != PROCESSING_STATUS:
        return incoming
    return current


def merge_non_null(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Return base updated with every non-null value of overlay."""
    merged = dict(base)
    for key, value in overlay.items():
        if value is not None:
            merged[key] = value
    return merged


def extract_run_id(body: Dict[str, Any]) -> Optional[str]:
    """
    Find the workflow run id a delivery refers to.

    Checks resource.workflow_run_id, then resource.id, then object.id.
    resource.id only counts when the declared resource type is a workflow
    run (or undeclared), since task resources carry task ids there.
    """
    envelope = _as_dict(body.get("payload")) or body
    resource = _as_dict(envelope.get("resource"))
    alternate = _as_dict(envelope.get("object")) or _as_dict(body.get("object"))

    declared_type = envelope.get("resource_type") or resource.get("type")
    is_run = declared_type is None or declared_type == WORKFLOW_RUN_TYPE

    candidate = _first_present(
        resource.get("workflow_run_id"),
        resource.get("id") if is_run else None,
        alternate.get("id"),
    )
    return str(candidate) if candidate is not None else None


def _breakdown_key(resource: Dict[str, Any]) -> str:
    key = _first_present(
        resource.get("task_def_id"),
        resource.get("task_id"),
        resource.get("id"),
    )
    return str(key) if key is not None else WORKFLOW_RUN_TYPE


def _has_marker(breakdown: Dict[str, Any], markers) -> bool:
    return any(marker in breakdown for marker in markers)


def merge_delivery(
    existing: Optional[RunRecord],
    run_id: str,
    body: Dict[str, Any],
    received_at: Optional[datetime] = None,
) -> RunRecord:
    """
    Merge one webhook delivery into the accumulated record for a run.

    Args:
        existing: Current record, or None for the first delivery
        run_id: Identifier returned by extract_run_id
        body: Decoded webhook body
        received_at: Timestamp to stamp, defaults to now (UTC)

    Returns:
        A new RunRecord; existing is left untouched
    """
    envelope = _as_dict(body.get("payload")) or body
    resource = _as_dict(envelope.get("resource"))
    alternate = _as_dict(envelope.get("object")) or _as_dict(body.get("object"))

    output = _as_dict(resource.get("output"))
    properties = _as_dict(output.get("properties"))
    breakdown = _as_dict(output.get("breakdown")) or _as_dict(resource.get("breakdown"))

    record = existing or RunRecord(workflow_run_id=run_id)

    flat_output = {k: v for k, v in output.items() if k not in _NESTED_OUTPUT_KEYS}
    raw_output = merge_non_null(record.raw_output, flat_output)
    raw_output = merge_non_null(raw_output, properties)

    breakdowns = dict(record.breakdowns)
    document_breakdown = record.document_breakdown
    device_breakdown = record.device_breakdown
    if breakdown:
        breakdowns[_breakdown_key(resource)] = breakdown
        if _has_marker(breakdown, DOCUMENT_BREAKDOWN_MARKERS):
            document_breakdown = breakdown
        if _has_marker(breakdown, DEVICE_BREAKDOWN_MARKERS):
            device_breakdown = breakdown

    visible_breakdown = (
        document_breakdown
        or breakdowns.get(PRIMARY_TASK_KEY)
        or record.breakdown
        or breakdown
        or None
    )

    status = resolve_status(
        record.status,
        _scalar_text(_first_present(resource.get("status"), alternate.get("status"))),
    )

    incoming_sub_result = _scalar_text(_first_present(output.get("sub_result"), resource.get("sub_result")))
    incoming_result = _scalar_text(_first_present(output.get("result"), resource.get("result")))
    result = _first_present(incoming_sub_result, incoming_result, record.result)
    sub_result = _first_present(incoming_sub_result, record.sub_result)

    applicant_id = _first_present(_scalar_text(resource.get("applicant_id")), record.applicant_id)

    flat_fields = {field: _scalar_text(raw_output.get(field)) for field in FLAT_OUTPUT_FIELDS}
    address = raw_output.get("address")
    if not isinstance(address, (dict, str)):
        address = None

    stamp = received_at or datetime.now(timezone.utc)

    return RunRecord(
        workflow_run_id=record.workflow_run_id,
        status=status,
        result=result,
        sub_result=sub_result,
        breakdown=visible_breakdown,
        breakdowns=breakdowns,
        document_breakdown=document_breakdown,
        device_breakdown=device_breakdown,
        raw_output=raw_output,
        applicant_id=applicant_id,
        address=address,
        **flat_fields,
        received_at=stamp.isoformat(),
        raw_payload=body,
    )


class WebhookReconciler:
    """Accepts raw webhook bodies and merges them into the run store."""

    def __init__(self, store: RunStore):
        """Initialize the reconciler."""
        self.store = store

    async def ingest(self, raw: bytes) -> Optional[str]:
        """
        Parse and merge one delivery.

        Malformed bodies and deliveries without a recognizable run id are
        logged and discarded.

        Args:
            raw: Request body as received

        Returns:
            The merged run id, or None if the delivery was discarded
        """
        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Webhook body is not valid JSON, discarding")
            return None

        if not isinstance(body, dict):
            logger.warning(f"Webhook body is a {type(body).__name__}, expected an object, discarding")
            return None

        run_id = extract_run_id(body)
        if run_id is None:
            logger.info("Webhook without a workflow run id, discarding")
            return None

        record = await self.store.merge(
            run_id,
            lambda existing: merge_delivery(existing, run_id, body),
        )

        logger.info(f"Webhook merged for run {run_id}, status: {record.status}")
        return run_id
