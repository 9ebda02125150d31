"""Run status aggregation: live Onfido run + webhook record + applicant fallback."""

import logging
from typing import Any, Dict, Optional

from kyc_relay.config import settings
from kyc_relay.exceptions import ProviderError, RunNotFoundError
from kyc_relay.schemas.onfido import RunView
from kyc_relay.services.onfido_client import OnfidoClient
from kyc_relay.services.reconciler import merge_non_null, resolve_status
from kyc_relay.services.run_store import RunStore

logger = logging.getLogger(__name__)

# Slots joined by format_address; alternatives within a slot are exclusive
ADDRESS_SLOTS = (
    ("line1",),
    ("line2",),
    ("line3",),
    ("street",),
    ("town", "city"),
    ("state", "region"),
    ("postcode", "postal_code"),
    ("country",),
)


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value)
    return text or None


def format_address(address: Any) -> Optional[str]:
    """
    Render an address as one line.

    Strings are returned verbatim; mappings join their non-empty parts
    with ", " in a fixed order.
    """
    if isinstance(address, str):
        return address or None
    if not isinstance(address, dict):
        return None

    parts = []
    for slot in ADDRESS_SLOTS:
        for key in slot:
            value = _text(address.get(key))
            if value and value.strip():
                parts.append(value.strip())
                break
    return ", ".join(parts) or None


def build_full_name(
    full_name: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
) -> Optional[str]:
    """Prefer an explicit full name, else join first and last name."""
    if full_name:
        return full_name
    joined = " ".join(part for part in (first_name, last_name) if part)
    return joined or None


class RunStatusAggregator:
    """Builds the caller-facing view of a workflow run."""

    def __init__(
        self,
        client: OnfidoClient,
        store: RunStore,
        precedence: Optional[str] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            client: Onfido API client
            store: Webhook run store
            precedence: "webhook" to let webhook fields win over the live run,
                "live" for the reverse; defaults to settings.MERGE_PRECEDENCE
        """
        self.client = client
        self.store = store
        self.precedence = precedence or settings.MERGE_PRECEDENCE
        if self.precedence not in ("webhook", "live"):
            raise ValueError(f"Unknown merge precedence: {self.precedence}")

    async def _applicant_fallback(self, applicant_id: str) -> Dict[str, Any]:
        try:
            applicant = await self.client.get_applicant(applicant_id)
        except ProviderError as e:
            logger.warning(f"Fallback applicant read failed for {applicant_id}: {e.message}")
            return {}
        return applicant if isinstance(applicant, dict) else {}

    async def get_run_view(self, run_id: str) -> RunView:
        """
        Combine live and accumulated data for a run.

        Args:
            run_id: Workflow run identifier

        Returns:
            RunView for the run

        Raises:
            ProviderError: If the live run lookup fails
            RunNotFoundError: If neither Onfido nor the webhook store knows the run
        """
        live = await self.client.get_workflow_run(run_id)
        record = await self.store.get(run_id)

        if not isinstance(live, dict):
            if record is None:
                raise RunNotFoundError(run_id)
            live = {}

        live_output = live.get("output") if isinstance(live.get("output"), dict) else {}
        webhook_output = record.raw_output if record else {}
        webhook_status = record.status if record else None

        if self.precedence == "webhook":
            output = merge_non_null(live_output, webhook_output)
            status = resolve_status(live.get("status"), webhook_status)
        else:
            output = merge_non_null(webhook_output, live_output)
            status = resolve_status(webhook_status, live.get("status"))

        first_name = _text(output.get("first_name"))
        last_name = _text(output.get("last_name"))
        address = output.get("address")
        if not isinstance(address, (dict, str)) or not address:
            address = None

        applicant_id = _text(live.get("applicant_id")) or (record.applicant_id if record else None)

        if applicant_id and (not first_name or not last_name or not isinstance(address, dict)):
            applicant = await self._applicant_fallback(applicant_id)
            first_name = first_name or _text(applicant.get("first_name"))
            last_name = last_name or _text(applicant.get("last_name"))
            if address is None and isinstance(applicant.get("address"), dict):
                address = applicant["address"]

        return RunView(
            workflow_run_id=_text(live.get("id")) or run_id,
            status=status,
            applicant_id=applicant_id,
            document_type=_text(output.get("document_type")),
            document_number=_text(output.get("document_number")),
            dob=_text(output.get("dob")),
            date_expiry=_text(output.get("date_expiry")),
            gender=_text(output.get("gender")),
            first_name=first_name,
            last_name=last_name,
            full_name=build_full_name(_text(output.get("full_name")), first_name, last_name),
            address=address,
            address_formatted=format_address(address),
            dashboard_url=_text(live.get("dashboard_url")),
            result=record.result if record else None,
            sub_result=record.sub_result if record else None,
            breakdown=record.breakdown if record else None,
            webhook_received_at=record.received_at if record else None,
            raw_output=output,
        )
