"""FastAPI dependency providers for the store, client and services."""

from fastapi import Depends

from kyc_relay.config import settings
from kyc_relay.services.aggregator import RunStatusAggregator
from kyc_relay.services.onfido_client import OnfidoClient
from kyc_relay.services.reconciler import WebhookReconciler
from kyc_relay.services.run_store import InMemoryRunStore, RunStore

# Process-wide webhook store
run_store = InMemoryRunStore(
    max_runs=settings.STORE_MAX_RUNS,
    ttl_seconds=settings.STORE_TTL_SECONDS,
)


def get_run_store() -> RunStore:
    return run_store


def get_onfido_client() -> OnfidoClient:
    return OnfidoClient()


def get_reconciler(store: RunStore = Depends(get_run_store)) -> WebhookReconciler:
    return WebhookReconciler(store)


def get_aggregator(
    client: OnfidoClient = Depends(get_onfido_client),
    store: RunStore = Depends(get_run_store),
) -> RunStatusAggregator:
    return RunStatusAggregator(client, store)
