"""Tests for run status aggregation."""

import pytest

from kyc_relay.exceptions import ProviderError, RunNotFoundError
from kyc_relay.schemas.webhook import RunRecord
from kyc_relay.services.aggregator import (
    RunStatusAggregator,
    build_full_name,
    format_address,
)


def test_format_address_object():
    """Test structured addresses are joined in fixed order."""
    address = {"line1": "Str. X", "town": "Cluj", "country": "RO"}

    assert format_address(address) == "Str. X, Cluj, RO"


def test_format_address_skips_empty_parts():
    """Test empty and missing parts are skipped."""
    address = {
        "country": "GBR",
        "postcode": "SW4 6EH",
        "line2": "",
        "line1": "52 Hope Street",
        "city": "London",
        "state": None,
    }

    assert format_address(address) == "52 Hope Street, London, SW4 6EH, GBR"


def test_format_address_string_and_empty():
    """Test strings pass through and empty input yields None."""
    assert format_address("1 Main St, Springfield") == "1 Main St, Springfield"
    assert format_address(None) is None
    assert format_address({}) is None


def test_build_full_name():
    """Test full name derivation."""
    assert build_full_name("Ana Maria Pop", "Ana", "Pop") == "Ana Maria Pop"
    assert build_full_name(None, "Ana", "Pop") == "Ana Pop"
    assert build_full_name(None, None, "Pop") == "Pop"
    assert build_full_name(None, None, None) is None


@pytest.mark.asyncio
async def test_webhook_fields_overlay_live(fake_onfido, onfido_client, store):
    """Test webhook output wins over the live snapshot by default."""
    fake_onfido.add("GET", "/workflow_runs/run_1", json={
        "id": "run_1",
        "status": "processing",
        "applicant_id": "app_1",
        "dashboard_url": "https://dashboard.onfido.com/runs/run_1",
        "output": {"first_name": "Ana", "last_name": "Pop", "document_number": None, "gender": "female"},
    })
    await store.set("run_1", RunRecord(
        workflow_run_id="run_1",
        status="approved",
        result="clear",
        raw_output={"document_number": "X123", "gender": "F", "address": "Str. X, Cluj"},
    ))

    view = await RunStatusAggregator(onfido_client, store, precedence="webhook").get_run_view("run_1")

    assert view.status == "approved"
    assert view.document_number == "X123"
    assert view.gender == "F"
    assert view.full_name == "Ana Pop"
    assert view.address_formatted == "Str. X, Cluj"
    assert view.dashboard_url == "https://dashboard.onfido.com/runs/run_1"
    assert view.result == "clear"
    assert view.raw_output["first_name"] == "Ana"


@pytest.mark.asyncio
async def test_live_precedence(fake_onfido, onfido_client, store):
    """Test live fields win when precedence is 'live', except status regression."""
    fake_onfido.add("GET", "/workflow_runs/run_1", json={
        "id": "run_1",
        "status": "processing",
        "output": {"gender": "female", "first_name": "Ana", "last_name": "Pop"},
    })
    await store.set("run_1", RunRecord(
        workflow_run_id="run_1",
        status="declined",
        raw_output={"gender": "F", "document_type": "passport"},
    ))

    view = await RunStatusAggregator(onfido_client, store, precedence="live").get_run_view("run_1")

    assert view.gender == "female"
    assert view.document_type == "passport"
    assert view.status == "declined"


@pytest.mark.asyncio
async def test_applicant_fallback_fills_names(fake_onfido, onfido_client, store):
    """Test missing names and address come from the applicant."""
    fake_onfido.add("GET", "/workflow_runs/run_1", json={
        "id": "run_1",
        "status": "approved",
        "applicant_id": "app_1",
        "output": {},
    })
    fake_onfido.add("GET", "/applicants/app_1", json={
        "id": "app_1",
        "first_name": "Ana",
        "last_name": "Pop",
        "address": {"line1": "Str. X", "town": "Cluj", "country": "RO"},
    })

    view = await RunStatusAggregator(onfido_client, store).get_run_view("run_1")

    assert view.first_name == "Ana"
    assert view.last_name == "Pop"
    assert view.full_name == "Ana Pop"
    assert view.address_formatted == "Str. X, Cluj, RO"
    assert ("GET", "/applicants/app_1") in fake_onfido.paths()


@pytest.mark.asyncio
async def test_applicant_fallback_failure_is_ignored(fake_onfido, onfido_client, store):
    """Test a failing applicant lookup leaves names empty."""
    fake_onfido.add("GET", "/workflow_runs/run_1", json={
        "id": "run_1",
        "status": "approved",
        "applicant_id": "app_missing",
    })

    view = await RunStatusAggregator(onfido_client, store).get_run_view("run_1")

    assert view.first_name is None
    assert view.full_name is None
    assert view.applicant_id == "app_missing"


@pytest.mark.asyncio
async def test_no_fallback_when_complete(fake_onfido, onfido_client, store):
    """Test the applicant is not fetched when names and address are known."""
    fake_onfido.add("GET", "/workflow_runs/run_1", json={
        "id": "run_1",
        "applicant_id": "app_1",
        "output": {
            "first_name": "Ana",
            "last_name": "Pop",
            "address": {"line1": "Str. X"},
        },
    })

    await RunStatusAggregator(onfido_client, store).get_run_view("run_1")

    assert fake_onfido.paths() == [("GET", "/workflow_runs/run_1")]


@pytest.mark.asyncio
async def test_live_error_propagates(onfido_client, store):
    """Test the live lookup failure is not masked by webhook data."""
    await store.set("run_1", RunRecord(workflow_run_id="run_1", status="approved"))

    with pytest.raises(ProviderError) as exc:
        await RunStatusAggregator(onfido_client, store).get_run_view("run_1")

    assert exc.value.status == 404
    assert exc.value.message == "Resource not found"


@pytest.mark.asyncio
async def test_empty_live_body_without_record(fake_onfido, onfido_client, store):
    """Test an empty live answer and no webhook data is a not-found."""
    fake_onfido.add("GET", "/workflow_runs/run_1", content=b"")

    with pytest.raises(RunNotFoundError):
        await RunStatusAggregator(onfido_client, store).get_run_view("run_1")


def test_unknown_precedence_rejected(onfido_client, store):
    """Test invalid precedence values fail fast."""
    with pytest.raises(ValueError):
        RunStatusAggregator(onfido_client, store, precedence="newest")
