"""Unit tests for request schemas."""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from flexben.models.enums import ClaimOrigin
from flexben.schemas.claim import BatchApprovePayload, SubmitClaimPayload, UpdateClaimPayload
from flexben.schemas.period import CreatePeriodRequest

_PERIOD = {
    "label": "2025-12",
    "accrual_start": "2025-11-21",
    "accrual_end": "2025-12-20",
    "submission_open": "2025-12-10",
    "submission_close": "2025-12-20",
}


def test_create_period_valid() -> None:
    req = CreatePeriodRequest.model_validate(_PERIOD)
    assert req.label == "2025-12"


def test_create_period_single_day_windows_allowed() -> None:
    req = CreatePeriodRequest.model_validate(
        {**_PERIOD, "submission_open": "2025-12-20", "submission_close": "2025-12-20"}
    )
    assert req.submission_open == req.submission_close


@pytest.mark.parametrize(
    "overrides",
    [
        {"accrual_start": "2025-12-21"},
        {"submission_open": "2025-12-21"},
        {"label": ""},
    ],
)
def test_create_period_invalid(overrides: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        CreatePeriodRequest.model_validate({**_PERIOD, **overrides})


def test_submit_claim_defaults() -> None:
    payload = SubmitClaimPayload(
        employee_id=uuid.uuid4(),
        period_id=uuid.uuid4(),
        category_id=uuid.uuid4(),
        description="Gym",
        amount=1,
    )
    assert payload.origin == ClaimOrigin.SELF
    assert payload.document_ref is None
    assert payload.installments == 1


def test_submit_claim_requires_description() -> None:
    with pytest.raises(ValidationError):
        SubmitClaimPayload(
            employee_id=uuid.uuid4(),
            period_id=uuid.uuid4(),
            category_id=uuid.uuid4(),
            description="",
            amount=100,
        )


def test_update_claim_tracks_explicit_fields() -> None:
    payload = UpdateClaimPayload.model_validate({"document_ref": None})
    assert "document_ref" in payload.model_fields_set
    assert "amount" not in payload.model_fields_set


def test_batch_requires_ids() -> None:
    with pytest.raises(ValidationError):
        BatchApprovePayload(claim_ids=[])
