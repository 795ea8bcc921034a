"""
test_models.py — Data structures and their wire forms.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rakshasos.core.errors import CapacityExceededError, NotFoundError
from rakshasos.models import (
    AlertFailure,
    AlertOutcome,
    Contact,
    ContactDraft,
    LocationSample,
)


class TestLocationSample:

    def test_stored_form(self):
        sample = LocationSample(18.5204, 73.8567, 1_700_000_000_000, 9.0)
        assert sample.to_dict() == {
            "latitude": 18.5204,
            "longitude": 73.8567,
            "timestamp": 1_700_000_000_000,
            "accuracy": 9.0,
        }

    def test_accuracy_omitted_when_unknown(self):
        assert "accuracy" not in LocationSample(1.0, 2.0, 3).to_dict()

    def test_from_dict_without_accuracy(self):
        sample = LocationSample.from_dict({"latitude": 1.5, "longitude": -2.5, "timestamp": 10})
        assert sample == LocationSample(1.5, -2.5, 10)

    @pytest.mark.parametrize("data", [
        {},
        {"latitude": 1.0, "longitude": 2.0},
        {"latitude": "north", "longitude": 2.0, "timestamp": 1},
        [],
    ])
    def test_from_dict_malformed(self, data):
        with pytest.raises(ValueError):
            LocationSample.from_dict(data)

    def test_frozen(self):
        sample = LocationSample(1.0, 2.0, 3)
        with pytest.raises(AttributeError):
            sample.latitude = 5.0


class TestContact:

    def test_parses_wire_names(self):
        contact = Contact.model_validate({
            "id": "c1",
            "userId": "u1",
            "name": "Asha",
            "phone": "+919876543210",
            "relationship": "sister",
            "createdAt": "2025-01-01T10:00:00Z",
        })
        assert contact.owner_id == "u1"
        assert contact.created_at.year == 2025

    def test_empty_phone_rejected(self):
        with pytest.raises(ValidationError):
            Contact(id="c1", userId="u1", name="A", phone="", createdAt="2025-01-01T00:00:00Z")

    def test_draft_strips_and_omits_none(self):
        draft = ContactDraft(name="  Asha ", phone=" +91 ")
        assert draft.to_wire() == {"name": "Asha", "phone": "+91"}


class TestAlertOutcome:

    def test_success(self):
        outcome = AlertOutcome.success(3)
        assert outcome.to_dict() == {"delivered": True, "recipient_count": 3, "failure": None}

    def test_failed_has_zero_recipients(self):
        outcome = AlertOutcome.failed(AlertFailure.NO_CONTACTS)
        assert outcome.recipient_count == 0
        assert outcome.to_dict()["failure"] == "no_contacts"


class TestErrorFormat:

    def test_capacity_error_dict(self):
        body = CapacityExceededError(limit=10).to_dict()
        assert body["error"]["code"] == "CAPACITY_EXCEEDED"
        assert body["error"]["details"] == {"limit": 10}

    def test_not_found_details(self):
        error = NotFoundError("Contact", id="c9")
        assert error.details == {"resource": "Contact", "id": "c9"}
        assert str(error) == "Contact not found"
