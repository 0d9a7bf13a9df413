"""
Tests for Adherence API
========================

Daily, weekly and monthly adherence for a user.
"""

import pytest
from datetime import datetime, timezone
from fastapi import status
from fastapi.testclient import TestClient

from api.deps import get_now
from models import DoseLogEvent


AT = "2024-06-10T21:00:00"


@pytest.fixture
def taken_yesterday(db_session, test_medicine):
    """Both doses of June 9th taken"""
    for dose in test_medicine.doses:
        db_session.add(DoseLogEvent(
            medicine_id=test_medicine.id,
            scheduled_dose_id=dose.id,
            date_recorded=datetime(2024, 6, 9),
            is_taken=True,
            taken_at=datetime(2024, 6, 9, 21, 0),
            logged_by="user"
        ))
    db_session.commit()


class TestAdherenceAPI:

    @pytest.mark.api
    def test_daily_defaults(self, client: TestClient, test_medicine):
        response = client.get(f"/api/v1/users/{test_medicine.user_id}/adherence", params={"at": AT})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["period"] == "daily"
        assert data["total"] == 2
        assert data["display"] == "0%"
        assert data["per_medicine"][0]["name"] == "Metformin"

    @pytest.mark.api
    def test_weekly(self, client: TestClient, test_medicine, taken_yesterday):
        response = client.get(
            f"/api/v1/users/{test_medicine.user_id}/adherence",
            params={"period": "weekly", "at": AT}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["display"] == "100%"
        assert len(data["daily_series"]) == 7
        assert data["daily_series"][-2]["percentage"] == 100

    @pytest.mark.api
    def test_monthly_window(self, client: TestClient, test_medicine, taken_yesterday):
        response = client.get(
            f"/api/v1/users/{test_medicine.user_id}/adherence",
            params={"period": "monthly", "at": AT}
        )

        data = response.json()
        assert len(data["daily_series"]) == 30
        assert data["window_start"].startswith("2024-05-12")

    @pytest.mark.api
    def test_no_medicines_is_not_applicable(self, client: TestClient, test_user):
        response = client.get(f"/api/v1/users/{test_user.id}/adherence", params={"at": AT})

        data = response.json()
        assert data["display"] == "N/A"
        assert data["percentage"] is None

    @pytest.mark.api
    def test_unknown_period(self, client: TestClient, test_user):
        response = client.get(f"/api/v1/users/{test_user.id}/adherence", params={"period": "yearly"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_unknown_user(self, client: TestClient):
        response = client.get("/api/v1/users/999/adherence", params={"at": AT})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "not found" in response.json()["message"]


class TestReferenceInstant:

    @pytest.mark.unit
    def test_naive_value_is_kept(self):
        assert get_now(datetime(2024, 6, 10, 21, 0)) == datetime(2024, 6, 10, 21, 0)

    @pytest.mark.unit
    def test_aware_value_becomes_naive_local_time(self):
        at = datetime(2024, 6, 10, 21, 0, tzinfo=timezone.utc)

        result = get_now(at)

        assert result.tzinfo is None
        assert result == at.astimezone().replace(tzinfo=None)

    @pytest.mark.api
    def test_adherence_with_utc_offset(self, client: TestClient, test_medicine):
        response = client.get(
            f"/api/v1/users/{test_medicine.user_id}/adherence",
            params={"at": "2024-06-10T21:00:00+00:00"}
        )

        assert response.status_code == status.HTTP_200_OK
        expected = datetime(2024, 6, 10, 21, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert response.json()["window_end"] == expected.isoformat()
