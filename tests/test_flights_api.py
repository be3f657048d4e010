"""Tests for the logbook flight endpoints."""

from datetime import date, datetime
from unittest.mock import MagicMock, patch

from sqlalchemy import select

from pilotlog.models import AuditLog, DetailedFlight, SessionLocal
from pilotlog.services.flight_info import FlightInfo, flight_info_service


def _flight_body(**overrides) -> dict:
    body = {
        "flight_iata": "AA100",
        "flight_number": "100",
        "flight_date": "2024-03-15",
        "flight_status": "completed",
        "departure_iata": "JFK",
        "arrival_iata": "LAX",
        "departure_scheduled": "2024-03-15T08:00:00Z",
        "arrival_scheduled": "2024-03-15T13:30:00Z",
        "airline_iata": "AA",
        "airline_name": "American Airlines",
        "duration_hours": 5.5,
    }
    body.update(overrides)
    return body


def _save(client, headers, **overrides):
    response = client.post("/save-flight", json=_flight_body(**overrides), headers=headers)
    assert response.status_code == 200, response.get_json()
    return response.get_json()


def _lookup_result(flight_iata: str = "DL200") -> FlightInfo:
    return FlightInfo(
        flight_date=date(2024, 4, 1),
        flight_status="scheduled",
        departure_iata="ATL",
        arrival_iata="SEA",
        departure_scheduled=datetime(2024, 4, 1, 9),
        arrival_scheduled=datetime(2024, 4, 1, 14),
        airline_iata=flight_iata[:2],
        flight_iata=flight_iata,
        flight_number=flight_iata[2:],
        duration_hours=5.0,
    )


class TestSaveFlight:
    """Tests for POST /save-flight."""

    def test_save_and_list(self, client, pilot) -> None:
        body = _save(client, pilot["headers"])
        assert body["success"] is True

        logs = client.get("/logs", headers=pilot["headers"]).get_json()
        assert len(logs) == 1
        assert logs[0]["id"] == body["id"]
        assert logs[0]["flight_iata"] == "AA100"
        assert logs[0]["duration_hours"] == 5.5
        assert logs[0]["departure_scheduled"] == "2024-03-15T08:00:00"

    def test_non_numeric_duration_is_zero(self, client, pilot) -> None:
        _save(client, pilot["headers"], duration_hours="abc")
        logs = client.get("/logs", headers=pilot["headers"]).get_json()
        assert logs[0]["duration_hours"] == 0.0

    def test_offset_times_are_stored_as_utc(self, client, pilot) -> None:
        _save(client, pilot["headers"], departure_scheduled="2024-03-15T10:00:00+02:00")
        logs = client.get("/logs", headers=pilot["headers"]).get_json()
        assert logs[0]["departure_scheduled"] == "2024-03-15T08:00:00"

    def test_missing_body(self, client, pilot) -> None:
        response = client.post("/save-flight", headers=pilot["headers"])
        assert response.status_code == 400

    def test_non_object_body(self, client, pilot) -> None:
        response = client.post("/save-flight", json=[1], headers=pilot["headers"])
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_invalid_date(self, client, pilot) -> None:
        response = client.post(
            "/save-flight",
            json=_flight_body(flight_date="15/03/2024"),
            headers=pilot["headers"],
        )
        assert response.status_code == 400

    def test_save_is_audited_with_flight_details(self, client, pilot) -> None:
        body = _save(client, pilot["headers"])
        with SessionLocal() as session:
            entry = session.execute(
                select(AuditLog).where(AuditLog.action == "created")
            ).scalars().one()

        assert entry.entity == "flight"
        assert entry.entity_id == str(body["id"])
        assert entry.user_id == "jane@example.com"
        assert entry.flight_details["flight_iata"] == "AA100"

    def test_requires_token(self, client) -> None:
        response = client.post("/save-flight", json=_flight_body())
        assert response.status_code == 401


class TestLogs:
    """Tests for GET /logs visibility and ordering."""

    def test_pilots_only_see_their_own_flights(self, client, pilot, register) -> None:
        other = register(email="bob@example.com", username="bob")
        other_headers = {"Authorization": f"Bearer {other['token']}"}
        _save(client, pilot["headers"], flight_iata="AA100")
        _save(client, other_headers, flight_iata="DL200")

        own = client.get("/logs", headers=pilot["headers"]).get_json()
        assert [f["flight_iata"] for f in own] == ["AA100"]

    def test_admin_sees_everything(self, client, pilot, admin) -> None:
        _save(client, pilot["headers"], flight_iata="AA100")
        _save(client, admin["headers"], flight_iata="BA300")

        rows = client.get("/logs", headers=admin["headers"]).get_json()
        assert {f["flight_iata"] for f in rows} == {"AA100", "BA300"}

    def test_newest_first(self, client, pilot) -> None:
        _save(client, pilot["headers"], flight_iata="OLD1", flight_date="2024-01-01")
        _save(client, pilot["headers"], flight_iata="NEW1", flight_date="2024-05-01")

        rows = client.get("/logs", headers=pilot["headers"]).get_json()
        assert [f["flight_iata"] for f in rows] == ["NEW1", "OLD1"]


class TestFlightsByDate:
    """Tests for GET /flights-by-date."""

    def test_requires_date(self, client, pilot) -> None:
        response = client.get("/flights-by-date", headers=pilot["headers"])
        assert response.status_code == 400
        assert response.get_json()["message"] == "Date parameter is required"

    def test_rejects_malformed_date(self, client, pilot) -> None:
        response = client.get("/flights-by-date?date=tomorrow", headers=pilot["headers"])
        assert response.status_code == 400

    def test_stored_flights_come_first(self, client, pilot) -> None:
        _save(client, pilot["headers"])
        with patch.object(flight_info_service, "flights_by_date") as mock_lookup:
            rows = client.get("/flights-by-date?date=2024-03-15", headers=pilot["headers"]).get_json()

        mock_lookup.assert_not_called()
        assert [f["flight_iata"] for f in rows] == ["AA100"]

    def test_lookup_results_are_stored(self, client, pilot) -> None:
        with patch.object(flight_info_service, "flights_by_date", return_value=[_lookup_result()]):
            rows = client.get("/flights-by-date?date=2024-04-01", headers=pilot["headers"]).get_json()

        assert [f["flight_iata"] for f in rows] == ["DL200"]
        with SessionLocal() as session:
            stored = session.execute(select(DetailedFlight)).scalars().all()
        assert [f.flight_iata for f in stored] == ["DL200"]
        assert stored[0].created_by is None

    def test_mock_fallback(self, client, pilot) -> None:
        with patch.object(flight_info_service, "flights_by_date", return_value=[]):
            rows = client.get("/flights-by-date?date=2024-04-01", headers=pilot["headers"]).get_json()

        assert [f["id"] for f in rows] == [1, 2, 3, 4, 5]
        assert all(f["flight_date"] == "2024-04-01" for f in rows)


class TestFetchDetailedFlights:
    """Tests for GET /fetch-detailed-flights."""

    @staticmethod
    def _api_payload(count: int) -> dict:
        return {
            "data": [
                {
                    "flight_date": "2024-04-01",
                    "flight_status": "scheduled",
                    "departure": {"iata": "ATL", "scheduled": "2024-04-01T09:00:00+00:00"},
                    "arrival": {"iata": "SEA", "scheduled": "2024-04-01T14:15:00+00:00"},
                    "airline": {"name": "Delta Air Lines", "iata": "DL"},
                    "flight": {"number": str(200 + i), "iata": f"DL{200 + i}"},
                }
                for i in range(count)
            ]
        }

    def test_requires_api_key(self, client, pilot) -> None:
        with patch.object(flight_info_service, "api_key", ""):
            response = client.get("/fetch-detailed-flights", headers=pilot["headers"])

        assert response.status_code == 400
        assert response.get_json() == {"message": "API key not configured"}

    def test_stores_first_five_flights(self, client, pilot) -> None:
        api_response = MagicMock(status_code=200)
        api_response.json.return_value = self._api_payload(7)

        with patch.object(flight_info_service, "api_key", "key"), patch(
            "pilotlog.services.flight_info.requests.get", return_value=api_response
        ) as mock_get:
            response = client.get("/fetch-detailed-flights", headers=pilot["headers"])

        assert response.status_code == 200
        assert response.get_json()["count"] == 5
        assert mock_get.call_args.kwargs["params"]["access_key"] == "key"

        with SessionLocal() as session:
            stored = session.execute(select(DetailedFlight)).scalars().all()
        assert [f.flight_iata for f in stored] == ["DL200", "DL201", "DL202", "DL203", "DL204"]
        assert stored[0].duration_hours == 5.25
        assert stored[0].flight_date == date(2024, 4, 1)

    def test_api_failure_stores_nothing(self, client, pilot) -> None:
        with patch.object(flight_info_service, "api_key", "key"), patch(
            "pilotlog.services.flight_info.requests.get", return_value=MagicMock(status_code=500)
        ):
            response = client.get("/fetch-detailed-flights", headers=pilot["headers"])

        assert response.status_code == 200
        assert response.get_json()["count"] == 0
        with SessionLocal() as session:
            assert session.execute(select(DetailedFlight)).scalars().all() == []


class TestSearchFlight:
    """Tests for GET /search-flight."""

    def test_requires_code_and_date(self, client, pilot) -> None:
        response = client.get("/search-flight?flight_iata=AA100", headers=pilot["headers"])
        assert response.status_code == 400

    def test_finds_stored_flight_case_insensitively(self, client, pilot) -> None:
        _save(client, pilot["headers"])
        with patch.object(flight_info_service, "search_flight") as mock_search:
            rows = client.get(
                "/search-flight?flight_iata=aa100&date=2024-03-15", headers=pilot["headers"]
            ).get_json()

        mock_search.assert_not_called()
        assert len(rows) == 1
        assert rows[0]["flight_iata"] == "AA100"

    def test_lookup_result_is_stored(self, client, pilot) -> None:
        with patch.object(flight_info_service, "search_flight", return_value=[_lookup_result()]):
            rows = client.get(
                "/search-flight?flight_iata=DL200&date=2024-04-01", headers=pilot["headers"]
            ).get_json()

        assert [f["flight_iata"] for f in rows] == ["DL200"]
        with SessionLocal() as session:
            count = len(session.execute(select(DetailedFlight)).scalars().all())
        assert count == 1

    def test_not_found_is_empty_list(self, client, pilot) -> None:
        with patch.object(flight_info_service, "search_flight", return_value=[]):
            response = client.get(
                "/search-flight?flight_iata=ZZ999&date=2024-04-01", headers=pilot["headers"]
            )

        assert response.status_code == 200
        assert response.get_json() == []


class TestGetFlight:
    """Tests for GET /flight/<flight_iata>."""

    def test_found(self, client, pilot) -> None:
        _save(client, pilot["headers"])
        response = client.get("/flight/AA100", headers=pilot["headers"])

        assert response.status_code == 200
        assert response.get_json()["arrival_iata"] == "LAX"

    def test_not_found(self, client, pilot) -> None:
        response = client.get("/flight/ZZ999", headers=pilot["headers"])
        assert response.status_code == 404
        assert response.get_json() == {"message": "Flight not found"}
