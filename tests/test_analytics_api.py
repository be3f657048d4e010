"""Tests for GET /analytics."""

from sqlalchemy import select

from pilotlog.models import AuditLog, SessionLocal


def _save(client, headers, **fields) -> None:
    body = {
        "flight_iata": "AA100",
        "flight_date": "2024-03-15",
        "flight_status": "completed",
        "departure_iata": "JFK",
        "arrival_iata": "LAX",
        "airline_iata": "AA",
        "duration_hours": 5.25,
    }
    body.update(fields)
    response = client.post("/save-flight", json=body, headers=headers)
    assert response.status_code == 200


class TestAnalyticsEndpoint:
    """Tests for the analytics summary endpoint."""

    def test_requires_token(self, client) -> None:
        assert client.get("/analytics").status_code == 401

    def test_empty_logbook(self, client, pilot) -> None:
        body = client.get("/analytics", headers=pilot["headers"]).get_json()

        assert body["totalFlights"] == 0
        assert body["mostFrequentRoute"] == "N/A"
        assert body["mostUsedAircraft"] == "N/A"
        assert len(body["monthlyTrend"]) == 6

    def test_summary_of_saved_flights(self, client, pilot) -> None:
        _save(client, pilot["headers"])
        _save(client, pilot["headers"], duration_hours=2.75, flight_status="diverted")
        _save(client, pilot["headers"], departure_iata="LAX", arrival_iata="ORD", airline_iata="UA")

        body = client.get("/analytics", headers=pilot["headers"]).get_json()

        assert body["totalFlights"] == 3
        assert body["totalHours"] == 13.25
        assert body["mostFrequentRoute"] == "JFK-LAX"
        assert body["mostUsedAircraft"] == "AA"
        assert body["onTimePercentage"] == 66.7
        assert body["statusDistribution"]["completed"] == 2
        assert [r["route"] for r in body["routeAnalysis"]] == ["JFK-LAX", "LAX-ORD"]
        assert set(body["timeDistribution"]) == {"day", "night", "ifr", "crossCountry"}
        for airline in body["airlineAnalysis"]:
            assert 85 <= airline["reliability"] < 100

    def test_scoped_to_caller_unless_admin(self, client, pilot, admin) -> None:
        _save(client, pilot["headers"])
        _save(client, admin["headers"], departure_iata="LHR", arrival_iata="JFK", airline_iata="BA")

        own = client.get("/analytics", headers=pilot["headers"]).get_json()
        everyone = client.get("/analytics", headers=admin["headers"]).get_json()

        assert own["totalFlights"] == 1
        assert everyone["totalFlights"] == 2

    def test_request_is_audited(self, client, pilot) -> None:
        _save(client, pilot["headers"])
        client.get("/analytics", headers=pilot["headers"])

        with SessionLocal() as session:
            entry = session.execute(
                select(AuditLog).where(AuditLog.action == "analytics_viewed")
            ).scalars().one()

        assert entry.entity == "system"
        assert entry.details["flightCount"] == 1
