"""Tests for roster import and the schedule endpoints."""

import io

import pytest
from sqlalchemy import select

from pilotlog.models import AuditLog, PilotSchedule, SessionLocal
from pilotlog.services.schedule_import import (
    ScheduleImportError,
    import_schedule_file,
    import_schedule_rows,
    read_schedule_csv,
)

HEADER = "name,email,flightDate,flightTime,flightNumber,flightName,standbyTime\n"


def _csv(*lines: str) -> bytes:
    return (HEADER + "\n".join(lines) + "\n").encode("utf-8")


def _row(**overrides) -> dict:
    row = {
        "name": "jane",
        "email": "jane@example.com",
        "flightDate": "2024-04-02",
        "flightTime": "09:30",
        "flightNumber": "AA100",
        "flightName": "JFK-LAX",
        "standbyTime": "2024-04-02 07:30",
    }
    row.update(overrides)
    return row


def _schedules():
    with SessionLocal() as session:
        return session.execute(select(PilotSchedule)).scalars().all()


class TestReadScheduleCsv:
    """Tests for CSV parsing."""

    def test_strips_keys_and_values(self) -> None:
        text = io.StringIO(" name , email \n jane , jane@example.com \n")
        assert read_schedule_csv(text) == [{"name": "jane", "email": "jane@example.com"}]


class TestImportRows:
    """Tests for matching rows to pilots."""

    def test_creates_schedule_for_known_pilot(self, pilot) -> None:
        result = import_schedule_rows([_row()], uploaded_by="ops@example.com")

        assert (result.rows, result.created, result.skipped) == (1, 1, 0)
        schedule = _schedules()[0]
        assert schedule.pilot_id == pilot["pilot"]["id"]
        assert schedule.flight_number == "AA100"
        assert schedule.to_dict()["flight_time"] == "09:30:00"
        assert schedule.to_dict()["standby_time"] == "2024-04-02T07:30:00"

    def test_matches_by_username(self, pilot) -> None:
        result = import_schedule_rows([_row(email="")], uploaded_by="ops@example.com")
        assert result.created == 1

    def test_unknown_pilot_is_skipped(self, pilot) -> None:
        result = import_schedule_rows(
            [_row(email="ghost@example.com", name="ghost")], uploaded_by="ops@example.com"
        )
        assert (result.created, result.skipped) == (0, 1)
        assert _schedules() == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"flightDate": "02/04/2024"},
            {"flightTime": "half past nine"},
            {"flightNumber": ""},
            {"standbyTime": "soon"},
        ],
    )
    def test_bad_rows_are_skipped(self, pilot, overrides) -> None:
        result = import_schedule_rows([_row(**overrides), _row()], uploaded_by="ops@example.com")
        assert (result.rows, result.created, result.skipped) == (2, 1, 1)

    def test_notification_and_creation_are_audited(self, pilot) -> None:
        import_schedule_rows([_row()], uploaded_by="ops@example.com")

        with SessionLocal() as session:
            actions = session.execute(select(AuditLog.action)).scalars().all()
        assert "notification_sent" in actions
        assert "schedule_created" in actions


class TestImportFile:
    """Tests for file-type dispatch."""

    def test_csv_with_byte_order_mark(self, pilot) -> None:
        stream = io.BytesIO(b"\xef\xbb\xbf" + _csv("jane,jane@example.com,2024-04-02,09:30,AA100,,"))
        result = import_schedule_file(stream, "text/csv", uploaded_by="ops@example.com")

        assert result.created == 1
        assert result.message == "Processed 1 schedules"

    def test_csv_detected_by_extension(self, pilot) -> None:
        stream = io.BytesIO(_csv("jane,jane@example.com,2024-04-02,09:30,AA100,,"))
        result = import_schedule_file(
            stream, "application/octet-stream", uploaded_by="ops@example.com", filename="roster.CSV"
        )
        assert result.created == 1

    def test_pdf_is_accepted_but_not_parsed(self) -> None:
        result = import_schedule_file(io.BytesIO(b"%PDF-1.4"), "application/pdf", uploaded_by="ops")
        assert result.created == 0
        assert "PDF" in result.message

    def test_unsupported_type(self) -> None:
        with pytest.raises(ScheduleImportError, match="Unsupported file type"):
            import_schedule_file(io.BytesIO(b"GIF89a"), "image/gif", uploaded_by="ops")


class TestScheduleEndpoints:
    """Tests for POST /upload-schedule and GET /pilot-schedules."""

    def test_upload_and_list(self, client, pilot) -> None:
        payload = _csv(
            "jane,jane@example.com,2024-04-03,14:00,AA200,LAX-JFK,",
            "jane,jane@example.com,2024-04-02,09:30,AA100,JFK-LAX,2024-04-02 07:30",
            "ghost,ghost@example.com,2024-04-02,10:00,ZZ1,,",
        )
        response = client.post(
            "/upload-schedule",
            data={"scheduleFile": (io.BytesIO(payload), "roster.csv", "text/csv")},
            content_type="multipart/form-data",
            headers=pilot["headers"],
        )
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["message"] == "Processed 3 schedules"
        assert (body["created"], body["skipped"]) == (2, 1)

        schedules = client.get("/pilot-schedules", headers=pilot["headers"]).get_json()
        assert [s["flight_number"] for s in schedules] == ["AA100", "AA200"]

    def test_other_pilots_schedules_are_hidden(self, client, pilot, register) -> None:
        other = register(email="bob@example.com", username="bob")
        import_schedule_rows([_row()], uploaded_by="ops@example.com")

        headers = {"Authorization": f"Bearer {other['token']}"}
        assert client.get("/pilot-schedules", headers=headers).get_json() == []

    def test_missing_file(self, client, pilot) -> None:
        response = client.post("/upload-schedule", headers=pilot["headers"])
        assert response.status_code == 400
        assert response.get_json()["message"] == "No file uploaded"

    def test_unsupported_file(self, client, pilot) -> None:
        response = client.post(
            "/upload-schedule",
            data={"scheduleFile": (io.BytesIO(b"GIF89a"), "roster.gif", "image/gif")},
            content_type="multipart/form-data",
            headers=pilot["headers"],
        )
        assert response.status_code == 400
        assert response.get_json()["message"] == "Unsupported file type"
