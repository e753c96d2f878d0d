import xml.etree.ElementTree as ET
from datetime import date, datetime, time
from unittest.mock import patch

import pytest

from app.client.api_client import filename_from_disposition
from app.models.user import UserRole


@pytest.fixture
def february_sessions(trainer_user, make_session):
    days = [date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 5), date(2024, 2, 14), date(2024, 2, 15)]
    return [make_session(trainer_user, day) for day in days]


class TestWeeklySessionsExport:
    """Exportación XML semanal de sesiones de un entrenador."""

    def test_explicit_range_scenario(self, client, trainer_user, february_sessions, auth_headers):
        response = client.get(
            "/api/v1/sessions/export/xml/weekly?startDate=2024-02-01&endDate=2024-02-14",
            headers=auth_headers(trainer_user),
        )

        assert response.status_code == 200
        assert response.headers["content-disposition"] == (
            'attachment; filename="sessions-Tom-Trainer-2024-02-01-to-2024-02-14.xml"'
        )
        root = ET.fromstring(response.content)
        assert root.tag == "weekly_sessions"
        assert root.find("header/total_sessions").text == "3"
        assert root.find("header/trainer/name").text == "Tom Trainer"
        assert root.find("header/period/start").text == "2024-02-01"
        assert root.find("header/period/end").text == "2024-02-14"

        weeks = root.findall("week")
        assert [(w.get("start"), w.get("end")) for w in weeks] == [
            ("2024-01-29", "2024-02-04"),
            ("2024-02-05", "2024-02-11"),
            ("2024-02-12", "2024-02-18"),
        ]
        dates = [s.find("session_date").text for s in root.iter("session")]
        assert dates == ["2024-02-01", "2024-02-05", "2024-02-14"]
        assert all(s.find("trainer") is None for s in root.iter("session"))

    def test_non_latin1_trainer_name_downloads(self, client, make_user, make_session, auth_headers):
        trainer = make_user(UserRole.TRAINER, "Łukasz", "Nowak")
        make_session(trainer, date(2024, 2, 5))

        response = client.get(
            "/api/v1/sessions/export/xml/weekly?startDate=2024-02-01&endDate=2024-02-14",
            headers=auth_headers(trainer),
        )

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="sessions-ukasz-Nowak-2024-02-01-to-2024-02-14.xml"' in disposition
        assert "filename*=utf-8''sessions-%C5%81ukasz-Nowak-2024-02-01-to-2024-02-14.xml" in disposition
        assert filename_from_disposition(disposition) == "sessions-Łukasz-Nowak-2024-02-01-to-2024-02-14.xml"
        assert ET.fromstring(response.content).find("header/trainer/name").text == "Łukasz Nowak"

    def test_without_range_only_upcoming_sessions(self, client, trainer_user, february_sessions, auth_headers):
        with patch("app.services.session.gym_now_naive", return_value=datetime(2024, 2, 6, 9, 0)):
            response = client.get("/api/v1/sessions/export/xml/weekly", headers=auth_headers(trainer_user))

        assert response.status_code == 200
        assert 'filename="sessions-Tom-Trainer.xml"' in response.headers["content-disposition"]
        root = ET.fromstring(response.content)
        assert root.find("header/total_sessions").text == "2"
        assert [w.get("start") for w in root.findall("week")] == ["2024-02-12"]

    def test_other_trainers_and_deleted_sessions_are_excluded(
        self, client, trainer_user, make_user, make_session, auth_headers
    ):
        other = make_user(role=trainer_user.role, first_name="Other", last_name="Coach")
        make_session(other, date(2024, 2, 2))
        make_session(trainer_user, date(2024, 2, 3), deleted=True)
        make_session(trainer_user, date(2024, 2, 4), time(6, 30))

        response = client.get(
            "/api/v1/sessions/export/xml/weekly?startDate=2024-02-01&endDate=2024-02-29",
            headers=auth_headers(trainer_user),
        )
        root = ET.fromstring(response.content)
        assert [s.find("datetime").text for s in root.iter("session")] == ["2024-02-04T06:30:00"]

    @pytest.mark.parametrize("query", ["startDate=2024-02-01", "endDate=2024-02-14",
                                       "startDate=2024-02-14&endDate=2024-02-01"])
    def test_invalid_range_is_400(self, client, trainer_user, auth_headers, query):
        response = client.get(f"/api/v1/sessions/export/xml/weekly?{query}", headers=auth_headers(trainer_user))
        assert response.status_code == 400
        assert "message" in response.json()

    def test_member_cannot_export_sessions(self, client, member_user, auth_headers):
        response = client.get("/api/v1/sessions/export/xml/weekly", headers=auth_headers(member_user))
        assert response.status_code == 403

    def test_trainer_cannot_export_other_trainer(self, client, trainer_user, make_user, auth_headers):
        other = make_user(role=trainer_user.role, first_name="Other", last_name="Coach")
        response = client.get(
            f"/api/v1/sessions/export/xml/weekly?trainerId={other.id}",
            headers=auth_headers(trainer_user),
        )
        assert response.status_code == 403

    def test_admin_exports_for_trainer(self, client, admin_user, trainer_user, february_sessions, auth_headers):
        response = client.get(
            f"/api/v1/sessions/export/xml/weekly?trainerId={trainer_user.id}&startDate=2024-01-01&endDate=2024-12-31",
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        assert ET.fromstring(response.content).find("header/total_sessions").text == "5"

    def test_admin_unknown_trainer_is_404(self, client, admin_user, auth_headers):
        response = client.get("/api/v1/sessions/export/xml/weekly?trainerId=9999", headers=auth_headers(admin_user))
        assert response.status_code == 404

    def test_admin_override_with_member_id_is_404(self, client, admin_user, member_user, auth_headers):
        response = client.get(
            f"/api/v1/sessions/export/xml/weekly?trainerId={member_user.id}",
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 404
        assert response.json() == {"message": "No trainer found for this export"}

    @patch("app.services.session.training_session_repository.get_sessions_by_trainer")
    def test_repository_failure_is_generic_500(self, mock_query, client, trainer_user, auth_headers):
        from app.core.exceptions import RepositoryError

        mock_query.side_effect = RepositoryError()
        response = client.get("/api/v1/sessions/export/xml/weekly", headers=auth_headers(trainer_user))
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to access the data store"}


class TestSessionListings:

    def test_public_upcoming_sessions(self, client, trainer_user, make_session):
        upcoming = make_session(trainer_user, date(2099, 1, 1))
        make_session(trainer_user, date(2000, 1, 1))
        make_session(trainer_user, date(2099, 1, 2), deleted=True)

        response = client.get("/api/v1/sessions")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [upcoming.id]

    def test_my_sessions_for_trainer_only(self, client, trainer_user, member_user, make_session, auth_headers):
        mine = make_session(trainer_user, date(2099, 1, 1))
        response = client.get("/api/v1/sessions/self", headers=auth_headers(trainer_user))
        assert [s["id"] for s in response.json()] == [mine.id]

        assert client.get("/api/v1/sessions/self", headers=auth_headers(member_user)).status_code == 403
