# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the engagement API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import get_mentor_notifier, get_status_channel, get_store
from src.infrastructure.notifications import MentorNotifyResult

BASE = "/api/v1"


@pytest.fixture
def app(store, notifier, status_channel):
    """Create the app with the in-memory store and mocked transports."""
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_mentor_notifier] = lambda: notifier
    app.dependency_overrides[get_status_channel] = lambda: status_channel
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


class TestRouting:
    """Tests for route registration."""

    def test_routes_registered(self, app) -> None:
        routes = set(app.openapi()["paths"])

        assert f"{BASE}/student/{{student_id}}/status" in routes
        assert f"{BASE}/daily-checkin" in routes
        assert f"{BASE}/report-cheat" in routes
        assert f"{BASE}/assign-intervention" in routes
        assert f"{BASE}/complete-intervention" in routes
        assert "/health" in routes
        assert "/health/ready" in routes


class TestStudentStatus:
    """Tests for GET /student/{id}/status."""

    def test_status(self, client, sample_student_id) -> None:
        response = client.get(f"{BASE}/student/{sample_student_id}/status")

        assert response.status_code == 200
        body = response.json()
        assert body["student"]["id"] == sample_student_id
        assert body["student"]["status"] == "normal"
        assert body["intervention"] is None

    def test_unknown_student(self, client) -> None:
        response = client.get(f"{BASE}/student/ghost/status")

        assert response.status_code == 404
        assert response.json() == {"error": "Student not found"}

    def test_database_error(self, client, store, sample_student_id) -> None:
        store.fail_on.add("get_student")

        response = client.get(f"{BASE}/student/{sample_student_id}/status")

        assert response.status_code == 500
        assert response.json() == {"error": "Database error"}


class TestDailyCheckin:
    """Tests for POST /daily-checkin."""

    def test_on_track(self, client, notifier, sample_student_id) -> None:
        response = client.post(f"{BASE}/daily-checkin", json={
            "student_id": sample_student_id,
            "quiz_score": 8,
            "focus_minutes": 61,
        })

        assert response.status_code == 200
        assert response.json() == {"status": "On Track", "state": "normal"}
        notifier.notify.assert_not_awaited()

    def test_pending_review(self, client, store, sample_student_id) -> None:
        response = client.post(f"{BASE}/daily-checkin", json={
            "student_id": sample_student_id,
            "quiz_score": 7,
            "focus_duration": "61:00",
        })

        assert response.status_code == 200
        assert response.json() == {"status": "Pending Mentor Review", "state": "needs_intervention"}
        assert store.logs[0]["status"] == "needs_intervention"

    def test_missing_fields(self, client, store) -> None:
        response = client.post(f"{BASE}/daily-checkin", json={"quiz_score": 8})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}
        assert store.logs == []

    def test_malformed_score_is_400(self, client, sample_student_id) -> None:
        response = client.post(f"{BASE}/daily-checkin", json={
            "student_id": sample_student_id,
            "quiz_score": "high",
        })

        assert response.status_code == 400
        assert "error" in response.json()

    def test_unknown_student(self, client) -> None:
        response = client.post(f"{BASE}/daily-checkin", json={"student_id": "ghost", "quiz_score": 9})
        assert response.status_code == 404

    def test_store_failure(self, client, store, sample_student_id) -> None:
        store.fail_on.add("insert_daily_log")

        response = client.post(f"{BASE}/daily-checkin", json={
            "student_id": sample_student_id,
            "quiz_score": 9,
            "focus_minutes": 90,
        })

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process daily check-in"}


class TestReportCheat:
    """Tests for POST /report-cheat."""

    def test_logged_and_notified(self, client, store, sample_student_id) -> None:
        response = client.post(f"{BASE}/report-cheat", json={
            "student_id": sample_student_id,
            "focus_duration": "05:30",
        })

        assert response.status_code == 200
        assert response.json() == {
            "status": "Logged cheat and notified mentor",
            "state": "needs_intervention",
        }
        assert store.logs[0]["status"] == "cheated"
        assert store.logs[0]["focus_minutes"] == 6

    def test_failing_transport_still_succeeds(self, client, store, notifier, sample_student_id) -> None:
        notifier.notify.side_effect = RuntimeError("webhook down")

        response = client.post(f"{BASE}/report-cheat", json={"student_id": sample_student_id})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Logged cheat (notification may have failed)"
        assert body["state"] == "needs_intervention"
        assert body["warning"]
        assert store.students[sample_student_id]["status"] == "needs_intervention"
        assert len(store.logs) == 1

    def test_skipped_notification(self, client, notifier, sample_student_id) -> None:
        notifier.notify.return_value = MentorNotifyResult(skipped=True, message="Mentor webhook not configured")

        response = client.post(f"{BASE}/report-cheat", json={"student_id": sample_student_id})

        assert response.json()["status"] == "Logged cheat (notification skipped)"
        assert response.json()["warning"] == "Mentor webhook not configured"

    def test_missing_student(self, client) -> None:
        response = client.post(f"{BASE}/report-cheat", json={"reason": "cheated"})
        assert response.status_code == 400

    def test_overlong_reason_is_400(self, client, store, sample_student_id) -> None:
        response = client.post(f"{BASE}/report-cheat", json={
            "student_id": sample_student_id,
            "reason": "r" * 65,
        })

        assert response.status_code == 400
        assert "error" in response.json()
        assert store.logs == []

    def test_store_failure(self, client, store, sample_student_id) -> None:
        store.fail_on.add("update_student_status")

        response = client.post(f"{BASE}/report-cheat", json={"student_id": sample_student_id})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to log cheat"}


class TestInterventionLifecycle:
    """Tests for assign and complete endpoints."""

    def test_assign_then_complete(self, client, store, sample_student_id) -> None:
        client.post(f"{BASE}/report-cheat", json={"student_id": sample_student_id})

        assigned = client.post(f"{BASE}/assign-intervention", json={
            "student_id": sample_student_id,
            "task_description": "Review chapter 5",
        })
        assert assigned.status_code == 200
        intervention_id = assigned.json()["intervention_id"]
        assert assigned.json()["success"] is True

        status = client.get(f"{BASE}/student/{sample_student_id}/status").json()
        assert status["student"]["status"] == "remedial"
        assert status["intervention"]["id"] == intervention_id
        assert status["intervention"]["status"] == "pending"

        completed = client.post(f"{BASE}/complete-intervention", json={
            "student_id": sample_student_id,
            "intervention_id": intervention_id,
            "focus_duration": "10:00",
        })
        assert completed.status_code == 200
        assert completed.json() == {"success": True}

        status = client.get(f"{BASE}/student/{sample_student_id}/status").json()
        assert status["student"]["status"] == "normal"
        assert status["intervention"] is None
        assert store.interventions[0]["completed_at"] is not None

    def test_duplicate_assignment_conflict(self, client, sample_student_id) -> None:
        body = {"student_id": sample_student_id, "task_description": "Essay"}
        client.post(f"{BASE}/assign-intervention", json=body)

        response = client.post(f"{BASE}/assign-intervention", json=body)

        assert response.status_code == 409
        assert response.json() == {"error": "Student already has a pending intervention"}

    def test_assign_missing_task(self, client, sample_student_id) -> None:
        response = client.post(f"{BASE}/assign-intervention", json={"student_id": sample_student_id})
        assert response.status_code == 400

    def test_assign_unknown_student(self, client) -> None:
        response = client.post(f"{BASE}/assign-intervention", json={
            "student_id": "ghost",
            "task_description": "Essay",
        })
        assert response.status_code == 404

    def test_complete_non_matching(self, client, store, sample_student_id) -> None:
        client.post(f"{BASE}/assign-intervention", json={
            "student_id": sample_student_id,
            "task_description": "Essay",
        })

        response = client.post(f"{BASE}/complete-intervention", json={
            "student_id": sample_student_id,
            "intervention_id": 999,
        })

        assert response.status_code == 404
        assert response.json() == {"error": "Intervention not found"}
        assert store.students[sample_student_id]["status"] == "remedial"

    def test_complete_missing_fields(self, client) -> None:
        response = client.post(f"{BASE}/complete-intervention", json={"student_id": "student-123"})
        assert response.status_code == 400

    def test_assign_store_failure(self, client, store, sample_student_id) -> None:
        store.fail_on.add("insert_intervention")

        response = client.post(f"{BASE}/assign-intervention", json={
            "student_id": sample_student_id,
            "task_description": "Essay",
        })

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to assign intervention"}


class TestHealth:
    """Tests for health endpoints."""

    @patch("src.api.routes.health.check_database_connection", new_callable=AsyncMock)
    def test_healthy(self, mock_check, client) -> None:
        mock_check.return_value = True

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"]["database"]["status"] == "healthy"
        assert body["components"]["redis"]["status"] == "not_configured"

    @patch("src.api.routes.health.check_database_connection", new_callable=AsyncMock)
    def test_not_ready_without_database(self, mock_check, client) -> None:
        mock_check.return_value = False

        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is False
