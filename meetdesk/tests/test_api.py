"""
API endpoint tests for all routes.
Uses a per-test SQLite database + dependency-overridden FastAPI test client.
"""
from datetime import datetime, timedelta, timezone

from meetdesk.models.meeting import Meeting, MeetingStatus, MeetingType
from meetdesk.models.notification import Notification, NotificationCategory


def request_body(**overrides):
    body = {
        "project_id": "proj-1",
        "requester_id": "A",
        "approver_id": "B",
        "title": "Sprint demo prep",
        "agenda": "Walk through the demo script",
        "preferred_at": "2025-06-01T10:00:00Z",
        "duration_minutes": 30,
    }
    body.update(overrides)
    return body


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== MEETING REQUESTS =====================


async def test_submit_request(client, notifier):
    r = await client.post("/api/meeting-requests/", json=request_body())
    assert r.status_code == 201
    data = r.json()
    assert data["status"] == "pending"
    assert data["requester_id"] == "A"
    assert datetime.fromisoformat(data["preferred_at"].replace("Z", "+00:00")) == datetime(
        2025, 6, 1, 10, 0, tzinfo=timezone.utc
    )
    assert len(notifier.to("B")) == 1


async def test_submit_request_missing_agenda(client):
    r = await client.post("/api/meeting-requests/", json=request_body(agenda=None))
    assert r.status_code == 400
    assert "agenda" in r.json()["detail"]


async def test_get_and_list_requests(client):
    created = (await client.post("/api/meeting-requests/", json=request_body())).json()
    await client.post("/api/meeting-requests/", json=request_body(requester_id="C"))

    r = await client.get(f"/api/meeting-requests/{created['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == created["id"]

    r = await client.get("/api/meeting-requests/", params={"requester_id": "C"})
    assert r.status_code == 200
    assert [item["requester_id"] for item in r.json()] == ["C"]


async def test_get_missing_request(client):
    r = await client.get("/api/meeting-requests/nope")
    assert r.status_code == 404


async def test_approve_request(client):
    created = (await client.post("/api/meeting-requests/", json=request_body())).json()

    r = await client.post(f"/api/meeting-requests/{created['id']}/approve")
    assert r.status_code == 200
    meeting = r.json()
    assert meeting["status"] == "confirmed"
    assert meeting["duration_minutes"] == 30
    assert meeting["meeting_type"] == "virtual"

    r = await client.get(f"/api/meeting-requests/{created['id']}")
    assert r.json()["status"] == "approved"
    assert r.json()["meeting_id"] == meeting["id"]

    r = await client.post(f"/api/meeting-requests/{created['id']}/approve")
    assert r.status_code == 409


async def test_approve_with_override(client):
    created = (await client.post("/api/meeting-requests/", json=request_body())).json()

    r = await client.post(
        f"/api/meeting-requests/{created['id']}/approve",
        json={"scheduled_at": "2025-06-03T15:00:00+02:00"},
    )
    assert r.status_code == 200
    scheduled = datetime.fromisoformat(r.json()["scheduled_at"].replace("Z", "+00:00"))
    assert scheduled == datetime(2025, 6, 3, 13, 0, tzinfo=timezone.utc)


async def test_reject_request(client):
    created = (await client.post("/api/meeting-requests/", json=request_body())).json()

    r = await client.post(f"/api/meeting-requests/{created['id']}/reject", json={"reason": ""})
    assert r.status_code == 400

    r = await client.post(f"/api/meeting-requests/{created['id']}/reject", json={"reason": "Busy"})
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"
    assert r.json()["rejection_reason"] == "Busy"

    r = await client.post(f"/api/meeting-requests/{created['id']}/reject", json={"reason": "Busy"})
    assert r.status_code == 409


async def test_delete_request(client):
    created = (await client.post("/api/meeting-requests/", json=request_body())).json()

    r = await client.delete(f"/api/meeting-requests/{created['id']}")
    assert r.status_code == 204

    r = await client.delete(f"/api/meeting-requests/{created['id']}")
    assert r.status_code == 404


# ===================== MEETINGS =====================


async def test_list_and_get_meetings(client, db_session):
    m = Meeting(
        title="Detail Test",
        meeting_type=MeetingType.IN_PERSON,
        scheduled_at=datetime.now(timezone.utc) + timedelta(days=2),
        status=MeetingStatus.CONFIRMED,
        requester_id="A",
        approver_id="B",
    )
    db_session.add(m)
    await db_session.commit()

    r = await client.get("/api/meetings/", params={"upcoming_only": True})
    assert r.status_code == 200
    assert [item["id"] for item in r.json()] == [m.id]

    r = await client.get(f"/api/meetings/{m.id}")
    assert r.status_code == 200
    assert r.json()["meeting_type"] == "in-person"

    r = await client.get("/api/meetings/missing")
    assert r.status_code == 404


async def test_upcoming_for_user(client, db_session):
    soon = Meeting(
        title="Soon",
        scheduled_at=datetime.now(timezone.utc) + timedelta(hours=3),
        status=MeetingStatus.CONFIRMED,
        requester_id="A",
        approver_id="B",
    )
    later = Meeting(
        title="Later",
        scheduled_at=datetime.now(timezone.utc) + timedelta(days=3),
        status=MeetingStatus.CONFIRMED,
        requester_id="A",
        approver_id="B",
    )
    db_session.add_all([soon, later])
    await db_session.commit()

    r = await client.get("/api/meetings/upcoming/B")
    assert r.status_code == 200
    assert [item["title"] for item in r.json()] == ["Soon"]

    r = await client.get("/api/meetings/upcoming/B", params={"hours": 96})
    assert [item["title"] for item in r.json()] == ["Soon", "Later"]


async def test_cancel_meeting(client, db_session, notifier):
    m = Meeting(
        title="To cancel",
        scheduled_at=datetime.now(timezone.utc) + timedelta(days=1),
        status=MeetingStatus.CONFIRMED,
        requester_id="A",
        approver_id="B",
    )
    db_session.add(m)
    await db_session.commit()

    r = await client.post(f"/api/meetings/{m.id}/cancel")
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert {n["recipient_id"] for n in notifier.sent} == {"A", "B"}

    r = await client.post(f"/api/meetings/{m.id}/cancel")
    assert r.status_code == 409


async def test_create_update_delete_meeting(client, notifier):
    starts = (datetime.now(timezone.utc) + timedelta(days=2)).replace(microsecond=0)
    r = await client.post("/api/meetings/", json={
        "title": "Office hour",
        "scheduled_at": starts.isoformat(),
        "requester_id": "A",
        "approver_id": "B",
    })
    assert r.status_code == 201
    meeting = r.json()
    assert meeting["status"] == "confirmed"
    assert meeting["duration_minutes"] == 60
    assert [n["title"] for n in notifier.sent] == ["Meeting Scheduled", "Meeting Scheduled"]

    r = await client.put(f"/api/meetings/{meeting['id']}", json={"location": "Room 12", "notes": "Bring draft"})
    assert r.status_code == 200
    assert r.json()["location"] == "Room 12"
    assert r.json()["title"] == "Office hour"

    r = await client.put(f"/api/meetings/{meeting['id']}", json={"status": "completed"})
    assert r.status_code == 400

    r = await client.delete(f"/api/meetings/{meeting['id']}")
    assert r.status_code == 204
    r = await client.get(f"/api/meetings/{meeting['id']}")
    assert r.status_code == 404


async def test_create_meeting_requires_instant(client):
    r = await client.post("/api/meetings/", json={"title": "No time", "requester_id": "A"})
    assert r.status_code == 400
    assert "scheduled_at" in r.json()["detail"]


async def test_delete_meeting_from_approved_request_conflicts(client):
    r = await client.post("/api/meeting-requests/", json=request_body())
    meeting = (await client.post(f"/api/meeting-requests/{r.json()['id']}/approve")).json()

    r = await client.delete(f"/api/meetings/{meeting['id']}")
    assert r.status_code == 409


async def test_bulk_invite(client, notifier):
    r = await client.post("/api/meetings/bulk-invite", json={
        "approver_id": "prof@uni.edu",
        "invitee_ids": ["s1@uni.edu", "s2@uni.edu", "s1@uni.edu"],
        "title": "Thesis kickoff",
        "scheduled_at": "2030-09-01T09:00:00Z",
    })
    assert r.status_code == 201
    data = r.json()
    assert sorted(m["requester_id"] for m in data) == ["s1@uni.edu", "s2@uni.edu"]
    assert all(m["status"] == "pending" for m in data)
    assert {n["recipient_id"] for n in notifier.sent} == {"s1@uni.edu", "s2@uni.edu"}

    r = await client.put(f"/api/meetings/{data[0]['id']}", json={"status": "confirmed"})
    assert r.status_code == 200
    assert r.json()["status"] == "confirmed"


# ===================== NOTIFICATIONS =====================


async def test_notifications_list_and_mark_read(client, db_session):
    n = Notification(
        recipient_id="A",
        title="Upcoming Meeting",
        message="Reminder: 'Sync' starts in 30 minute(s).",
        category=NotificationCategory.MEETING,
    )
    db_session.add(n)
    await db_session.commit()

    r = await client.get("/api/notifications/", params={"recipient_id": "A", "unread_only": True})
    assert r.status_code == 200
    assert len(r.json()) == 1
    assert r.json()[0]["priority"] == "medium"

    r = await client.put(f"/api/notifications/{n.id}/read")
    assert r.status_code == 200
    assert r.json()["is_read"] is True

    r = await client.get("/api/notifications/", params={"recipient_id": "A", "unread_only": True})
    assert r.json() == []

    r = await client.put("/api/notifications/9999/read")
    assert r.status_code == 404


# ===================== AVAILABILITY =====================


def slot_body(**overrides):
    body = {
        "supervisor_id": "prof@uni.edu",
        "day_of_week": "Tuesday",
        "start_time": "14:00",
        "end_time": "16:00",
        "location": "Office 3.12",
    }
    body.update(overrides)
    return body


async def test_availability_crud(client):
    r = await client.post("/api/availability/", json=slot_body())
    assert r.status_code == 201
    slot = r.json()
    assert slot["is_active"] is True
    assert slot["meeting_type"] == "both"

    r = await client.put(f"/api/availability/{slot['id']}", json=slot_body(end_time="17:00"))
    assert r.status_code == 200
    assert r.json()["end_time"].startswith("17:00")

    r = await client.patch(f"/api/availability/{slot['id']}/deactivate")
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    r = await client.get("/api/availability/", params={"supervisor_id": "prof@uni.edu"})
    assert r.json() == []
    r = await client.get("/api/availability/", params={"supervisor_id": "prof@uni.edu", "active_only": False})
    assert len(r.json()) == 1

    r = await client.delete(f"/api/availability/{slot['id']}")
    assert r.status_code == 204
    r = await client.get(f"/api/availability/{slot['id']}")
    assert r.status_code == 404


async def test_availability_bulk_weekly_and_clear(client):
    r = await client.post("/api/availability/bulk", json=[
        slot_body(day_of_week="Thursday", start_time="09:00", end_time="10:00"),
        slot_body(day_of_week="Monday", start_time="13:00", end_time="14:00"),
        slot_body(day_of_week="Monday", start_time="09:00", end_time="10:00"),
    ])
    assert r.status_code == 201
    assert len(r.json()) == 3

    r = await client.get("/api/availability/weekly/prof@uni.edu")
    assert r.status_code == 200
    schedule = r.json()
    assert [day["day"] for day in schedule] == ["Monday", "Thursday"]
    assert [s["start_time"] for s in schedule[0]["slots"]] == ["09:00", "13:00"]

    r = await client.delete("/api/availability/clear/prof@uni.edu")
    assert r.status_code == 204
    r = await client.get("/api/availability/", params={"supervisor_id": "prof@uni.edu", "active_only": False})
    assert r.json() == []


async def test_availability_rejects_inverted_times(client):
    r = await client.post("/api/availability/", json=slot_body(start_time="16:00", end_time="14:00"))
    assert r.status_code == 400
