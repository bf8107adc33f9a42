"""
Tests for FastAPI route endpoints (jobsite/main.py).

Each test runs against a fresh in-memory Services container.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from jobsite.ai.exceptions import LogEntryTooShortError, LogParseError, LogParserNotConfiguredError
from jobsite.dependencies import set_services
from jobsite.main import app

SARAH = "user-sarah"
MIKE = "user-mike"


@pytest.fixture
def client(services):
    """Test client wired to the services fixture."""
    set_services(services)
    with TestClient(app) as test_client:
        yield test_client
    set_services(None)


def seed_project(services):
    """Create project-1 with Sarah and Mike on the team."""
    return asyncio.run(
        services.projects.create("Riverside Medical", team_member_ids=[SARAH, MIKE], project_id="project-1")
    )


def post_message(client, thread_id, author_id, content, project_id="project-1"):
    return client.post(
        f"/api/projects/{project_id}/threads/{thread_id}/messages",
        json={
            "authorId": author_id,
            "authorName": author_id.split("-")[1].title(),
            "authorRole": "foreman",
            "content": content,
        },
    )


def create_item(client, title, project_id="project-1"):
    response = client.post(
        f"/api/projects/{project_id}/schedule",
        json={"title": title, "dueDate": "2026-03-20"},
    )
    assert response.status_code == 201
    return response.json()


# ==================== HEALTH & INFO ROUTES ====================

class TestHealthAndInfo:

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "Jobsite Coordination"
        assert data["version"] == "1.0.0"

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage"]["backend"] == "memory"


# ==================== PROJECTS ====================

class TestProjects:

    def test_list_all(self, client, services):
        seed_project(services)

        response = client.get("/api/projects")

        assert response.status_code == 200
        projects = response.json()["projects"]
        assert [p["id"] for p in projects] == ["project-1"]
        assert "unreadCount" not in projects[0]

    def test_list_for_user_with_unread(self, client, services):
        seed_project(services)
        post_message(client, "general", MIKE, "Morning all")

        sarah = client.get("/api/projects", params={"user_id": SARAH}).json()["projects"]
        outsider = client.get("/api/projects", params={"user_id": "user-nobody"}).json()["projects"]

        assert sarah[0]["unreadCount"] == 1
        assert outsider == []

    def test_get_project(self, client, services):
        seed_project(services)

        assert client.get("/api/projects/project-1").json()["name"] == "Riverside Medical"
        assert client.get("/api/projects/project-404").status_code == 404

    def test_update_status(self, client, services):
        seed_project(services)

        response = client.patch("/api/projects/project-1/status", json={"status": "on_hold"})

        assert response.status_code == 200
        assert response.json()["status"] == "on_hold"

    def test_update_status_invalid(self, client, services):
        seed_project(services)
        assert client.patch("/api/projects/project-1/status", json={"status": "paused"}).status_code == 422

    def test_update_status_missing(self, client):
        assert client.patch("/api/projects/project-404/status", json={"status": "completed"}).status_code == 404


# ==================== SCHEDULE ====================

class TestSchedule:

    def test_create_and_list(self, client):
        first = create_item(client, "Foundation")
        second = create_item(client, "Framing")

        items = client.get("/api/projects/project-1/schedule").json()["items"]

        assert [i["id"] for i in items] == [first["id"], second["id"]]
        assert [i["order"] for i in items] == [1, 2]
        assert items[0]["status"] == "not_started"

    def test_create_rejects_blank_title(self, client):
        response = client.post(
            "/api/projects/project-1/schedule",
            json={"title": "   ", "dueDate": "2026-03-20"},
        )
        assert response.status_code == 422

    def test_create_rejects_impossible_due_date(self, client):
        response = client.post(
            "/api/projects/project-1/schedule",
            json={"title": "Framing", "dueDate": "2026-13-45"},
        )
        assert response.status_code == 422

    def test_edit_rejects_impossible_due_date(self, client):
        item = create_item(client, "Framing")
        response = client.patch(f"/api/schedule/{item['id']}", json={"dueDate": "2026-02-30"})
        assert response.status_code == 422

    def test_unread_per_item(self, client):
        item = create_item(client, "Framing")
        post_message(client, item["id"], MIKE, "north wall up")

        items = client.get("/api/projects/project-1/schedule", params={"user_id": SARAH}).json()["items"]
        assert items[0]["unreadCount"] == 1

    def test_edit_item(self, client):
        item = create_item(client, "Framing")

        response = client.patch(f"/api/schedule/{item['id']}", json={"title": "Framing L1", "assignedTo": "user-mike"})

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Framing L1"
        assert data["assignedTo"] == ["user-mike"]
        assert data["dueDate"] == "2026-03-20"

    def test_update_item_status(self, client):
        item = create_item(client, "Framing")

        response = client.patch(f"/api/schedule/{item['id']}/status", json={"status": "blocked"})

        assert response.json()["status"] == "blocked"

    def test_missing_item(self, client):
        assert client.patch("/api/schedule/nope", json={"title": "x"}).status_code == 404
        assert client.patch("/api/schedule/nope/status", json={"status": "completed"}).status_code == 404
        assert client.delete("/api/schedule/nope").status_code == 404

    def test_delete_keeps_messages(self, client):
        item = create_item(client, "Framing")
        post_message(client, item["id"], MIKE, "wall up")

        assert client.delete(f"/api/schedule/{item['id']}").json() == {"ok": True}

        messages = client.get(f"/api/projects/project-1/threads/{item['id']}/messages").json()["messages"]
        assert len(messages) == 1


# ==================== THREADS ====================

class TestThreads:

    def test_post_and_read_general(self, client):
        response = post_message(client, "general", MIKE, "Concrete pour delayed by rain")

        assert response.status_code == 201
        message = response.json()
        assert message["scheduleItemId"] is None
        assert [t["id"] for t in message["tags"]] == ["concrete", "delay", "weather"]

        messages = client.get("/api/projects/project-1/threads/general/messages").json()["messages"]
        assert [m["content"] for m in messages] == ["Concrete pour delayed by rain"]

    def test_item_thread(self, client):
        item = create_item(client, "Framing")
        response = post_message(client, item["id"], MIKE, "Framing crew finished the north wall")

        assert response.json()["scheduleItemId"] == item["id"]
        assert client.get("/api/projects/project-1/threads/general/messages").json()["messages"] == []

    def test_blank_message_rejected(self, client):
        assert post_message(client, "general", MIKE, "   ").status_code == 422

    def test_unknown_role_rejected(self, client):
        response = client.post(
            "/api/projects/project-1/threads/general/messages",
            json={"authorId": MIKE, "authorName": "Mike", "authorRole": "architect", "content": "hi"},
        )
        assert response.status_code == 422

    def test_unread_then_mark_read(self, client, clock):
        post_message(client, "general", MIKE, "Morning all")

        url = "/api/projects/project-1/threads/general"
        assert client.get(f"{url}/unread", params={"user_id": SARAH}).json() == {"unreadCount": 1}

        clock.advance(seconds=1)
        response = client.post(f"{url}/read", params={"user_id": SARAH})

        assert response.json()["ok"] is True
        assert response.json()["readAt"] == clock.now.isoformat()
        assert client.get(f"{url}/unread", params={"user_id": SARAH}).json() == {"unreadCount": 0}

    def test_read_requires_user(self, client):
        assert client.post("/api/projects/project-1/threads/general/read").status_code == 422


# ==================== CHANNELS ====================

class TestChannels:

    def test_list_channels(self, client):
        channels = client.get("/api/projects/project-1/channels").json()["channels"]

        assert len(channels) == 11
        rfis = next(c for c in channels if c["id"] == "rfis-submittals")
        assert rfis["tagIds"] == ["rfi", "inspection"]
        assert rfis["type"] == "tag-filter"

    def test_channel_unread_counts(self, client):
        item = create_item(client, "Framing")
        post_message(client, item["id"], MIKE, "Framing crew finished the north wall")

        channels = client.get("/api/projects/project-1/channels", params={"user_id": SARAH}).json()["channels"]
        counts = {c["id"]: c["unreadCount"] for c in channels}

        assert counts["framing"] == 1
        assert counts["general"] == 0
        assert counts["daily-log"] == 0

    def test_tag_channel_messages(self, client):
        item = create_item(client, "Framing")
        post_message(client, item["id"], MIKE, "Truss delivery at 7")
        post_message(client, "general", MIKE, "Lunch is on us Friday")

        data = client.get("/api/projects/project-1/channels/framing").json()

        assert [m["content"] for m in data["messages"]] == ["Truss delivery at 7"]

    def test_general_channel_is_general_thread(self, client):
        item = create_item(client, "Framing")
        post_message(client, item["id"], MIKE, "stud count")
        post_message(client, "general", MIKE, "gate code changed")

        data = client.get("/api/projects/project-1/channels/general").json()
        assert [m["content"] for m in data["messages"]] == ["gate code changed"]

    def test_schedule_channel_returns_items(self, client):
        create_item(client, "Framing")
        data = client.get("/api/projects/project-1/channels/schedule").json()
        assert [i["title"] for i in data["items"]] == ["Framing"]

    def test_daily_log_channel_redirects(self, client):
        data = client.get("/api/projects/project-1/channels/daily-log").json()
        assert data["redirect"] == "/projects/project-1/log"
        assert "messages" not in data

    def test_unknown_channel(self, client):
        assert client.get("/api/projects/project-1/channels/landscaping").status_code == 404
        assert client.post(
            "/api/projects/project-1/channels/landscaping/read", params={"user_id": SARAH}
        ).status_code == 404

    def test_channel_read_does_not_touch_thread(self, client, clock):
        item = create_item(client, "Framing")
        post_message(client, item["id"], MIKE, "Framing crew finished the north wall")
        clock.advance(seconds=1)

        client.post("/api/projects/project-1/channels/framing/read", params={"user_id": SARAH})

        channels = client.get("/api/projects/project-1/channels", params={"user_id": SARAH}).json()["channels"]
        assert next(c for c in channels if c["id"] == "framing")["unreadCount"] == 0
        thread_unread = client.get(
            f"/api/projects/project-1/threads/{item['id']}/unread", params={"user_id": SARAH}
        ).json()
        assert thread_unread == {"unreadCount": 1}


# ==================== FEED ====================

class TestFeed:

    def test_feed(self, client, services, clock):
        seed_project(services)
        item = create_item(client, "Framing")
        post_message(client, "general", MIKE, "Morning all")
        clock.advance(minutes=1)
        post_message(client, item["id"], MIKE, "Framing crew finished the north wall")

        data = client.get("/api/feed", params={"user_id": SARAH}).json()

        assert data["totalUnread"] == 2
        assert [t["title"] for t in data["threads"]] == ["Framing", "General"]
        assert data["threads"][0]["projectName"] == "Riverside Medical"
        assert data["threads"][0]["unreadCount"] == 1
        assert "lastActivityLabel" in data["threads"][0]

    def test_feed_for_outsider(self, client, services):
        seed_project(services)
        post_message(client, "general", MIKE, "Morning all")

        data = client.get("/api/feed", params={"user_id": "user-nobody"}).json()
        assert data == {"threads": [], "totalUnread": 0}


# ==================== DAILY LOGS ====================

class TestDailyLogs:

    def test_save_and_get(self, client):
        response = client.put(
            "/api/projects/project-1/daily-logs/2026-03-02",
            json={"rawEntry": "Rain day.", "weather": "Rain", "crewCount": 0},
        )

        assert response.status_code == 200
        assert response.json()["log"]["weather"] == "Rain"
        assert response.json()["parseStatus"] == "idle"

        data = client.get("/api/projects/project-1/daily-logs/2026-03-02").json()
        assert data["log"]["rawEntry"] == "Rain day."
        assert data["log"]["crewCount"] == 0

    def test_invalid_weather(self, client):
        response = client.put(
            "/api/projects/project-1/daily-logs/2026-03-02",
            json={"rawEntry": "x", "weather": "Drizzle"},
        )
        assert response.status_code == 422

    def test_missing_log(self, client):
        assert client.get("/api/projects/project-1/daily-logs/2026-03-02").status_code == 404

    def test_malformed_date(self, client):
        assert client.get("/api/projects/project-1/daily-logs/03-02-2026").status_code == 422
        assert client.put("/api/projects/project-1/daily-logs/yesterday", json={"rawEntry": "x"}).status_code == 422

    def test_impossible_date(self, client):
        assert client.get("/api/projects/project-1/daily-logs/2026-13-45").status_code == 422
        assert client.put("/api/projects/project-1/daily-logs/2026-02-30", json={"rawEntry": "x"}).status_code == 422

    def test_parse_error_survives_reload_until_dismissed(self, client, services, mock_parser, long_entry):
        mock_parser.parse.side_effect = LogParseError("Failed to parse log entry")
        service = services.daily_log_service
        asyncio.run(services.daily_logs.upsert("project-1", "2026-03-02", long_entry))
        asyncio.run(service.parse_entry("project-1", "2026-03-02", long_entry))

        url = "/api/projects/project-1/daily-logs/2026-03-02"
        assert client.get(url).json()["parseStatus"] == "error"
        assert client.get(url).json()["parseStatus"] == "error"

        response = client.delete(f"{url}/parse-status")
        assert response.status_code == 200
        assert response.json() == {"parseStatus": "idle"}
        assert client.get(url).json()["parseStatus"] == "idle"

    def test_today_alias(self, client):
        with patch("jobsite.main.get_local_today", return_value="2026-03-02"):
            response = client.put("/api/projects/project-1/daily-logs/today", json={"rawEntry": "Rain day."})
            assert response.json()["log"]["date"] == "2026-03-02"
            assert client.get("/api/projects/project-1/daily-logs/today").status_code == 200

    def test_list_newest_first(self, client):
        for date in ("2026-03-01", "2026-03-03", "2026-03-02"):
            client.put(f"/api/projects/project-1/daily-logs/{date}", json={"rawEntry": date})

        logs = client.get("/api/projects/project-1/daily-logs").json()["logs"]
        assert [log["date"] for log in logs] == ["2026-03-03", "2026-03-02", "2026-03-01"]

    def test_autosave_accepts_edit(self, client):
        response = client.post(
            "/api/projects/project-1/daily-logs/2026-03-02/autosave",
            json={"rawEntry": "Crew of 4 on site"},
        )
        assert response.status_code == 202
        assert response.json() == {"scheduled": True}

    def test_autosave_ignores_empty_edit(self, client):
        response = client.post(
            "/api/projects/project-1/daily-logs/2026-03-02/autosave",
            json={"rawEntry": "  "},
        )
        assert response.json() == {"scheduled": False}


# ==================== PARSE LOG ====================

class TestParseLog:

    @pytest.fixture
    def parser(self, sample_parsed_data):
        parser = MagicMock()
        parser.parse = AsyncMock(return_value=sample_parsed_data)
        with patch("jobsite.main.get_log_parser", return_value=parser):
            yield parser

    def test_parse_success(self, client, parser, long_entry):
        response = client.post(
            "/api/parse-log",
            json={"rawEntry": long_entry, "scheduleItems": [{"id": "schedule-2", "title": "Framing"}]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["crew"][0]["company"] == "ABC Framing"
        assert "inspections" not in data
        entry, items = parser.parse.call_args[0]
        assert entry == long_entry
        assert items[0].id == "schedule-2"

    def test_too_short(self, client, parser):
        parser.parse.side_effect = LogEntryTooShortError("Entry too short to parse")

        response = client.post("/api/parse-log", json={"rawEntry": "Rain."})

        assert response.status_code == 400
        assert response.json() == {"error": "Entry too short to parse"}

    def test_not_configured(self, client, parser, long_entry):
        parser.parse.side_effect = LogParserNotConfiguredError("LLM_API_KEY not configured")

        response = client.post("/api/parse-log", json={"rawEntry": long_entry})

        assert response.status_code == 500
        assert response.json() == {"error": "LLM_API_KEY not configured"}

    def test_upstream_failure(self, client, parser, long_entry):
        parser.parse.side_effect = LogParseError("No text response from model")

        response = client.post("/api/parse-log", json={"rawEntry": long_entry})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to parse log entry"}
