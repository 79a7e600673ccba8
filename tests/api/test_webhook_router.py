"""Tests for GET /trigger."""

from __future__ import annotations

URL = "/api/v1/trigger"


class TestTriggerWebhook:
    def test_missing_key_is_401(self, client, services):
        response = client.get(URL, params={"trigger": "1"})
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert set(body) >= {"success", "message", "timestamp"}
        assert services.access_log.count(success=False) == 1

    def test_wrong_key_is_401(self, client, services, access_key):
        response = client.get(URL, params={"trigger": "1", "key": access_key[::-1]})
        assert response.status_code == 401
        [entry] = services.access_log.list_entries()
        assert entry.key_id is None

    def test_bad_trigger_is_400(self, client, services, access_key):
        response = client.get(URL, params={"trigger": "2", "key": access_key})
        assert response.status_code == 400
        assert response.json()["success"] is False
        [entry] = services.access_log.list_entries()
        assert entry.key_id is not None
        assert entry.success is False

    def test_valid_call_sends_once(self, client, schedule_active, access_key, mailer):
        first = client.get(URL, params={"trigger": "1", "key": access_key})
        second = client.get(URL, params={"trigger": "1", "key": access_key})

        assert first.status_code == second.status_code == 200
        assert first.json()["attempt"]["outcome"] == "sent"
        assert second.json()["attempt"]["outcome"] == "already_sent"
        assert len(mailer.sent) == 1
        assert schedule_active.access_log.count(success=True) == 2

    def test_forwarded_for_and_user_agent_recorded(self, client, services, access_key):
        client.get(
            URL,
            params={"trigger": "1", "key": access_key},
            headers={"X-Forwarded-For": "198.51.100.4, 10.0.0.1", "User-Agent": "Wget/1.21.4"},
        )
        [entry] = services.access_log.list_entries()
        assert entry.ip_address == "198.51.100.4"
        assert entry.browser == "Wget 1"

    def test_rotated_key_stops_working(self, client, access_key):
        client.post("/api/v1/access/key/rotate")
        response = client.get(URL, params={"trigger": "1", "key": access_key})
        assert response.status_code == 401
