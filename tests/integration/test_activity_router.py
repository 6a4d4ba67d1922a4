"""Integration tests for the activity endpoint."""

from sqlalchemy.exc import OperationalError


class TestActivityRouter:
    async def test_record_email_sent(self, client):
        resp = await client.post("/costs/activity", json={
            "type": "email_sent", "campaignId": "camp-1",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["type"] == "email_sent"
        assert data["campaign_id"] == "camp-1"

    async def test_snake_case_campaign_id(self, client):
        resp = await client.post("/costs/activity", json={
            "type": "meeting_booked", "campaign_id": "camp-2",
        })
        assert resp.json()["campaign_id"] == "camp-2"

    async def test_invalid_type(self, client):
        resp = await client.post("/costs/activity", json={"type": "email_opened"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["success"] is False
        assert data["code"] == "INVALID_ACTIVITY_TYPE"

    async def test_missing_type(self, client):
        resp = await client.post("/costs/activity", json={})
        assert resp.status_code == 422

    async def test_activity_shows_in_metrics(self, client):
        await client.get("/costs/dashboard-metrics")
        await client.post("/costs/activity", json={"type": "email_sent"})
        resp = await client.get("/costs/dashboard-metrics")
        assert resp.json()["emails_sent"] == 1

    async def test_store_failure_is_503(self, client, engine, monkeypatch):
        def db_down(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(engine.activities, "record", db_down)
        resp = await client.post("/costs/activity", json={"type": "email_sent"})
        assert resp.status_code == 503
        assert resp.json()["code"] == "PERSISTENCE_ERROR"
