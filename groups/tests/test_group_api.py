"""
HTTP Tests for the Group API
"""

import pytest
from fastapi.testclient import TestClient

from groups.api import create_app
from groups.service import GroupService


@pytest.fixture
def client():
    return TestClient(create_app(GroupService(default_currency="EUR")))


@pytest.fixture
def group(client):
    group = client.post("/groups", json={"name": "Ski weekend"}).json()
    people = [
        client.post(f"/groups/{group['id']}/persons", json={"name": name}).json()
        for name in ("Ana", "Ben", "Cy")
    ]
    return group, people


class TestGroupApi:
    """Tests for the HTTP surface of the group service."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_expense_and_settlement(self, client, group):
        group, (ana, ben, cy) = group

        created = client.post(f"/groups/{group['id']}/expenses", json={
            "description": "Cabin", "amount": "1.00", "paid_by": ana["id"],
        })
        plan = client.get(f"/groups/{group['id']}/settlement").json()

        assert created.status_code == 201
        assert [s["amount_minor"] for s in created.json()["splits"]] == [34, 33, 33]
        assert [b["net_minor"] for b in plan["balances"]] == [66, -33, -33]
        assert plan["transactions"] == [
            {"from_participant_id": ben["id"], "to_participant_id": ana["id"], "amount_minor": 33},
            {"from_participant_id": cy["id"], "to_participant_id": ana["id"], "amount_minor": 33},
        ]

    def test_split_mismatch_is_unprocessable(self, client, group):
        group, (ana, ben, _) = group

        response = client.post(f"/groups/{group['id']}/expenses", json={
            "description": "Lift passes", "amount": "10.00", "paid_by": ana["id"], "split_policy": "exact",
            "values": {ana["id"]: "5.00", ben["id"]: "5.02"},
        })

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "SplitMismatch"
        assert response.json()["detail"]["difference"] == -2
        assert client.get(f"/groups/{group['id']}/expenses").json() == []

    def test_out_of_range_share_is_unprocessable(self, client, group):
        group, (ana, _, _) = group

        response = client.post(f"/groups/{group['id']}/expenses", json={
            "description": "Lift passes", "amount": "10.00", "paid_by": ana["id"], "split_policy": "exact",
            "values": {ana["id"]: "1e40"},
        })

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "InvalidAmount"
        assert client.get(f"/groups/{group['id']}/expenses").json() == []

    def test_blank_description_is_rejected(self, client, group):
        group, (ana, _, _) = group

        response = client.post(f"/groups/{group['id']}/expenses", json={
            "description": "   ", "amount": "10.00", "paid_by": ana["id"],
        })

        assert response.status_code == 422
        assert client.get(f"/groups/{group['id']}/expenses").json() == []

    def test_unsupported_policy(self, client, group):
        group, (ana, _, _) = group

        response = client.post(f"/groups/{group['id']}/expenses", json={
            "description": "Lift passes", "amount": "10.00", "paid_by": ana["id"], "split_policy": "shares",
        })

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "UnsupportedPolicy"

    def test_unknown_group_is_not_found(self, client):
        assert client.get("/groups/nope").status_code == 404
        assert client.get("/groups/nope/balances").status_code == 404

    def test_closed_group_conflicts(self, client, group):
        group, (ana, _, _) = group
        client.post(f"/groups/{group['id']}/expenses", json={"description": "Lift passes", "amount": "3", "paid_by": ana["id"]})

        closed = client.post(f"/groups/{group['id']}/close")
        again = client.post(f"/groups/{group['id']}/expenses", json={"description": "Lift passes", "amount": "3", "paid_by": ana["id"]})

        assert closed.status_code == 200
        assert len(closed.json()["transactions"]) == 2
        assert again.status_code == 409

    def test_summary_is_plain_text(self, client, group):
        group, (ana, _, _) = group
        client.post(f"/groups/{group['id']}/expenses", json={"description": "Lift passes", "amount": "1.00", "paid_by": ana["id"]})

        response = client.get(f"/groups/{group['id']}/summary")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "Ben owes Ana: EUR 0.33" in response.text

    def test_backup_round_trip(self, client, group):
        group, (ana, _, _) = group
        client.post(f"/groups/{group['id']}/expenses", json={"description": "Lift passes", "amount": "9.99", "paid_by": ana["id"]})
        backup = client.get("/backup").json()

        other = TestClient(create_app(GroupService()))
        restored = other.post("/backup", json=backup)

        assert restored.status_code == 204
        assert other.get(f"/groups/{group['id']}/balances").json() == \
            client.get(f"/groups/{group['id']}/balances").json()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
