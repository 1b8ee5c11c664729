from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from policy_aligner.models import Tag


def test_list_seeded_tags(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.get("/tags", headers=admin_headers)

    assert response.status_code == 200
    names = [tag["name"] for tag in response.json()]
    assert names == sorted(names)
    assert "Incident Response" in names
    assert len(names) == 7


def test_create_tag(client: TestClient, analyst_headers: dict[str, str]) -> None:
    created = client.post("/tags", json={"name": "Supply Chain", "color": "#123ABC"}, headers=analyst_headers)
    duplicate = client.post("/tags", json={"name": "Supply Chain"}, headers=analyst_headers)
    bad_color = client.post("/tags", json={"name": "Vendors", "color": "blue"}, headers=analyst_headers)

    assert created.status_code == 201
    assert created.json()["color"] == "#123ABC"
    assert duplicate.status_code == 409
    assert bad_color.status_code == 400


def test_insight_lifecycle(
    client: TestClient,
    admin_headers: dict[str, str],
    upload_text: Callable[..., dict],
    create_mapping: Callable[..., dict],
) -> None:
    document = upload_text()
    mapping = create_mapping(document["id"], 1, "fully_aligned")

    linked = client.post(
        "/insights",
        json={
            "title": "Utility CISO interview",
            "content": "Asset inventory is refreshed monthly.",
            "stakeholder_name": "Utility CISO",
            "related_mapping_id": mapping["id"],
        },
        headers=admin_headers,
    )
    standalone = client.post(
        "/insights",
        json={"title": "Workshop", "content": "Recovery drills are informal.", "insight_type": "workshop"},
        headers=admin_headers,
    )
    assert linked.status_code == 201
    assert linked.json()["created_by"] == 1
    assert linked.json()["insight_type"] == "interview"
    assert standalone.status_code == 201

    everything = client.get("/insights", headers=admin_headers).json()
    assert len(everything) == 2
    filtered = client.get("/insights", params={"related_mapping_id": mapping["id"]}, headers=admin_headers).json()
    assert [item["id"] for item in filtered] == [linked.json()["id"]]

    missing_mapping = client.post(
        "/insights",
        json={"title": "Orphan", "content": "No mapping.", "related_mapping_id": 999},
        headers=admin_headers,
    )
    assert missing_mapping.status_code == 404

    assert client.delete(f"/insights/{standalone.json()['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/insights/{standalone.json()['id']}", headers=admin_headers).status_code == 404


def test_created_at_defaults_to_aware_utc(db_session: Session) -> None:
    tag = Tag(name="Timestamps")
    db_session.add(tag)
    db_session.flush()

    assert tag.created_at.tzinfo is not None
    assert tag.created_at.utcoffset() == timedelta(0)
