from datetime import datetime, timedelta

from roomsync.clock import utcnow

ROOM_A = {"name": "Room A", "capacity": 4, "equipment": "tv, whiteboard", "location": {"x": 12.5, "y": 40.0}}


def create_room(client, headers, payload=None) -> int:
    response = client.post("/resources", json=payload or ROOM_A, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


def reserve(client, headers, room_id: int, start: datetime, end: datetime, title: str = "Sync"):
    return client.post(
        "/reservations",
        json={"resource_id": room_id, "title": title, "start": start.isoformat(), "end": end.isoformat()},
        headers=headers,
    )


def test_resource_crud(resources_client, admin_headers, alice_headers):
    room_id = create_room(resources_client, admin_headers)
    create_room(resources_client, admin_headers, {"name": "Aquarium"})

    list_resp = resources_client.get("/resources", headers=alice_headers)
    assert list_resp.status_code == 200
    rooms = list_resp.json()
    assert [room["name"] for room in rooms] == ["Aquarium", "Room A"]
    room_a = rooms[1]
    assert room_a["capacity"] == 4
    assert room_a["location"] == {"x": 12.5, "y": 40.0}
    assert room_a["is_active"] is True
    assert rooms[0]["location"] is None

    get_resp = resources_client.get(f"/resources/{room_id}", headers=alice_headers)
    assert get_resp.status_code == 200
    assert get_resp.json()["equipment"] == "tv, whiteboard"


def test_create_resource_requires_admin(resources_client, alice_headers):
    response = resources_client.post("/resources", json=ROOM_A, headers=alice_headers)
    assert response.status_code == 403


def test_resources_require_authentication(resources_client):
    assert resources_client.get("/resources").status_code == 401
    bad_token = {"Authorization": "Bearer not-a-token"}
    assert resources_client.get("/resources", headers=bad_token).status_code == 401


def test_create_resource_validation(resources_client, admin_headers):
    blank = resources_client.post("/resources", json={"name": "   "}, headers=admin_headers)
    assert blank.status_code == 400
    assert blank.json()["error"] == "validation_error"

    zero_capacity = resources_client.post("/resources", json={"name": "Closet", "capacity": 0}, headers=admin_headers)
    assert zero_capacity.status_code == 400


def test_get_missing_resource(resources_client, alice_headers):
    response = resources_client.get("/resources/999", headers=alice_headers)
    assert response.status_code == 404


def test_delete_resource_blocked_by_active_reservation(gateway_client, admin_headers, alice_headers):
    room_id = create_room(gateway_client, admin_headers)
    start = utcnow() + timedelta(hours=2)
    reservation = reserve(gateway_client, alice_headers, room_id, start, start + timedelta(hours=1))
    assert reservation.status_code == 201

    blocked = gateway_client.delete(f"/resources/{room_id}", headers=admin_headers)
    assert blocked.status_code == 409
    assert "active reservations" in blocked.json()["detail"]

    cancel = gateway_client.post(f"/reservations/{reservation.json()['id']}/cancel", headers=alice_headers)
    assert cancel.status_code == 200

    deleted = gateway_client.delete(f"/resources/{room_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}

    listed = gateway_client.get("/resources", headers=alice_headers).json()
    assert room_id not in [room["id"] for room in listed]


def test_delete_resource_with_only_past_reservations(gateway_client, db_session, admin_headers):
    from roomsync.models import Reservation

    room_id = create_room(gateway_client, admin_headers)
    past_start = utcnow() - timedelta(days=1)
    db_session.add(
        Reservation(
            resource_id=room_id,
            principal_id=1,
            principal_label="alice@example.com",
            title="Retro",
            start=past_start,
            end=past_start + timedelta(hours=1),
        )
    )
    db_session.commit()
    db_session.close()

    response = gateway_client.delete(f"/resources/{room_id}", headers=admin_headers)
    assert response.status_code == 200


def test_inactive_resources_listed_for_admin_only(resources_client, admin_headers, alice_headers):
    room_id = create_room(resources_client, admin_headers)
    assert resources_client.delete(f"/resources/{room_id}", headers=admin_headers).status_code == 200

    assert resources_client.get("/resources", headers=admin_headers).json() == []
    everything = resources_client.get("/resources?include_inactive=true", headers=admin_headers)
    assert everything.status_code == 200
    assert everything.json()[0]["is_active"] is False

    forbidden = resources_client.get("/resources?include_inactive=true", headers=alice_headers)
    assert forbidden.status_code == 403


def test_delete_resource_requires_admin(resources_client, admin_headers, alice_headers):
    room_id = create_room(resources_client, admin_headers)
    assert resources_client.delete(f"/resources/{room_id}", headers=alice_headers).status_code == 403
    assert resources_client.delete("/resources/999", headers=admin_headers).status_code == 404


def test_listing_reflects_delete_made_by_another_worker(resources_client, admin_headers, alice_headers):
    from roomsync.database import SessionLocal
    from roomsync.registry import ResourceRegistry

    room_id = create_room(resources_client, admin_headers)
    assert [room["id"] for room in resources_client.get("/resources", headers=alice_headers).json()] == [room_id]

    with SessionLocal() as db:
        ResourceRegistry(db).delete(room_id)

    listed = resources_client.get("/resources", headers=alice_headers).json()
    assert room_id not in [room["id"] for room in listed]
