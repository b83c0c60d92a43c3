import pytest
from sqlalchemy.exc import OperationalError

from melaka_api import crud
from melaka_api.models import Place, Rating


def rate(client, headers, place_id, stars, comment=None):
    res = client.post(
        "/api/ratings",
        json={"place_id": place_id, "stars": stars, "comment": comment},
        headers=headers,
    )
    assert res.status_code in (200, 201), res.text
    return res


def test_root_and_health(client):
    assert client.get("/").json()["ok"] is True
    assert client.get("/health").json() == {"status": "ok"}


def test_list_places_empty(client):
    res = client.get("/api/places")

    assert res.status_code == 200
    assert res.json() == {"places": []}


def test_create_place_requires_login(client):
    res = client.post("/api/places", json={"name": "X", "latitude": 1, "longitude": 2})

    assert res.status_code == 401
    assert res.json()["success"] is False


def test_create_place_defaults_optional_fields(client, make_place):
    place_id = make_place("Temple")

    place = client.get(f"/api/places/{place_id}").json()

    assert place["name"] == "Temple"
    assert place["description"] == ""
    assert place["image_url"] == ""
    assert place["category"] == ""
    assert place["avg_rating"] == 0
    assert place["review_count"] == 0
    assert place["reviews"] == []


def test_zero_coordinates_are_valid(client, make_place):
    place_id = make_place("Null Island", latitude=0, longitude=0)

    place = client.get(f"/api/places/{place_id}").json()
    assert place["latitude"] == 0
    assert place["longitude"] == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"latitude": 1.0, "longitude": 2.0},
        {"name": "No lat", "longitude": 2.0},
        {"name": "No lng", "latitude": 1.0},
    ],
)
def test_create_place_missing_fields(client, auth, payload):
    _, headers = auth

    res = client.post("/api/places", json=payload, headers=headers)

    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "Missing required fields"}


def test_create_place_empty_name_rejected(client, auth):
    _, headers = auth

    res = client.post(
        "/api/places", json={"name": "", "latitude": 1, "longitude": 2}, headers=headers
    )

    assert res.status_code == 400
    assert res.json()["message"].startswith("Invalid request data: name")


def test_get_missing_place(client):
    res = client.get("/api/places/999")

    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Place not found"}


def test_update_place_overwrites_all_fields(client, auth, make_place):
    _, headers = auth
    place_id = make_place("Old", description="desc", category="Shopping")

    res = client.put(
        f"/api/places/{place_id}",
        json={"name": "New", "latitude": 3.0, "longitude": 101.0},
        headers=headers,
    )

    assert res.status_code == 200
    place = client.get(f"/api/places/{place_id}").json()
    assert place["name"] == "New"
    assert place["description"] == ""
    assert place["category"] == ""
    assert (place["latitude"], place["longitude"]) == (3.0, 101.0)


def test_update_missing_place(client, auth):
    _, headers = auth

    res = client.put(
        "/api/places/999", json={"name": "X", "latitude": 1, "longitude": 2}, headers=headers
    )

    assert res.status_code == 404


def test_delete_place_removes_ratings(client, db_session, auth, make_user, make_place):
    _, admin_headers = auth
    _, headers = make_user()
    doomed = make_place("Doomed")
    kept = make_place("Kept")
    rate(client, headers, doomed, 3)
    rate(client, admin_headers, doomed, 4)
    rate(client, headers, kept, 5)

    res = client.delete(f"/api/places/{doomed}", headers=admin_headers)

    assert res.status_code == 200
    assert [p["place_id"] for p in client.get("/api/places").json()["places"]] == [kept]
    assert db_session.query(Rating).filter(Rating.place_id == doomed).count() == 0
    stats = client.get("/api/ratings/statistics").json()["rating_statistics"]
    assert [s["place_id"] for s in stats] == [kept]


def test_delete_missing_place(client, auth):
    _, headers = auth

    assert client.delete("/api/places/999", headers=headers).status_code == 404


def test_avg_rating_and_review_count(client, make_user, make_place):
    place_id = make_place()
    for stars in (5, 4, 2):
        _, headers = make_user()
        rate(client, headers, place_id, stars)

    listed = client.get("/api/places").json()["places"][0]
    detail = client.get(f"/api/places/{place_id}").json()

    assert listed["avg_rating"] == pytest.approx(11 / 3)
    assert listed["review_count"] == 3
    assert detail["avg_rating"] == pytest.approx(11 / 3)
    assert len(detail["reviews"]) == 3


def test_reviews_are_newest_first_with_username(client, make_user, make_place):
    place_id = make_place()
    _, first = make_user("alice")
    _, second = make_user("bob")
    rate(client, first, place_id, 3, "ok")
    rate(client, second, place_id, 5, "great")

    reviews = client.get(f"/api/places/{place_id}/ratings").json()["ratings"]

    assert [r["username"] for r in reviews] == ["bob", "alice"]
    assert reviews[0]["comment"] == "great"


def test_place_ratings_empty(client, make_place):
    place_id = make_place()

    assert client.get(f"/api/places/{place_id}/ratings").json() == {"ratings": []}


def test_list_places_pagination(client, make_place):
    ids = [make_place(f"P{i}") for i in range(5)]

    everything = client.get("/api/places").json()["places"]
    page = client.get("/api/places", params={"skip": 1, "limit": 2}).json()["places"]

    assert [p["place_id"] for p in everything] == ids
    assert [p["place_id"] for p in page] == ids[1:3]


def test_top_rated_orders_and_excludes_unrated(client, make_user, make_place):
    solo_five = make_place("Solo five")
    double_five = make_place("Double five")
    four = make_place("Four")
    make_place("Unrated")
    _, u1 = make_user()
    _, u2 = make_user()
    rate(client, u1, solo_five, 5)
    rate(client, u1, double_five, 5)
    rate(client, u2, double_five, 5)
    rate(client, u1, four, 4)

    top = client.get("/api/places/top-rated/list").json()["top_rated_places"]

    assert [p["place_id"] for p in top] == [double_five, solo_five, four]
    assert top[0]["average_rating"] == 5
    assert top[0]["review_count"] == 2


def test_top_rated_limit(client, make_user, make_place):
    _, headers = make_user()
    for i in range(3):
        rate(client, headers, make_place(f"P{i}"), 3)

    top = client.get("/api/places/top-rated/list", params={"limit": 2}).json()

    assert len(top["top_rated_places"]) == 2


def test_nearby_returns_close_places_sorted(client, make_place):
    temple = make_place("Cheng Hoon Teng Temple", latitude=2.1966, longitude=102.2472)
    mosque = make_place("Kampung Kling Mosque", latitude=2.1968, longitude=102.2475)
    make_place("Premium Outlet", latitude=2.4437, longitude=102.2042)

    res = client.post(
        "/api/places/nearby", json={"latitude": 2.1966, "longitude": 102.2472, "radius": 1}
    )

    assert res.status_code == 200
    nearby = res.json()["nearby_places"]
    assert [p["place_id"] for p in nearby] == [temple, mosque]
    assert nearby[0]["distance"] == pytest.approx(0.0, abs=1e-6)
    assert 0 < nearby[1]["distance"] < 1


@pytest.mark.parametrize(
    "payload",
    [
        {"longitude": 102.2, "radius": 1},
        {"latitude": 2.1, "radius": 1},
        {"latitude": 2.1, "longitude": 102.2},
    ],
)
def test_nearby_missing_fields(client, payload):
    res = client.post("/api/places/nearby", json=payload)

    assert res.status_code == 400
    assert res.json()["success"] is False


def test_delete_place_rolls_back_on_failure(client, db_session, monkeypatch, make_user, make_place):
    place_id = make_place("Fragile")
    for stars in (2, 4):
        _, headers = make_user()
        rate(client, headers, place_id, stars)

    def failing_commit():
        # 평점/장소 DELETE는 실행된 뒤 commit 단계에서 실패
        db_session.flush()
        raise OperationalError("DELETE FROM places", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(OperationalError):
        crud.delete_place(db_session, place_id)

    monkeypatch.undo()
    assert db_session.get(Place, place_id) is not None
    assert db_session.query(Rating).filter(Rating.place_id == place_id).count() == 2
    assert client.get(f"/api/places/{place_id}").json()["review_count"] == 2


@pytest.mark.parametrize(
    "path", ["/api/places/99999999999999999999", "/api/places/99999999999999999999/ratings"]
)
def test_oversized_place_id_rejected(client, path):
    res = client.get(path)

    assert res.status_code == 400
    assert res.json()["success"] is False


def test_oversized_place_id_on_delete(client, auth):
    _, headers = auth

    res = client.delete("/api/places/99999999999999999999", headers=headers)

    assert res.status_code == 400
