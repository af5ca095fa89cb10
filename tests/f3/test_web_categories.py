"""Tests for category hierarchy endpoints (F3)."""

import pytest


@pytest.fixture
def admin(accounts):
    return accounts["admin"]["headers"]


class TestListings:
    """Listings are public."""

    def test_cities_empty(self, client):
        response = client.get("/api/cities")
        assert response.status_code == 200
        assert response.json() == []

    def test_walk_the_hierarchy(self, client, hierarchy):
        city_id = hierarchy["city"].id
        cities = client.get("/api/cities").json()
        assert [c["name"] for c in cities] == ["Almaty"]
        assert cities[0].get("city_id") is None

        schools = client.get(f"/api/cities/{city_id}/schools").json()
        assert schools[0]["slug"] == "kbtu"
        assert schools[0]["city_id"] == city_id

        semesters = client.get(f"/api/schools/{hierarchy['school'].id}/semesters").json()
        assert semesters[0]["school_id"] == hierarchy["school"].id

        groups = client.get(f"/api/semesters/{hierarchy['semester'].id}/groups").json()
        assert groups[0]["name"] == "Group A"

        subjects = client.get(f"/api/groups/{hierarchy['group'].id}/subjects").json()
        assert subjects[0]["group_id"] == hierarchy["group"].id

    def test_unknown_parent_lists_nothing(self, client, hierarchy):
        response = client.get("/api/cities/999/schools")
        assert response.status_code == 200
        assert response.json() == []

    def test_non_numeric_id(self, client):
        assert client.get("/api/cities/abc/schools").status_code == 422

    def test_out_of_range_id(self, client):
        response = client.get("/api/cities/99999999999999999999/schools")
        assert response.status_code == 422


class TestCreate:
    """Creating nodes requires an admin."""

    def test_create_city(self, client, admin):
        response = client.post("/api/cities", json={"name": "Almaty"}, headers=admin)
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Almaty"
        assert data["slug"] == "almaty"

    def test_create_with_explicit_slug(self, client, admin):
        response = client.post(
            "/api/cities", json={"name": "Nur-Sultan", "slug": "astana"}, headers=admin
        )
        assert response.json()["slug"] == "astana"

    def test_create_full_chain(self, client, admin):
        city = client.post("/api/cities", json={"name": "Almaty"}, headers=admin).json()
        school = client.post(
            "/api/schools", json={"name": "KBTU", "city_id": city["id"]}, headers=admin
        ).json()
        semester = client.post(
            "/api/semesters",
            json={"name": "Fall 2024", "school_id": school["id"]},
            headers=admin,
        ).json()
        group = client.post(
            "/api/groups",
            json={"name": "Group A", "semester_id": semester["id"]},
            headers=admin,
        ).json()
        response = client.post(
            "/api/subjects",
            json={"name": "Algebra", "group_id": group["id"]},
            headers=admin,
        )
        assert response.status_code == 201
        assert response.json()["group_id"] == group["id"]

        listed = client.get(f"/api/groups/{group['id']}/subjects").json()
        assert [s["name"] for s in listed] == ["Algebra"]

    def test_requires_authentication(self, client):
        response = client.post("/api/cities", json={"name": "Almaty"})
        assert response.status_code == 401

    @pytest.mark.parametrize("username", ["teacher", "student"])
    def test_requires_admin(self, client, accounts, username):
        response = client.post(
            "/api/cities",
            json={"name": "Almaty"},
            headers=accounts[username]["headers"],
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"
        assert client.get("/api/cities").json() == []

    def test_duplicate_slug(self, client, admin):
        client.post("/api/cities", json={"name": "Almaty"}, headers=admin)
        response = client.post("/api/cities", json={"name": "Almaty"}, headers=admin)
        assert response.status_code == 409

    def test_missing_parent(self, client, admin):
        response = client.post(
            "/api/schools", json={"name": "KBTU", "city_id": 999}, headers=admin
        )
        assert response.status_code == 400

    def test_invalid_slug(self, client, admin):
        response = client.post(
            "/api/cities", json={"name": "Almaty", "slug": "Not A Slug"}, headers=admin
        )
        assert response.status_code == 400

    def test_name_without_slug_characters(self, client, admin):
        response = client.post("/api/cities", json={"name": "***"}, headers=admin)
        assert response.status_code == 400

    def test_missing_parent_field(self, client, admin):
        response = client.post("/api/schools", json={"name": "KBTU"}, headers=admin)
        assert response.status_code == 422

    def test_out_of_range_parent(self, client, admin):
        response = client.post(
            "/api/schools",
            json={"name": "KBTU", "city_id": 99999999999999999999},
            headers=admin,
        )
        assert response.status_code == 422


class TestDelete:
    def test_delete_leaf(self, client, admin, hierarchy):
        subject_id = hierarchy["subject"].id
        response = client.delete(f"/api/subjects/{subject_id}", headers=admin)
        assert response.status_code == 200

        group_id = hierarchy["group"].id
        assert client.get(f"/api/groups/{group_id}/subjects").json() == []

    def test_delete_with_children(self, client, admin, hierarchy):
        response = client.delete(f"/api/cities/{hierarchy['city'].id}", headers=admin)
        assert response.status_code == 409

    def test_delete_missing(self, client, admin):
        assert client.delete("/api/cities/999", headers=admin).status_code == 404

    def test_delete_out_of_range_id(self, client, admin):
        response = client.delete("/api/cities/99999999999999999999", headers=admin)
        assert response.status_code == 422

    def test_delete_requires_admin(self, client, accounts, hierarchy):
        response = client.delete(
            f"/api/subjects/{hierarchy['subject'].id}",
            headers=accounts["teacher"]["headers"],
        )
        assert response.status_code == 403
