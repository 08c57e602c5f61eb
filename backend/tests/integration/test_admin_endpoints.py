"""
Integration tests for the admin area.

Tests the full request/response cycle for:
- GET /admin/dashboard, GET /admin/users
- GET /admin/error-metrics, GET /admin/detailed-health, GET /admin/webhook-health
- /admin/{calibers,manufacturers,weapon-types} CRUD
- GET /health and the security headers on every response
"""
from armory.core.metrics import error_metrics
from armory.models.caliber import Caliber

from support import flash_of, login, make_user

JSON = {"Accept": "application/json"}


class TestAdminAccess:
    """Guests go to /login, regular users to /owner, admins get in."""

    def test_guest(self, client):
        response = client.get("/admin/dashboard", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert flash_of(response) == ("You do not have permission to access that page", "error")

    def test_regular_user(self, client, free_user):
        login(client, free_user)

        response = client.get("/admin/dashboard", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/owner"
        assert flash_of(response) == ("You must be an administrator to access this page", "error")

    def test_admin(self, client, renderer, admin_user):
        login(client, admin_user)

        response = client.get("/admin/dashboard")

        assert response.status_code == 200
        assert renderer.last["template"] == "admin/dashboard.html"

    def test_regular_user_cannot_edit_catalogs(self, client, free_user):
        login(client, free_user)

        response = client.post("/admin/calibers", data={"caliber": "6.5 PRC"}, follow_redirects=False)

        assert response.headers["location"] == "/owner"


class TestDashboardData:
    def test_stats_json(self, client, admin_user, monthly_user, free_user):
        login(client, admin_user)

        stats = client.get("/admin/dashboard", headers=JSON).json()

        assert stats["total_users"] == 3
        assert stats["subscribed_users"] == 1
        assert stats["new_users_this_month"] == 3
        assert set(stats) == {
            "total_users", "new_users_this_month", "new_users_last_month", "growth_rate", "subscribed_users",
        }

    def test_user_listing_json(self, client, db, admin_user):
        for i in range(3):
            make_user(db, email=f"member{i}@example.com")
        login(client, admin_user)

        body = client.get("/admin/users?page=1&perPage=10&sortBy=email&sortOrder=asc", headers=JSON).json()

        assert body["page"] == 1
        assert body["perPage"] == 10
        assert body["total"] == 4
        assert body["totalPages"] == 1
        assert body["sortBy"] == "email"
        assert body["sortOrder"] == "asc"
        assert [u["email"] for u in body["users"]] == sorted(u["email"] for u in body["users"])

    def test_user_listing_html(self, client, renderer, admin_user):
        login(client, admin_user)

        client.get("/admin/users")

        assert renderer.last["template"] == "admin/users.html"
        assert renderer.last["context"]["result"].total == 1


class TestErrorMetrics:
    def test_not_found_is_counted(self, client, admin_user):
        login(client, admin_user)
        client.get("/admin/calibers/999999")

        body = client.get("/admin/error-metrics?range=1h").json()

        assert body["range"] == "1h"
        assert body["stats"]["error_counts"]["not_found"] == 1
        assert body["error_rates"]["not_found"] == 1
        assert body["recent_errors"][0]["error_type"] == "not_found"
        assert set(body["latency_percentiles"]) == {"p50", "p95", "p99"}

    def test_invalid_range(self, client, admin_user):
        login(client, admin_user)

        response = client.get("/admin/error-metrics?range=2w")

        assert response.status_code == 400

    def test_starts_empty(self, client, admin_user):
        login(client, admin_user)

        body = client.get("/admin/error-metrics").json()

        assert body["range"] == "24h"
        assert body["recent_errors"] == []
        assert error_metrics.stats()["error_counts"] == {}


class TestHealth:
    def test_detailed_health(self, client, admin_user):
        login(client, admin_user)

        body = client.get("/admin/detailed-health").json()

        assert body["status"] == "healthy"
        assert body["database"]["status"] == "connected"
        assert body["version"] == "1.0.0"
        assert body["services"] == {"stripe": "test mode", "email": "console"}

    def test_webhook_health_without_traffic(self, client, admin_user):
        login(client, admin_user)

        body = client.get("/admin/webhook-health").json()

        assert body["total_requests"] == 0
        assert body["last_request_time"] is None

    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_security_headers(self, client):
        response = client.get("/")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestCatalogAdmin:
    def test_create(self, client, db, admin_user):
        login(client, admin_user)

        response = client.post(
            "/admin/calibers",
            data={"caliber": "6.5 PRC", "nickname": "", "popularity": "7"},
            follow_redirects=False,
        )

        created = db.query(Caliber).filter(Caliber.caliber == "6.5 PRC").one()
        assert response.status_code == 303
        assert response.headers["location"] == f"/admin/calibers/{created.id}"
        assert flash_of(response) == ("Caliber created.", "success")
        assert created.nickname is None
        assert created.popularity == 7

    def test_missing_name(self, client, renderer, admin_user):
        login(client, admin_user)

        response = client.post("/admin/calibers", data={"caliber": "  "})

        assert response.status_code == 400
        assert renderer.last["template"] == "admin/catalog/form.html"
        assert renderer.last["context"]["error"] == "Caliber name is required"

    def test_bad_popularity(self, client, renderer, admin_user):
        login(client, admin_user)

        response = client.post("/admin/manufacturers", data={"name": "Acme Arms", "popularity": "lots"})

        assert response.status_code == 400
        assert renderer.last["context"]["error"] == "Popularity must be a whole number"

    def test_update(self, client, db, admin_user):
        entry = db.query(Caliber).filter(Caliber.caliber == "9mm Parabellum").one()
        login(client, admin_user)

        response = client.post(
            f"/admin/calibers/{entry.id}",
            data={"caliber": "9mm Parabellum", "nickname": "9x19", "popularity": "101"},
            follow_redirects=False,
        )

        db.refresh(entry)
        assert response.headers["location"] == f"/admin/calibers/{entry.id}"
        assert entry.nickname == "9x19"
        assert entry.popularity == 101

    def test_delete_is_soft(self, client, db, admin_user):
        entry = db.query(Caliber).filter(Caliber.caliber == "9mm Parabellum").one()
        login(client, admin_user)

        response = client.post(f"/admin/calibers/{entry.id}/delete", follow_redirects=False)

        assert response.headers["location"] == "/admin/calibers"
        assert db.query(Caliber).filter(Caliber.id == entry.id).first() is None
        hidden = db.query(Caliber).execution_options(include_deleted=True).filter(Caliber.id == entry.id).one()
        assert hidden.deleted_at is not None

    def test_index_and_forms(self, client, renderer, admin_user):
        login(client, admin_user)

        client.get("/admin/weapon-types")
        assert renderer.last["template"] == "admin/catalog/index.html"
        assert renderer.last["context"]["entries"]

        client.get("/admin/weapon-types/new")
        assert renderer.last["template"] == "admin/catalog/form.html"
        assert renderer.last["context"]["entry"] is None
