import json

from fastapi.testclient import TestClient

from core.exceptions import GatewayError


def _webhook(client, event, signature="valid"):
    return client.post(
        "/api/stripe/webhook",
        content=json.dumps(event),
        headers={"stripe-signature": signature, "Content-Type": "application/json"},
    )


class TestSignup:
    def test_signup_then_checkout_activates(self, client, gateway, mirror_store, session, repository):
        response = client.post("/api/signup", json={"email": "a@b.com", "password": "x"})

        assert response.status_code == 200
        assert response.json()["url"].startswith("https://checkout.stripe.com/")

        profile = repository.find_profile(email="a@b.com")
        assert profile.status == "pending"
        assert profile.plan == "Starter"
        assert profile.stripe_customer_id == gateway.customers[0]["id"]

        checkout = gateway.checkout_sessions[0]
        assert checkout["price"] == "price_starter"
        assert checkout["success_url"] == (
            "https://movers.example.com/dashboard?session_id={CHECKOUT_SESSION_ID}&email=a%40b.com"
        )
        assert checkout["cancel_url"] == "https://movers.example.com/signup?canceled=1"

        # Signup mirrored the basic fields
        assert [r["Email"] for r in mirror_store.records.values()] == ["a@b.com"]

        ack = _webhook(client, {
            "type": "checkout.session.completed",
            "data": {"object": {"customer": profile.stripe_customer_id}},
        })
        assert ack.status_code == 200
        assert ack.json() == {"received": True, "event": "checkout.session.completed", "handled": True}

        session.expire_all()
        assert repository.find_profile(email="a@b.com").status == "active"

    def test_signup_requires_email_and_password(self, client, gateway):
        response = client.post("/api/signup", json={"email": "a@b.com"})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Missing required fields"}
        assert gateway.customers == []

    def test_duplicate_account_is_rejected(self, client):
        assert client.post("/api/signup", json={"email": "a@b.com", "password": "x"}).status_code == 200

        response = client.post("/api/signup", json={"email": "a@b.com", "password": "y"})
        assert response.status_code == 400
        assert response.json()["error"] == "Auth create failed"

    def test_malformed_email_uses_error_envelope(self, client, gateway):
        response = client.post("/api/signup", json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 422
        assert response.json()["ok"] is False
        assert response.json()["error"].startswith("Invalid email")
        assert gateway.customers == []

    def test_plan_without_price_falls_back_to_starter(self, client, gateway):
        response = client.post(
            "/api/signup",
            json={"email": "big@example.com", "password": "x", "plan": "Enterprise", "fullName": "Big Co"},
        )

        assert response.status_code == 200
        assert gateway.checkout_sessions[0]["price"] == "price_starter"
        assert gateway.customers[0]["metadata"]["plan"] == "Enterprise"
        assert gateway.customers[0]["name"] == "Big Co"

    def test_gateway_failure_is_server_error(self, client, gateway):
        def fail(*args, **kwargs):
            raise GatewayError("Signup failed")

        gateway.create_customer = fail
        response = client.post("/api/signup", json={"email": "a@b.com", "password": "x"})

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Signup failed"}


class TestDashboard:
    def test_dashboard(self, client, make_profile):
        make_profile(current_period_end="2025-11-30T12:00:00.000Z", plan="Pro", status="active")

        response = client.get("/api/mover-dashboard", params={"email": "mover@example.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["subscriptionTier"] == "Pro"
        assert data["nextPaymentDate"] == "Nov 30, 2025"
        assert data["status"] == "active"
        assert data["mover"]["name"] == "Jane Doe"
        assert "startingPrice" not in data["mover"]

    def test_dashboard_without_period_end(self, client, make_profile):
        make_profile()
        data = client.get("/api/mover-dashboard", params={"email": "mover@example.com"}).json()
        assert data["nextPaymentDate"] == "N/A"

    def test_dashboard_missing_email(self, client):
        response = client.get("/api/mover-dashboard")
        assert response.status_code == 400
        assert response.json()["error"] == "Missing email"

    def test_dashboard_unknown_email(self, client):
        response = client.get("/api/mover-dashboard", params={"email": "nobody@example.com"})
        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "Profile not found"}


class TestUpdateProfile:
    def test_update_writes_present_fields_and_syncs(self, client, make_profile, mirror_store, session, repository):
        make_profile(city="Austin")

        response = client.post("/api/update-profile", json={
            "email": "mover@example.com",
            "state": "TX",
            "logo_url": "https://cdn.example.com/logo.png",
            "starting_price": "299.00",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["profileCompletion"] == 100
        assert data["mover"]["startingPrice"] == 299.0
        assert data["mover"]["city"] == "Austin"

        session.expire_all()
        profile = repository.find_profile(email="mover@example.com")
        assert profile.state == "TX"
        assert profile.city == "Austin"

        record = next(iter(mirror_store.records.values()))
        assert record["Name"] == "Acme Movers"
        assert record["Logo"] == [{"url": "https://cdn.example.com/logo.png"}]
        assert record["Starting price"] == 299.0

    def test_blank_starting_price_clears_it(self, client, make_profile):
        make_profile(starting_price=150)

        data = client.post("/api/update-profile", json={"email": "mover@example.com", "starting_price": ""}).json()

        assert "startingPrice" not in data["mover"]

    def test_negative_starting_price_is_rejected(self, client, make_profile):
        make_profile()
        response = client.post("/api/update-profile", json={"email": "mover@example.com", "starting_price": -5})
        assert response.status_code == 422
        assert response.json()["ok"] is False
        assert response.json()["error"].startswith("Invalid starting_price")

    def test_mirror_failure_does_not_fail_update(self, client, make_profile, mirror_store):
        make_profile()

        def boom(*args, **kwargs):
            raise RuntimeError("airtable down")

        mirror_store.find_by_email = boom
        response = client.post("/api/update-profile", json={"email": "mover@example.com", "city": "Reno"})

        assert response.status_code == 200
        assert response.json()["mover"]["city"] == "Reno"

    def test_update_unknown_email(self, client):
        response = client.post("/api/update-profile", json={"email": "nobody@example.com", "city": "Reno"})
        assert response.status_code == 404

    def test_update_missing_email(self, client):
        response = client.post("/api/update-profile", json={"city": "Reno"})
        assert response.status_code == 400


class TestLogoUpload:
    def test_upload_logo(self, client, make_profile, services, mirror_store):
        make_profile()

        response = client.post(
            "/api/upload-logo",
            data={"email": "mover@example.com"},
            files={"file": ("logo.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["logo_url"].startswith("https://api.example.com/static/logos/user-1_")
        assert data["mover"]["logo"] == data["logo_url"]
        assert list((services.storage.root / "logos").iterdir())
        assert next(iter(mirror_store.records.values()))["Logo"] == [{"url": data["logo_url"]}]

    def test_upload_rejects_other_types(self, client, make_profile):
        make_profile()
        response = client.post(
            "/api/upload-logo",
            data={"email": "mover@example.com"},
            files={"file": ("logo.exe", b"MZ", "application/octet-stream")},
        )
        assert response.status_code == 400


class TestWebhookRoute:
    def test_bad_signature_is_rejected(self, client, make_profile, session, repository):
        make_profile(stripe_customer_id="cus_1")

        response = _webhook(client, {
            "type": "checkout.session.completed",
            "data": {"object": {"customer": "cus_1"}},
        }, signature="forged")

        assert response.status_code == 400
        session.expire_all()
        assert repository.find_profile(email="mover@example.com").status == "pending"

    def test_unhandled_event_is_acknowledged(self, client):
        response = _webhook(client, {"type": "invoice.paid", "data": {"object": {"customer": "cus_1"}}})
        assert response.status_code == 200
        assert response.json()["handled"] is False

    def test_customer_shared_by_two_profiles_is_ignored(self, client, make_profile, session, repository):
        make_profile(id="user-1", email="one@example.com", stripe_customer_id="cus_shared")
        make_profile(id="user-2", email="two@example.com", stripe_customer_id="cus_shared")

        response = _webhook(client, {
            "type": "checkout.session.completed",
            "data": {"object": {"customer": "cus_shared"}},
        })

        assert response.status_code == 200
        assert response.json()["handled"] is False
        session.expire_all()
        assert repository.find_profile(email="one@example.com").status == "pending"
        assert repository.find_profile(email="two@example.com").status == "pending"


class TestBilling:
    def test_manage_billing_redirects(self, client, make_profile, gateway):
        make_profile(stripe_customer_id="cus_1")

        response = client.get(
            "/api/stripe/manage-billing",
            params={"email": "mover@example.com"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "https://billing.stripe.com/p/session/test_123"
        assert gateway.portal_sessions[0]["return_url"] == (
            "https://movers.example.com/dashboard?email=mover%40example.com"
        )

    def test_manage_billing_without_customer(self, client, make_profile):
        make_profile()
        response = client.get("/api/stripe/manage-billing", params={"email": "mover@example.com"}, follow_redirects=False)
        assert response.status_code == 404
        assert response.json()["error"] == "No Stripe customer for this email"

    def test_cancel_subscription(self, client, make_profile, session, repository):
        make_profile(stripe_customer_id="cus_1", stripe_subscription_id="sub_1", status="active")

        response = client.post("/api/stripe/cancel-subscription", json={"email": "mover@example.com"})

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "subscriptionId": "sub_1",
            "current_period_end": "2026-01-01T00:00:00.000Z",
        }
        session.expire_all()
        assert repository.find_profile(email="mover@example.com").status == "cancelling"

    def test_cancel_without_subscription(self, client, make_profile, gateway):
        make_profile()

        response = client.post("/api/stripe/cancel-subscription", json={"email": "mover@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "No active subscription found for this user"
        assert gateway.subscription_updates == []


class TestServiceRoutes:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"ok": True}

    def test_debug_hides_secrets(self, client):
        data = client.get("/api/_debug").json()
        assert data["stripeKeyPrefix"] == "sk_test_"
        assert data["airtableConfigured"] is True
        assert data["prices"]["Pro"] == "price_pro"

    def test_unexpected_errors_become_server_error(self, engine, services):
        from core.dependencies import get_repository, get_services
        from main import app

        def broken_repository():
            raise RuntimeError("database exploded")

        app.dependency_overrides[get_services] = lambda: services
        app.dependency_overrides[get_repository] = broken_repository
        try:
            with TestClient(app, raise_server_exceptions=False) as test_client:
                response = test_client.get("/api/mover-dashboard", params={"email": "a@b.com"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Server error"}
