"""API endpoint tests."""


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_user(client):
    """Test user registration."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "newuser@example.com", "password": "password123", "username": "newbie"},
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert data["user"]["username"] == "newbie"
    assert data["linked_invitations"] == 0


def test_register_duplicate_email(client, auth_headers):
    """Test registration with duplicate email fails."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": auth_headers.email, "password": "password123"},
    )
    assert response.status_code == 400
    assert "already registered" in response.json()["detail"]


def test_register_duplicate_username(client, auth_headers):
    """Test registration with a taken username fails."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "other@example.com", "password": "password123", "username": "tester"},
    )
    assert response.status_code == 400
    assert "already taken" in response.json()["detail"]


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    assert response.status_code == 401


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == auth_headers.email


def test_unauthorized_access(client):
    """Test endpoints reject requests without a valid token."""
    response = client.get("/api/v1/households")
    assert response.status_code in (401, 403)

    response = client.get("/api/v1/households", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_domain_error_shape(client, auth_headers):
    """Test domain errors render as JSON with a stable error code."""
    client.post("/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"})
    response = client.post("/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"})

    assert response.status_code == 409
    assert response.json() == {
        "error": "CONFLICT",
        "detail": "Household with name 'Kitchen Co' already exists",
    }

    response = client.get("/api/v1/households/99999", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_household_invitation_flow(client, auth_headers, register_user):
    """Test invite, accept and the permissions that follow."""
    household = client.post(
        "/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"}
    ).json()
    household_id = household["id"]
    bob = register_user("bob@example.com", "bob")

    # Bob cannot see the household yet
    response = client.get(f"/api/v1/households/{household_id}", headers=bob)
    assert response.status_code == 404

    response = client.post(
        f"/api/v1/households/{household_id}/invitations",
        headers=auth_headers,
        json={"invited_user_email": "BOB@example.com"},
    )
    assert response.status_code == 201
    invitation = response.json()
    assert invitation["invited_user_id"] == bob.user_id
    assert invitation["status"] == "PENDING"
    assert invitation["proposed_role"] == "MEMBER"

    mine = client.get("/api/v1/invitations/me", headers=bob).json()
    assert [i["id"] for i in mine] == [invitation["id"]]

    response = client.post(f"/api/v1/invitations/{invitation['id']}/accept", headers=bob)
    assert response.status_code == 200
    assert response.json()["status"] == "ACCEPTED"

    households = client.get("/api/v1/households", headers=bob).json()
    assert [h["name"] for h in households] == ["Kitchen Co"]

    members = client.get(f"/api/v1/households/{household_id}/members", headers=bob).json()
    assert sorted(m["role"] for m in members) == ["MEMBER", "OWNER"]

    # A MEMBER cannot delete the household
    response = client.delete(f"/api/v1/households/{household_id}", headers=bob)
    assert response.status_code == 403
    assert response.json()["error"] == "INSUFFICIENT_PERMISSION"

    response = client.post(f"/api/v1/invitations/{invitation['id']}/accept", headers=bob)
    assert response.status_code == 409

    response = client.delete(f"/api/v1/households/{household_id}", headers=auth_headers)
    assert response.status_code == 204


def test_invitation_to_unregistered_email(client, auth_headers):
    """Test an email-only invitation is claimed when the recipient registers."""
    household_id = client.post(
        "/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"}
    ).json()["id"]

    response = client.post(
        f"/api/v1/households/{household_id}/invitations",
        headers=auth_headers,
        json={"invited_user_email": "ghost@example.com", "proposed_role": "ADMIN"},
    )
    assert response.status_code == 201
    assert response.json()["invited_user_id"] is None
    assert response.json()["effective_email"] == "ghost@example.com"

    response = client.post(
        "/api/v1/auth/register",
        json={"email": "Ghost@Example.com", "password": "password123"},
    )
    assert response.status_code == 201
    assert response.json()["linked_invitations"] == 1
    ghost = {"Authorization": f"Bearer {response.json()['access_token']}"}

    mine = client.get("/api/v1/invitations/me", headers=ghost).json()
    assert len(mine) == 1
    assert mine[0]["household_name"] == "Kitchen Co"

    response = client.post(f"/api/v1/invitations/{mine[0]['id']}/accept", headers=ghost)
    assert response.status_code == 200

    members = client.get(f"/api/v1/households/{household_id}/members", headers=ghost).json()
    assert sorted(m["role"] for m in members) == ["ADMIN", "OWNER"]


def test_invitation_validation_errors(client, auth_headers):
    """Test invitation request errors map to their status codes."""
    household_id = client.post(
        "/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"}
    ).json()["id"]
    url = f"/api/v1/households/{household_id}/invitations"

    response = client.post(url, headers=auth_headers, json={})
    assert response.status_code == 400

    response = client.post(url, headers=auth_headers, json={"invited_user_email": auth_headers.email})
    assert response.status_code == 422
    assert response.json()["error"] == "BUSINESS_RULE_VIOLATION"

    response = client.post(
        url, headers=auth_headers, json={"invited_user_email": "x@example.com", "proposed_role": "OWNER"}
    )
    assert response.status_code == 400


def test_pantry_flow(client, auth_headers, upc_client):
    """Test stocking a product through the API, including consolidation."""
    household_id = client.post(
        "/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"}
    ).json()["id"]

    response = client.post(
        "/api/v1/locations",
        headers=auth_headers,
        json={"household_id": household_id, "name": "Pantry"},
    )
    assert response.status_code == 201
    location_id = response.json()["id"]

    # Lookup is offline, so the product is saved as a manual entry
    response = client.post(
        "/api/v1/products", headers=auth_headers, json={"upc": "012345678905", "name": "Oats"}
    )
    assert response.status_code == 201
    product = response.json()
    assert product["data_source"] == "MANUAL"
    assert product["requires_api_retry"] is True
    upc_client.fetch_product_data.assert_called_once_with("012345678905")

    body = {"product_id": product["id"], "location_id": location_id, "quantity": 2}
    first = client.post("/api/v1/pantry-items", headers=auth_headers, json=body).json()
    body["quantity"] = 3
    second = client.post("/api/v1/pantry-items", headers=auth_headers, json=body).json()
    assert second["id"] == first["id"]
    assert second["quantity"] == 5
    assert second["product"]["name"] == "Oats"
    assert second["location"]["name"] == "Pantry"

    stats = client.get(
        f"/api/v1/pantry-items/household/{household_id}/statistics", headers=auth_headers
    ).json()
    assert stats["total_items"] == 1
    assert stats["low_stock"] == 1

    response = client.patch(
        f"/api/v1/pantry-items/{first['id']}", headers=auth_headers, json={"quantity": 9}
    )
    assert response.status_code == 200
    assert response.json()["quantity"] == 9

    # The location still holds an item
    response = client.delete(f"/api/v1/locations/{location_id}", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "DATA_INTEGRITY_VIOLATION"

    response = client.delete(f"/api/v1/pantry-items/{first['id']}", headers=auth_headers)
    assert response.status_code == 204
    response = client.delete(f"/api/v1/locations/{location_id}", headers=auth_headers)
    assert response.status_code == 204


def test_product_writes_require_admin(client, auth_headers):
    """Test regular users cannot edit the catalog."""
    product_id = client.post(
        "/api/v1/products", headers=auth_headers, json={"upc": "1", "name": "Oats"}
    ).json()["id"]

    response = client.patch(
        f"/api/v1/products/{product_id}", headers=auth_headers, json={"name": "Porridge"}
    )
    assert response.status_code == 403

    response = client.get("/api/v1/products/upc/1/available", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"upc": "1", "available": False}


def test_location_patch_rejects_unknown_fields(client, auth_headers):
    """Test location patch refuses keys it does not support."""
    household_id = client.post(
        "/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"}
    ).json()["id"]
    location_id = client.post(
        "/api/v1/locations",
        headers=auth_headers,
        json={"household_id": household_id, "name": "Pantry"},
    ).json()["id"]

    response = client.patch(
        f"/api/v1/locations/{location_id}", headers=auth_headers, json={"shelf": 3}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_patch_with_wrong_types_is_bad_request(client, auth_headers):
    """Test wrong-typed patch bodies return 400 instead of failing."""
    household_id = client.post(
        "/api/v1/households", headers=auth_headers, json={"name": "Kitchen Co"}
    ).json()["id"]

    response = client.patch(
        f"/api/v1/households/{household_id}", headers=auth_headers, json={"name": 5}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
