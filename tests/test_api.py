# tests/test_api.py

"""
End-to-end tests for the HTTP API: authentication, status codes per
denial reason, and the invitation flow through the routes.
"""

import uuid
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from tests.conftest import TEST_JWT_SECRET, auth_headers


def _create_property(client: TestClient, user_id, name="Sunset Condos") -> dict:
    response = client.post("/api/properties", json={"property_name": name, "city": "Makati"}, headers=auth_headers(user_id))
    assert response.status_code == 201
    return response.json()


def _invite(client: TestClient, owner_id, property_id, **body):
    return client.post(f"/api/properties/{property_id}/invitations", json=body, headers=auth_headers(owner_id))


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_health_needs_no_token(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}


def test_missing_token_is_401(client: TestClient):
    response = client.get("/api/access/properties")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_is_401(client: TestClient, owner_id):
    forged = {"Authorization": f"Bearer {jwt.encode({'sub': str(owner_id)}, 'wrong-secret', algorithm='HS256')}"}
    assert client.get("/api/access/properties", headers=forged).status_code == 401

    no_user = {"Authorization": f"Bearer {jwt.encode({'sub': 'admin'}, TEST_JWT_SECRET, algorithm='HS256')}"}
    assert client.get("/api/access/properties", headers=no_user).status_code == 401


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

def test_create_property_makes_caller_owner(client: TestClient, owner_id):
    created = _create_property(client, owner_id)
    assert created["landlord_id"] == str(owner_id)
    assert created["role"] == "OWNER"
    assert created["units"] == 0

    response = client.get("/api/access/properties", headers=auth_headers(owner_id))
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["property_id"] == created["id"]
    assert data[0]["role"] == "OWNER"
    assert "MANAGE_USERS" in data[0]["operations"]


def test_list_properties_is_scoped(client: TestClient, owner_id, stranger_id):
    _create_property(client, owner_id, "Harbor View")
    _create_property(client, owner_id, "Bayside Lofts")
    _create_property(client, stranger_id, "Elsewhere")

    response = client.get("/api/properties", headers=auth_headers(owner_id))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [p["property_name"] for p in data["properties"]] == ["Bayside Lofts", "Harbor View"]


def test_strangers_get_404_for_properties(client: TestClient, owner_id, stranger_id):
    created = _create_property(client, owner_id)

    assert client.get(f"/api/properties/{created['id']}", headers=auth_headers(owner_id)).status_code == 200
    assert client.get(f"/api/properties/{created['id']}", headers=auth_headers(stranger_id)).status_code == 404
    assert client.get(f"/api/properties/{uuid.uuid4()}", headers=auth_headers(stranger_id)).status_code == 404


def test_disabled_property_is_gone_for_members(client: TestClient, owner_id):
    created = _create_property(client, owner_id)

    response = client.delete(f"/api/properties/{created['id']}", headers=auth_headers(owner_id))
    assert response.status_code == 204

    response = client.get(f"/api/properties/{created['id']}", headers=auth_headers(owner_id))
    assert response.status_code == 410
    assert response.json()["error"] == "PROPERTY_DISABLED"

    assert client.get("/api/access/properties", headers=auth_headers(owner_id)).json() == []


# ---------------------------------------------------------------------------
# Access checks
# ---------------------------------------------------------------------------

def test_check_returns_reason_codes(client: TestClient, owner_id, stranger_id):
    created = _create_property(client, owner_id)

    response = client.get(
        "/api/access/check",
        params={"property_id": created["id"], "operation": "DELETE_PROPERTY"},
        headers=auth_headers(owner_id),
    )
    assert response.status_code == 200
    assert response.json() == {"allow": True, "reason": None, "role": "OWNER"}

    response = client.get(
        "/api/access/check",
        params={"property_id": created["id"], "operation": "VIEW_PROPERTY"},
        headers=auth_headers(stranger_id),
    )
    assert response.status_code == 200
    assert response.json() == {"allow": False, "reason": "NOT_A_MEMBER", "role": None}


def test_check_rejects_unknown_operation(client: TestClient, owner_id):
    created = _create_property(client, owner_id)

    response = client.get(
        "/api/access/check",
        params={"property_id": created["id"], "operation": "LAUNCH_ROCKETS"},
        headers=auth_headers(owner_id),
    )
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

def test_invitation_lifecycle(client: TestClient, owner_id, viewer_id, stranger_id):
    prop = _create_property(client, owner_id)
    pid = prop["id"]

    response = _invite(client, owner_id, pid, role="VIEWER", invitee_user_id=str(viewer_id))
    assert response.status_code == 201
    invitation_id = response.json()["invitation_id"]
    assert response.json()["expires_at"] is not None

    # Already invited
    response = _invite(client, owner_id, pid, role="LEASING_AGENT", invitee_user_id=str(viewer_id))
    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_GRANT"

    # Only the invitee may accept
    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=auth_headers(stranger_id))
    assert response.status_code == 403
    assert response.json()["error"] == "NOT_INVITEE"

    inbox = client.get("/api/invitations/mine", headers=auth_headers(viewer_id)).json()
    assert [i["id"] for i in inbox] == [invitation_id]

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=auth_headers(viewer_id))
    assert response.status_code == 200
    assert response.json() == {"grant_id": invitation_id, "property_id": pid, "role": "VIEWER"}

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=auth_headers(viewer_id))
    assert response.status_code == 409
    assert response.json()["error"] == "ALREADY_ACCEPTED"

    # Viewer can read but not delete
    response = client.get(f"/api/properties/{pid}", headers=auth_headers(viewer_id))
    assert response.status_code == 200
    assert response.json()["role"] == "VIEWER"

    response = client.delete(f"/api/properties/{pid}", headers=auth_headers(viewer_id))
    assert response.status_code == 403
    assert response.json()["error"] == "INSUFFICIENT_ROLE"

    members = client.get(f"/api/properties/{pid}/members", headers=auth_headers(owner_id)).json()
    assert {(m["user_id"], m["role"]) for m in members} == {(str(owner_id), "OWNER"), (str(viewer_id), "VIEWER")}

    # Revocation takes effect on the next request
    response = client.delete(f"/api/grants/{invitation_id}", headers=auth_headers(owner_id))
    assert response.status_code == 204

    response = client.get(
        "/api/access/check",
        params={"property_id": pid, "operation": "VIEW_PROPERTY"},
        headers=auth_headers(viewer_id),
    )
    assert response.json()["reason"] == "NOT_A_MEMBER"
    assert client.get(f"/api/properties/{pid}", headers=auth_headers(viewer_id)).status_code == 404


def test_email_invitation_is_mailed_and_accepted(client: TestClient, owner_id, stranger_id):
    prop = _create_property(client, owner_id)

    with patch("routers.invitations.send_invitation_email") as mock_send:
        response = _invite(client, owner_id, prop["id"], role="MAINTENANCE_COORDINATOR", invitee_email="Fixer@Example.com")
        assert response.status_code == 201
        invitation_id = response.json()["invitation_id"]
        mock_send.assert_called_once_with("fixer@example.com", "Sunset Condos", "MAINTENANCE_COORDINATOR", invitation_id)

    pending = client.get(f"/api/properties/{prop['id']}/invitations", headers=auth_headers(owner_id)).json()
    assert [i["invitee_email"] for i in pending] == ["fixer@example.com"]

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=auth_headers(stranger_id, email="other@example.com"))
    assert response.status_code == 403

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=auth_headers(stranger_id, email="fixer@example.com"))
    assert response.status_code == 200
    assert response.json()["role"] == "MAINTENANCE_COORDINATOR"


@pytest.mark.parametrize(
    "body",
    [
        {"role": "JANITOR", "invitee_email": "a@example.com"},
        {"role": "VIEWER"},
        {"role": "VIEWER", "invitee_email": "not-an-email"},
        {"role": "VIEWER", "invitee_email": "a@example.com", "invitee_user_id": str(uuid.uuid4())},
    ],
)
def test_malformed_invitation_is_422(client: TestClient, owner_id, body):
    prop = _create_property(client, owner_id)
    response = _invite(client, owner_id, prop["id"], **body)
    assert response.status_code == 422


def test_non_manager_cannot_invite(client: TestClient, owner_id, stranger_id):
    prop = _create_property(client, owner_id)
    response = _invite(client, stranger_id, prop["id"], role="VIEWER", invitee_user_id=str(uuid.uuid4()))
    assert response.status_code == 403
    assert response.json()["error"] == "NOT_A_MEMBER"


def test_last_owner_is_409(client: TestClient, owner_id):
    prop = _create_property(client, owner_id)
    members = client.get(f"/api/properties/{prop['id']}/members", headers=auth_headers(owner_id)).json()

    response = client.delete(f"/api/grants/{members[0]['id']}", headers=auth_headers(owner_id))
    assert response.status_code == 409
    assert response.json()["error"] == "LAST_OWNER"


def test_unknown_invitation_and_grant_are_404(client: TestClient, owner_id):
    assert client.post(f"/api/invitations/{uuid.uuid4()}/accept", headers=auth_headers(owner_id)).status_code == 404
    assert client.delete(f"/api/grants/{uuid.uuid4()}", headers=auth_headers(owner_id)).status_code == 404


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

def test_units_are_scoped_to_accessible_properties(client: TestClient, owner_id, stranger_id):
    prop = _create_property(client, owner_id)

    response = client.post(
        f"/api/properties/{prop['id']}/units",
        json={"unit_number": "101", "rent_price": "15000.00"},
        headers=auth_headers(owner_id),
    )
    assert response.status_code == 201
    assert response.json()["status"] == "vacant"

    response = client.post(
        f"/api/properties/{prop['id']}/units",
        json={"unit_number": "102"},
        headers=auth_headers(stranger_id),
    )
    assert response.status_code == 403

    owner_units = client.get("/api/property-units", headers=auth_headers(owner_id)).json()
    assert [u["unit_number"] for u in owner_units] == ["101"]
    assert client.get("/api/property-units", headers=auth_headers(stranger_id)).json() == []
    assert client.get(
        "/api/property-units", params={"property_id": prop["id"]}, headers=auth_headers(stranger_id)
    ).json() == []

    assert client.get(f"/api/properties/{prop['id']}", headers=auth_headers(owner_id)).json()["units"] == 1
