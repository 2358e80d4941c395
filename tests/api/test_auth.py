"""Test bearer token handling"""

from datetime import timedelta

from fieldservice.security.auth import create_access_token, decode_access_token


def test_token_round_trip():
    token = create_access_token({"sub": "tech-1", "role": "technician"})
    payload = decode_access_token(token)
    assert payload["sub"] == "tech-1"
    assert payload["role"] == "technician"


def test_expired_and_garbage_tokens():
    expired = create_access_token({"sub": "tech-1"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(expired) is None
    assert decode_access_token("not-a-token") is None


def test_invalid_token_rejected(client):
    response = client.get("/api/files", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_unknown_role_rejected(client):
    token = create_access_token({"sub": "tech-1", "role": "contractor"})
    response = client.get("/api/files", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_missing_subject_rejected(client):
    token = create_access_token({"role": "admin"})
    response = client.get("/api/files", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
