from fastapi import status


def test_health(client):
    resp = client.get("/health/")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["status"] == "ok"
