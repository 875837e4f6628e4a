"""
Tests for resume group endpoints.
"""


def test_group_crud(client, auth_headers):
    """Create, rename, set members, delete"""
    r = client.post("/api/resume-groups", json={"name": "  Fintech  "}, headers=auth_headers)
    assert r.status_code == 201
    group = r.json()
    assert group["name"] == "Fintech"
    assert group["resumeIds"] == []

    r = client.patch(f"/api/resume-groups/{group['id']}", json={"name": "Fintech 2026"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Fintech 2026"
    assert r.json()["resumeIds"] == []

    r = client.patch(f"/api/resume-groups/{group['id']}", json={"resumeIds": ["a", "b"]}, headers=auth_headers)
    assert r.json()["name"] == "Fintech 2026"
    assert r.json()["resumeIds"] == ["a", "b"]

    assert [g["id"] for g in client.get("/api/resume-groups", headers=auth_headers).json()] == [group["id"]]

    r = client.delete(f"/api/resume-groups/{group['id']}", headers=auth_headers)
    assert r.json() == {"success": True}
    assert client.get("/api/resume-groups", headers=auth_headers).json() == []


def test_group_name_required(client, auth_headers):
    assert client.post("/api/resume-groups", json={"name": ""}, headers=auth_headers).status_code == 422


def test_groups_are_per_user(client, auth_headers, other_auth_headers):
    group = client.post("/api/resume-groups", json={"name": "Mine"}, headers=auth_headers).json()
    assert client.get("/api/resume-groups", headers=other_auth_headers).json() == []
    r = client.patch(f"/api/resume-groups/{group['id']}", json={"name": "Theirs"}, headers=other_auth_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Group not found"
    assert client.delete(f"/api/resume-groups/{group['id']}", headers=other_auth_headers).status_code == 404
