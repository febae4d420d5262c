"""文件夹接口的集成测试用例。"""

from fastapi.testclient import TestClient

from app.packages.drive.crud.folders import folder_crud


def _create(client: TestClient, headers: dict, name: str, parent=None):
    body = {"name": name}
    if parent is not None:
        body["parentFolder"] = parent
    return client.post("/api/folders", json=body, headers=headers)


def test_create_nested_folders_builds_paths(client: TestClient, create_user):
    user = create_user()

    docs = _create(client, user["headers"], "Docs")
    assert docs.status_code == 201
    docs_data = docs.json()["data"]
    assert docs_data["path"] == "/Docs"
    assert docs_data["parentFolder"] is None
    assert docs_data["user"] == user["id"]

    child = _create(client, user["headers"], "2024", docs_data["id"])
    grandchild = _create(client, user["headers"], "Q1", child.json()["data"]["id"])
    assert child.json()["data"]["path"] == "/Docs/2024"
    assert grandchild.json()["data"]["path"] == "/Docs/2024/Q1"


def test_folder_name_is_trimmed_and_required(client: TestClient, create_user):
    user = create_user()

    assert _create(client, user["headers"], "  Photos  ").json()["data"]["name"] == "Photos"
    blank = _create(client, user["headers"], "   ")
    assert blank.status_code == 400
    assert blank.json()["success"] is False


def test_duplicate_sibling_names(client: TestClient, create_user):
    user = create_user()
    docs_id = _create(client, user["headers"], "Docs").json()["data"]["id"]

    duplicate_root = _create(client, user["headers"], "Docs")
    assert duplicate_root.status_code == 400
    assert duplicate_root.json()["error"] == "Folder with this name already exists"

    assert _create(client, user["headers"], "Docs", docs_id).status_code == 201
    assert _create(client, user["headers"], "Docs", docs_id).status_code == 400
    assert _create(client, user["headers"], "Other").status_code == 201


def test_unique_constraint_rejects_duplicates_without_precheck(client: TestClient, create_user, monkeypatch):
    user = create_user()
    docs_id = _create(client, user["headers"], "Docs").json()["data"]["id"]
    assert _create(client, user["headers"], "2024", docs_id).status_code == 201
    monkeypatch.setattr(folder_crud, "find_sibling", lambda *args, **kwargs: None)

    for parent in (None, docs_id):
        name = "Docs" if parent is None else "2024"
        response = _create(client, user["headers"], name, parent)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Folder with this name already exists"}

    # 回滚后会话仍可继续使用
    assert _create(client, user["headers"], "Other").status_code == 201
    names = [item["name"] for item in client.get("/api/folders", headers=user["headers"]).json()["data"]]
    assert sorted(names) == ["Docs", "Other"]


def test_same_name_allowed_for_different_users(client: TestClient, create_user):
    alice, bob = create_user(), create_user()

    assert _create(client, alice["headers"], "Docs").status_code == 201
    assert _create(client, bob["headers"], "Docs").status_code == 201


def test_list_folders_newest_first(client: TestClient, create_user):
    user = create_user()
    for name in ("a", "b", "c"):
        _create(client, user["headers"], name)

    response = client.get("/api/folders", headers=user["headers"])
    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 3
    assert [item["name"] for item in payload["data"]] == ["c", "b", "a"]


def test_list_folders_under_parent(client: TestClient, create_user):
    user = create_user()
    docs_id = _create(client, user["headers"], "Docs").json()["data"]["id"]
    _create(client, user["headers"], "inner", docs_id)

    root = client.get("/api/folders", headers=user["headers"]).json()
    nested = client.get("/api/folders", params={"parent": docs_id}, headers=user["headers"]).json()
    assert [item["name"] for item in root["data"]] == ["Docs"]
    assert [item["name"] for item in nested["data"]] == ["inner"]


def test_delete_folder_only_when_empty(client: TestClient, create_user):
    user = create_user()
    docs_id = _create(client, user["headers"], "Docs").json()["data"]["id"]
    child_id = _create(client, user["headers"], "child", docs_id).json()["data"]["id"]

    blocked = client.delete(f"/api/folders/{docs_id}", headers=user["headers"])
    assert blocked.status_code == 400
    assert blocked.json()["error"] == "Folder is not empty. Delete contents first."

    assert client.delete(f"/api/folders/{child_id}", headers=user["headers"]).json() == {"success": True, "data": {}}
    assert client.delete(f"/api/folders/{docs_id}", headers=user["headers"]).status_code == 200
    assert client.get(f"/api/folders/{docs_id}/contents", headers=user["headers"]).status_code == 404


def test_delete_folder_blocked_by_file(client: TestClient, create_user):
    user = create_user()
    docs_id = _create(client, user["headers"], "Docs").json()["data"]["id"]
    client.post(
        "/api/files/upload",
        files={"file": ("a.txt", b"abc", "text/plain")},
        data={"parentFolder": str(docs_id)},
        headers=user["headers"],
    )

    assert client.delete(f"/api/folders/{docs_id}", headers=user["headers"]).status_code == 400


def test_other_users_folders_are_not_found(client: TestClient, create_user):
    alice, bob = create_user(), create_user()
    docs_id = _create(client, alice["headers"], "Docs").json()["data"]["id"]

    assert client.get(f"/api/folders/{docs_id}/contents", headers=bob["headers"]).status_code == 404
    assert client.delete(f"/api/folders/{docs_id}", headers=bob["headers"]).status_code == 404
    foreign_parent = _create(client, bob["headers"], "x", docs_id)
    assert foreign_parent.status_code == 404
    assert foreign_parent.json()["error"] == "Folder not found"
    assert client.get("/api/folders", params={"parent": docs_id}, headers=bob["headers"]).json()["count"] == 0
