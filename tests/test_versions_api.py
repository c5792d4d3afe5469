"""Tests for PRD version API endpoints with in-memory repositories."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from prd_tool.api.dependencies import (
    get_document_repository,
    get_document_store,
    get_version_repository,
)
from prd_tool.main import app


@pytest.fixture
def client(versions, documents, store):
    app.dependency_overrides[get_version_repository] = lambda: versions
    app.dependency_overrides[get_document_repository] = lambda: documents
    app.dependency_overrides[get_document_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def write(store, document):
    def _write(content: str) -> None:
        store.write(str(document.user_id), str(document.id), content)

    return _write


def _versions_url(document) -> str:
    return f"/v1/prds/{document.id}/versions"


class TestCreateVersion:
    def test_creates_numbered_version(self, client, document, write):
        write("# Checkout Revamp")
        actor = uuid4()

        response = client.post(
            _versions_url(document),
            json={"summary": "First draft"},
            headers={"X-User-Id": str(actor)},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["version_number"] == 1
        assert body["change_summary"] == "First draft"
        assert body["change_source"] == "manual"
        assert body["created_by"] == str(actor)
        assert body["content_size"] == len("# Checkout Revamp")
        assert "content" not in body

    def test_body_is_optional(self, client, document, write):
        write("# A")

        response = client.post(_versions_url(document))

        assert response.status_code == 201
        assert response.json()["change_summary"] is None
        assert response.json()["created_by"] is None

    def test_unchanged_content_is_no_changes(self, client, document, write, versions):
        write("# A")
        client.post(_versions_url(document))

        response = client.post(_versions_url(document))

        assert response.status_code == 400
        assert response.json() == {"message": "No changes to save", "code": "NO_CHANGES"}
        assert len(versions.list_for_prd(document.id)) == 1

    def test_summary_too_long(self, client, document):
        response = client.post(_versions_url(document), json={"summary": "x" * 256})

        assert response.status_code == 422

    def test_unknown_prd(self, client):
        response = client.post(f"/v1/prds/{uuid4()}/versions")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


def test_list_and_get_version(client, document, write):
    write("# One")
    client.post(_versions_url(document))
    write("# Two")
    client.post(_versions_url(document))

    listed = client.get(_versions_url(document)).json()["data"]
    assert [v["version_number"] for v in listed] == [2, 1]

    detail = client.get(f"{_versions_url(document)}/{listed[1]['id']}")
    assert detail.status_code == 200
    assert detail.json()["content"] == "# One"

    missing = client.get(f"{_versions_url(document)}/{uuid4()}")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Version not found", "code": "NOT_FOUND"}


class TestRestoreVersion:
    def test_restore_round_trip(self, client, document, write, store):
        write("# Original")
        v1 = client.post(_versions_url(document)).json()
        write("# Rewritten")

        response = client.post(f"{_versions_url(document)}/{v1['id']}/restore")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Version restored"
        assert body["version"]["version_number"] == 3
        assert body["version"]["change_summary"] == "Restored from v1"
        assert store.read(str(document.user_id), str(document.id)) == "# Original"

        listed = client.get(_versions_url(document)).json()["data"]
        assert listed[1]["change_summary"] == "Auto-saved before restore to v1"

    def test_restore_unknown_version(self, client, document, write, store):
        write("# Live")

        response = client.post(f"{_versions_url(document)}/{uuid4()}/restore")

        assert response.status_code == 404
        assert store.read(str(document.user_id), str(document.id)) == "# Live"


class TestCompareVersions:
    def test_returns_both_contents(self, client, document, write):
        write("# A")
        v1 = client.post(_versions_url(document)).json()
        write("# A\n\n## Goals")
        v2 = client.post(_versions_url(document)).json()

        response = client.post(
            f"{_versions_url(document)}/compare",
            json={"from_version": v1["id"], "to_version": v2["id"]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["from"]["content"] == "# A"
        assert body["to"]["content"] == "# A\n\n## Goals"
        assert body["to"]["version_number"] == 2

    def test_missing_version(self, client, document, write):
        write("# A")
        v1 = client.post(_versions_url(document)).json()

        response = client.post(
            f"{_versions_url(document)}/compare",
            json={"from_version": v1["id"], "to_version": str(uuid4())},
        )

        assert response.status_code == 404
        assert response.json()["message"] == "One or both versions not found"

    def test_invalid_uuid(self, client, document):
        response = client.post(
            f"{_versions_url(document)}/compare",
            json={"from_version": "not-a-uuid", "to_version": str(uuid4())},
        )

        assert response.status_code == 422
