# tests/test_api.py
"""
Integration tests for the proposalkit HTTP API.

Focus
-----
The HTTP contract (camelCase request/response shapes, status codes) and the
session lifecycle. Autosave is disabled by the shared `isolated_settings`
fixture; saves happen only through `POST /sessions/{id}/save` and land in the
test's temporary store directory.

Scenarios
---------
1. **Health Check**: service is up and reports its environment.
2. **Stateless evaluation**: pricing, visibility, submission check.
3. **Sessions**: open, edit, undo/redo, save, reopen.
4. **Error Handling**: 400 for invalid input, 404 for unknown sessions.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from proposalkit import __version__
from proposalkit.api.app import create_app
from proposalkit.api.session_store import SessionStore


@pytest.fixture  # type: ignore[misc]
def client() -> Generator[TestClient, None, None]:
    """A clean API client per test (the session registry is reset)."""
    SessionStore.reset_instance()
    app = create_app()
    with TestClient(app) as c:
        yield c
    SessionStore.reset_instance()


PRICING: dict[str, Any] = {
    "items": [
        {"id": "item1", "name": "Design", "quantity": 2, "unitPrice": 50},
        {
            "id": "item2",
            "name": "Support",
            "quantity": 1,
            "unitPrice": 500,
            "isOptional": True,
            "isSelected": False,
        },
    ],
    "discountType": "percentage",
    "discountValue": 10,
    "taxRate": 8,
}

BLOCKS: list[dict[str, Any]] = [
    {"id": "pricing", "type": "pricing-table", "data": PRICING},
    {
        "id": "support-terms",
        "type": "text",
        "data": {"content": "Support terms"},
        "visibility": {
            "logic": "AND",
            "rules": [
                {"field": "pricing.items.item2.isSelected", "operator": "==", "value": True},
                {"field": "pricing.total", "operator": ">", "value": 500},
            ],
        },
    },
    {
        "id": "sig-support",
        "type": "signature",
        "data": {"role": "Support manager", "required": True},
        "visibility": {
            "rules": [
                {"field": "pricing.items.item2.isSelected", "operator": "==", "value": True}
            ]
        },
    },
    {"id": "sig-client", "type": "signature", "data": {"role": "Client", "required": True}},
]


# ------------------------------- System ----------------------------------------


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "environment": "test", "version": __version__}


# ------------------------------- Stateless -------------------------------------


def test_pricing_endpoint(client: TestClient) -> None:
    response = client.post("/pricing", json={"data": PRICING})
    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"subtotal": 100, "discount": 10, "tax": 7.2, "total": 97.2}
    assert body["formattedTotal"] == "$97.20"


def test_pricing_rejects_invalid_tax_rate(client: TestClient) -> None:
    response = client.post("/pricing", json={"data": {**PRICING, "taxRate": 120}})
    assert response.status_code == 422


def test_visibility_endpoint(client: TestClient) -> None:
    response = client.post("/visibility", json={"blocks": BLOCKS})
    assert response.status_code == 200
    body = response.json()
    assert body["visibility"] == {
        "pricing": True,
        "support-terms": False,
        "sig-support": False,
        "sig-client": True,
    }
    assert body["context"]["pricing.total"] == 97.2
    assert body["context"]["pricing.items.item2.isSelected"] is False


def test_visibility_rejects_malformed_condition(client: TestClient) -> None:
    bad = [
        {
            "id": "t",
            "type": "text",
            "visibility": {"rules": [{"field": "pricing.items", "operator": "==", "value": 1}]},
        }
    ]
    response = client.post("/visibility", json={"blocks": bad})
    assert response.status_code == 422


def test_submission_check_endpoint(client: TestClient) -> None:
    response = client.post("/submission-check", json={"blocks": BLOCKS})
    assert response.status_code == 200
    assert response.json() == {"ok": False, "missingRoles": ["Client"]}


# ------------------------------- Sessions --------------------------------------


def _open(client: TestClient, **body: Any) -> dict[str, Any]:
    response = client.post("/sessions", json=body)
    assert response.status_code == 201, response.text
    data: dict[str, Any] = response.json()
    return data


def test_open_empty_session(client: TestClient) -> None:
    view = _open(client)
    assert view["title"] == "Untitled Document"
    assert view["blocks"] == []
    assert view["dirty"] is False
    assert view["saveStatus"] == "idle"
    assert view["canUndo"] is False
    assert view["submission"] == {"ok": True, "missingRoles": []}

    fetched = client.get(f"/sessions/{view['sessionId']}")
    assert fetched.status_code == 200
    assert fetched.json()["sessionId"] == view["sessionId"]


def test_session_edit_flow(client: TestClient) -> None:
    view = _open(client, document={"title": "Offer", "blocks": BLOCKS}, documentId="offer")
    sid = view["sessionId"]
    assert sid == "offer"
    assert view["pricing"]["total"] == 97.2
    assert view["visibility"]["sig-support"] is False

    # Selecting the optional item reveals the support signature.
    items = [PRICING["items"][0], {**PRICING["items"][1], "isSelected": True}]
    response = client.post(
        f"/sessions/{sid}/commands",
        json={"kind": "update_block_data", "blockId": "pricing", "data": {"items": items}},
    )
    assert response.status_code == 200
    view = response.json()
    assert view["dirty"] is True and view["saveStatus"] == "dirty"
    assert view["visibility"]["sig-support"] is True
    assert view["visibility"]["support-terms"] is True
    assert view["submission"]["missingRoles"] == ["Support manager", "Client"]

    undone = client.post(f"/sessions/{sid}/undo").json()
    assert undone["visibility"]["sig-support"] is False
    assert undone["canRedo"] is True

    redone = client.post(f"/sessions/{sid}/redo").json()
    assert redone["visibility"]["sig-support"] is True
    assert redone["canRedo"] is False


def test_session_save_and_reopen(client: TestClient, tmp_path: Path) -> None:
    sid = _open(client, documentId="q3")["sessionId"]
    client.post(f"/sessions/{sid}/commands", json={"kind": "set_title", "title": "Q3 offer"})
    client.post(
        f"/sessions/{sid}/commands",
        json={"kind": "add_block", "blockType": "pricing-table", "blockId": "p"},
    )

    response = client.post(f"/sessions/{sid}/save")
    assert response.status_code == 200
    body = response.json()
    assert body["saved"] is True
    assert body["session"]["saveStatus"] == "saved"
    assert body["session"]["dirty"] is False
    assert (tmp_path / "documents" / "q3.json").exists()

    # A fresh registry reloads the document from disk.
    SessionStore.reset_instance()
    reopened = _open(client, documentId="q3")
    assert reopened["title"] == "Q3 offer"
    assert [b["id"] for b in reopened["blocks"]] == ["p"]
    assert reopened["dirty"] is False


def test_invalid_command_is_400_and_state_is_kept(client: TestClient) -> None:
    sid = _open(client)["sessionId"]
    response = client.post(f"/sessions/{sid}/commands", json={"kind": "teleport"})
    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"

    response = client.post(
        f"/sessions/{sid}/commands", json={"kind": "add_block", "blockType": "carousel"}
    )
    assert response.status_code == 400
    assert client.get(f"/sessions/{sid}").json()["revision"] == 0


def test_invalid_document_id_is_400(client: TestClient) -> None:
    response = client.post("/sessions", json={"documentId": "../etc/passwd"})
    assert response.status_code == 400


def test_unknown_session_is_404(client: TestClient) -> None:
    assert client.get("/sessions/ghost").status_code == 404
    assert client.post("/sessions/ghost/undo").status_code == 404
