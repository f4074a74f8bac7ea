"""Submission, decision, and query endpoints against the in-memory store."""

import pytest
from httpx import AsyncClient

from approvals.domain.enums import HierarchyLevel
from tests.fakes import InMemoryApprovalStore, RecordingPublisher, hierarchy_stage, user_stage

BASE = "/api/v1/approval-requests"

SUBMISSION = {
    "workflow_code": "MEMBER_APPROVAL",
    "entity_type": "Member",
    "entity_id": "m1",
    "forum_id": "f1",
    "area_id": "a1",
    "unit_id": "u1",
}


@pytest.fixture
def two_level_workflow(store: InMemoryApprovalStore):
    return store.seed_workflow(
        stages=[hierarchy_stage(1, HierarchyLevel.UNIT), hierarchy_stage(2, HierarchyLevel.AREA)]
    )


async def _submit(client: AsyncClient, auth_headers, body: dict = SUBMISSION) -> dict:
    response = await client.post(BASE, json=body, headers=auth_headers("agent-7"))
    assert response.status_code == 201, response.text
    return response.json()


async def test_submit_returns_request_and_executions(
    client: AsyncClient, auth_headers, in_memory_api: RecordingPublisher, two_level_workflow
) -> None:
    data = await _submit(client, auth_headers)

    assert data["request"]["status"] == "Pending"
    assert data["request"]["current_stage_order"] == 1
    assert data["request"]["requested_by"] == "agent-7"
    assert [e["assigned_approver_id"] for e in data["executions"]] == [
        "unit-admin",
        "area-admin",
    ]
    assert in_memory_api.events == []


async def test_duplicate_submission_is_bad_request(
    client: AsyncClient, auth_headers, in_memory_api, two_level_workflow
) -> None:
    await _submit(client, auth_headers)

    response = await client.post(BASE, json=SUBMISSION, headers=auth_headers("agent-7"))

    assert response.status_code == 400
    assert response.json()["details"] == {"entity_type": "Member", "entity_id": "m1"}


async def test_submit_unknown_workflow_is_not_found(
    client: AsyncClient, auth_headers, in_memory_api
) -> None:
    response = await client.post(BASE, json=SUBMISSION, headers=auth_headers("agent-7"))
    assert response.status_code == 404


async def test_submit_requires_authentication(client: AsyncClient, in_memory_api) -> None:
    response = await client.post(BASE, json=SUBMISSION)
    assert response.status_code == 401


async def test_full_approval_publishes_event_after_commit(
    client: AsyncClient, auth_headers, in_memory_api: RecordingPublisher, two_level_workflow
) -> None:
    submitted = await _submit(client, auth_headers)
    unit_ex, area_ex = submitted["executions"]

    first = await client.post(
        f"{BASE}/process",
        json={"execution_id": unit_ex["id"], "decision": "Approve"},
        headers=auth_headers("unit-admin"),
    )
    assert first.status_code == 200
    assert first.json()["request"]["current_stage_order"] == 2

    final = await client.post(
        f"{BASE}/process",
        json={"execution_id": area_ex["id"], "decision": "Approve", "comments": "ok"},
        headers={**auth_headers("area-admin"), "X-Correlation-ID": "corr-99"},
    )

    assert final.status_code == 200
    body = final.json()
    assert body["request"]["status"] == "Approved"
    assert body["request"]["approved_by"] == "area-admin"
    assert body["execution"]["comments"] == "ok"
    (event,) = in_memory_api.events
    assert event.event_type == "approval.request.approved"
    assert event.correlation_id == "corr-99"


async def test_reject_publishes_rejection(
    client: AsyncClient, auth_headers, in_memory_api: RecordingPublisher, two_level_workflow
) -> None:
    submitted = await _submit(client, auth_headers)

    response = await client.post(
        f"{BASE}/process",
        json={
            "execution_id": submitted["executions"][0]["id"],
            "decision": "Reject",
            "comments": "Incomplete documents",
        },
        headers=auth_headers("unit-admin"),
    )

    assert response.status_code == 200
    assert response.json()["request"]["rejection_reason"] == "Incomplete documents"
    assert [e.event_type for e in in_memory_api.events] == ["approval.request.rejected"]


async def test_process_by_other_user_is_forbidden(
    client: AsyncClient, auth_headers, in_memory_api, two_level_workflow
) -> None:
    submitted = await _submit(client, auth_headers)
    response = await client.post(
        f"{BASE}/process",
        json={"execution_id": submitted["executions"][0]["id"], "decision": "Approve"},
        headers=auth_headers("area-admin"),
    )
    assert response.status_code == 403


async def test_process_unknown_decision_is_unprocessable(
    client: AsyncClient, auth_headers, in_memory_api
) -> None:
    response = await client.post(
        f"{BASE}/process",
        json={"execution_id": "ex1", "decision": "Maybe"},
        headers=auth_headers("u1"),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_pending_me_lists_callers_queue(
    client: AsyncClient, auth_headers, in_memory_api, two_level_workflow
) -> None:
    await _submit(client, auth_headers)

    mine = await client.get(f"{BASE}/pending/me", headers=auth_headers("unit-admin"))
    not_yet = await client.get(f"{BASE}/pending/me", headers=auth_headers("area-admin"))

    assert [e["stage_order"] for e in mine.json()] == [1]
    # Stage 2 executions are already assigned and listed before their turn.
    assert [e["stage_order"] for e in not_yet.json()] == [2]


async def test_pending_for_other_approver_requires_admin(
    client: AsyncClient, auth_headers, in_memory_api, two_level_workflow
) -> None:
    await _submit(client, auth_headers)

    own = await client.get(f"{BASE}/pending/unit-admin", headers=auth_headers("unit-admin"))
    other = await client.get(f"{BASE}/pending/unit-admin", headers=auth_headers("area-admin"))
    admin = await client.get(
        f"{BASE}/pending/unit-admin", headers=auth_headers("root", ["admin"])
    )

    assert own.status_code == 200
    assert other.status_code == 403
    assert len(admin.json()) == 1


async def test_entity_and_detail_views(
    client: AsyncClient, auth_headers, in_memory_api, store: InMemoryApprovalStore
) -> None:
    store.seed_workflow(stages=[user_stage(1, "secretary")])
    submitted = await _submit(client, auth_headers)
    headers = auth_headers("viewer")

    entity = await client.get(f"{BASE}/entity/Member/m1", headers=headers)
    none_pending = await client.get(f"{BASE}/entity/Member/m2", headers=headers)
    detail = await client.get(f"{BASE}/{submitted['request']['id']}", headers=headers)
    missing = await client.get(f"{BASE}/missing", headers=headers)
    listing = await client.get(BASE, params={"status": "Pending"}, headers=headers)

    assert entity.json()["request"]["id"] == submitted["request"]["id"]
    assert none_pending.status_code == 200
    assert none_pending.json() == {"request": None, "executions": []}
    assert len(detail.json()["executions"]) == 1
    assert missing.status_code == 404
    assert [r["entity_id"] for r in listing.json()] == ["m1"]
