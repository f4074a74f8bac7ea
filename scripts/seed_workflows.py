"""Seed approval workflows from a JSON file into Postgres.

Each entry is a workflow definition in the shape accepted by
POST /api/v1/approval-workflows. Workflows whose code already exists are
skipped, so the script can be re-run after editing the file.

Usage:
    uv run python -m scripts.seed_workflows [path/to/workflows.json]

Default path: scripts/default_workflows.json.
Requires: DATABASE_URL (Postgres) and migrations applied (alembic upgrade head).
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from approvals.application.dtos.approval_workflow import WorkflowCreate
from approvals.application.use_cases.approvals import ApprovalWorkflowService
from approvals.domain.exceptions import ApprovalEngineException
from approvals.infrastructure.persistence import database
from approvals.infrastructure.persistence.repositories import (
    ApprovalRequestRepository,
    ApprovalStageRepository,
    ApprovalWorkflowRepository,
)
from approvals.schemas.approval_workflow import WorkflowCreateRequest

SEED_USER = "system:seed"


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _load_env() -> None:
    """Load .env from project root so get_settings() sees DATABASE_URL when run as script."""
    load_dotenv(_project_root() / ".env", override=True)


def _to_command(entry: WorkflowCreateRequest) -> WorkflowCreate:
    return WorkflowCreate(
        workflow_code=entry.workflow_code,
        workflow_name=entry.workflow_name,
        module=entry.module,
        entity_type=entry.entity_type,
        stages=[s.to_input() for s in entry.stages],
        description=entry.description,
        is_active=entry.is_active,
        requires_all_stages=entry.requires_all_stages,
    )


async def run(path: Path) -> None:
    _load_env()
    if not path.exists():
        print(f"Seed file not found: {path}", file=sys.stderr)
        sys.exit(1)
    with path.open() as f:
        raw = json.load(f)
    try:
        entries = [WorkflowCreateRequest.model_validate(w) for w in raw.get("workflows", [])]
    except ValidationError as e:
        print(f"Invalid workflow definition in {path}:\n{e}", file=sys.stderr)
        sys.exit(1)

    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        print("Database not configured. Set DATABASE_URL", file=sys.stderr)
        sys.exit(1)

    created = skipped = 0
    async with database.AsyncSessionLocal() as session:
        async with session.begin():
            service = ApprovalWorkflowService(
                workflow_repo=ApprovalWorkflowRepository(session),
                stage_repo=ApprovalStageRepository(session),
                request_repo=ApprovalRequestRepository(session),
            )
            for entry in entries:
                try:
                    result = await service.create_workflow(
                        _to_command(entry), created_by=SEED_USER
                    )
                except ApprovalEngineException as e:
                    if e.error_code != "WORKFLOW_ALREADY_EXISTS":
                        raise
                    print(f"  Workflow {entry.workflow_code} already exists, skip")
                    skipped += 1
                    continue
                print(
                    f"  Workflow {result.workflow.workflow_code} -> {result.workflow.id} "
                    f"({len(result.stages)} stages)"
                )
                created += 1
    await database.dispose_engine()
    print(f"Done: {created} created, {skipped} skipped")


def main() -> None:
    path = (
        Path(sys.argv[1])
        if len(sys.argv) > 1
        else _project_root() / "scripts" / "default_workflows.json"
    )
    asyncio.run(run(path))


if __name__ == "__main__":
    main()
