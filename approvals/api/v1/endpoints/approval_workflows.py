"""Approval workflow API: thin routes delegating to ApprovalWorkflowService.

Reads require authentication; writes require the administrator role.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from approvals.api.v1.dependencies import (
    CurrentUser,
    get_current_user,
    get_workflow_service,
    get_workflow_service_for_write,
    require_admin,
)
from approvals.application.dtos.approval_workflow import WorkflowCreate
from approvals.application.use_cases.approvals import ApprovalWorkflowService
from approvals.core.limiter import limit_admin
from approvals.domain.enums import WorkflowModule
from approvals.schemas.approval_workflow import (
    ApprovalWorkflowDetailResponse,
    ApprovalWorkflowResponse,
    WorkflowCreateRequest,
    WorkflowStagesUpdateRequest,
    WorkflowUpdateRequest,
)

router = APIRouter()


@router.post("", response_model=ApprovalWorkflowDetailResponse, status_code=201)
@limit_admin
async def create_workflow(
    request: Request,
    body: WorkflowCreateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[ApprovalWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Create a workflow with its stages."""
    result = await service.create_workflow(
        WorkflowCreate(
            workflow_code=body.workflow_code,
            workflow_name=body.workflow_name,
            module=body.module,
            entity_type=body.entity_type,
            stages=[s.to_input() for s in body.stages],
            description=body.description,
            is_active=body.is_active,
            requires_all_stages=body.requires_all_stages,
        ),
        created_by=admin.id,
    )
    return ApprovalWorkflowDetailResponse.from_result(result)


@router.get("", response_model=list[ApprovalWorkflowResponse])
async def list_workflows(
    _: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[ApprovalWorkflowService, Depends(get_workflow_service)],
    active_only: bool = Query(True),
    module: WorkflowModule | None = Query(None),
):
    """List workflows. active_only=false returns inactive ones too (module filter ignored)."""
    if active_only:
        workflows = await service.list_active_workflows(module)
    else:
        workflows = await service.list_all_workflows()
    return [ApprovalWorkflowResponse.model_validate(w) for w in workflows]


@router.get("/code/{workflow_code}", response_model=ApprovalWorkflowDetailResponse)
async def get_workflow_by_code(
    workflow_code: str,
    _: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[ApprovalWorkflowService, Depends(get_workflow_service)],
):
    return ApprovalWorkflowDetailResponse.from_result(
        await service.get_workflow_by_code(workflow_code)
    )


@router.get("/{workflow_id}", response_model=ApprovalWorkflowDetailResponse)
async def get_workflow(
    workflow_id: str,
    _: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[ApprovalWorkflowService, Depends(get_workflow_service)],
):
    return ApprovalWorkflowDetailResponse.from_result(
        await service.get_workflow_by_id(workflow_id)
    )


@router.patch("/{workflow_id}", response_model=ApprovalWorkflowResponse)
@limit_admin
async def update_workflow(
    request: Request,
    workflow_id: str,
    body: WorkflowUpdateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[ApprovalWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Update workflow metadata. Only fields present in the body are changed."""
    workflow = await service.update_workflow_metadata(
        workflow_id, body.model_dump(exclude_unset=True), updated_by=admin.id
    )
    return ApprovalWorkflowResponse.model_validate(workflow)


@router.put("/{workflow_id}/stages", response_model=ApprovalWorkflowDetailResponse)
@limit_admin
async def replace_workflow_stages(
    request: Request,
    workflow_id: str,
    body: WorkflowStagesUpdateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    service: Annotated[ApprovalWorkflowService, Depends(get_workflow_service_for_write)],
):
    """Replace the workflow's stage list (stages with executions are protected)."""
    result = await service.update_workflow_stages(
        workflow_id, [s.to_input() for s in body.stages], updated_by=admin.id
    )
    return ApprovalWorkflowDetailResponse.from_result(result)
