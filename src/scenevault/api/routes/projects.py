"""Project endpoints - CRUD, scene save/load, backups and revert.

Every project-scoped route goes through ``OwnedProject``, which returns 404
for unknown projects and 403 for projects owned by someone else.
"""

import json
import math
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse

from src.scenevault.api.dependencies import CurrentUser, OwnedProject, ProjectServiceDep
from src.scenevault.schemas.auth import OkResponse
from src.scenevault.schemas.project import (
    BackupListResponse,
    BackupSummary,
    ProjectCreate,
    ProjectListResponse,
    ProjectRead,
    ProjectResponse,
)

router = APIRouter(prefix="/projects", tags=["projects"])


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def _parse_scene(body: bytes) -> Any:
    """Decode a scene body as strict JSON (UTF-8, no NaN or Infinity)."""
    try:
        return json.loads(
            body, parse_constant=_reject_constant, parse_float=_parse_finite_float
        )
    except ValueError as e:
        # Covers JSONDecodeError and UnicodeDecodeError as well
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON") from e


@router.get("", response_model=ProjectListResponse, summary="List projects")
async def list_projects(user: CurrentUser, projects: ProjectServiceDep) -> ProjectListResponse:
    """List the caller's projects, most recently updated first."""
    items = await projects.list_by_owner(user.id)
    return ProjectListResponse(projects=[ProjectRead.model_validate(p) for p in items])


@router.post("", response_model=ProjectResponse, summary="Create project")
async def create_project(
    body: ProjectCreate, user: CurrentUser, projects: ProjectServiceDep
) -> ProjectResponse:
    """Create an empty project owned by the caller."""
    project = await projects.create(user.id, body.title)
    return ProjectResponse(project=ProjectRead.model_validate(project))


@router.get(
    "/{uid}",
    response_model=ProjectResponse,
    summary="Get project",
    responses={403: {"description": "Access denied"}, 404: {"description": "Project not found"}},
)
async def get_project(project: OwnedProject) -> ProjectResponse:
    return ProjectResponse(project=ProjectRead.model_validate(project))


@router.delete(
    "/{uid}",
    response_model=OkResponse,
    summary="Delete project",
    responses={403: {"description": "Access denied"}, 404: {"description": "Project not found"}},
)
async def delete_project(project: OwnedProject, projects: ProjectServiceDep) -> OkResponse:
    """Delete the project together with its scene and all backups."""
    await projects.remove(project.uid)
    return OkResponse()


@router.get(
    "/{uid}/scene",
    summary="Load scene",
    responses={404: {"description": "Project or scene not found"}},
)
async def get_scene(project: OwnedProject, projects: ProjectServiceDep) -> JSONResponse:
    scene = await projects.get_scene(project.uid)
    if scene is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scene not found")
    return JSONResponse(content=scene)


@router.put(
    "/{uid}/scene",
    response_model=OkResponse,
    summary="Save scene",
    responses={400: {"description": "Body is not strict JSON, or is null"}},
)
async def save_scene(
    request: Request, project: OwnedProject, projects: ProjectServiceDep
) -> OkResponse:
    """Replace the scene. The previous scene becomes the newest backup."""
    document = _parse_scene(await request.body())
    if not await projects.save_scene(project.uid, document):
        # Removed between the ownership check and the save
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return OkResponse()


@router.get("/{uid}/backups", response_model=BackupListResponse, summary="List backups")
async def list_backups(project: OwnedProject, projects: ProjectServiceDep) -> BackupListResponse:
    """Backups oldest first; ``index`` is what the revert endpoint takes."""
    backups = await projects.get_backups(project.uid)
    return BackupListResponse(
        backups=[BackupSummary(index=i, timestamp=b.timestamp) for i, b in enumerate(backups)]
    )


@router.post(
    "/{uid}/backups/{index}/revert",
    summary="Revert to backup",
    responses={404: {"description": "Project or backup not found"}},
)
async def revert_to_backup(
    index: int, project: OwnedProject, projects: ProjectServiceDep
) -> JSONResponse:
    """Restore a backup as the current scene and return it.

    The scene being replaced is kept as a new backup.
    """
    scene = await projects.revert_to_backup(project.uid, index)
    if scene is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Backup not found")
    return JSONResponse(content=scene)
