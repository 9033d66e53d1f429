"""API route handlers and Pydantic request/response schemas."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from scenescribe import __version__
from scenescribe.orchestrator.pipeline import ProjectOrchestrator
from scenescribe.schemas.project import (
    InputType,
    Media,
    Project,
    ProjectConfig,
    TaskStatus,
    Topic,
    TopicMerge,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============================================================================
# Request/Response Schemas
# ============================================================================

class CreateProjectRequest(BaseModel):
    """Request body for POST /api/projects."""
    input_type: InputType = "url"
    url: Optional[str] = None
    raw_text: Optional[str] = None
    config: Optional[ProjectConfig] = None


class UpdateProjectRequest(BaseModel):
    """Request body for PATCH /api/projects/{id}."""
    config: ProjectConfig


class EditTopicsRequest(BaseModel):
    """Request body for PATCH /api/projects/{id}/topics.

    The merge is applied first, then the topic upserts.
    """
    merge: Optional[TopicMerge] = None
    topics: Optional[list[Topic]] = None


class GenerateRequest(BaseModel):
    """Request body for script and video generation. ``topics`` restricts the selection."""
    topics: Optional[list[str]] = None


class ProjectResponse(BaseModel):
    project: Project


class ProjectListResponse(BaseModel):
    projects: list[Project]


class TopicVideoResponse(BaseModel):
    status: TaskStatus
    media: Optional[Media] = None


def get_orchestrator(request: Request) -> ProjectOrchestrator:
    return request.app.state.orchestrator


# ============================================================================
# Endpoint Handlers
# ============================================================================

@router.post("/projects", response_model=ProjectResponse)
async def create_project(
    request: CreateProjectRequest,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    """Ingest a URL or pasted text and segment it into topics."""
    project = await orchestrator.create_project(
        request.input_type,
        url=request.url,
        raw_text=request.raw_text,
        config=request.config,
    )
    return ProjectResponse(project=project)


@router.get("/projects", response_model=ProjectListResponse)
async def list_projects(orchestrator: ProjectOrchestrator = Depends(get_orchestrator)):
    """List all projects, newest first."""
    return ProjectListResponse(projects=await orchestrator.list_projects())


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    return ProjectResponse(project=await orchestrator.get_project(project_id))


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    """Replace the project's generation config. Status is unchanged."""
    return ProjectResponse(project=await orchestrator.update_config(project_id, request.config))


@router.patch("/projects/{project_id}/topics", response_model=ProjectResponse)
async def edit_topics(
    project_id: str,
    request: EditTopicsRequest,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    """Merge and/or upsert topics; orders are renumbered 1..N."""
    project = await orchestrator.edit_topics(project_id, merge=request.merge, topics=request.topics)
    return ProjectResponse(project=project)


@router.post("/projects/{project_id}/scripts", response_model=ProjectResponse)
async def generate_scripts(
    project_id: str,
    request: Optional[GenerateRequest] = None,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    """Generate narration and scenes for the selected enabled topics.

    Per-topic failures are replaced with placeholder scripts; the response
    is always the updated project.
    """
    topic_ids = request.topics if request else None
    return ProjectResponse(project=await orchestrator.generate_scripts(project_id, topic_ids))


@router.post("/projects/{project_id}/videos", response_model=ProjectResponse)
async def generate_videos(
    project_id: str,
    request: Optional[GenerateRequest] = None,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    """Render videos for the selected enabled topics and wait for the batch.

    Failed topics are reported through their ``video_status``.
    """
    topic_ids = request.topics if request else None
    return ProjectResponse(project=await orchestrator.generate_videos(project_id, topic_ids))


@router.get("/projects/{project_id}/topics/{topic_id}/video", response_model=TopicVideoResponse)
async def get_topic_video(
    project_id: str,
    topic_id: str,
    orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
):
    status, media = await orchestrator.get_topic_video(project_id, topic_id)
    return TopicVideoResponse(status=status, media=media)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
    }
