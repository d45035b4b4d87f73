"""GET /api/dashboard and /api/projects - session-authenticated read views.

The session layer in front of this service authenticates the browser and
forwards the user id in ``SESSION_USER_HEADER``.
"""

from fastapi import APIRouter, Depends, Request

from .aggregator import compute_summary, get_project, list_projects, project_details
from .config import SESSION_USER_HEADER
from .errors import AuthenticationError
from .models import DashboardStats, ProjectDetails, ProjectOut
from .users import get_user

router = APIRouter(prefix="/api")


def session_user(request: Request) -> int:
    raw = request.headers.get(SESSION_USER_HEADER, "")
    if not raw.isdigit():
        raise AuthenticationError("Unauthorized")
    return get_user(int(raw))["id"]


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard_stats(user_id: int = Depends(session_user)):
    return compute_summary(user_id)


@router.get("/projects", response_model=list[ProjectOut])
async def projects(user_id: int = Depends(session_user)):
    return list_projects(user_id)


@router.get("/projects/{project_id}", response_model=ProjectOut)
async def project(project_id: int, user_id: int = Depends(session_user)):
    return get_project(user_id, project_id)


@router.get("/projects/{project_id}/details", response_model=ProjectDetails)
async def project_detail(project_id: int, user_id: int = Depends(session_user)):
    return project_details(user_id, project_id)
