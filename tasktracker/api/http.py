from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker.config import Settings
from tasktracker.domain.errors import DomainError, ErrorKind
from tasktracker.domain.task import TaskFilter, TaskId
from tasktracker.domain.transitions import parse_status
from tasktracker.services.task_service import TaskService
from tasktracker.api.schemas import ErrorOut, TaskCreate, TaskOut, TaskUpdate

logger = logging.getLogger(__name__)

### COMMENTS
# ==========================================================
# HTTP transport (FastAPI): thin mapping of verbs/paths to TaskService.
# ==========================================================
# - No business logic here, only parsing, merging PUT bodies and rendering.
# - Domain errors are turned into status codes in one place, by `error.kind`.
# - Every error body has the same shape: {"code": int, "message": str}.

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATUS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

ERROR_RESPONSES = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    500: {"model": ErrorOut},
}

router = APIRouter()


def get_service(request: Request) -> TaskService:
    return request.app.state.service


def _error(code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=code, content={"code": code, "message": message})


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
def create_task(body: TaskCreate, service: TaskService = Depends(get_service)):
    """Create a new task; it always starts as pending."""
    task = service.create_task(body.title, body.description, body.due_date)
    return TaskOut.from_task(task)


@router.get("", response_model=List[TaskOut], responses=ERROR_RESPONSES)
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    due_before: Optional[datetime] = None,
    due_after: Optional[datetime] = None,
    service: TaskService = Depends(get_service),
):
    """List tasks, newest first, optionally filtered by status and due date range."""
    filters = TaskFilter(
        status=parse_status(status_filter) if status_filter else None,
        due_before=due_before,
        due_after=due_after,
    )
    return [TaskOut.from_task(t) for t in service.list_tasks(filters)]


@router.get("/{task_id}", response_model=TaskOut, responses=ERROR_RESPONSES)
def get_task(task_id: str, service: TaskService = Depends(get_service)):
    return TaskOut.from_task(service.get_task(TaskId(task_id)))


@router.put("/{task_id}", response_model=TaskOut, responses=ERROR_RESPONSES)
def update_task(task_id: str, body: TaskUpdate, service: TaskService = Depends(get_service)):
    """Update a task. Fields left out of the body keep their current value."""
    current = service.get_task(TaskId(task_id))
    updated = service.update_task(body.apply_to(current))
    return TaskOut.from_task(updated)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, responses=ERROR_RESPONSES)
def delete_task(task_id: str, service: TaskService = Depends(get_service)):
    service.delete_task(TaskId(task_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def create_app(service: TaskService, settings: Settings | None = None) -> FastAPI:
    """Builds the FastAPI application around an already wired service."""
    settings = settings or Settings()

    app = FastAPI(
        title="Task Tracking Service API",
        description="CRUD API for tasks with validated status transitions",
        version="1.0.0",
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=f"{settings.api_base_path.rstrip('/')}/task", tags=["tasks"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return _error(code, "internal server error")
        return _error(code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return _error(status.HTTP_400_BAD_REQUEST, f"invalid request: {problems}")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")

    return app
