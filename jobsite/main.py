"""
Jobsite Coordination - Main Application Entry Point

FastAPI application exposing projects, schedule items, threads, channels,
unread counts and daily logs.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from . import __version__
from .ai.exceptions import LogEntryTooShortError, LogParseError, LogParserNotConfiguredError
from .ai.log_parser import get_log_parser
from .dependencies import Services, get_services, set_services
from .models.api_validation import (
    DailyLogUpsert,
    MessageCreate,
    ParseLogRequest,
    ProjectStatusUpdate,
    ScheduleItemCreate,
    ScheduleItemUpdate,
    ScheduleStatusUpdate,
)
from .models.threads import GENERAL_MARKER, ThreadRef
from .storage import close_storage
from .tagging import CHANNELS, ChannelType, detect_tags, filter_channel_messages, get_channel_by_id
from .utils.datetime_utils import format_relative_timestamp, get_local_today, validate_calendar_date

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

TODAY = "today"
LOG_DATE_PATTERN = r"^(today|\d{4}-\d{2}-\d{2})$"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    logger.info("Starting Jobsite Coordination...")

    try:
        await get_services().storage.initialize()
        logger.info(f"Storage initialized ({settings.storage_backend})")
    except Exception as e:
        logger.warning(f"Storage init failed (will retry on first request): {e}")

    yield

    logger.info("Shutting down...")
    await get_services().close()
    set_services(None)
    await close_storage()


app = FastAPI(
    title="Jobsite Coordination",
    description="Project threads, trade channels, unread tracking and daily logs",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def thread_ref(project_id: str, thread_id: str) -> ThreadRef:
    """URL thread segment: "general" or a schedule item id."""
    return ThreadRef.of(project_id, None if thread_id == GENERAL_MARKER else thread_id)


def message_payload(message) -> Dict[str, Any]:
    """Message with its detected tags attached."""
    data = message.to_storage()
    data["tags"] = [
        {"id": t.id, "label": t.label, "icon": t.icon, "color": t.color, "bgColor": t.bg_color}
        for t in detect_tags(message.content)
    ]
    return data


def resolve_log_date(date: str) -> str:
    """Map the "today" alias to the site-local date and reject impossible days."""
    if date == TODAY:
        return get_local_today()
    try:
        return validate_calendar_date(date)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def channel_payload(channel) -> Dict[str, Any]:
    return {
        "id": channel.id,
        "name": channel.name,
        "description": channel.description,
        "tagIds": list(channel.tag_ids),
        "type": channel.type.value,
    }


# ==================== HEALTH & INFO ====================

@app.get("/")
async def root():
    """Basic service info."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": __version__,
    }


@app.get("/health")
async def health(services: Services = Depends(get_services)):
    """Storage health check."""
    storage_health = await services.storage.health_check()
    status = "healthy" if storage_health.get("status") == "healthy" else "degraded"
    return {"status": status, "storage": storage_health}


# ==================== PROJECTS ====================

@app.get("/api/projects")
async def list_projects(
    user_id: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """All projects, or the user's projects with their unread totals."""
    if user_id is None:
        projects = await services.projects.get_all()
        return {"projects": [p.to_storage() for p in projects]}

    projects = await services.projects.get_for_user(user_id)
    counts = await services.unread.get_unread_counts_by_project(user_id, [p.id for p in projects])
    return {
        "projects": [
            {**p.to_storage(), "unreadCount": counts.get(p.id, 0)}
            for p in projects
        ]
    }


@app.get("/api/projects/{project_id}")
async def get_project(project_id: str, services: Services = Depends(get_services)):
    project = await services.projects.get_by_id(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project.to_storage()


@app.patch("/api/projects/{project_id}/status")
async def update_project_status(
    project_id: str,
    payload: ProjectStatusUpdate,
    services: Services = Depends(get_services),
):
    project = await services.projects.update_status(project_id, payload.status)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project.to_storage()


# ==================== SCHEDULE ====================

@app.get("/api/projects/{project_id}/schedule")
async def list_schedule(
    project_id: str,
    user_id: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """Schedule items in display order, with per-item unread counts for user_id."""
    items = await services.schedule.get_for_project(project_id)
    counts: Dict[str, int] = {}
    if user_id:
        counts = await services.unread.get_unread_counts_for_items(user_id, project_id)
    return {
        "items": [
            {**item.to_storage(), "unreadCount": counts.get(item.id, 0)}
            for item in items
        ]
    }


@app.post("/api/projects/{project_id}/schedule", status_code=201)
async def create_schedule_item(
    project_id: str,
    payload: ScheduleItemCreate,
    services: Services = Depends(get_services),
):
    item = await services.schedule.create(
        project_id,
        title=payload.title,
        due_date=payload.due_date,
        description=payload.description,
        assigned_to=payload.assigned_to,
    )
    return item.to_storage()


@app.patch("/api/schedule/{item_id}")
async def update_schedule_item(
    item_id: str,
    payload: ScheduleItemUpdate,
    services: Services = Depends(get_services),
):
    updates = payload.model_dump(exclude_unset=True)
    item = await services.schedule.update(item_id, **updates)
    if item is None:
        raise HTTPException(status_code=404, detail="Schedule item not found")
    return item.to_storage()


@app.patch("/api/schedule/{item_id}/status")
async def update_schedule_status(
    item_id: str,
    payload: ScheduleStatusUpdate,
    services: Services = Depends(get_services),
):
    item = await services.schedule.update_status(item_id, payload.status)
    if item is None:
        raise HTTPException(status_code=404, detail="Schedule item not found")
    return item.to_storage()


@app.delete("/api/schedule/{item_id}")
async def delete_schedule_item(item_id: str, services: Services = Depends(get_services)):
    if not await services.schedule.delete(item_id):
        raise HTTPException(status_code=404, detail="Schedule item not found")
    return {"ok": True}


# ==================== THREADS ====================

@app.get("/api/projects/{project_id}/threads/{thread_id}/messages")
async def get_thread_messages(
    project_id: str,
    thread_id: str,
    services: Services = Depends(get_services),
):
    messages = await services.messages.get_for_thread(thread_ref(project_id, thread_id))
    return {"messages": [message_payload(m) for m in messages]}


@app.post("/api/projects/{project_id}/threads/{thread_id}/messages", status_code=201)
async def post_message(
    project_id: str,
    thread_id: str,
    payload: MessageCreate,
    services: Services = Depends(get_services),
):
    message = await services.messages.create(
        thread_ref(project_id, thread_id),
        author_id=payload.author_id,
        author_name=payload.author_name,
        author_role=payload.author_role,
        content=payload.content,
    )
    return message_payload(message)


@app.post("/api/projects/{project_id}/threads/{thread_id}/read")
async def mark_thread_read(
    project_id: str,
    thread_id: str,
    user_id: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
):
    read_at = await services.read_ledger.mark_thread_read(user_id, thread_ref(project_id, thread_id))
    return {"ok": True, "readAt": read_at.isoformat()}


@app.get("/api/projects/{project_id}/threads/{thread_id}/unread")
async def get_thread_unread(
    project_id: str,
    thread_id: str,
    user_id: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
):
    count = await services.unread.get_unread_count_for_thread(user_id, thread_ref(project_id, thread_id))
    return {"unreadCount": count}


# ==================== CHANNELS ====================

@app.get("/api/projects/{project_id}/channels")
async def list_channels(
    project_id: str,
    user_id: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """Channel sidebar: every channel, with unread counts when user_id is given."""
    counts: Dict[str, int] = {}
    if user_id:
        counts = await services.unread.get_unread_counts_by_channel(user_id, project_id)
    return {
        "channels": [
            {**channel_payload(c), "unreadCount": counts.get(c.id, 0)}
            for c in CHANNELS
        ]
    }


@app.get("/api/projects/{project_id}/channels/{channel_id}")
async def get_channel(
    project_id: str,
    channel_id: str,
    services: Services = Depends(get_services),
):
    """Channel contents: messages, the schedule, or a redirect."""
    channel = get_channel_by_id(channel_id)
    if channel is None:
        raise HTTPException(status_code=404, detail="Channel not found")

    payload: Dict[str, Any] = {"channel": channel_payload(channel)}

    if channel.type == ChannelType.NAVIGATION:
        payload["redirect"] = f"/projects/{project_id}/log"
    elif channel.type == ChannelType.SCHEDULE_VIEW:
        items = await services.schedule.get_for_project(project_id)
        payload["items"] = [item.to_storage() for item in items]
    elif channel.type == ChannelType.GENERAL:
        messages = await services.messages.get_for_thread(ThreadRef.of(project_id))
        payload["messages"] = [message_payload(m) for m in messages]
    else:
        messages = await services.messages.get_all_for_project(project_id)
        payload["messages"] = [message_payload(m) for m in filter_channel_messages(channel, messages)]

    return payload


@app.post("/api/projects/{project_id}/channels/{channel_id}/read")
async def mark_channel_read(
    project_id: str,
    channel_id: str,
    user_id: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
):
    if get_channel_by_id(channel_id) is None:
        raise HTTPException(status_code=404, detail="Channel not found")
    read_at = await services.read_ledger.mark_channel_read(user_id, project_id, channel_id)
    return {"ok": True, "readAt": read_at.isoformat()}


# ==================== FEED ====================

@app.get("/api/feed")
async def get_feed(
    user_id: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
):
    """Threads across the user's projects, most recent activity first."""
    projects = await services.projects.get_for_user(user_id)
    project_ids = [p.id for p in projects]

    threads = await services.feed.get_threads_for_user(user_id, project_ids)
    total = await services.unread.get_total_unread_for_user(user_id, project_ids)
    return {
        "threads": [
            {
                **t.model_dump(by_alias=True, mode="json"),
                "lastActivityLabel": format_relative_timestamp(t.last_activity),
            }
            for t in threads
        ],
        "totalUnread": total,
    }


# ==================== DAILY LOGS ====================

@app.get("/api/projects/{project_id}/daily-logs")
async def list_daily_logs(project_id: str, services: Services = Depends(get_services)):
    logs = await services.daily_logs.get_for_project(project_id)
    return {"logs": [log.to_storage() for log in logs]}


@app.get("/api/projects/{project_id}/daily-logs/{date}")
async def get_daily_log(
    project_id: str,
    date: str = Path(..., pattern=LOG_DATE_PATTERN),
    services: Services = Depends(get_services),
):
    date = resolve_log_date(date)
    log = await services.daily_log_service.load_entry(project_id, date)
    if log is None:
        raise HTTPException(status_code=404, detail="Daily log not found")
    return {
        "log": log.to_storage(),
        "parseStatus": services.daily_log_service.get_parse_status(project_id, date).value,
    }


@app.put("/api/projects/{project_id}/daily-logs/{date}")
async def save_daily_log(
    project_id: str,
    payload: DailyLogUpsert,
    date: str = Path(..., pattern=LOG_DATE_PATTERN),
    services: Services = Depends(get_services),
):
    """Save now; parsing runs in the background."""
    date = resolve_log_date(date)
    log = await services.daily_log_service.save_entry(
        project_id,
        date,
        raw_entry=payload.raw_entry,
        weather=payload.weather,
        crew_count=payload.crew_count,
        visitors=payload.visitors,
    )
    return {
        "log": log.to_storage(),
        "parseStatus": services.daily_log_service.get_parse_status(project_id, date).value,
    }


@app.post("/api/projects/{project_id}/daily-logs/{date}/autosave", status_code=202)
async def autosave_daily_log(
    project_id: str,
    payload: DailyLogUpsert,
    date: str = Path(..., pattern=LOG_DATE_PATTERN),
    services: Services = Depends(get_services),
):
    """Buffer an edit; it is saved after the editor goes quiet."""
    date = resolve_log_date(date)
    scheduled = services.autosaver.schedule(
        project_id,
        date,
        raw_entry=payload.raw_entry,
        weather=payload.weather,
        crew_count=payload.crew_count,
        visitors=payload.visitors,
    )
    return {"scheduled": scheduled}


@app.delete("/api/projects/{project_id}/daily-logs/{date}/parse-status")
async def dismiss_parse_status(
    project_id: str,
    date: str = Path(..., pattern=LOG_DATE_PATTERN),
    services: Services = Depends(get_services),
):
    """Dismiss the parse status indicator once the user has seen it."""
    date = resolve_log_date(date)
    status = services.daily_log_service.dismiss_parse_status(project_id, date)
    return {"parseStatus": status.value}


@app.post("/api/parse-log")
async def parse_log(payload: ParseLogRequest):
    """Structure a daily log entry without storing anything."""
    parser = get_log_parser()
    try:
        parsed = await parser.parse(payload.raw_entry, payload.schedule_items)
    except LogEntryTooShortError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except LogParserNotConfiguredError as e:
        logger.error(f"Parse log misconfigured: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except LogParseError as e:
        logger.error(f"Parse log error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to parse log entry"})

    return parsed.to_storage()


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "jobsite.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
