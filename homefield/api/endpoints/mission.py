"""
Mission Control Endpoints
Agency to-do list pulled from Notion
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from homefield.api.dependencies import get_notion_client, require_admin
from homefield.domain.models.tenant import TenantContext
from homefield.infrastructure.tasks.notion import NotionApiError, NotionTaskClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mission", tags=["mission"])


@router.get("/tasks")
async def list_tasks(
    admin: TenantContext = Depends(require_admin),
    notion: Optional[NotionTaskClient] = Depends(get_notion_client),
):
    """
    Tasks from the Notion to-do database.

    Failures are reported in the body with an empty task list.
    """
    if notion is None:
        return {"tasks": [], "error": "No Notion token configured"}

    try:
        tasks = await notion.list_tasks()
    except NotionApiError as e:
        logger.error(f"Notion task query failed: {e.message}")
        return {"tasks": [], "error": e.message}

    return {"tasks": [task.model_dump(by_alias=True) for task in tasks]}
