"""
Notion Task Client
Queries the mission-control to-do database and flattens pages into tasks
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

NOTION_VERSION = "2022-06-28"
DEFAULT_STATUS = "Not started"


class NotionApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class Task(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    status: str = DEFAULT_STATUS
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    url: Optional[str] = None
    last_edited: Optional[str] = Field(default=None, alias="lastEdited")


def page_to_task(page: Dict[str, Any]) -> Task:
    """
    Flatten a Notion page into a Task.

    Property names vary per database, so the title, status and date are
    located by property type rather than by name.
    """
    title = ""
    status = DEFAULT_STATUS
    due_date = None

    for prop in (page.get("properties") or {}).values():
        prop_type = prop.get("type")
        if prop_type == "title":
            title = "".join(part.get("plain_text", "") for part in prop.get("title") or [])
        elif prop_type == "status":
            status = (prop.get("status") or {}).get("name") or DEFAULT_STATUS
        elif prop_type == "date" and (prop.get("date") or {}).get("start"):
            due_date = prop["date"]["start"]

    return Task(
        id=page["id"],
        title=title,
        status=status,
        due_date=due_date,
        url=page.get("url"),
        last_edited=page.get("last_edited_time"),
    )


class NotionTaskClient:
    """Reads tasks from a single Notion database."""

    def __init__(
        self,
        token: str,
        database_id: str,
        base_url: str = "https://api.notion.com/v1",
        timeout: float = 10.0,
    ):
        self.token = token
        self.database_id = database_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def list_tasks(self, page_size: int = 100) -> List[Task]:
        """
        Query the database (first page only).

        Raises:
            NotionApiError: On transport failure or a non-2xx response
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/databases/{self.database_id}/query",
                    json={"page_size": page_size},
                    headers={
                        "Authorization": f"Bearer {self.token}",
                        "Notion-Version": NOTION_VERSION,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            raise NotionApiError(str(e)) from e

        if response.status_code >= 400:
            raise NotionApiError(f"Notion API error: {response.status_code}", status_code=response.status_code)

        results = response.json().get("results") or []
        return [page_to_task(page) for page in results]
