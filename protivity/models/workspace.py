"""Workspace data model for ProTIvity."""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, field_validator

from protivity.models.base import Entity
from protivity.models.color import BLUE, RGBColor
from protivity.models.goal import Goal
from protivity.models.page import Page
from protivity.models.task import Task


class PageItem(BaseModel):
    """Outline node wrapping a page."""
    type: Literal["page"] = "page"
    page: Page


class FolderItem(BaseModel):
    """Outline node wrapping a folder."""
    type: Literal["folder"] = "folder"
    folder: "Folder"


WorkspaceItem = Annotated[Union[PageItem, FolderItem], Field(discriminator="type")]


class Folder(Entity):
    """Folder in a workspace outline; nests further items."""

    name: str = Field(..., description="Folder name")
    items: List[WorkspaceItem] = Field(default_factory=list, description="Nested outline items")
    is_expanded: bool = Field(True, description="Whether the folder is expanded in the outline")


FolderItem.model_rebuild()
Folder.model_rebuild()


class Workspace(Entity):
    """A named container owning its tasks, goals and pages.

    Deleting a workspace deletes everything it owns. ``archived_tasks`` and
    ``items`` may be absent in older records and decode as empty lists.
    """

    name: str = Field(..., description="Workspace name")
    icon: str = Field("folder.fill", description="Icon reference")
    color: RGBColor = Field(default_factory=lambda: BLUE.model_copy(), description="Display color")
    categories: List[str] = Field(default_factory=list, description="Ordered unique category labels")
    tasks: List[Task] = Field(default_factory=list, description="Active tasks")
    archived_tasks: List[Task] = Field(default_factory=list, description="Completed non-recurring tasks")
    goals: List[Goal] = Field(default_factory=list, description="Goals")
    pages: List[Page] = Field(default_factory=list, description="Pages")
    items: List[WorkspaceItem] = Field(default_factory=list, description="Page/folder outline")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name must not be empty")
        return v

    @field_validator("color", mode="before")
    @classmethod
    def _coerce_color(cls, v):
        return RGBColor.coerce_legacy(v)

    @field_validator("categories")
    @classmethod
    def _dedupe_categories(cls, v):
        # Deduplicate but preserve order
        seen = set()
        out: List[str] = []
        for category in v:
            if category not in seen:
                seen.add(category)
                out.append(category)
        return out
