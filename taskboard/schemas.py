from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskboard.models import Gender, RoleName, TaskPriority, TaskStatus
from taskboard.pagination import Page


# --- User ---

class UserResponse(BaseModel):
    id: int
    firstname: str
    lastname: str
    email: str
    gender: Gender | None
    account_locked: bool
    enabled: bool
    roles: list[RoleName] = []
    created_at: datetime
    updated_at: datetime | None
    modified_by: int | None
    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    id: int
    firstname: str = Field(min_length=2, max_length=100)
    lastname: str = Field(min_length=2, max_length=100)
    gender: Gender | None = None


class PasswordUpdate(BaseModel):
    id: int
    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


# --- Task ---

class TaskCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=3)
    status: TaskStatus
    priority: TaskPriority
    author_id: int
    assignee_id: int


class TaskUpdate(BaseModel):
    id: int
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=3)
    status: TaskStatus
    priority: TaskPriority
    # Carried for compatibility with existing clients; ownership never changes.
    author_id: int | None = None
    assignee_id: int | None = None


class TaskResponse(BaseModel):
    id: int
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    author_id: int
    assignee_id: int
    created_at: datetime
    updated_at: datetime | None
    created_by: int | None
    modified_by: int | None
    model_config = ConfigDict(from_attributes=True)


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)
    task_id: int
    author_id: int


class CommentUpdate(BaseModel):
    id: int
    content: str = Field(min_length=1, max_length=1000)
    task_id: int | None = None
    author_id: int | None = None


class CommentResponse(BaseModel):
    id: int
    content: str
    task_id: int
    author_id: int
    created_at: datetime
    updated_at: datetime | None
    created_by: int | None
    modified_by: int | None
    model_config = ConfigDict(from_attributes=True)


# --- Envelopes ---

class MessageResponse(BaseModel):
    message: str
    data: dict | None = None


class TaskPage(Page):
    items: list[TaskResponse]


class CommentPage(Page):
    items: list[CommentResponse]


class UserPage(Page):
    items: list[UserResponse]


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_tasks: int
    total_comments: int
    total_users: int
    avg_comments_per_task: float
    cache_info: dict = {}
