"""Content schemas: trails, modules, content items, and learner progress."""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional, get_args

ContentType = Literal["video", "pdf", "quiz", "live"]
CONTENT_TYPES: tuple[str, ...] = get_args(ContentType)

ProgressSource = Literal["manual", "video", "quiz"]


class ContentItem(BaseModel):
    """A single unit of learning material inside a module."""
    id: str
    title: str
    type: ContentType
    order: int = 0
    url: Optional[str] = None
    duration: Optional[str] = None  # display label, e.g. "12:30"
    description: Optional[str] = None
    blocked: bool = False


class Module(BaseModel):
    """A named group of content items; `order` is authoritative."""
    id: str
    title: str
    description: Optional[str] = None
    order: int = 0
    blocked: bool = False
    content: List[ContentItem] = []


class Trail(BaseModel):
    """A learning path of ordered modules; a trail block overrides everything below."""
    id: str
    title: str
    description: Optional[str] = None
    level: Optional[str] = None
    blocked: bool = False
    modules: List[Module] = []


class UserProgress(BaseModel):
    """Per-user, per-content completion record; unique per (user_id, content_id)."""
    user_id: str
    content_id: str
    completed: bool = False
    percentage: float = Field(default=0, ge=0, le=100)
    last_accessed: datetime


class ProgressUpdate(BaseModel):
    """A partial progress write; unset fields keep their stored value."""
    completed: Optional[bool] = None
    percentage: Optional[float] = Field(default=None, ge=0, le=100)


class ProgressWrite(ProgressUpdate):
    """Payload for a manual progress write ("mark complete", content opened)."""
    user_id: str
    content_id: str


class VideoTick(BaseModel):
    """A periodic report from the video player."""
    user_id: str
    content_id: str
    current_time: float = Field(ge=0)  # seconds
    duration: float  # seconds
    last_saved_time: Optional[float] = None
    ended: bool = False


class ModuleProgress(BaseModel):
    module_id: str
    percentage: float
    accessible: bool


class TrailProgress(BaseModel):
    """Derived completion for one learner across a trail."""
    trail_id: str
    user_id: str
    percentage: float
    accessible: bool
    modules: List[ModuleProgress]


class StudentProgress(BaseModel):
    user_id: str
    percentage: float


class ClassProgress(BaseModel):
    """Roll-up of learner completion over the trails a class follows."""
    average: float
    completed_students: int
    students: List[StudentProgress]


class ContentStats(BaseModel):
    """How a group of learners is doing on one content item."""
    content_id: str
    total_students: int
    students_started: int
    students_completed: int
    average_progress: float  # mean percentage among learners who started


class TrailReport(BaseModel):
    trail_id: str
    class_progress: ClassProgress
    contents: List[ContentStats]
