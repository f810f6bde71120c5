from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ExerciseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    muscle_group: str = Field(..., min_length=1, max_length=64)
    description: str = ""


class ExerciseCreate(ExerciseBase):
    video_file_id: int | None = Field(default=None, description="Asset id returned by the upload endpoint")
    video_thumbnail_file_id: int | None = None
    original_video_file_name: str | None = Field(default=None, max_length=255)
    video_duration: int | None = Field(default=None, ge=0, description="Video length, seconds")


class ExerciseUpdate(BaseModel):
    """
    Partial update.

    Asset fields are tri-state: omitted keeps the current asset, an id
    replaces it and an explicit null clears it.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    muscle_group: str | None = Field(default=None, min_length=1, max_length=64)
    description: str | None = None
    video_file_id: int | None = None
    video_thumbnail_file_id: int | None = None
    original_video_file_name: str | None = Field(default=None, max_length=255)
    video_duration: int | None = Field(default=None, ge=0)


class ExerciseResponse(ExerciseCreate):
    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ExerciseFilter(BaseModel):
    search: str | None = None
    muscle_groups: list[str] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)

    def signature(self) -> tuple[str, tuple[str, ...], int]:
        """Identity of the filter without paging, used to key result buffers."""
        search = (self.search or "").strip().lower()
        groups = tuple(sorted({g.strip().lower() for g in self.muscle_groups if g and g.strip()}))
        return search, groups, self.page_size


class ExercisePage(BaseModel):
    items: list[ExerciseResponse]
    page: int
    page_size: int
    total_items: int
    total_pages: int
