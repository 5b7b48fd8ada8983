from datetime import datetime

from pydantic import BaseModel, Field


class MetadataCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class MetadataUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None


class MetadataRead(MetadataCreate):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
