"""Magazine domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class MagazineResponse(BaseModel):
    """Schema for a magazine issue in the public list"""

    id: str
    title: str
    issueNumber: str
    publishDate: date
    description: Optional[str] = None
    totalCopies: int
    availableCopies: int
    coverImageUrl: Optional[str] = None
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, magazine) -> "MagazineResponse":
        return cls(
            id=magazine.id,
            title=magazine.title,
            issueNumber=magazine.issue_number,
            publishDate=magazine.publish_date,
            description=magazine.description,
            totalCopies=magazine.total_copies,
            availableCopies=magazine.available_copies,
            coverImageUrl=magazine.cover_image_url,
            isActive=magazine.is_active,
            createdAt=magazine.created_at,
            updatedAt=magazine.updated_at,
        )


class MagazineListResponse(BaseModel):
    success: bool = True
    data: list[MagazineResponse]
    count: int
