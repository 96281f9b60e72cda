from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar
from datetime import datetime

T = TypeVar("T")


class ListResponse(BaseModel, Generic[T]):
    """List payload; stale=True means it came from the fallback snapshot taken at cached_at"""
    items: List[T]
    total: int
    stale: bool = False
    cached_at: Optional[datetime] = None

    @classmethod
    def from_read(cls, result) -> "ListResponse":
        """Build from a FallbackReader ReadResult"""
        return cls(
            items=result.items,
            total=len(result.items),
            stale=result.stale,
            cached_at=result.cached_at,
        )


class MessageResponse(BaseModel):
    success: bool = True
    message: str
