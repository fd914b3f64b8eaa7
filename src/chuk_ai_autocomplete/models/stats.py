# chuk_ai_autocomplete/models/stats.py
"""Statistics models."""

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """Statistics for the completion cache."""

    size: int = Field(default=0, description="Current number of entries")
    capacity: int = Field(default=60, description="Maximum entries")
    hits: int = Field(default=0, description="Total cache hits")
    misses: int = Field(default=0, description="Total cache misses")
    evictions: int = Field(default=0, description="Entries evicted by LRU")
    hit_rate: float = Field(default=0.0, description="Hit rate (0-1)")


class DownloadProgress(BaseModel):
    """Progress report emitted while a model downloads."""

    loaded: int = 0
    total: int = 0

    @property
    def percent(self) -> int | None:
        if not self.loaded or not self.total:
            return None
        return round(self.loaded / self.total * 100)
