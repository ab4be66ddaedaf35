"""Task cache configuration model."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class CacheConfig(BaseModel):
    """Task cache configuration section.

    Attributes:
        enabled: Whether format task results are cached between runs.
        dir: Cache directory, relative to the repository root.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    dir: str = ".fmtratchet/cache"
