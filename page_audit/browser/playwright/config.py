"""Configuration for the Playwright browser provider."""

from collections.abc import Sequence

from pydantic import BaseModel, Field


class PlaywrightConfig(BaseModel):
    """Configuration for the Playwright browser provider."""

    headless: bool = True
    launch_args: Sequence[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"]
    )
    viewport_width: int = Field(default=1920, gt=0)
    viewport_height: int = Field(default=1080, gt=0)
