"""Video-related data models."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class VideoFormat:
    """Output frame size for a generated short."""

    name: str
    width: int
    height: int

    @property
    def orientation(self) -> str:
        """Search orientation hint ("portrait" or "landscape")."""
        return "portrait" if self.width < self.height else "landscape"

    @property
    def size_label(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class VideoFile:
    """One downloadable rendition of a stock video."""

    link: str
    width: int = 0
    height: int = 0
    file_type: str = ""
    quality: Optional[str] = None


@dataclass
class MediaDescriptor:
    """A stock video search result from Pexels."""

    video_id: str
    url: str
    duration: int  # in seconds
    width: int = 0
    height: int = 0
    image: Optional[str] = None  # thumbnail
    user_name: Optional[str] = None
    video_files: list[VideoFile] = field(default_factory=list)

    @property
    def attribution(self) -> Optional[str]:
        if not self.user_name:
            return None
        return f"Video by {self.user_name} from Pexels"


@dataclass
class VideoPreview:
    """The footage chosen for one content unit."""

    video_id: str
    video_url: str  # direct download link of the selected rendition
    thumbnail_url: Optional[str] = None
    current_page: int = 1
    attribution: Optional[str] = None
