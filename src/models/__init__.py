# Data models for shortsmith
from .video import VideoFormat, VideoFile, MediaDescriptor, VideoPreview
from .content import ContentUnit, ClipResult, EditedClips

__all__ = [
    "VideoFormat",
    "VideoFile",
    "MediaDescriptor",
    "VideoPreview",
    "ContentUnit",
    "ClipResult",
    "EditedClips",
]
