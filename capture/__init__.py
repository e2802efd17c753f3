"""Frame sources."""

from .video_source import VideoFrameSource, VideoInfo

__all__ = ["VideoFrameSource", "VideoInfo"]
