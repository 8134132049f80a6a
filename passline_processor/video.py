"""
Frame readers for the counter service.

Files go through supervision's frame generator; live sources (RTSP URLs,
camera indices) are read with cv2.VideoCapture until the stream closes,
since they have no frame count to iterate against.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

import cv2
import numpy as np
import supervision as sv

logger = logging.getLogger(__name__)


def is_file_source(source: Union[str, int]) -> bool:
    return isinstance(source, str) and Path(source).is_file()


def video_fps(source: Union[str, int]) -> Optional[float]:
    """Frame rate of a video file, None for live sources."""
    if not is_file_source(source):
        return None
    return sv.VideoInfo.from_video_path(source).fps


def read_live_frames(source: Union[str, int]) -> Iterator[np.ndarray]:
    """
    Yield frames from an RTSP URL or camera index.

    Raises:
        RuntimeError: If the source cannot be opened
    """
    capture = cv2.VideoCapture(source)
    if not capture.isOpened():
        raise RuntimeError(f"Could not open video source: {source}")

    try:
        while True:
            success, frame = capture.read()
            if not success:
                logger.info(f"Video source closed: {source}")
                return
            yield frame
    finally:
        capture.release()


def iter_frames(source: Union[str, int]) -> Iterator[np.ndarray]:
    if is_file_source(source):
        return sv.get_video_frames_generator(source_path=source)
    return read_live_frames(source)
