"""
Detection Source Module
=======================

Bounded Context: Input boundary between an external detector and the tracker.

Design:
- DetectionRecord: one detector output (box + label + score)
- DetectionSource: pull interface, one materialized list per frame
- Adapters from supervision.Detections (YOLO via ultralytics)
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

import numpy as np
import supervision as sv

from passline_tracking.geometry.shapes import BoundingBox


@dataclass(frozen=True)
class DetectionRecord:
    """
    Single detector output for one object.

    Values are kept raw; validation happens in bbox() so a malformed record
    can be rejected by the tracker without aborting the frame.
    """

    x: float
    y: float
    width: float
    height: float
    label: str = "person"
    score: float = 1.0

    def bbox(self) -> BoundingBox:
        """
        Validated bounding box.

        Raises:
            ValueError: If coordinates are non-finite or sizes negative
        """
        return BoundingBox(self.x, self.y, self.width, self.height)


class DetectionSource(Protocol):
    """
    Pull interface for per-frame detections.

    next_detections() returns the detections of the next frame, or None once
    the source is exhausted.
    """

    def next_detections(self) -> Optional[List[DetectionRecord]]:
        ...


class ReplayDetectionSource:
    """
    Replays pre-recorded frames of detections.

    Usage:
        source = ReplayDetectionSource([
            [DetectionRecord(0, 0, 10, 10)],
            [],
            [DetectionRecord(50, 0, 10, 10)],
        ])
    """

    def __init__(self, frames: Iterable[Sequence[DetectionRecord]]):
        self._frames = deque(list(frame) for frame in frames)

    def next_detections(self) -> Optional[List[DetectionRecord]]:
        if not self._frames:
            return None
        return self._frames.popleft()

    def __len__(self) -> int:
        return len(self._frames)


def records_from_supervision(
    detections: sv.Detections,
    class_names: Optional[Dict[int, str]] = None,
) -> List[DetectionRecord]:
    """
    Convert supervision Detections into DetectionRecords.

    Label resolution order: detections.data["class_name"], then
    class_names[class_id], then "class_<id>".

    Args:
        detections: Detections in xyxy layout
        class_names: Optional mapping {class_id: name}

    Returns:
        One record per detection, in detector order
    """
    if len(detections) == 0:
        return []

    names = detections.data.get("class_name") if detections.data else None
    confidences = (
        detections.confidence
        if detections.confidence is not None
        else np.ones(len(detections))
    )

    records = []
    for idx, (x1, y1, x2, y2) in enumerate(detections.xyxy):
        if names is not None:
            label = str(names[idx])
        elif detections.class_id is not None:
            class_id = int(detections.class_id[idx])
            label = (class_names or {}).get(class_id, f"class_{class_id}")
        else:
            label = "unknown"

        records.append(DetectionRecord(
            x=float(x1),
            y=float(y1),
            width=float(x2 - x1),
            height=float(y2 - y1),
            label=label,
            score=float(confidences[idx]),
        ))

    return records
