"""
YOLO person detector.

Runs one ultralytics model on a frame and converts the result into
DetectionRecords through supervision. Class filtering is left to the
tracker (target_label), so every detection is returned.
"""

import logging
from typing import Any, List

import numpy as np
import supervision as sv

from passline_processor.config import ModelConfig
from passline_tracking.sources import DetectionRecord, records_from_supervision

logger = logging.getLogger(__name__)


class YoloPersonDetector:
    """
    Frame -> List[DetectionRecord].

    The model is any callable with the ultralytics predict signature
    (``model(image, verbose=..., conf=..., iou=..., max_det=...)``).

    Usage:
        model = ModelLoader(models_dir).load_model_from_config(model_config)
        detector = YoloPersonDetector(model, model_config)
        records = detector.detect(frame)
    """

    def __init__(self, model: Any, model_config: ModelConfig):
        self.model = model
        self.model_config = model_config

    def detect_supervision(self, frame: np.ndarray) -> sv.Detections:
        results = self.model(
            frame,
            verbose=False,
            conf=self.model_config.confidence,
            iou=self.model_config.iou_threshold,
            max_det=self.model_config.max_detections,
        )[0]
        return sv.Detections.from_ultralytics(results)

    def detect(self, frame: np.ndarray) -> List[DetectionRecord]:
        detections = self.detect_supervision(frame)
        records = records_from_supervision(
            detections, class_names=getattr(self.model, "names", None)
        )
        logger.debug(f"Detected {len(records)} object(s)")
        return records
