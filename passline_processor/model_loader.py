"""
Model Loader - YOLO model loading and caching.

Loads ultralytics YOLO weights from a models directory and keeps them
cached by (version, variant, input_size, format).

Thread Safety:
- NOT thread-safe (single writer pattern)
- Loaded once at startup by the service, before the processing thread runs
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from ultralytics import YOLO

from passline_processor.config import ModelConfig


class ModelLoader:
    """
    YOLO model loader with in-memory caching.

    Usage:
        loader = ModelLoader(models_dir=Path("./models"))
        model = loader.load_model_from_config(ModelConfig(model_variant="s"))

        loader.get_current_model_info()
        loader.list_available_models()
    """

    def __init__(self, models_dir: Path):
        self.models_dir = Path(models_dir)
        self._cache: Dict[tuple, YOLO] = {}
        self._current_key: Optional[tuple] = None

    def load_model_from_config(self, config: ModelConfig) -> YOLO:
        """
        Load (or reuse) the model described by config.

        Raises:
            FileNotFoundError: If the weights file does not exist
        """
        cache_key = (
            config.model_version,
            config.model_variant,
            config.input_size,
            config.model_format,
        )

        model = self._cache.get(cache_key)
        if model is None:
            model_path = self.models_dir / config.get_model_filename()
            if not model_path.exists():
                available = self.list_available_models()
                raise FileNotFoundError(
                    f"Model file not found: {model_path}\n"
                    f"Available models:\n"
                    + ("\n".join(f"  - {m}" for m in available) or "  (none)")
                )

            model = YOLO(str(model_path))
            model.overrides["verbose"] = False
            model.overrides["imgsz"] = config.input_size
            self._cache[cache_key] = model

        # Thresholds are per-config, not cached
        model.overrides["conf"] = config.confidence
        model.overrides["iou"] = config.iou_threshold

        self._current_key = cache_key
        return model

    def get_current_model(self) -> Optional[YOLO]:
        if self._current_key is None:
            return None
        return self._cache[self._current_key]

    def get_current_model_info(self) -> Optional[Dict[str, Any]]:
        """
        Returns:
            Dict with version, variant, input_size, format; None if no model loaded
        """
        if self._current_key is None:
            return None

        version, variant, input_size, model_format = self._current_key
        return {
            "version": version,
            "variant": variant,
            "input_size": input_size,
            "format": model_format,
        }

    def list_available_models(self) -> List[str]:
        """Sorted YOLO11/12 weight files found in models_dir."""
        if not self.models_dir.is_dir():
            return []

        return sorted(
            f.name
            for pattern in ("yolo1[12]*.pt", "yolo1[12]*.onnx")
            for f in self.models_dir.glob(pattern)
            if f.is_file()
        )

    def clear_cache(self) -> None:
        self._cache.clear()
        self._current_key = None

    def cache_size(self) -> int:
        return len(self._cache)
