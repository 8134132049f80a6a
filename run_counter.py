"""
People Counter Demo
===================

Counts people crossing a video in one horizontal direction, offline.

Architecture:
- YOLO (ultralytics) -> supervision Detections -> DetectionRecords
- passline_tracking: PersonTracker + CrossingEvaluator + CrossingCounter
- Frame clock taken from the video frame rate (staleness in video time)
"""

import argparse
import logging

import supervision as sv
from ultralytics import YOLO

from passline_tracking import PipelineBuilder, records_from_supervision

VIDEO_PATH = "./data/videos/people-walking.mp4"


def main():
    parser = argparse.ArgumentParser(description="Count people crossing a video")
    parser.add_argument("--video", default=VIDEO_PATH)
    parser.add_argument("--model", default="yolo11n.pt")
    parser.add_argument("--direction", default="forward", choices=["forward", "reverse"])
    parser.add_argument("--sensitivity", type=float, default=100)
    parser.add_argument("--move-threshold", type=float, default=20)
    parser.add_argument("--stride", type=int, default=2, help="Process every Nth frame")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    # 1. Load detection model
    model = YOLO(args.model)

    # 2. Video info drives the frame clock
    video_info = sv.VideoInfo.from_video_path(args.video)
    frame_ms = 1000.0 / (video_info.fps or 25)

    # 3. Build pipeline
    pipeline = (
        PipelineBuilder()
        .with_direction(args.direction)
        .with_sensitivity(args.sensitivity)
        .with_move_threshold(args.move_threshold)
        .with_frame_interval(args.stride)
        .with_listener(
            lambda event: print(
                f"  ➡️  track {event.track_id} crossed "
                f"({event.displacement:+.1f}px at {event.timestamp / 1000:.1f}s)"
            )
        )
        .build()
    )

    # 4. Process video
    print(f"Counting {args.direction} crossings in {args.video}")
    for index, frame in enumerate(sv.get_video_frames_generator(args.video)):
        if not pipeline.sampler.should_process():
            continue
        detections = sv.Detections.from_ultralytics(model(frame, verbose=False)[0])
        pipeline.process(
            records_from_supervision(detections, class_names=model.names),
            now=index * frame_ms,
        )

    # 5. Results
    snapshot = pipeline.snapshot()
    print(f"\nProcessed {pipeline.frames_processed} of {pipeline.sampler.raw_frames} frames")
    print(f"Result: {snapshot.stats}")


if __name__ == "__main__":
    main()
