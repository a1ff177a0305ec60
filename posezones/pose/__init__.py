"""
Pose estimation adapters.

This package defines a model-agnostic PoseFrame interface and provider adapters
(e.g., MediaPipe Pose) so the zone engine never depends on a specific model.
"""
