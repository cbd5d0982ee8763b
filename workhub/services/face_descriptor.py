"""
Face descriptor engine.

Turns the six facial landmarks reported by the detector into a 12-value shape
vector, averages enrolment captures into a template and compares a live
vector against the stored template.

Landmark order (BlazeFace): right eye, left eye, nose, mouth, right ear, left ear.

The descriptor is each landmark relative to the nose, divided by the distance
between the eyes, so it is independent of where the face sits in the frame
and of how large it is. Only the shape of the face remains.

Nothing in here raises on per-frame conditions (degenerate geometry, a stored
template in an older format); those return sentinel values so the polling
loop keeps running.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union, List

import numpy as np

logger = logging.getLogger(__name__)

LANDMARK_COUNT = 6
DESCRIPTOR_LENGTH = LANDMARK_COUNT * 2

RIGHT_EYE, LEFT_EYE, NOSE, MOUTH, RIGHT_EAR, LEFT_EAR = range(LANDMARK_COUNT)

# Euclidean distance below which two descriptors are the same person (empirical)
MATCH_THRESHOLD = 0.4

MIN_DETECTION_CONFIDENCE = 0.90
# Bounding-box area as a fraction of the frame
MIN_FACE_AREA = 0.02

Point = Tuple[float, float]


@dataclass(frozen=True)
class FaceDetection:
    """One detector prediction."""
    top_left: Point
    bottom_right: Point
    landmarks: Sequence[Point]
    probability: Union[float, Sequence[float]]
    # When given, box coordinates are pixels and are normalized by the frame size
    frame_width: Optional[float] = None
    frame_height: Optional[float] = None

    @property
    def score(self) -> float:
        if isinstance(self.probability, (int, float)):
            return float(self.probability)
        if self.probability is not None and len(self.probability) > 0:
            return float(self.probability[0])
        return 0.0

    @property
    def area_fraction(self) -> float:
        width = self.bottom_right[0] - self.top_left[0]
        height = self.bottom_right[1] - self.top_left[1]
        if self.frame_width and self.frame_height:
            width /= self.frame_width
            height /= self.frame_height
        return width * height


@dataclass(frozen=True)
class FaceMatch:
    is_match: bool
    confidence: float


@dataclass(frozen=True)
class FaceQuality:
    is_valid: bool
    message: str


def extract_descriptor(landmarks: Sequence[Point]) -> List[float]:
    """
    Build the 12-value descriptor from six landmarks.

    Returns a zero vector when both eyes are at the same point, since the
    scale reference is undefined there.

    Raises:
        ValueError: If landmarks is not six (x, y) pairs
    """
    points = np.asarray(landmarks, dtype=float)
    if points.shape != (LANDMARK_COUNT, 2):
        raise ValueError(
            f"Expected {LANDMARK_COUNT} landmarks of 2 coordinates, got shape {points.shape}"
        )

    eye_distance = float(np.linalg.norm(points[RIGHT_EYE] - points[LEFT_EYE]))
    if eye_distance == 0:
        return [0.0] * DESCRIPTOR_LENGTH

    relative = (points - points[NOSE]) / eye_distance
    return relative.reshape(-1).tolist()


def average_descriptors(descriptors: Sequence[Sequence[float]]) -> List[float]:
    """
    Element-wise mean of several captures (enrolment template).

    Raises:
        ValueError: If no descriptors are given or their lengths differ
    """
    if len(descriptors) == 0:
        raise ValueError("No descriptors provided")

    lengths = {len(d) for d in descriptors}
    if len(lengths) != 1:
        raise ValueError(f"Descriptors have differing lengths: {sorted(lengths)}")

    return np.mean(np.asarray(descriptors, dtype=float), axis=0).tolist()


def descriptor_distance(first: Sequence[float], second: Sequence[float]) -> float:
    """Euclidean distance; infinite when the lengths differ."""
    if len(first) != len(second):
        return math.inf
    return float(np.linalg.norm(np.asarray(first, dtype=float) - np.asarray(second, dtype=float)))


def compare_faces(stored: Sequence[float], live: Sequence[float]) -> FaceMatch:
    """
    Compare the stored template with a live descriptor.

    confidence = 1 - distance / sqrt(len), clamped at 0 and rounded to two
    decimals. A length mismatch (template from an older descriptor format)
    is never a match.
    """
    distance = descriptor_distance(stored, live)
    if math.isinf(distance) or len(stored) == 0:
        logger.warning(
            "Descriptor length mismatch (stored=%d, live=%d), treating as no match",
            len(stored), len(live),
        )
        return FaceMatch(is_match=False, confidence=0.0)

    max_distance = math.sqrt(len(stored))
    similarity = max(0.0, 1.0 - distance / max_distance)
    # half-up rounding to two places
    confidence = math.floor(similarity * 100 + 0.5) / 100

    return FaceMatch(is_match=distance < MATCH_THRESHOLD, confidence=confidence)


def validate_face_quality(detection: Optional[FaceDetection]) -> FaceQuality:
    """Reject low-confidence detections and faces that are too small (too far away)."""
    if detection is None:
        return FaceQuality(False, "No face detected")

    if detection.score < MIN_DETECTION_CONFIDENCE:
        return FaceQuality(False, "Face detection confidence too low. Please ensure good lighting")

    if detection.area_fraction < MIN_FACE_AREA:
        return FaceQuality(False, "Face too small. Please move closer to camera")

    # TODO: restore a "face too close" upper bound once a threshold is agreed with product
    return FaceQuality(True, "Face detected successfully")


def is_legacy_template(descriptor: Optional[Sequence[float]]) -> bool:
    """True for a stored template in an older format; the user must reset and re-enrol."""
    return bool(descriptor) and len(descriptor) != DESCRIPTOR_LENGTH


def is_valid_descriptor(descriptor) -> bool:
    """A list of DESCRIPTOR_LENGTH finite numbers."""
    if not isinstance(descriptor, (list, tuple)) or len(descriptor) != DESCRIPTOR_LENGTH:
        return False
    for value in descriptor:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return True
