"""
Face capture orchestration: enrolment and verification polling loops.

The camera and the detector model are injected:

* a *frame source* has ``read()`` (returns a frame, or None when no frame is
  ready yet) and ``stop()``;
* a *detector* is a callable ``detector(frame) -> list[FaceDetection]``,
  produced once by the loader given to ``DetectorHandle``.

Each session stops its frame source on every exit path (success, cancel,
close, error) and fires its completion callback at most once.
"""
import enum
import logging
import threading
import time
from typing import Any, Callable, List, Optional, Protocol, Sequence

from workhub.services.face_descriptor import (
    FaceDetection,
    average_descriptors,
    compare_faces,
    extract_descriptor,
    is_legacy_template,
    validate_face_quality,
)

logger = logging.getLogger(__name__)

ENROLLMENT_CAPTURES = 3
ENROLLMENT_COOLDOWN_SECONDS = 1.0
ENROLLMENT_POLL_INTERVAL = 0.3
VERIFICATION_POLL_INTERVAL = 0.5
LOW_CONFIDENCE = 0.2

Detector = Callable[[Any], List[FaceDetection]]


class FrameSource(Protocol):
    def read(self) -> Any: ...

    def stop(self) -> None: ...


class CaptureState(str, enum.Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"
    RESET_REQUIRED = "RESET_REQUIRED"


class DetectorHandle:
    """
    Lazily loaded detector model, shared by the sessions that hold this handle.

    The first ``get()`` loads the model; concurrent callers wait for that one
    load instead of starting their own. A failed load is not cached.
    """

    def __init__(self, loader: Callable[[], Detector]):
        self._loader = loader
        self._detector: Optional[Detector] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._detector is not None

    def get(self) -> Detector:
        detector = self._detector
        if detector is not None:
            return detector
        with self._lock:
            if self._detector is None:
                logger.info("Loading face detector model")
                self._detector = self._loader()
                logger.info("Face detector model loaded")
            return self._detector

    def reset(self) -> None:
        with self._lock:
            self._detector = None


class _CaptureSession:
    poll_interval = VERIFICATION_POLL_INTERVAL

    def __init__(self, handle: DetectorHandle, source: FrameSource):
        self.handle = handle
        self.source = source
        self.state = CaptureState.IDLE
        self.message = ""
        self._lock = threading.Lock()
        self._source_stopped = False

    @property
    def done(self) -> bool:
        return self.state not in (CaptureState.IDLE, CaptureState.RUNNING)

    def _detect(self) -> Optional[FaceDetection]:
        """One detector pass. Sets self.message and returns a usable detection or None."""
        frame = self.source.read()
        if frame is None:
            self.message = "Waiting for camera..."
            return None

        detections = self.handle.get()(frame)
        if not detections:
            self.message = "No face detected. Please position your face in the frame"
            return None

        detection = detections[0]
        quality = validate_face_quality(detection)
        if not quality.is_valid:
            self.message = quality.message
            return None
        return detection

    def process_frame(self) -> None:
        raise NotImplementedError

    def _finish(self, state: CaptureState) -> bool:
        """Move to a terminal state once; returns False if already finished."""
        with self._lock:
            if self.done:
                return False
            self.state = state
        self.close()
        return True

    def run(
        self,
        poll_interval: Optional[float] = None,
        max_frames: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CaptureState:
        """
        Poll the detector until the session finishes, is cancelled or max_frames is reached.

        Detector errors on a single frame are logged and polling continues.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        with self._lock:
            if self.state == CaptureState.IDLE:
                self.state = CaptureState.RUNNING
        frames = 0
        try:
            while self.state == CaptureState.RUNNING:
                try:
                    self.process_frame()
                except Exception:
                    logger.exception("Face detection error")
                frames += 1
                if self.state != CaptureState.RUNNING:
                    break
                if max_frames is not None and frames >= max_frames:
                    break
                sleep(interval)
        finally:
            if self.done:
                self.close()
        return self.state

    def cancel(self) -> None:
        if self._finish(CaptureState.CANCELLED):
            self.message = "Cancelled"

    def close(self) -> None:
        """Stop the frame source (idempotent)."""
        with self._lock:
            if self._source_stopped:
                return
            self._source_stopped = True
        try:
            self.source.stop()
        except Exception:
            logger.exception("Failed to stop frame source")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self.done:
            self.cancel()
        self.close()
        return False


class FaceEnrollmentSession(_CaptureSession):
    """Collect quality-checked captures, spaced by a cooldown, and average them into a template."""

    poll_interval = ENROLLMENT_POLL_INTERVAL

    def __init__(
        self,
        handle: DetectorHandle,
        source: FrameSource,
        captures_needed: int = ENROLLMENT_CAPTURES,
        cooldown_seconds: float = ENROLLMENT_COOLDOWN_SECONDS,
        on_complete: Optional[Callable[[List[float]], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(handle, source)
        if captures_needed < 1:
            raise ValueError("captures_needed must be at least 1")
        self.captures_needed = captures_needed
        self.cooldown_seconds = cooldown_seconds
        self.on_complete = on_complete
        self._clock = clock
        self._last_capture_at: Optional[float] = None
        self.captures: List[List[float]] = []
        self.template: Optional[List[float]] = None

    def process_frame(self) -> None:
        if self.done:
            return
        detection = self._detect()
        if detection is None:
            return

        now = self._clock()
        if self._last_capture_at is not None and now - self._last_capture_at < self.cooldown_seconds:
            return

        descriptor = extract_descriptor(detection.landmarks)
        if not any(descriptor):
            self.message = "Could not read face landmarks. Hold still..."
            return

        self.captures.append(descriptor)
        self._last_capture_at = now
        self.message = f"Captured {len(self.captures)}/{self.captures_needed}. Hold still..."

        if len(self.captures) >= self.captures_needed:
            self.template = average_descriptors(self.captures)
            if self._finish(CaptureState.SUCCEEDED):
                self.message = "Face recognition setup complete!"
                if self.on_complete is not None:
                    self.on_complete(self.template)


class FaceVerificationSession(_CaptureSession):
    """Compare live frames against a stored template; the first match latches success."""

    poll_interval = VERIFICATION_POLL_INTERVAL

    def __init__(
        self,
        handle: DetectorHandle,
        source: FrameSource,
        stored_descriptor: Optional[Sequence[float]],
        on_success: Optional[Callable[[], None]] = None,
    ):
        super().__init__(handle, source)
        self.stored_descriptor = (
            [float(v) for v in stored_descriptor]
            if stored_descriptor is not None and len(stored_descriptor) > 0
            else None
        )
        self.on_success = on_success
        self.confidence = 0.0

        if is_legacy_template(self.stored_descriptor):
            self.state = CaptureState.RESET_REQUIRED
            self.message = "Face data outdated (System Upgrade). Please reset."
            self.close()
        elif not self.stored_descriptor:
            self.state = CaptureState.FAILED
            self.message = "Face not enrolled. Please enroll first."
            self.close()

    def process_frame(self) -> None:
        if self.done:
            return
        detection = self._detect()
        if detection is None:
            return

        comparison = compare_faces(self.stored_descriptor, extract_descriptor(detection.landmarks))
        if self.done:
            return
        self.confidence = comparison.confidence

        if comparison.is_match:
            if self._finish(CaptureState.SUCCEEDED):
                self.message = f"Face verified! Confidence: {round(comparison.confidence * 100)}%"
                if self.on_success is not None:
                    self.on_success()
        elif comparison.confidence < LOW_CONFIDENCE:
            self.message = "Face not recognized"
        else:
            self.message = f"Verifying... {round(comparison.confidence * 100)}%"
