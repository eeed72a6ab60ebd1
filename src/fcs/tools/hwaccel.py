"""Hardware video encoder detection.

AccelerationDetector decides once which hardware H.264 encoder, if any, the
configured ffmpeg can actually use. The result is cached on the detector
instance; the service creates one detector and injects it wherever encoder
selection is needed.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from fcs.domain.enums import HardwareEncoder
from fcs.domain.models import EncoderChoice
from fcs.tools.detection import probe_encoder

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[str, str], bool]

# Probe order; the first encoder that works wins
PROBE_ORDER: tuple[HardwareEncoder, ...] = (
    HardwareEncoder.VIDEOTOOLBOX,
    HardwareEncoder.NVENC,
    HardwareEncoder.AMF,
    HardwareEncoder.QSV,
)

VALID_PREFERENCES: frozenset[str] = frozenset(
    {"auto"} | {encoder.vendor for encoder in HardwareEncoder}
)


class AccelerationDetector:
    """Detects and caches the usable hardware encoder.

    Detection runs at most once per instance. Concurrent callers of
    detect() block on the same lock; exactly one of them runs the probe
    sequence and all of them observe its result.

    Example:
        detector = AccelerationDetector("ffmpeg")
        choice = detector.detect()
        if choice.is_hardware:
            print(choice.encoder.value)
    """

    def __init__(
        self,
        ffmpeg_path: str | Path = "ffmpeg",
        *,
        enabled: bool = True,
        auto_detect: bool = True,
        preferred: str = "auto",
        probe: ProbeFunc | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            ffmpeg_path: Path or command name of the ffmpeg executable.
            enabled: Whether hardware acceleration may be used at all.
            auto_detect: Whether to probe the full encoder list. When False,
                only a concrete ``preferred`` vendor is probed.
            preferred: "auto" or a vendor key (videotoolbox, nvenc, amf, qsv).
                A vendor key is probed before the others.
            probe: Callable ``(ffmpeg_path, encoder_name) -> bool`` used to
                test an encoder. Defaults to a real ffmpeg test encode.

        Raises:
            ValueError: If ``preferred`` is not a known vendor key.
        """
        preferred = preferred.strip().lower()
        if preferred not in VALID_PREFERENCES:
            raise ValueError(
                f"preferred must be one of {sorted(VALID_PREFERENCES)}, "
                f"got {preferred!r}"
            )
        self.ffmpeg_path = str(ffmpeg_path)
        self.enabled = enabled
        self.auto_detect = auto_detect
        self.preferred = preferred
        self._probe = probe or probe_encoder
        self._lock = threading.Lock()
        self._choice: EncoderChoice | None = None

    @property
    def probe_order(self) -> tuple[HardwareEncoder, ...]:
        """Encoders in the order they will be probed."""
        preferred = HardwareEncoder.from_vendor(self.preferred)
        if preferred is None:
            return PROBE_ORDER
        return (preferred,) + tuple(e for e in PROBE_ORDER if e is not preferred)

    def cached_choice(self) -> EncoderChoice | None:
        """Return the cached choice, or None if detection has not run."""
        return self._choice

    def detect(self) -> EncoderChoice:
        """Return the usable hardware encoder, probing on first call.

        Never raises. Probe failures of any kind count as "encoder
        unavailable".

        Returns:
            The cached EncoderChoice.
        """
        # Fast path: already detected
        choice = self._choice
        if choice is not None:
            return choice

        with self._lock:
            # Double-check after acquiring lock
            if self._choice is not None:
                return self._choice
            self._choice = self._resolve()
            return self._choice

    def status_message(self) -> str:
        """Human-readable acceleration status, detecting if needed."""
        if not self.enabled:
            return "GPU acceleration disabled"
        choice = self.detect()
        if choice.encoder is not None:
            return f"GPU acceleration enabled: {choice.encoder.value}"
        return "GPU acceleration not available"

    def _resolve(self) -> EncoderChoice:
        if not self.enabled:
            logger.info("Hardware acceleration disabled by configuration")
            return EncoderChoice(None, "disabled")

        if not self.auto_detect:
            preferred = HardwareEncoder.from_vendor(self.preferred)
            if preferred is None:
                logger.info("Auto-detection disabled, using software encoding")
                return EncoderChoice(None, "auto-detect disabled")
            if self._usable(preferred):
                logger.info("Using preferred encoder %s", preferred.value)
                return EncoderChoice(preferred, "preferred")
            logger.warning(
                "Preferred encoder %s failed its probe, using software encoding",
                preferred.value,
            )
            return EncoderChoice(None, "preferred encoder unavailable")

        logger.info("Detecting hardware video encoders...")
        for encoder in self.probe_order:
            if self._usable(encoder):
                logger.info("Hardware encoder available: %s", encoder.value)
                return EncoderChoice(encoder, "probed")

        logger.info("No hardware encoder available, using software encoding")
        return EncoderChoice(None, "no encoder passed probe")

    def _usable(self, encoder: HardwareEncoder) -> bool:
        try:
            usable = self._probe(self.ffmpeg_path, encoder.value)
        except Exception as e:
            # A failing probe only rules out its own encoder
            logger.debug("Probe for %s raised: %s", encoder.value, e)
            return False
        if not usable:
            logger.debug("Hardware encoder unavailable: %s", encoder.value)
        return bool(usable)
