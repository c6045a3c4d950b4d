"""Looping animation preview driven by one-shot scheduler jobs."""

from __future__ import annotations

import enum
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from stereogram_animator.models import AnimationSequence, Frame

LOGGER = logging.getLogger(__name__)

STEP_JOB_ID = "animation_step"


class PlayerState(enum.Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


class AnimationPlayer:
    """Show frames one after another, wrapping around, until stopped.

    Every step displays the current frame and schedules the next step
    ``frame_interval_ms`` later. `stop` flags the current playback token;
    a step that wakes up after that returns without rescheduling, and the
    pending job is removed from the scheduler.
    """

    def __init__(
        self,
        display: Callable[[Frame], None],
        *,
        scheduler: Optional[Any] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.display = display
        self.logger = logger or LOGGER
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self._lock = threading.Lock()
        self._token: Optional[threading.Event] = None
        self._job = None
        self._sequence: Optional[AnimationSequence] = None
        self.state = PlayerState.STOPPED
        self.current_frame = 0

    @property
    def is_playing(self) -> bool:
        return self.state is PlayerState.PLAYING

    def play(self, sequence: AnimationSequence) -> None:
        """Start looping ``sequence`` from its first frame; empty sequences are ignored."""
        if len(sequence) == 0:
            self.logger.info("Nothing to preview: animation has no frames")
            return

        self.stop()
        token = threading.Event()
        with self._lock:
            self._sequence = sequence
            self._token = token
            self.current_frame = 0
            self.state = PlayerState.PLAYING

        if not self._scheduler.running:
            self._scheduler.start()

        self.logger.info(
            "Previewing %s frames every %s ms",
            len(sequence),
            sequence.frame_interval_ms,
        )
        self._step(token)

    def stop(self) -> None:
        with self._lock:
            if self.state is PlayerState.STOPPED:
                return
            self.state = PlayerState.STOPPED
            if self._token is not None:
                self._token.set()
            job, self._job = self._job, None

        if job is not None:
            try:
                job.remove()
            except JobLookupError:
                self.logger.debug("Preview step already ran or was removed")
        self.logger.info("Preview stopped")

    def shutdown(self) -> None:
        """Stop playback and shut down the scheduler if this player created it."""
        self.stop()
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def _step(self, token: threading.Event) -> None:
        with self._lock:
            if self.state is not PlayerState.PLAYING or token.is_set() or token is not self._token:
                return
            sequence = self._sequence
            frame = sequence.frames[self.current_frame]
            self.current_frame = (self.current_frame + 1) % len(sequence)

        self.display(frame)

        with self._lock:
            if self.state is not PlayerState.PLAYING or token.is_set():
                return
            run_at = datetime.now() + timedelta(milliseconds=sequence.frame_interval_ms)
            self._job = self._scheduler.add_job(
                self._step,
                trigger=DateTrigger(run_date=run_at),
                args=[token],
                id=STEP_JOB_ID,
                name="Preview Step",
                replace_existing=True,
                max_instances=1,
            )


__all__ = ["AnimationPlayer", "PlayerState"]
