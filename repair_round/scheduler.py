import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class ScheduledCall:
    remaining: int
    callback: Callable[[], None]
    name: str = ""
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self):
        return not (self.cancelled or self.fired)

    def cancel(self):
        self.cancelled = True


@dataclass
class Scheduler:
    """Fire-and-forget callbacks counted in steps, driven by `tick()`."""

    calls: list = field(default_factory=list)

    def schedule(self, delay_steps, callback, name=""):
        call = ScheduledCall(remaining=max(0, int(delay_steps)), callback=callback, name=name)
        self.calls.append(call)
        return call

    def tick(self, steps=1):
        for _ in range(steps):
            for call in list(self.calls):
                if not call.pending:
                    continue
                call.remaining -= 1
                if call.remaining <= 0:
                    call.fired = True
                    logger.debug("Firing scheduled call %s", call.name or call.callback)
                    call.callback()
            self.calls = [c for c in self.calls if c.pending]

    def cancel_all(self):
        for call in self.calls:
            call.cancel()
        self.calls = []

    @property
    def pending(self):
        return [c for c in self.calls if c.pending]
