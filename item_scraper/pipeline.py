"""
Ordered fallback pipelines.

A pipeline is a list of (stage_name, step) pairs. Each step returns a
(value, error) tuple, matching the fetch helpers. Stages run in order
until one yields a value; every attempt is recorded so callers and tests
can see which stage produced the result and why earlier ones failed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Step = Callable[[], Tuple[Any, Optional[str]]]


@dataclass
class StageResult:
    stage: str
    ok: bool
    value: Any = None
    error: Optional[str] = None


@dataclass
class PipelineResult:
    ok: bool
    value: Any = None
    stage: Optional[str] = None
    attempts: List[StageResult] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [f"{a.stage}: {a.error}" for a in self.attempts if not a.ok]


def run_fallbacks(stages: Sequence[Tuple[str, Step]]) -> PipelineResult:
    """Run stages in order and stop at the first one that returns a value."""
    attempts = []

    for name, step in stages:
        try:
            value, error = step()
        except Exception as e:
            # Steps are expected not to raise; an escaping error only ends this stage
            logger.exception(f"Stage {name} raised unexpectedly")
            value, error = None, str(e)

        if value:
            attempts.append(StageResult(stage=name, ok=True, value=value))
            return PipelineResult(ok=True, value=value, stage=name, attempts=attempts)

        attempts.append(StageResult(stage=name, ok=False, error=error or 'no result'))

    return PipelineResult(ok=False, attempts=attempts)
