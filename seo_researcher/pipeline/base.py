import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..errors import PipelineCancelled, PipelineError
from ..fetchers.base import BaseFetcher
from .context import SeoContext

logger = logging.getLogger(__name__)


class MergeMode(Enum):
    OVERWRITE = "overwrite"  # replace the field
    UNION = "union"  # set union / dict update / list union keeping order
    EXTEND = "extend"  # append to a sequence


ParamsBuilder = Callable[[SeoContext], Mapping[str, Any]]
Transform = Callable[[SeoContext], Dict[str, Any]]


@dataclass(frozen=True)
class StageDescriptor:
    """
    Static configuration of one pipeline stage.

    A stage either has a ``fetcher`` (with ``params`` deriving its query from
    the context) or a pure ``transform`` over existing context fields.
    ``merge_strategy`` picks a MergeMode per field; unlisted fields overwrite.
    """

    name: str
    fetcher: Optional[BaseFetcher] = None
    params: Optional[ParamsBuilder] = None
    transform: Optional[Transform] = None
    merge_strategy: Mapping[str, MergeMode] = field(default_factory=dict)

    def __post_init__(self):
        if self.fetcher is not None and self.params is None:
            raise ValueError(f"Stage {self.name} has a fetcher but no params builder")
        if self.fetcher is None and self.transform is None:
            raise ValueError(f"Stage {self.name} needs a fetcher or a transform")

    def mode_for(self, name: str) -> MergeMode:
        return self.merge_strategy.get(name, MergeMode.OVERWRITE)


def merge_value(mode: MergeMode, current: Any, new: Any) -> Any:
    """Fold ``new`` into ``current`` without mutating either."""
    if mode is MergeMode.OVERWRITE or current is None:
        return new
    if mode is MergeMode.UNION:
        if isinstance(current, (set, frozenset)):
            return set(current) | set(new)
        if isinstance(current, dict):
            return {**current, **new}
        if isinstance(current, list):
            return list(current) + [item for item in new if item not in current]
    if mode is MergeMode.EXTEND and isinstance(current, list):
        return list(current) + list(new)
    raise TypeError(f"Cannot {mode.value}-merge {type(current).__name__}")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class StageExecutor:
    """Runs one stage against the shared context with all-or-nothing merging."""

    async def run(self, stage: StageDescriptor, context: SeoContext) -> SeoContext:
        """
        Execute ``stage`` and merge its output into ``context``.

        A log line with the stage name, outcome and timestamp is appended on
        every exit path. Fetcher errors propagate with nothing merged.
        """
        outcome = "cancelled"
        try:
            if stage.fetcher is None:
                fragment = stage.transform(context)
            else:
                params = stage.params(context)
                result = await stage.fetcher.fetch(params)
                fragment = result.to_fragment()

            merged = {
                name: merge_value(stage.mode_for(name), context.get(name), value)
                for name, value in fragment.items()
            }
            context.apply(merged)
            outcome = "success"
            return context
        except Exception as e:
            outcome = f"failure: {type(e).__name__}: {e}"
            raise
        finally:
            context.append_log(f"{_timestamp()} {stage.name} {outcome}")


class PipelineStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PipelineRun:
    """State machine of a single pipeline execution.

    PENDING -> RUNNING(0) -> ... -> RUNNING(n-1) -> COMPLETED, or
    RUNNING(i) -> FAILED(i, error) / CANCELLED(i, error). Terminal states are final.
    """

    context: SeoContext
    stage_names: List[str]
    status: PipelineStatus = PipelineStatus.PENDING
    stage_index: Optional[int] = None
    error: Optional[PipelineError] = None
    completed_stages: List[str] = field(default_factory=list)

    def _require(self, *allowed: PipelineStatus) -> None:
        if self.status not in allowed:
            raise RuntimeError(f"Illegal pipeline transition from {self.status.value}")

    def start(self) -> None:
        self._require(PipelineStatus.PENDING)
        if self.stage_names:
            self.status = PipelineStatus.RUNNING
            self.stage_index = 0
        else:
            self.status = PipelineStatus.COMPLETED

    def advance(self) -> None:
        self._require(PipelineStatus.RUNNING)
        self.completed_stages.append(self.stage_names[self.stage_index])
        if self.stage_index == len(self.stage_names) - 1:
            self.status = PipelineStatus.COMPLETED
        else:
            self.stage_index += 1

    def fail(self, error: PipelineError) -> None:
        self._require(PipelineStatus.RUNNING)
        self.status = PipelineStatus.FAILED
        self.error = error

    def cancel(self, error: PipelineError) -> None:
        self._require(PipelineStatus.RUNNING)
        self.status = PipelineStatus.CANCELLED
        self.error = error

    @property
    def succeeded(self) -> bool:
        return self.status is PipelineStatus.COMPLETED

    def raise_for_error(self) -> None:
        """Raise the stored ``PipelineError`` if the run did not complete."""
        if self.error is not None:
            raise self.error


class Pipeline:
    """Fixed, ordered chain of stages run sequentially. Immutable - with_stage() returns new pipeline."""

    def __init__(
        self,
        stages: List[StageDescriptor] | None = None,
        executor: StageExecutor | None = None,
    ):
        self.stages = list(stages or [])
        self.executor = executor or StageExecutor()

    async def execute(
        self, context: SeoContext, cancel_event: asyncio.Event | None = None
    ) -> PipelineRun:
        """
        Run every stage in order against ``context``.

        The first failure halts the run; already merged fields are kept and
        the partial context travels with the ``PipelineError``. The context is
        frozen once the run terminates.

        Args:
            context: Fresh context for this run (a reused context is rejected)
            cancel_event: Checked before each stage; once set, no further stage starts

        Returns:
            PipelineRun in a terminal state
        """
        context.claim()
        run = PipelineRun(context=context, stage_names=[s.name for s in self.stages])
        run.start()

        try:
            while run.status is PipelineStatus.RUNNING:
                index = run.stage_index
                stage = self.stages[index]

                if cancel_event is not None and cancel_event.is_set():
                    logger.warning(f"⏹  Pipeline cancelled before stage {stage.name}")
                    run.cancel(
                        PipelineError(index, stage.name, PipelineCancelled("cancelled"), context)
                    )
                    break

                logger.info(f"▶ Stage {index + 1}/{len(self.stages)}: {stage.name}")
                try:
                    await self.executor.run(stage, context)
                except Exception as e:
                    logger.error(f"❌ Stage {stage.name} failed: {e}")
                    run.fail(PipelineError(index, stage.name, e, context))
                    break
                run.advance()
        except asyncio.CancelledError as e:
            run.cancel(PipelineError(run.stage_index, self.stages[run.stage_index].name, e, context))
            raise
        finally:
            context.freeze()

        if run.succeeded:
            logger.info(f"✅ Pipeline completed ({len(self.stages)} stages)")
        return run

    def with_stage(self, stage: StageDescriptor) -> "Pipeline":
        """
        Return new pipeline with stage appended.

        Creates a new pipeline, leaves the original unchanged.
        """
        return Pipeline(self.stages + [stage], executor=self.executor)

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        stage_names = [s.name for s in self.stages]
        return f"Pipeline(stages={stage_names})"
