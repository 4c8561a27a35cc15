"""Sequential asyncio pipeline over options.

A ``Pipeline`` lifts plain transformations through ``option.map`` and runs
each one as its own background task. Stages are connected by
``asyncio.Queue`` hand-offs, so outputs come out in exactly the order inputs
went in. An ``Absent`` input flows through every stage without invoking any
transformation.

Example:
    ```python
    async with Pipeline(lambda x: x != 0).then(str) as p:
        await p.send(option.present(1))
        out = await p.receive()  # Present(value="True")
    ```
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Final, Self

from matchkit import option
from matchkit.config import resolve_settings
from matchkit.errors import PipelineClosedError, PipelineError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from matchkit.option import Option

log = logging.getLogger(__name__)

# End-of-stream marker, forwarded by every stage after its last item
_END: Final = object()


@dataclasses.dataclass(frozen=True, slots=True)
class _StageFailure:
    """Takes the place of an output whose transformation raised."""

    stage_name: str
    error: Exception


@dataclasses.dataclass(slots=True)
class _Stage:
    """One worker: reads its inbox, transforms, writes its outbox."""

    name: str
    transform: Callable[[Any], Any]
    inbox: asyncio.Queue[Any]
    outbox: asyncio.Queue[Any]

    async def run(self) -> None:
        log.debug("Stage %r started", self.name)
        processed = 0
        while True:
            item = await self.inbox.get()
            if item is _END:
                await self.outbox.put(_END)
                break
            if isinstance(item, _StageFailure):
                # Upstream failure keeps its slot so ordering is preserved
                await self.outbox.put(item)
                continue
            try:
                out: Any = option.map(self.transform, item)
            except Exception as e:
                log.warning("Stage %r failed on item %d: %s", self.name, processed, e)
                out = _StageFailure(self.name, e)
            await self.outbox.put(out)
            processed += 1
        log.debug("Stage %r drained after %d item(s)", self.name, processed)


def _stage_name(transform: Callable[..., Any], index: int, prefix: str | None) -> str:
    label = getattr(transform, "__qualname__", None) or type(transform).__name__
    name = f"stage{index}:{label}"
    return name if prefix is None else f"{prefix}.{name}"


class Pipeline[T, U]:
    """Chain of transformations run by background tasks, one per stage.

    Inputs are ``Option`` values sent with ``send``; outputs are read with
    ``receive`` or ``async for`` in the same order. ``close`` announces that
    no more inputs will follow; the output ends once everything already sent
    has been processed.

    Use the pipeline as an async context manager (or call ``aclose``) so the
    worker tasks are released. Leaving the block normally closes the input
    and waits for the workers, discarding outputs nobody received; leaving it
    with an exception cancels the workers.

    A transformation that raises does not stop its stage. The output for that
    item is replaced by a ``PipelineError`` raised from ``receive``; the
    following items are processed normally.
    """

    def __init__(
        self,
        transform: Callable[[T], U],
        *more: Callable[[Any], Any],
        maxsize: int | None = None,
        name: str | None = None,
    ) -> None:
        """Create a pipeline with one stage per transformation.

        Args:
            transform: The first stage's transformation.
            *more: Further transformations, applied in order.
            maxsize: Capacity of every hand-off queue; ``0`` is unbounded.
                Defaults to the resolved ``queue_maxsize`` setting.
            name: Optional label prefixed to every stage name and task name,
                for telling pipelines apart in logs.

        Raises:
            ConfigurationError: If ``maxsize`` is negative.
        """
        overrides = {} if maxsize is None else {"queue_maxsize": maxsize}
        self._settings = resolve_settings(overrides)
        self._name = name
        self._transforms: tuple[Callable[[Any], Any], ...] = (transform, *more)
        self._stages: list[_Stage] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._started = False
        self._input_closed = False
        self._output_closed = asyncio.Event()
        self._finished = False

    @property
    def name(self) -> str | None:
        """Label given at construction, if any."""
        return self._name

    @property
    def stage_names(self) -> tuple[str, ...]:
        """Return the stage names in execution order."""
        return tuple(
            _stage_name(t, i, self._name) for i, t in enumerate(self._transforms)
        )

    @property
    def maxsize(self) -> int:
        """Capacity of each hand-off queue (``0`` means unbounded)."""
        return self._settings.queue_maxsize

    def then[V](self, step: Callable[[U], V] | Pipeline[U, V]) -> Pipeline[T, V]:
        """Return a new pipeline with ``step`` appended as further stage(s).

        ``step`` may be a plain transformation or another, not yet started,
        pipeline whose stages are appended in order. Neither pipeline is
        modified; the new one keeps this pipeline's name and queue size.

        Raises:
            PipelineClosedError: If either pipeline has already started.
        """
        self._ensure_not_started("then")
        if isinstance(step, Pipeline):
            step._ensure_not_started("then")
            extra = step._transforms
        else:
            extra = (step,)
        return Pipeline(
            *self._transforms, *extra, maxsize=self.maxsize, name=self._name
        )

    def _ensure_not_started(self, operation: str) -> None:
        if self._started:
            raise PipelineClosedError(
                f"Cannot call {operation}() on a pipeline that has started",
                hint="Compose pipelines before sending the first input.",
            )

    def _start(self) -> None:
        if self._started:
            return
        self._started = True
        queues: list[asyncio.Queue[Any]] = [
            asyncio.Queue(maxsize=self.maxsize) for _ in range(len(self._transforms) + 1)
        ]
        for i, (name, transform) in enumerate(
            zip(self.stage_names, self._transforms, strict=True)
        ):
            stage = _Stage(name, transform, queues[i], queues[i + 1])
            self._stages.append(stage)
            self._tasks.append(
                asyncio.create_task(stage.run(), name=f"matchkit-{name}")
            )
        log.debug("Pipeline started with %d stage(s)", len(self._stages))

    @property
    def _inbox(self) -> asyncio.Queue[Any]:
        return self._stages[0].inbox

    @property
    def _outbox(self) -> asyncio.Queue[Any]:
        return self._stages[-1].outbox

    async def start(self) -> Self:
        """Spawn the stage tasks; ``send`` and ``receive`` do this on demand."""
        self._start()
        return self

    async def send(self, item: Option[T]) -> None:
        """Submit an input; waits while a bounded hand-off queue is full.

        Raises:
            PipelineClosedError: If ``close`` was already called.
            InvariantViolationError: If ``item`` is not an ``Option``.
        """
        if self._input_closed:
            raise PipelineClosedError("Cannot send to a closed pipeline")
        option.dispatch(item, lambda _: None, lambda: None)
        self._start()
        await self._inbox.put(item)

    async def close(self) -> None:
        """Signal that no more inputs will be sent. Idempotent."""
        if self._input_closed:
            return
        self._input_closed = True
        self._start()
        await self._inbox.put(_END)

    async def receive(self) -> Option[U]:
        """Return the next output, waiting for it to be computed.

        Raises:
            PipelineError: If a stage's transformation raised for this item.
            PipelineClosedError: If the pipeline was closed and fully drained.
        """
        if self._output_closed.is_set():
            raise PipelineClosedError("Pipeline output is exhausted")
        self._start()
        item = await self._next_output()
        if item is _END:
            raise PipelineClosedError("Pipeline output is exhausted")
        if isinstance(item, _StageFailure):
            raise PipelineError(str(item.error), item.stage_name, item.error)
        return item

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> Option[U]:
        try:
            return await self.receive()
        except PipelineClosedError:
            raise StopAsyncIteration from None

    async def _next_output(self) -> Any:
        """Take the next item from the last queue, or ``_END`` once output is closed.

        Whoever takes ``_END`` off the queue sets ``_output_closed``, which
        also releases any other reader still waiting on ``get()``.
        """
        if self._output_closed.is_set():
            return _END
        getter = asyncio.create_task(self._outbox.get())
        closed = asyncio.create_task(self._output_closed.wait())
        try:
            done, _ = await asyncio.wait(
                {getter, closed}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            getter.cancel()
            closed.cancel()
        if getter not in done:
            return _END
        item = getter.result()
        if item is _END:
            self._output_closed.set()
        return item

    async def _drain(self) -> int:
        discarded = 0
        while await self._next_output() is not _END:
            discarded += 1
        return discarded

    async def aclose(self) -> None:
        """Close the input, drain unreceived outputs and await every stage.

        Safe to call more than once.
        """
        if self._finished:
            return
        if not self._started:
            self._input_closed = True
            self._output_closed.set()
            self._finished = True
            return
        # Drain concurrently: with bounded queues close() may wait for room
        drain = asyncio.create_task(self._drain())
        await self.close()
        discarded = await drain
        await asyncio.gather(*self._tasks)
        self._finished = True
        if discarded and self._settings.log_discarded_outputs:
            log.debug("Pipeline closed with %d unreceived output(s)", discarded)

    async def _cancel(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._input_closed = True
        self._output_closed.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        log.debug("Pipeline cancelled with %d stage(s)", len(self._tasks))

    async def __aenter__(self) -> Self:
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self.aclose()
        else:
            await self._cancel()


__all__ = ["Pipeline"]
