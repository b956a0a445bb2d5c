"""Apply a caller-supplied estimator to bootstrap resamples.

The engine draws all resamples up front, invokes the estimator once per
resample and collects the results into a :class:`ReplicateSet`. A failing or
timed-out estimator call is recorded as a missing replicate and never aborts
the run. Progress is observable through a callback and a pollable counter,
and a run can be cancelled, in which case the replicates finalized so far are
returned with ``partial=True``.

Estimator calls run sequentially, in resample-id order, unless the caller
opts into up to ``BootstrapConfig(n_jobs=...)`` concurrent worker threads.
Only do that for estimators that are reentrant and touch no shared state.
"""

from __future__ import annotations

import logging
import math
import numbers
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..errors import EstimatorFailure, EstimatorTimeout, InvalidInput, RunCancelled
from .resampling import Resample, as_dataset, draw_resamples, materialize, validate_run_size

logger = logging.getLogger(__name__)

DEFAULT_N_ITERATIONS = 100
DEFAULT_SERIES_NAME = "estimate"
_POLL_INTERVAL = 0.05

Estimator = Callable[[pd.DataFrame], Any]
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class BootstrapConfig:
    """Execution settings for one bootstrap run.

    Attributes:
        n_jobs: Number of worker threads. ``1`` keeps the sequential loop.
        timeout: Per-call time limit in seconds, or ``None`` for no limit.
        series_name: Name used for scalar estimates.
    """

    n_jobs: int = 1
    timeout: Optional[float] = None
    series_name: str = DEFAULT_SERIES_NAME

    def __post_init__(self) -> None:
        if isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, numbers.Integral):
            raise InvalidInput(f"n_jobs must be an integer, got {self.n_jobs!r}.")
        if self.n_jobs < 1:
            raise InvalidInput(f"n_jobs must be >= 1, got {self.n_jobs}.")
        if self.timeout is not None and not (float(self.timeout) > 0):
            raise InvalidInput(f"timeout must be positive, got {self.timeout!r}.")


@dataclass(eq=False)
class ReplicateSet:
    """Estimates from one bootstrap run, keyed by resample id.

    ``estimates`` has one row per finalized resample (index ``resample_id``)
    and one column per estimate series. Missing replicates are NaN rows and
    their reasons are kept in ``failures``.
    """

    estimates: pd.DataFrame
    n_requested: int
    partial: bool = False
    failures: Dict[int, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return int(len(self.estimates))

    @property
    def names(self) -> list[str]:
        return [str(c) for c in self.estimates.columns]

    @property
    def n_completed(self) -> int:
        return len(self)

    @property
    def n_missing(self) -> int:
        return len(self.failures)

    @property
    def n_usable(self) -> int:
        """Rows where every estimate series is present."""
        if self.estimates.empty:
            return 0
        return int(self.estimates.notna().all(axis=1).sum())

    def series(self, name: str | None = None) -> pd.Series:
        """Return one estimate series, missing replicates included as NaN."""
        if name is None:
            if len(self.names) != 1:
                raise InvalidInput(
                    f"Replicate set has series {self.names}; pass a name."
                )
            name = self.names[0]
        if name not in self.estimates.columns:
            raise InvalidInput(f"No estimate series named '{name}'; have {self.names}.")
        return self.estimates[name]

    def usable(self, name: str | None = None) -> np.ndarray:
        values = self.series(name).to_numpy(dtype=float)
        return values[np.isfinite(values)]

    def raise_if_partial(self) -> None:
        if self.partial:
            raise RunCancelled(
                f"Bootstrap run cancelled after {self.n_completed} of "
                f"{self.n_requested} iterations.",
                completed=self.n_completed,
                total=self.n_requested,
            )

    def to_frame(self) -> pd.DataFrame:
        """Flat table with ``resample_id``, one column per series and ``failure``."""
        out = self.estimates.copy()
        out["failure"] = [self.failures.get(int(i), "") for i in out.index]
        return out.reset_index()


def _normalize_estimate(value: Any, series_name: str) -> Dict[str, float]:
    """Turn an estimator return value into ``{series name: float}``."""
    if isinstance(value, pd.Series):
        return {str(k): float(v) for k, v in value.items()}
    if isinstance(value, Mapping):
        return {str(k): float(v) for k, v in value.items()}
    if isinstance(value, np.ndarray) and value.ndim == 1 and value.size != 1:
        return {f"{series_name}_{i}": float(v) for i, v in enumerate(value)}
    if isinstance(value, (list, tuple)):
        return {f"{series_name}_{i}": float(v) for i, v in enumerate(value)}
    return {series_name: float(np.asarray(value, dtype=float).reshape(-1)[0])}


@dataclass(frozen=True)
class _Outcome:
    resample_id: int
    values: Optional[Dict[str, float]]
    failure: Optional[str] = None


class BootstrapRun:
    """One bootstrap run over a fixed dataset and estimator.

    The run can be driven from one thread while another polls
    :attr:`completed` or calls :meth:`cancel`.

    Args:
        data: Dataset (DataFrame, Series, array or sequence of row mappings).
            Never mutated.
        estimator: ``f(resampled_frame) -> float | Mapping[str, float] | Series``.
        n_iterations: Number of resamples ``N``.
        seed: Seed for resampling.
        rng: Caller-managed generator; overrides ``seed``.
        config: Execution settings.
        progress: Optional ``progress(completed, total)`` callback.
        cancel_event: Optional event shared with the caller for cancellation.

    Raises:
        InvalidInput: If the dataset is empty or ``n_iterations < 1``.
    """

    def __init__(
        self,
        data: Any,
        estimator: Estimator,
        n_iterations: int = DEFAULT_N_ITERATIONS,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        config: BootstrapConfig | None = None,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ):
        if not callable(estimator):
            raise InvalidInput("estimator must be callable.")
        self.data = as_dataset(data)
        validate_run_size(len(self.data), n_iterations)
        self.estimator = estimator
        self.n_iterations = int(n_iterations)
        self.config = config or BootstrapConfig()
        self.progress = progress
        self._cancel = cancel_event or threading.Event()
        self._lock = threading.Lock()
        self._values: Dict[int, Dict[str, float]] = {}
        self._failures: Dict[int, str] = {}
        self._finished = False
        self.resamples: list[Resample] = draw_resamples(
            len(self.data), self.n_iterations, seed=seed, rng=rng
        )

    @property
    def total(self) -> int:
        return self.n_iterations

    @property
    def completed(self) -> int:
        with self._lock:
            return len(self._values) + len(self._failures)

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop invoking the estimator; finalized replicates are kept."""
        self._cancel.set()

    def _invoke(self, resample: Resample) -> _Outcome:
        frame = materialize(self.data, resample)
        try:
            value = self.estimator(frame)
            values = _normalize_estimate(value, self.config.series_name)
        except Exception as exc:
            reason = f"{EstimatorFailure.__name__}: {type(exc).__name__}: {exc}"
            logger.debug("Resample %d failed: %s", resample.resample_id, reason)
            return _Outcome(resample.resample_id, None, reason)
        return _Outcome(resample.resample_id, values)

    def _timeout_outcome(self, resample_id: int) -> _Outcome:
        reason = (
            f"{EstimatorTimeout.__name__}: exceeded {float(self.config.timeout):g}s"
        )
        logger.debug("Resample %d timed out", resample_id)
        return _Outcome(resample_id, None, reason)

    def _record(self, outcome: _Outcome) -> None:
        with self._lock:
            if outcome.values is None:
                self._failures[outcome.resample_id] = outcome.failure or "missing"
            else:
                self._values[outcome.resample_id] = outcome.values
            done = len(self._values) + len(self._failures)
        if self.progress is not None:
            self.progress(done, self.n_iterations)

    def _invoke_with_timeout(self, resample: Resample) -> _Outcome:
        if self.config.timeout is None:
            return self._invoke(resample)
        # A timed-out call cannot be killed; its worker is abandoned.
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._invoke, resample)
        try:
            return future.result(timeout=float(self.config.timeout))
        except FutureTimeout:
            return self._timeout_outcome(resample.resample_id)
        finally:
            executor.shutdown(wait=False)

    def _run_sequential(self) -> None:
        for resample in self.resamples:
            if self._cancel.is_set():
                break
            self._record(self._invoke_with_timeout(resample))

    def _run_pool(self) -> None:
        # Each call gets its own worker so a timed-out call frees its slot;
        # n_jobs bounds the calls being waited on, not the abandoned ones.
        queue = list(self.resamples)
        running: Dict[Future, Tuple[int, float, ThreadPoolExecutor]] = {}
        try:
            while (queue or running) and not self._cancel.is_set():
                while queue and len(running) < self.config.n_jobs:
                    resample = queue.pop(0)
                    executor = ThreadPoolExecutor(max_workers=1)
                    future = executor.submit(self._invoke, resample)
                    running[future] = (resample.resample_id, time.monotonic(), executor)

                done, _ = wait(
                    list(running), timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED
                )
                for future in done:
                    _, _, executor = running.pop(future)
                    executor.shutdown(wait=False)
                    self._record(future.result())

                if self.config.timeout is None:
                    continue
                now = time.monotonic()
                for future, (resample_id, t0, executor) in list(running.items()):
                    if now - t0 > float(self.config.timeout):
                        del running[future]
                        executor.shutdown(wait=False)
                        self._record(self._timeout_outcome(resample_id))
        finally:
            for future, (_, _, executor) in running.items():
                future.cancel()
                executor.shutdown(wait=False)

    def snapshot(self, partial: bool | None = None) -> ReplicateSet:
        """Return a consistent copy of the replicates finalized so far."""
        with self._lock:
            values = dict(self._values)
            failures = dict(self._failures)

        ids = sorted(set(values) | set(failures))
        names: list[str] = []
        for resample_id in ids:
            for name in values.get(resample_id, {}):
                if name not in names:
                    names.append(name)
        if not names:
            names = [self.config.series_name]

        rows = [
            [values.get(resample_id, {}).get(name, math.nan) for name in names]
            for resample_id in ids
        ]
        estimates = pd.DataFrame(
            rows,
            index=pd.Index(ids, name="resample_id", dtype=int),
            columns=names,
            dtype=float,
        )
        if partial is None:
            partial = len(ids) < self.n_iterations
        return ReplicateSet(
            estimates=estimates,
            n_requested=self.n_iterations,
            partial=bool(partial),
            failures={rid: failures[rid] for rid in sorted(failures)},
        )

    def run(self) -> ReplicateSet:
        """Invoke the estimator on every resample and return the replicate set.

        Raises:
            InvalidInput: If the run has already been executed.
        """
        if self._finished:
            raise InvalidInput("BootstrapRun objects can only be run once.")
        self._finished = True

        start = time.monotonic()
        logger.info(
            "Starting bootstrap: %d iterations over %d rows (n_jobs=%d)",
            self.n_iterations,
            len(self.data),
            self.config.n_jobs,
        )
        if self.config.n_jobs == 1:
            self._run_sequential()
        else:
            self._run_pool()

        replicates = self.snapshot(partial=self.completed < self.n_iterations)
        if replicates.partial:
            logger.warning(
                "Bootstrap cancelled after %d of %d iterations",
                replicates.n_completed,
                self.n_iterations,
            )
        if replicates.n_missing:
            logger.warning(
                "%d of %d bootstrap replicates are missing (estimator failure or timeout)",
                replicates.n_missing,
                replicates.n_completed,
            )
        logger.info(
            "Bootstrap finished in %.2f seconds: %d usable replicates",
            time.monotonic() - start,
            replicates.n_usable,
        )
        return replicates


def run_bootstrap(
    data: Any,
    estimator: Estimator,
    n_iterations: int = DEFAULT_N_ITERATIONS,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    config: BootstrapConfig | None = None,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> ReplicateSet:
    """Run a nonparametric bootstrap and return its replicate set.

    Convenience wrapper around :class:`BootstrapRun` for callers that do not
    need to poll or cancel from another thread. Cancellation is still
    possible through ``cancel_event`` or from within ``progress``.
    """
    return BootstrapRun(
        data,
        estimator,
        n_iterations,
        seed=seed,
        rng=rng,
        config=config,
        progress=progress,
        cancel_event=cancel_event,
    ).run()
