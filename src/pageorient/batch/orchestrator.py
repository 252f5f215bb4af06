from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace

from tqdm import tqdm

from pageorient.batch.cancellation import CancellationToken
from pageorient.batch.continuity import propagate_continuous_rotation
from pageorient.batch.state import BatchOutcome, BatchRunState, BatchStatus
from pageorient.config import BatchConfig
from pageorient.exceptions import BatchCancelled, OrientationRequestError
from pageorient.rotation import apply_rotation_delta, get_page_rotation, rotation_delta
from pageorient.types import OrientationResponse, PageFailure

logger = logging.getLogger(__name__)

DetectPage = Callable[[int, float], OrientationResponse]
RotationCallback = Callable[[int, int], None]

TIMEOUT_ERROR_CODE = "ocr_timeout"
SYSTEMIC_ERROR_CODES = frozenset({"ocr_disabled", "network_error"})
CANCEL_POLL_SECONDS = 0.05

RotationChange = tuple[int, int]


def _apply_absolute_rotation(
    state: BatchRunState, page: int, target_rotation: int
) -> tuple[BatchRunState, RotationChange | None]:
    delta = rotation_delta(get_page_rotation(state.rotation_map, page), target_rotation)
    if delta == 0:
        return state, None

    corrected_pages = state.corrected_pages
    if page not in corrected_pages:
        corrected_pages = tuple(sorted((*corrected_pages, page)))

    updated_state = replace(
        state,
        rotation_map=apply_rotation_delta(state.rotation_map, page, delta),
        corrected_pages=corrected_pages,
    )
    return updated_state, (page, delta)


def advance_state(
    state: BatchRunState,
    page: int,
    response: OrientationResponse,
) -> tuple[BatchRunState, list[RotationChange]]:
    """Fold one page's detection result into the run state."""
    changes: list[RotationChange] = []

    if response.rotation is not None:
        state, change = _apply_absolute_rotation(state, page, response.rotation)
        if change is not None:
            changes.append(change)

        state, forced_rotations = propagate_continuous_rotation(
            state, page, response.rotation, response.likelihood
        )
        for forced_page, forced_rotation in forced_rotations.items():
            state, change = _apply_absolute_rotation(state, forced_page, forced_rotation)
            if change is not None:
                changes.append(change)

    advanced_state = replace(
        state,
        current_index=state.current_index + 1,
        processed=state.processed + 1,
    )
    return advanced_state, changes


def record_failure(state: BatchRunState, failure: PageFailure) -> BatchRunState:
    return replace(
        state,
        current_index=state.current_index + 1,
        processed=state.processed + 1,
        failures=(*state.failures, failure),
    )


def build_summary(state: BatchRunState) -> str | None:
    if state.processed <= 1:
        return None

    summary = (
        f"Processed {state.processed} pages: {len(state.corrected_pages)} rotated, "
        f"{len(state.failures)} failed"
    )
    if state.failures:
        summary += f" (e.g. page {state.failures[0].page})"
    return summary


class BatchOrientationOrchestrator:
    def __init__(
        self,
        detect_page: DetectPage,
        *,
        config: BatchConfig | None = None,
        on_rotation: RotationCallback | None = None,
        show_progress: bool = False,
    ) -> None:
        self.detect_page = detect_page
        self.config = config or BatchConfig()
        self.on_rotation = on_rotation
        self.show_progress = show_progress
        self.status = BatchStatus.IDLE

    def run(
        self,
        state: BatchRunState,
        cancel_token: CancellationToken | None = None,
    ) -> BatchOutcome:
        token = cancel_token or CancellationToken()
        self.status = BatchStatus.RUNNING

        progress_bar = tqdm(
            total=len(state.target_pages),
            initial=state.current_index,
            desc="Detecting",
            unit="page",
            disable=not self.show_progress,
        )

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pageorient-detect")
        try:
            while not state.is_finished:
                if token.cancelled:
                    return self._finish(BatchStatus.CANCELLED, state)

                page = state.current_page
                progress_bar.set_postfix(page=page)

                try:
                    response = self._detect_with_retry(executor, page, token)
                except BatchCancelled:
                    return self._finish(BatchStatus.CANCELLED, state)
                except OrientationRequestError as request_error:
                    if token.cancelled:
                        return self._finish(BatchStatus.CANCELLED, state)
                    if request_error.code in SYSTEMIC_ERROR_CODES:
                        logger.error(
                            "batch_stopped page=%d code=%s message=%s",
                            page,
                            request_error.code,
                            request_error.message,
                        )
                        return self._finish(
                            BatchStatus.FAILED, state, error=request_error.message
                        )
                    state = self._record_page_failure(state, page, request_error)
                    progress_bar.update(1)
                    continue
                except (OSError, LookupError) as page_error:
                    state = self._record_page_failure(state, page, page_error)
                    progress_bar.update(1)
                    continue

                if token.cancelled:
                    return self._finish(BatchStatus.CANCELLED, state)

                state, changes = advance_state(state, page, response)
                for changed_page, delta in changes:
                    if self.on_rotation is not None:
                        self.on_rotation(changed_page, delta)
                progress_bar.update(1)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
            progress_bar.close()

        return self._finish(BatchStatus.COMPLETED, state)

    def _detect_with_retry(
        self, executor: ThreadPoolExecutor, page: int, token: CancellationToken
    ) -> OrientationResponse:
        base_scale = self.config.render_scale
        try:
            return self._call_abortable(executor, page, base_scale, token)
        except OrientationRequestError as request_error:
            if not (request_error.retryable and request_error.code == TIMEOUT_ERROR_CODE):
                raise
            token.raise_if_cancelled()
            retry_scale = base_scale * self.config.retry_scale_factor
            logger.info("page_retry page=%d scale=%.2f", page, retry_scale)
            return self._call_abortable(executor, page, retry_scale, token)

    def _call_abortable(
        self,
        executor: ThreadPoolExecutor,
        page: int,
        scale: float,
        token: CancellationToken,
    ) -> OrientationResponse:
        """Run one detection call, giving up on it as soon as the token fires.

        An abandoned call keeps running on its worker thread until it returns
        on its own; its result is dropped.
        """
        future = executor.submit(self.detect_page, page, scale)
        while True:
            try:
                return future.result(timeout=CANCEL_POLL_SECONDS)
            except FutureTimeoutError:
                if token.cancelled:
                    future.cancel()
                    logger.info("page_call_abandoned page=%d", page)
                    token.raise_if_cancelled()

    @staticmethod
    def _record_page_failure(
        state: BatchRunState, page: int, error: Exception
    ) -> BatchRunState:
        if isinstance(error, OrientationRequestError):
            failure = PageFailure(
                page=page,
                message=error.message,
                code=error.code,
                retryable=error.retryable,
            )
        else:
            failure = PageFailure(page=page, message=str(error))
        logger.warning(
            "page_detection_failed page=%d code=%s message=%s",
            page,
            failure.code,
            failure.message,
        )
        return record_failure(state, failure)

    def _finish(
        self,
        status: BatchStatus,
        state: BatchRunState,
        error: str | None = None,
    ) -> BatchOutcome:
        self.status = status
        summary = build_summary(state)
        if status is BatchStatus.CANCELLED:
            logger.info(
                "batch_cancelled index=%d remaining=%d",
                state.current_index,
                len(state.remaining_pages),
            )
        elif summary is not None:
            logger.info("batch_finished status=%s %s", status.value, summary)
        return BatchOutcome(status=status, state=state, summary=summary, error=error)
