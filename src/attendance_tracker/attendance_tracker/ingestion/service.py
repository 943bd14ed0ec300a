from __future__ import annotations

import contextlib
import logging
from typing import Callable, ContextManager, Optional, Sequence

from ..common.cache import StatsCache
from ..common.datetime_utils import monotonic_ms
from ..common.retry import RetryPolicy
from ..core.exceptions import IngestionError, ValidationError, WorkbookParseError
from ..spreadsheets.model import ParsedSheet
from ..spreadsheets.parser import SheetParser
from .committer import BulkCommitter
from .model import BatchResult, FileResult, IngestionPolicy, UploadedFile, UploadMetrics
from .reconciler import EntityReconciler

logger = logging.getLogger(__name__)


class IngestionService:
    """Upload driver: parse each file, then reconcile and commit it.

    Files are handled one after another and each is committed in its own
    transaction, so a failing file never rolls back an earlier one. The
    reconcile + commit sequence of a file is re-run from scratch by
    ``retry_policy`` on transient database errors.
    """

    def __init__(
        self,
        parser: SheetParser,
        reconciler: EntityReconciler,
        committer: BulkCommitter,
        *,
        cache: StatsCache,
        retry_policy: Optional[RetryPolicy] = None,
        transaction: Callable[[], ContextManager] = contextlib.nullcontext,
        policy: Optional[IngestionPolicy] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self._parser = parser
        self._reconciler = reconciler
        self._committer = committer
        self._cache = cache
        self._retry = retry_policy or RetryPolicy(max_attempts=1)
        self._transaction = transaction
        self._policy = policy or IngestionPolicy()
        self._clock = clock

    def ingest(self, user_id: str, sheet: ParsedSheet) -> UploadMetrics:
        """Commit an already parsed sheet for ``user_id``; raises on hard failure."""

        def attempt() -> UploadMetrics:
            started = self._clock()
            with self._transaction():
                resolved = self._reconciler.reconcile(user_id, sheet)
                result = self._committer.commit(user_id, sheet.attendance, resolved)
            return UploadMetrics(
                courses_new=resolved.courses_new,
                courses_existing=resolved.courses_existing,
                students_new=resolved.students_new,
                students_existing=resolved.students_existing,
                total_in_file=result.total_in_file,
                inserted=result.inserted,
                skipped_min_periods=result.skipped_min_periods,
                skipped_duplicate=result.skipped_duplicate,
                processing_time_ms=int(round(self._clock() - started)),
            )

        metrics = self._retry.run(attempt, description=f"Upload of {sheet.filename}")
        if metrics.changed:
            self._cache.invalidate(user_id)
        return metrics

    def process_file(self, user_id: str, filename: str, content: bytes) -> FileResult:
        started = self._clock()
        logger.info("Starting processing for file: %s", filename)

        def failed(message: str) -> FileResult:
            return FileResult(
                name=filename,
                success=False,
                elapsed_ms=int(round(self._clock() - started)),
                error=message,
            )

        try:
            sheet = self._parser.parse(content, filename)
        except ValidationError as exc:
            logger.warning("Rejected %s: %s", filename, exc)
            return failed(str(exc))
        except WorkbookParseError as exc:
            logger.error("Could not parse %s: %s", filename, exc)
            return failed(f"Failed to process: {filename}")
        except Exception:
            logger.exception("Unexpected error while parsing %s", filename)
            return failed(f"Failed to process: {filename}")

        try:
            metrics = self.ingest(user_id, sheet)
        except Exception:
            logger.exception("Upload of %s failed", filename)
            return failed(str(IngestionError(filename)))

        elapsed = int(round(self._clock() - started))
        logger.info(
            "Finished %s in %d ms: courses %d new / %d existing, students %d new / %d existing, "
            "attendance total=%d inserted=%d skipped(<%d)=%d duplicate=%d",
            filename,
            elapsed,
            metrics.courses_new,
            metrics.courses_existing,
            metrics.students_new,
            metrics.students_existing,
            metrics.total_in_file,
            metrics.inserted,
            self._policy.min_conducted_periods,
            metrics.skipped_min_periods,
            metrics.skipped_duplicate,
        )
        return FileResult(name=filename, success=True, elapsed_ms=elapsed, metrics=metrics)

    def process_batch(self, user_id: str, files: Sequence[UploadedFile]) -> BatchResult:
        if not files:
            raise ValidationError("No files selected")
        if len(files) > self._policy.max_files:
            raise ValidationError(f"Maximum {self._policy.max_files} files allowed at once")

        started = self._clock()
        results = [self.process_file(user_id, f.filename, f.content) for f in files]
        errors = [r.error or f"Failed to process: {r.name}" for r in results if not r.success]
        processed = sum(1 for r in results if r.success)
        total_elapsed = int(round(self._clock() - started))
        logger.info("Total processing time for this upload: %d ms", total_elapsed)

        if processed:
            message = f"Successfully processed {processed} file(s)."
            if errors:
                message += f" {len(errors)} file(s) had errors."
            return BatchResult(
                success=True,
                message=message,
                files=results,
                errors=errors,
                total_elapsed_ms=total_elapsed,
            )

        message = "No files were processed successfully."
        if errors:
            message += " Errors: " + "; ".join(errors[:3])
        return BatchResult(success=False, message=message, files=results, errors=errors, total_elapsed_ms=total_elapsed)
