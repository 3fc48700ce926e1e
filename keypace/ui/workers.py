"""Background submission of finished sessions."""

from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from keypace.core.errors import SubmissionError
from keypace.core.session import SessionResult
from keypace.core.submission import SubmissionReceipt, SubmissionService

logger = logging.getLogger(__name__)


class SubmitWorkerSignals(QObject):
    succeeded = Signal(object)
    failed = Signal(str)


class SubmitWorker(QRunnable):
    def __init__(self, service: SubmissionService, result: SessionResult, username: str) -> None:
        super().__init__()
        self.service = service
        self.result = result
        self.username = username
        self.signals = SubmitWorkerSignals()

    def run(self) -> None:
        try:
            receipt = self.service.submit(self.result, self.username)
        except SubmissionError as e:
            logger.warning("Submission failed: %s", e)
            self.signals.failed.emit(str(e))
            return
        except Exception as e:
            logger.exception("Unexpected error while submitting result")
            self.signals.failed.emit(str(e) or e.__class__.__name__)
            return
        self.signals.succeeded.emit(receipt)


def submit_in_background(
    service: SubmissionService,
    result: SessionResult,
    username: str,
    on_success: Callable[[SubmissionReceipt], None],
    on_failure: Callable[[str], None],
) -> SubmitWorkerSignals:
    """Queue a submission on the global thread pool.

    Callbacks are connected before the worker starts and run on the thread
    that owns the returned signals object; keep a reference to it until one
    of them fires.
    """
    worker = SubmitWorker(service, result, username)
    worker.signals.succeeded.connect(on_success)
    worker.signals.failed.connect(on_failure)
    QThreadPool.globalInstance().start(worker)
    return worker.signals
