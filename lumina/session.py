"""
Upload orchestration for the dashboard.

``UploadSession`` tracks which step the UI is on and tags every upload
with an increasing sequence number.  A result is only applied while its
tag is still the pending one, so a late response from an upload the user
has since reset or replaced is dropped.
"""
import itertools
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from . import config
from .analysis import analyze_dataset, extract_table_from_image
from .data_model import AnalysisResult, Dataset
from .errors import EmptyDataError, LuminaError
from .parser import fetch_sample_csv, parse_upload, pasted_source

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred during analysis."


class Step(str, Enum):
    UPLOAD = "upload"
    PROCESSING = "processing"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class DashboardState:
    step: Step = Step.UPLOAD
    dataset: Dataset = Dataset()
    file_name: Optional[str] = None
    analysis: Optional[AnalysisResult] = None
    error: Optional[str] = None
    pending: Optional[int] = None


class UploadSession:
    def __init__(self):
        self.state = DashboardState()
        self._tags = itertools.count(1)
        self._seen_upload = None

    def begin(self, file_name: str) -> int:
        tag = next(self._tags)
        self.state = replace(self.state, step=Step.PROCESSING, file_name=file_name, error=None, pending=tag)
        return tag

    def is_current(self, tag: int) -> bool:
        return self.state.pending == tag

    def complete(self, tag: int, dataset: Dataset, analysis: AnalysisResult) -> bool:
        if not self.is_current(tag):
            logger.info("Discarding stale result for request %d (pending: %s)", tag, self.state.pending)
            return False
        self.state = DashboardState(step=Step.DASHBOARD, dataset=dataset, file_name=self.state.file_name,
                                    analysis=analysis)
        return True

    def fail(self, tag: int, message: str) -> bool:
        if not self.is_current(tag):
            logger.info("Discarding stale failure for request %d", tag)
            return False
        self.state = replace(self.state, step=Step.UPLOAD, error=message, pending=None)
        return True

    def reset(self):
        self.state = DashboardState()
        self._seen_upload = None

    def is_new_upload(self, upload_id) -> bool:
        """True the first time an uploader value is seen.

        ``None`` (the uploader was cleared) forgets the last one, so removing
        a file and adding it again processes it again.
        """
        if upload_id is None:
            self._seen_upload = None
            return False
        if upload_id == self._seen_upload:
            return False
        self._seen_upload = upload_id
        return True

    def dismiss_error(self):
        self.state = replace(self.state, error=None)


def load_dataset(name: str, mime_type: str, content, extract=extract_table_from_image) -> Dataset:
    """Parse a file, or hand images to the extractor; an empty result is an error."""
    if (mime_type or "").startswith("image/"):
        dataset = extract(content, mime_type, name)
    else:
        dataset = parse_upload(name, mime_type, content)
    if not dataset:
        raise EmptyDataError("Dataset appears to be empty.")
    return dataset


def _run(session: UploadSession, name: str, load, analyze) -> DashboardState:
    """Load, analyze and apply under one request tag; errors become a single message."""
    tag = session.begin(name)
    try:
        dataset = load()
        analysis = analyze(dataset, name)
    except LuminaError as exc:
        logger.warning("Upload of %s failed: %s", name, exc)
        session.fail(tag, str(exc) or UNEXPECTED_ERROR)
        return session.state
    except Exception:
        logger.exception("Unexpected failure while processing %s", name)
        session.fail(tag, UNEXPECTED_ERROR)
        return session.state
    session.complete(tag, dataset, analysis)
    return session.state


def process_upload(session: UploadSession, name: str, mime_type: str, content,
                   analyze=analyze_dataset, extract=extract_table_from_image) -> DashboardState:
    return _run(session, name, lambda: load_dataset(name, mime_type, content, extract=extract), analyze)


def process_pasted_text(session: UploadSession, text: str, **kwargs) -> DashboardState:
    if not text or not text.strip():
        return session.state
    name, mime = pasted_source(text)
    return process_upload(session, name, mime, text.strip(), **kwargs)


def process_sample(session: UploadSession, url: str = config.SAMPLE_CSV_URL,
                   analyze=analyze_dataset, fetch=fetch_sample_csv) -> DashboardState:
    """Download the sample CSV and run it through the same path as an upload."""
    def load():
        name, text = fetch(url)
        return load_dataset(name, "text/csv", text)
    return _run(session, url.rsplit("/", 1)[-1] or "sample.csv", load, analyze)
