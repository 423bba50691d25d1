import pytest

from lumina.data_model import AnalysisResult, Dataset
from lumina.errors import AnalysisError, ReadFailureError
from lumina.session import (UNEXPECTED_ERROR, Step, UploadSession, load_dataset,
                            process_pasted_text, process_sample, process_upload)

REPORT = AnalysisResult(headline="h", summary="s")


def fake_analyze(dataset, file_name):
    return REPORT


def failing_analyze(dataset, file_name):
    raise AnalysisError("AI analysis failed to produce valid JSON")


@pytest.fixture
def session():
    return UploadSession()


def test_successful_upload_reaches_dashboard(session):
    state = process_upload(session, "t.csv", "text/csv", b"a,b\n1,2\n", analyze=fake_analyze)
    assert state.step == Step.DASHBOARD
    assert state.dataset.rows == ({"a": 1, "b": 2},)
    assert state.file_name == "t.csv"
    assert state.analysis is REPORT
    assert state.error is None and state.pending is None


def test_analysis_failure_returns_to_upload_with_message(session):
    state = process_upload(session, "t.csv", "text/csv", b"a\n1\n", analyze=failing_analyze)
    assert state.step == Step.UPLOAD
    assert state.error == "AI analysis failed to produce valid JSON"
    assert state.analysis is None


def test_empty_csv_is_an_error(session):
    state = process_upload(session, "t.csv", "text/csv", b"a,b\n", analyze=fake_analyze)
    assert state.step == Step.UPLOAD
    assert state.error == "Dataset appears to be empty."


def test_invalid_json_message(session):
    state = process_upload(session, "t.json", "application/json", b"{oops", analyze=fake_analyze)
    assert state.error == "Invalid JSON file"


def test_images_go_to_extractor(session):
    seen = {}

    def extract(content, mime_type, name):
        seen.update(content=content, mime=mime_type, name=name)
        return Dataset(({"x": 1},), name)

    state = process_upload(session, "shot.png", "image/png", b"png-bytes",
                           analyze=fake_analyze, extract=extract)
    assert seen == {"content": b"png-bytes", "mime": "image/png", "name": "shot.png"}
    assert state.step == Step.DASHBOARD


def test_load_dataset_rejects_empty_extraction():
    with pytest.raises(Exception, match="empty"):
        load_dataset("x.png", "image/png", b"", extract=lambda *a: Dataset())


def test_unexpected_exception_gets_generic_message(session):
    def broken(dataset, file_name):
        raise KeyError("boom")

    state = process_upload(session, "t.csv", "text/csv", b"a\n1\n", analyze=broken)
    assert state.step == Step.UPLOAD
    assert state.error == UNEXPECTED_ERROR


def test_stale_result_is_discarded(session):
    first = session.begin("old.csv")
    second = session.begin("new.csv")
    assert not session.complete(first, Dataset(({"a": 1},)), REPORT)
    assert session.state.step == Step.PROCESSING
    assert session.state.pending == second
    assert session.complete(second, Dataset(({"a": 2},)), REPORT)
    assert session.state.dataset.rows == ({"a": 2},)
    assert session.state.file_name == "new.csv"


def test_stale_failure_is_discarded(session):
    first = session.begin("old.csv")
    session.begin("new.csv")
    assert not session.fail(first, "late")
    assert session.state.error is None


def test_reset_drops_in_flight_request(session):
    tag = session.begin("t.csv")
    session.reset()
    assert not session.complete(tag, Dataset(({"a": 1},)), REPORT)
    assert session.state.step == Step.UPLOAD
    assert session.state.dataset.rows == ()


def test_reset_from_dashboard_clears_everything(session):
    process_upload(session, "t.csv", "text/csv", b"a\n1\n", analyze=fake_analyze)
    session.reset()
    state = session.state
    assert (state.step, state.file_name, state.analysis, state.error) == (Step.UPLOAD, None, None, None)


def test_dismiss_error(session):
    process_upload(session, "t.csv", "text/csv", b"", analyze=fake_analyze)
    assert session.state.error
    session.dismiss_error()
    assert session.state.error is None
    assert session.state.step == Step.UPLOAD


def test_new_upload_clears_previous_error(session):
    process_upload(session, "t.csv", "text/csv", b"", analyze=fake_analyze)
    session.begin("u.csv")
    assert session.state.error is None


# ================== PASTE / SAMPLE ==================
def test_blank_paste_is_ignored(session):
    state = process_pasted_text(session, "   \n ", analyze=fake_analyze)
    assert state.step == Step.UPLOAD
    assert state.pending is None


def test_pasted_json(session):
    state = process_pasted_text(session, ' [{"a": 1}] ', analyze=fake_analyze)
    assert state.step == Step.DASHBOARD
    assert state.file_name == "raw_input.json"
    assert state.dataset.rows == ({"a": 1},)


def test_pasted_csv(session):
    state = process_pasted_text(session, "a,b\n1,2", analyze=fake_analyze)
    assert state.file_name == "raw_input.csv"
    assert state.dataset.rows == ({"a": 1, "b": 2},)


def test_sample_dataset(session):
    def fetch(url):
        return "iris.csv", "sepal_length,species\n5.1,setosa\n"

    state = process_sample(session, "https://example.org/data/iris.csv", analyze=fake_analyze, fetch=fetch)
    assert state.step == Step.DASHBOARD
    assert state.file_name == "iris.csv"
    assert state.dataset.rows == ({"sepal_length": 5.1, "species": "setosa"},)


def test_sample_download_failure(session):
    def fetch(url):
        raise ReadFailureError(f"Could not load sample CSV from {url}")

    state = process_sample(session, "https://example.org/x.csv", analyze=fake_analyze, fetch=fetch)
    assert state.step == Step.UPLOAD
    assert state.error == "Could not load sample CSV from https://example.org/x.csv"


# ================== UPLOADER DEDUPE ==================
def test_same_upload_is_processed_once(session):
    assert session.is_new_upload("file-1")
    assert not session.is_new_upload("file-1")
    assert session.is_new_upload("file-2")


def test_failed_upload_can_be_resubmitted(session):
    assert session.is_new_upload("file-1")
    process_upload(session, "t.csv", "text/csv", b"a\n1\n", analyze=failing_analyze)
    assert session.state.error
    # uploader cleared, then the same file added again
    assert not session.is_new_upload(None)
    assert session.is_new_upload("file-1")


def test_reset_forgets_last_upload(session):
    session.is_new_upload("file-1")
    session.reset()
    assert session.is_new_upload("file-1")
