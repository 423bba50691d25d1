import json

import pytest

from lumina import analysis, config
from lumina.analysis import analyze_dataset, build_analysis_prompt, extract_table_from_image
from lumina.data_model import ChartType, Dataset
from lumina.errors import AnalysisError, EmptyDataError, ImageExtractionError


class FakeResponse:
    def __init__(self, text):
        self.text = text


class BlockedResponse:
    @property
    def text(self):
        raise ValueError("response has no parts")


class FakeModel:
    """Stands in for genai.GenerativeModel; records every prompt."""

    def __init__(self, reply="", exc=None):
        self.reply = reply
        self.exc = exc
        self.calls = []

    def generate_content(self, contents, generation_config=None):
        self.calls.append(contents)
        if self.exc:
            raise self.exc
        if isinstance(self.reply, str):
            return FakeResponse(self.reply)
        return self.reply


@pytest.fixture
def sales():
    return Dataset(tuple({"i": i, "region": "north" if i % 2 else "south", "cost": i * 1.5}
                         for i in range(50)), "sales.csv")


# ================== ANALYSIS ==================
def test_valid_payload_parsed(sales, analysis_payload):
    model = FakeModel(json.dumps(analysis_payload))
    result = analyze_dataset(sales, "sales.csv", model=model)
    assert result.headline == "Speed drives cost"
    assert result.key_insights == ("Faster is pricier", "Region B is an outlier")
    assert [c.type for c in result.charts] == [ChartType.BAR, ChartType.BOXPLOT]
    assert result.charts[0].y_axis_keys == ("cost",)
    assert result.charts[1].description == ""
    assert len(model.calls) == 1


def test_prompt_samples_first_thirty_rows(sales):
    prompt = build_analysis_prompt(sales, "sales.csv")
    assert '"sales.csv"' in prompt
    assert "i, region, cost" in prompt
    assert '"i": 29' in prompt
    assert '"i": 30' not in prompt
    assert config.NPG_PALETTE[0] in prompt


def test_fenced_json_is_accepted(sales, analysis_payload):
    reply = "```json\n" + json.dumps(analysis_payload) + "\n```"
    result = analyze_dataset(sales, "sales.csv", model=FakeModel(reply))
    assert len(result.charts) == 2


@pytest.mark.parametrize("reply, message", [
    ("", "No response from AI"),
    ("not json at all", "valid JSON"),
])
def test_unusable_reply(sales, reply, message):
    with pytest.raises(AnalysisError, match=message):
        analyze_dataset(sales, "sales.csv", model=FakeModel(reply))


def test_blocked_response_counts_as_empty(sales):
    with pytest.raises(AnalysisError, match="No response"):
        analyze_dataset(sales, "sales.csv", model=FakeModel(BlockedResponse()))


def test_missing_required_field(sales, analysis_payload):
    del analysis_payload["keyInsights"]
    with pytest.raises(AnalysisError, match="keyInsights"):
        analyze_dataset(sales, "sales.csv", model=FakeModel(json.dumps(analysis_payload)))


def test_unknown_chart_type(sales, analysis_payload):
    analysis_payload["charts"][0]["type"] = "HEATMAP"
    with pytest.raises(AnalysisError, match="HEATMAP"):
        analyze_dataset(sales, "sales.csv", model=FakeModel(json.dumps(analysis_payload)))


def test_lowercase_chart_type_accepted(sales, analysis_payload):
    analysis_payload["charts"][0]["type"] = "scatter"
    result = analyze_dataset(sales, "sales.csv", model=FakeModel(json.dumps(analysis_payload)))
    assert result.charts[0].type == ChartType.SCATTER


def test_request_failure_is_wrapped(sales):
    with pytest.raises(AnalysisError, match="quota"):
        analyze_dataset(sales, "sales.csv", model=FakeModel(exc=RuntimeError("quota exceeded")))


def test_missing_api_key(sales, monkeypatch):
    monkeypatch.setattr(config, "get_api_key", lambda: None)
    with pytest.raises(AnalysisError, match="GOOGLE_API_KEY"):
        analyze_dataset(sales, "sales.csv")
    assert analysis.get_model() is None


# ================== IMAGE EXTRACTION ==================
def test_image_rows_become_dataset():
    model = FakeModel('[{"Year": 2020, "Sales": 10}, {"Year": 2021, "Sales": 12}]')
    ds = extract_table_from_image(b"\x89PNG", "image/png", "table.png", model=model)
    assert ds.rows == ({"Year": 2020, "Sales": 10}, {"Year": 2021, "Sales": 12})
    assert ds.source == "table.png"
    part, prompt = model.calls[0]
    assert part == {"mime_type": "image/png", "data": b"\x89PNG"}
    assert prompt == analysis.IMAGE_PROMPT


@pytest.mark.parametrize("reply", ['{"Year": 2020}', "[1, 2, 3]", "garbage", ""])
def test_image_reply_not_an_array_of_objects(reply):
    with pytest.raises(ImageExtractionError):
        extract_table_from_image(b"img", "image/jpeg", model=FakeModel(reply))


def test_image_with_no_rows():
    with pytest.raises(EmptyDataError):
        extract_table_from_image(b"img", "image/jpeg", model=FakeModel("[]"))


def test_image_request_failure():
    with pytest.raises(ImageExtractionError, match="boom"):
        extract_table_from_image(b"img", "image/jpeg", model=FakeModel(exc=OSError("boom")))
