"""
Gemini collaborators: narrative analysis of a dataset sample and
table extraction from an image.

Both accept an optional ``model`` (anything with ``generate_content``)
so callers and tests can supply their own client.
"""
import json
import logging

import google.generativeai as genai

from . import config
from .data_model import AnalysisResult, Dataset
from .errors import AnalysisError, EmptyDataError, ImageExtractionError
from .values import to_jsonable

logger = logging.getLogger(__name__)

# ================== LLM PROMPTS ==================
SYSTEM_INSTRUCTION = (
    "You are a rigorous scientific assistant. Your output must be clean JSON. "
    "Your tone is academic, precise, and insightful."
)

ANALYSIS_PROMPT = """
You are a Chief Data Scientist and Editor for a top-tier scientific journal (like Nature or Science).
I have a dataset named "{file_name}".
The columns are: {columns}.
Here is a sample of the data (first {sample_size} rows):
{sample_json}

Your task is to analyze this data and generate a publication-ready report.

1. Headline: a single, punchy sentence capturing the most surprising or important finding (max 15 words).
2. Summary: an abstract-style executive summary in an academic, objective tone.
3. Key Insights: 3-5 key observations.
4. Visualizations: suggest 4-6 distinctive charts ("Figure 1", "Figure 2", ...).
   - Chart titles should be concise (e.g. "Correlation between Speed and Cost").
   - BAR/LINE/AREA: standard trends and comparisons.
   - SCATTER: correlation between two numerical variables.
   - PIE: part-to-whole composition (use sparingly).
   - BOXPLOT: distribution of a numerical variable across categories (xAxisKey = category, first yAxisKey = value).
   - RADAR: several variables compared across a few entities.
   - xAxisKey and yAxisKeys MUST be column names from the list above.
   - Colors: use these hex codes for palettes: {palette}.

Return JSON with exactly these keys:
{{"headline": str, "summary": str, "keyInsights": [str],
  "charts": [{{"title": str, "description": str,
              "type": "BAR"|"LINE"|"AREA"|"PIE"|"SCATTER"|"BOXPLOT"|"RADAR",
              "xAxisKey": str, "yAxisKeys": [str], "colorPalette": [str]}}]}}
"""

IMAGE_PROMPT = """
You are an expert data extraction assistant.
Analyze the provided image. It likely contains a data table, a chart, or a spreadsheet screenshot.

Your task:
1. Identify the tabular data.
2. Extract it into a clean JSON array of objects.
3. Use the first row (or chart labels) as keys (headers).
4. Parse all numeric values as numbers (remove currency symbols, thousands separators and percent signs).
5. If the image is a chart, estimate the values for each data point.

Return ONLY the JSON array.
"""


def _remove_md_fences(text: str) -> str:
    if not isinstance(text, str): return ""
    if text.strip().startswith("```"):
        lines = [ln for ln in text.splitlines() if not ln.strip().startswith("```")]
        return "\n".join(lines).strip()
    return text.strip()


def _response_text(resp) -> str:
    # resp.text raises ValueError when the candidate was blocked or has no parts
    try:
        return _remove_md_fences(getattr(resp, "text", "") or "")
    except ValueError:
        return ""


def _json_config():
    return genai.types.GenerationConfig(response_mime_type="application/json", temperature=0.2)


def get_model(system_instruction=None):
    """GenerativeModel for MODEL_NAME; None when no API key is configured."""
    if not config.configure_genai():
        return None
    return genai.GenerativeModel(config.MODEL_NAME, system_instruction=system_instruction)


def build_analysis_prompt(dataset: Dataset, file_name: str) -> str:
    sample = dataset.head(config.ANALYSIS_SAMPLE_ROWS)
    sample_rows = [{k: to_jsonable(v) for k, v in row.items()} for row in sample]
    return ANALYSIS_PROMPT.format(
        file_name=file_name,
        columns=", ".join(dataset.columns),
        sample_size=len(sample_rows),
        sample_json=json.dumps(sample_rows, ensure_ascii=False, default=str),
        palette=json.dumps(list(config.NPG_PALETTE)),
    )


def analyze_dataset(dataset: Dataset, file_name: str, model=None) -> AnalysisResult:
    """Ask Gemini for a headline, summary, insights and chart suggestions."""
    model = model or get_model(SYSTEM_INSTRUCTION)
    if model is None:
        raise AnalysisError("Missing GOOGLE_API_KEY; AI analysis is unavailable.")

    prompt = build_analysis_prompt(dataset, file_name)
    logger.info("Requesting analysis of %s (%d chars of prompt)", file_name, len(prompt))
    try:
        resp = model.generate_content(prompt, generation_config=_json_config())
    except Exception as exc:
        raise AnalysisError(f"AI analysis request failed: {exc}") from exc

    text = _response_text(resp)
    if not text:
        raise AnalysisError("No response from AI")
    try:
        raw = json.loads(text)
    except ValueError as exc:
        logger.warning("Analysis response was not JSON: %.200s", text)
        raise AnalysisError("AI analysis failed to produce valid JSON") from exc

    result = AnalysisResult.from_dict(raw)
    logger.info("Analysis of %s returned %d insights, %d charts",
                file_name, len(result.key_insights), len(result.charts))
    return result


def extract_table_from_image(content: bytes, mime_type: str, file_name: str = "image", model=None) -> Dataset:
    """Turn a photo/screenshot of a table or chart into a Dataset."""
    model = model or get_model()
    if model is None:
        raise ImageExtractionError("Missing GOOGLE_API_KEY; image extraction is unavailable.")

    try:
        resp = model.generate_content(
            [{"mime_type": mime_type, "data": content}, IMAGE_PROMPT],
            generation_config=_json_config(),
        )
    except Exception as exc:
        raise ImageExtractionError(f"Image extraction request failed: {exc}") from exc

    text = _response_text(resp)
    if not text:
        raise ImageExtractionError("AI could not extract text from the image.")
    try:
        rows = json.loads(text)
    except ValueError as exc:
        raise ImageExtractionError(
            "Failed to parse data from image. Please ensure the image contains a clear table or chart."
        ) from exc
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ImageExtractionError("Extracted data is not an array of objects")
    if not rows:
        raise EmptyDataError("No table rows were found in the image.")
    logger.info("Extracted %d rows from %s", len(rows), file_name)
    return Dataset(tuple(rows), file_name)
