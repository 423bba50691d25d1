"""
Report export: multi-page PDF (text page + one page per chart) and a
Word-compatible HTML ``.doc`` carrying the narrative only.
"""
import html
import io
import logging
import textwrap
from typing import Iterable

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from . import config
from .data_model import AnalysisResult

logger = logging.getLogger(__name__)

A4_INCHES = (8.27, 11.69)
WRAP_CHARS = 95

WORD_MIME = "application/msword"
PDF_MIME = "application/pdf"


def report_file_name(file_name: str, ext: str) -> str:
    return f"Lumina_Report_{file_name or 'dataset'}.{ext}"


def _text_page(analysis: AnalysisResult, file_name: str) -> Figure:
    fig = Figure(figsize=A4_INCHES)
    y = 0.95

    def put(text, size=10, weight="normal", gap=0.018, width=WRAP_CHARS):
        nonlocal y
        for line in textwrap.wrap(text, width) or [""]:
            fig.text(0.08, y, line, fontsize=size, weight=weight, va="top", family="serif")
            y -= gap
        y -= gap / 2

    put(analysis.headline, size=16, weight="bold", gap=0.03, width=60)
    put(f"Dataset: {file_name}", size=9)
    put("Executive Summary", size=12, weight="bold", gap=0.025)
    put(analysis.summary)
    put("Key Insights", size=12, weight="bold", gap=0.025)
    for insight in analysis.key_insights:
        put(f"• {insight}")
    return fig


def export_pdf(analysis: AnalysisResult, figures: Iterable[Figure], file_name: str = "") -> bytes:
    """Render the report and chart figures into a PDF document."""
    buf = io.BytesIO()
    pages = 0
    with PdfPages(buf) as pdf:
        pdf.savefig(_text_page(analysis, file_name))
        pages += 1
        for fig in figures:
            pdf.savefig(fig, bbox_inches="tight")
            pages += 1
        info = pdf.infodict()
        info["Title"] = analysis.headline
        info["Creator"] = config.APP_TITLE
    logger.info("Exported %d-page PDF for %s", pages, file_name)
    return buf.getvalue()


WORD_TEMPLATE = """<html xmlns:o='urn:schemas-microsoft-com:office:office' xmlns:w='urn:schemas-microsoft-com:office:word' xmlns='http://www.w3.org/TR/REC-html40'>
<head><meta charset="utf-8"><title>Analysis Report</title></head>
<body>
  <h1 style="font-family: 'Times New Roman', serif; font-size: 24pt;">{headline}</h1>
  <br/>
  <h2 style="font-family: 'Arial', sans-serif; font-size: 16pt; color: #333;">Executive Summary</h2>
  <p style="font-family: 'Times New Roman', serif; font-size: 12pt; line-height: 1.5;">{summary}</p>
  <br/>
  <h2 style="font-family: 'Arial', sans-serif; font-size: 16pt; color: #333;">Key Insights</h2>
  <ul>
{insights}
  </ul>
  <br/>
  <hr/>
  <p style="font-size: 10pt; color: #666;">Generated by {app}. Charts must be exported separately as images.</p>
</body>
</html>
"""


def export_word(analysis: AnalysisResult, file_name: str = "") -> bytes:
    items = "\n".join(
        f"    <li style=\"font-family: 'Times New Roman', serif; font-size: 12pt; margin-bottom: 10px;\">{html.escape(i)}</li>"
        for i in analysis.key_insights
    )
    doc = WORD_TEMPLATE.format(
        headline=html.escape(analysis.headline),
        summary=html.escape(analysis.summary),
        insights=items,
        app=html.escape(config.APP_TITLE),
    )
    logger.info("Exported Word report for %s", file_name)
    # BOM so Word picks up UTF-8
    return "\ufeff".encode("utf-8") + doc.encode("utf-8")
