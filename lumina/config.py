"""Settings for the Lumina dashboard.

Values come from module constants, overridable through environment
variables. The Gemini key is looked up in the environment first and then
in Streamlit secrets, so the data pipeline works without any key at all.
"""
import logging
import os

import google.generativeai as genai
import streamlit as st

logger = logging.getLogger(__name__)

# ================== CONFIG ==================
APP_TITLE = "Lumina Analytics"
MODEL_NAME = os.getenv("LUMINA_MODEL", "gemini-2.5-flash")
FIG_W, FIG_H = 6.0, 3.6

# Raw CSV used by "Try the sample dataset" (keeps upload optional)
SAMPLE_CSV_URL = os.getenv(
    "LUMINA_SAMPLE_CSV_URL",
    "https://raw.githubusercontent.com/mwaskom/seaborn-data/master/iris.csv",
)

ANALYSIS_SAMPLE_ROWS = 30
PREVIEW_ROWS = 20
FACET_DEFAULT_ENTITIES = 6
REQUEST_TIMEOUT = 10

# Nature Publishing Group inspired palette
NPG_PALETTE = (
    "#E64B35",  # red
    "#4DBBD5",  # blue
    "#00A087",  # green
    "#3C5488",  # dark blue
    "#F39B7F",  # peach
    "#8491B4",  # light blue
    "#91D1C2",  # light green
    "#DC0000",  # dark red
)
FACET_PALETTE = ("#4DBBD5", "#E64B35", "#00A087", "#3C5488", "#F39B7F", "#8491B4")

LOG_LEVEL = os.getenv("LUMINA_LOG_LEVEL", "INFO")

_configured_key = None


def get_api_key():
    """GOOGLE_API_KEY from the environment, else from st.secrets, else None."""
    key = os.getenv("GOOGLE_API_KEY")
    if key:
        return key
    try:
        return st.secrets.get("GOOGLE_API_KEY", None)
    except Exception:
        # no secrets.toml outside a configured Streamlit deployment
        return None


def configure_genai():
    """Configure the Gemini client once; returns the key in use (or None)."""
    global _configured_key
    key = get_api_key()
    if key and key != _configured_key:
        genai.configure(api_key=key)
        _configured_key = key
        logger.info("Gemini client configured for model %s", MODEL_NAME)
    return key
