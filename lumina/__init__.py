"""
Lumina Analytics

Upload a table (CSV, JSON, Excel, or a photo of one), get a Gemini-written
report with chart suggestions, then slice the data with filters, facet
comparisons and box plots and export the result to PDF or Word.
"""

APP_NAME = "Lumina Analytics"
APP_VERSION = "1.0.0"
__version__ = APP_VERSION
