import matplotlib

matplotlib.use("Agg")

import pytest

from lumina.data_model import Dataset


@pytest.fixture
def people():
    return Dataset((
        {"name": "Bob", "age": 30, "city": "Paris"},
        {"name": "alice", "age": "unknown", "city": "Berlin"},
        {"name": "Carol", "age": 25, "city": None},
        {"name": "dave", "age": 41, "city": "paris"},
        {"name": "bob", "age": 19, "city": "Lyon"},
    ), "people.csv")


@pytest.fixture
def analysis_payload():
    return {
        "headline": "Speed drives cost",
        "summary": "Costs rise with speed.",
        "keyInsights": ["Faster is pricier", "Region B is an outlier"],
        "charts": [
            {
                "title": "Cost by region",
                "description": "Bar chart",
                "type": "BAR",
                "xAxisKey": "region",
                "yAxisKeys": ["cost"],
                "colorPalette": ["#E64B35"],
            },
            {
                "title": "Cost spread",
                "type": "BOXPLOT",
                "xAxisKey": "region",
                "yAxisKeys": ["cost"],
                "colorPalette": [],
            },
        ],
    }
