"""
Smoke-run the walkthrough pages headless; each must render without an exception.
"""
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

APP_DIR = Path(__file__).resolve().parents[2] / "tidyreg"


@pytest.mark.parametrize(
    "script",
    [
        "streamlit_app.py",
        "pages/01_Scatter_Plots.py",
        "pages/02_Model_Tables.py",
        "pages/03_Grouped_Fits.py",
    ],
)
def test_page_renders(script):
    at = AppTest.from_file(str(APP_DIR / script), default_timeout=60)
    at.run()
    assert not at.exception
    assert at.title[0].value
