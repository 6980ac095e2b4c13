"""pytest configuration: points the default database at a temp file before any module import."""

import os
import tempfile

os.environ.setdefault(
    "LEARNINGLY_DB_PATH",
    os.path.join(tempfile.mkdtemp(prefix="learningly-tests-"), "highlights.db"),
)

import pytest

from learningly.models.highlight_types import ClientRect
from learningly.services.highlights_service import HighlightsService


class FakeContainer:
    """Page container with a settable bounding box"""

    def __init__(self, left=100.0, top=50.0, width=800.0, height=600.0):
        self.box = ClientRect(left=left, top=top, width=width, height=height)
        self.reads = 0

    def get_bounding_client_rect(self) -> ClientRect:
        self.reads += 1
        return self.box


class FakeSurface:
    """In-memory selection state standing in for the rendering surface"""

    def __init__(self, text=None, rects=None, range_count=None):
        self.text = text
        self.rects = list(rects or [])
        self.range_count = range_count if range_count is not None else (1 if text else 0)
        self.cleared = 0

    def select(self, text, rects, range_count=1):
        self.text = text
        self.rects = list(rects)
        self.range_count = range_count

    def get_current_selection_text(self):
        return self.text

    def get_selection_range_count(self):
        return self.range_count

    def get_client_rects(self):
        return list(self.rects)

    def clear_selection(self):
        self.cleared += 1
        self.text = None
        self.rects = []
        self.range_count = 0


@pytest.fixture
def container():
    return FakeContainer()


@pytest.fixture
def make_container():
    return FakeContainer


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def temp_db(tmp_path):
    return str(tmp_path / "data" / "highlights.db")


@pytest.fixture
def service(temp_db):
    """HighlightsService backed by a fresh temporary database"""
    return HighlightsService(db_path=temp_db)
