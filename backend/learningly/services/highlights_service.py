"""
Highlights Service Module

This module provides database operations for highlights users create while
reading paginated documents. Each highlight belongs to one document, keyed
by the document's stable storage key, and carries its rectangles as
page-relative percentages.

Geometry is written once at creation time. Only the text, color and
attached question of a highlight can change afterwards.
"""

import json
import logging
from typing import Any

from learningly.config import Config
from learningly.models.highlight_types import (
    Highlight,
    PercentageRect,
    SelectionEvent,
)

from .base_database_service import BaseDatabaseService
from .selection_service import (
    generate_highlight_id,
    generate_question_id,
    get_highlight_storage_key,
    is_valid_selection_text,
    sanitize_highlight_text,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    SELECT id, document_key, page_number, selected_text, color, rects,
           question, question_id, created_at, updated_at
    FROM highlights
"""


class HighlightsService(BaseDatabaseService):
    """
    Service class for managing document highlights using SQLite.

    Stores:
    - Highlight rectangles (JSON array of percentage rects) per page
    - Selected text, display color and an optional attached question
    """

    def __init__(self, db_path: str | None = None):
        """
        Initialize the highlights service.

        Args:
            db_path (str | None): Path to the SQLite database file
        """
        super().__init__(db_path)
        self._init_table()

    def _init_table(self):
        """
        Initialize the highlights table and indexes.
        """
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS highlights (
                    id TEXT PRIMARY KEY,                  -- highlight_<epoch ms>_<base36>
                    document_key TEXT NOT NULL,           -- Stable key of the owning document
                    page_number INTEGER NOT NULL,         -- Page the rects are relative to
                    selected_text TEXT NOT NULL,          -- Sanitized highlighted text
                    color TEXT NOT NULL DEFAULT '#ffff00', -- Display color, opaque to geometry
                    rects TEXT NOT NULL,                  -- JSON array of percentage rects
                    question TEXT,                        -- Question attached to the highlight
                    question_id TEXT,                     -- ID of the attached question
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_highlights_document_page
                ON highlights(document_key, page_number)
            """)

            conn.commit()

    def _row_to_highlight(self, row) -> Highlight:
        try:
            rects_data = json.loads(row["rects"])
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Invalid rects JSON for highlight {row['id']}")
            rects_data = []

        return Highlight(
            id=row["id"],
            document_key=row["document_key"],
            page_number=row["page_number"],
            selected_text=row["selected_text"],
            rects=[PercentageRect(**rect) for rect in rects_data],
            color=row["color"],
            question=row["question"],
            question_id=row["question_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def save_highlight(
        self,
        document_key: str,
        page_number: int,
        selected_text: str,
        rects: list[PercentageRect],
        color: str | None = None,
    ) -> str | None:
        """
        Save a highlight for one page of a document.

        Args:
            document_key (str): Storage key of the document
            page_number (int): Page the rectangles belong to
            selected_text (str): Highlighted text, sanitized before storage
            rects (list[PercentageRect]): Page-relative rectangles, stored as given
            color (str | None): Display color, defaults to Config.DEFAULT_HIGHLIGHT_COLOR

        Returns:
            str | None: The ID of the new highlight, or None if creation failed
        """
        highlight_id = generate_highlight_id()
        timestamp = self.get_current_timestamp()

        query = """
            INSERT INTO highlights (
                id, document_key, page_number, selected_text, color, rects,
                created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = (
            highlight_id,
            document_key,
            page_number,
            sanitize_highlight_text(selected_text),
            color or Config.DEFAULT_HIGHLIGHT_COLOR,
            json.dumps([rect.model_dump() for rect in rects]),
            timestamp,
            timestamp,
        )

        if not self.execute_write(query, params):
            logger.error(f"Failed to save highlight for {document_key}")
            return None

        logger.info(
            f"Saved highlight {highlight_id} for {document_key}, page {page_number}"
        )
        return highlight_id

    def create_from_selection(
        self,
        document_url: str,
        page_number: int,
        selection: SelectionEvent,
        color: str | None = None,
    ) -> Highlight | None:
        """
        Persist an accepted selection as a highlight of the given document page.

        Args:
            document_url (str): URL the document was loaded from
            page_number (int): Page the selection was captured on
            selection (SelectionEvent): Accepted selection
            color (str | None): Display color

        Returns:
            Highlight | None: The stored highlight, or None if it could not be saved
        """
        document_key = get_highlight_storage_key(document_url)
        highlight_id = self.save_highlight(
            document_key=document_key,
            page_number=page_number,
            selected_text=selection.text,
            rects=selection.rects,
            color=color,
        )
        if highlight_id is None:
            return None

        return self.get_highlight_by_id(highlight_id)

    def get_highlights_for_document(
        self, document_key: str, page_number: int | None = None
    ) -> list[Highlight]:
        """
        Retrieve highlights of a document in creation order, optionally for one page.

        Args:
            document_key (str): Storage key of the document
            page_number (int | None): Page to filter by, or None for all pages

        Returns:
            list[Highlight]: Matching highlights
        """
        if page_number is not None:
            query = (
                _SELECT_COLUMNS
                + "WHERE document_key = ? AND page_number = ? ORDER BY created_at, rowid"
            )
            params = (document_key, page_number)
        else:
            query = (
                _SELECT_COLUMNS
                + "WHERE document_key = ? ORDER BY page_number, created_at, rowid"
            )
            params = (document_key,)

        rows = self.execute_query(query, params)
        return [self._row_to_highlight(row) for row in rows or []]

    def get_highlights_for_page(
        self, document_key: str, page_number: int
    ) -> list[Highlight]:
        return self.get_highlights_for_document(document_key, page_number)

    def get_highlight_by_id(self, highlight_id: str) -> Highlight | None:
        """
        Retrieve a highlight by its ID.

        Returns:
            Highlight | None: The highlight, or None if not found
        """
        row = self.execute_query(
            _SELECT_COLUMNS + "WHERE id = ?", (highlight_id,), fetch_one=True
        )
        if row is None:
            return None
        return self._row_to_highlight(row)

    def delete_highlight(self, highlight_id: str) -> bool:
        """
        Delete a highlight by its ID.

        Returns:
            bool: True if a highlight was deleted
        """
        deleted = self.execute_write(
            "DELETE FROM highlights WHERE id = ?", (highlight_id,)
        )
        if deleted:
            logger.info(f"Deleted highlight {highlight_id}")
        return bool(deleted)

    def delete_highlights_for_document(self, document_key: str) -> int:
        """
        Delete every highlight of a document, used when the document is removed.

        Returns:
            int: Number of highlights deleted
        """
        deleted = self.execute_write(
            "DELETE FROM highlights WHERE document_key = ?", (document_key,)
        )
        if deleted:
            logger.info(f"Deleted {deleted} highlights for {document_key}")
        return deleted or 0

    def _update_fields(self, highlight_id: str, fields: dict[str, Any]) -> bool:
        assignments = ", ".join(f"{column} = ?" for column in fields)
        query = f"UPDATE highlights SET {assignments}, updated_at = ? WHERE id = ?"
        params = (*fields.values(), self.get_current_timestamp(), highlight_id)
        return bool(self.execute_write(query, params))

    def update_color(self, highlight_id: str, color: str) -> bool:
        """
        Update the display color of a highlight.

        Returns:
            bool: True if the highlight was updated
        """
        updated = self._update_fields(highlight_id, {"color": color})
        if updated:
            logger.info(f"Updated highlight {highlight_id} color to {color}")
        return updated

    def update_selected_text(self, highlight_id: str, selected_text: str) -> bool:
        """
        Replace the text of a highlight. The text is sanitized and must still
        pass the minimum-length check.

        Returns:
            bool: True if the highlight was updated
        """
        if not is_valid_selection_text(selected_text):
            logger.warning(f"Rejected text update for highlight {highlight_id}")
            return False

        return self._update_fields(
            highlight_id, {"selected_text": sanitize_highlight_text(selected_text)}
        )

    def add_question_to_highlight(
        self, highlight_id: str, question: str, question_id: str | None = None
    ) -> str | None:
        """
        Attach a question to a highlight.

        Args:
            highlight_id (str): Highlight to attach the question to
            question (str): Question text
            question_id (str | None): ID of the question, generated if omitted

        Returns:
            str | None: The question ID, or None if the highlight was not found
        """
        question_id = question_id or generate_question_id()
        updated = self._update_fields(
            highlight_id, {"question": question, "question_id": question_id}
        )
        if not updated:
            return None

        logger.info(f"Attached question {question_id} to highlight {highlight_id}")
        return question_id

    def remove_question_from_highlight(self, highlight_id: str) -> bool:
        return self._update_fields(
            highlight_id, {"question": None, "question_id": None}
        )

    def get_highlights_count_by_document(self) -> dict[str, dict[str, Any]]:
        """
        Get summary statistics about highlights for every document.

        Returns:
            dict[str, dict[str, Any]]: Document keys mapped to count, latest
            highlight date and a preview of the latest highlight's text
        """
        query = """
            SELECT document_key, COUNT(*) AS highlights_count,
                   MAX(created_at) AS latest_highlight_date
            FROM highlights
            GROUP BY document_key
        """
        rows = self.execute_query(query)

        highlights_info = {}
        for row in rows or []:
            text_row = self.execute_query(
                """
                SELECT selected_text FROM highlights
                WHERE document_key = ? AND created_at = ?
                ORDER BY rowid DESC
                LIMIT 1
                """,
                (row["document_key"], row["latest_highlight_date"]),
                fetch_one=True,
            )

            # Truncate text for preview (first 50 characters)
            if text_row is None:
                latest_text = "No text"
            elif len(text_row["selected_text"]) > 50:
                latest_text = text_row["selected_text"][:50] + "..."
            else:
                latest_text = text_row["selected_text"]

            highlights_info[row["document_key"]] = {
                "highlights_count": row["highlights_count"],
                "latest_highlight_date": row["latest_highlight_date"],
                "latest_highlight_text": latest_text,
            }

        logger.info(f"Found highlights for {len(highlights_info)} documents")
        return highlights_info
