"""Workbook merging for SheetFusion.

Copies rows, styles and normalized values from many workbooks into one
single-sheet output workbook.
"""

from .merge_engine import MergeEngine, MergeError, MergeSession, select_rows

__all__ = ["MergeEngine", "MergeError", "MergeSession", "select_rows"]
