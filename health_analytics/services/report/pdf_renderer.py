"""
PDF report rendering with reportlab.

The document is drawn on a plain reportlab canvas in millimetre coordinates
measured from the top of the page. Tables are laid out in two steps:

1. Every row is wrapped into lines per column; its height is the tallest cell.
2. TablePaginator walks the rows through an explicit state machine
   (NEW_PAGE -> HEADER -> ROWS -> NEW_PAGE ... -> DONE) and returns where each
   header and row goes. The drawing code then just follows the placements.

Keeping pagination free of drawing calls means it can be tested on row heights
alone. NumberedCanvas defers the "Page X of Y" footer until the page count is
known.
"""
import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from health_analytics.core.datetime_utils import to_local
from health_analytics.core.metric_registry import get_family
from health_analytics.services.report.base import ReportContext, statistics_table_rows

logger = logging.getLogger(__name__)

# =============================================================================
# PAGE GEOMETRY (millimetres, measured from the top-left corner)
# =============================================================================

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT_MARGIN = 20.0
TOP_MARGIN = 25.0
CONTENT_WIDTH = 170.0
PAGE_BOTTOM_LIMIT = 270.0
SECTION_GAP = 15.0
HEADING_HEIGHT = 12.0
TEXT_LINE_HEIGHT = 7.0
FOOTER_BASELINE = 10.0

HEADER_HEIGHT = 10.0
CELL_PADDING = 3.0
LINE_HEIGHT = 4.0
ROW_PADDING = 4.0

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
HEADER_FONT_SIZE = 10
BODY_FONT_SIZE = 9

HEADER_FILL = 240 / 255
STRIPE_FILLS = (250 / 255, 1.0)


@dataclass(frozen=True)
class Column:
    title: str
    width: float


STATISTICS_COLUMNS = (
    Column("Parameter", 45),
    Column("Value", 55),
    Column("Status/Trend", 50),
    Column("Change", 20),
)

READING_COLUMNS = (
    Column("Date & Time", 38),
    Column("Metric Type", 32),
    Column("Value", 25),
    Column("Status", 28),
    Column("Context", 22),
    Column("Notes", 25),
)


# =============================================================================
# TEXT FITTING
# =============================================================================

def _fits(text: str, max_width: float, font_name: str, font_size: float) -> bool:
    return stringWidth(text, font_name, font_size) <= max_width


def _hard_split(line: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """Break a single word that is wider than the column on character boundaries."""
    pieces = []
    while line and not _fits(line, max_width, font_name, font_size):
        cut = len(line) - 1
        while cut > 1 and not _fits(line[:cut], max_width, font_name, font_size):
            cut -= 1
        pieces.append(line[:cut])
        line = line[cut:]
    pieces.append(line)
    return pieces


def wrap_text(
    text: Optional[str],
    width: float,
    font_name: str = FONT,
    font_size: float = BODY_FONT_SIZE,
) -> List[str]:
    """
    Wrap ``text`` to lines no wider than ``width`` millimetres.

    Explicit newlines are kept. Always returns at least one (possibly empty) line.
    """
    max_width = width * mm
    lines: List[str] = []
    for paragraph in (text or "").split("\n"):
        for line in simpleSplit(paragraph, font_name, font_size, max_width) or [""]:
            lines.extend(_hard_split(line, max_width, font_name, font_size))
    return lines or [""]


def truncate_text(
    text: str,
    width: float,
    font_name: str = FONT_BOLD,
    font_size: float = HEADER_FONT_SIZE,
) -> str:
    """Shorten ``text`` with a trailing "..." until it fits in ``width`` millimetres."""
    max_width = width * mm
    if _fits(text, max_width, font_name, font_size):
        return text
    while text:
        text = text[:-1]
        if _fits(text + "...", max_width, font_name, font_size):
            return text + "..."
    return "..."


# =============================================================================
# TABLE LAYOUT & PAGINATION
# =============================================================================

@dataclass(frozen=True)
class LayoutRow:
    """A table row wrapped to its column widths."""
    cells: Tuple[Tuple[str, ...], ...]

    @property
    def height(self) -> float:
        return max(len(lines) for lines in self.cells) * LINE_HEIGHT + ROW_PADDING

    @classmethod
    def build(cls, values: Sequence[str], columns: Sequence[Column]) -> "LayoutRow":
        return cls(cells=tuple(
            tuple(wrap_text(value, column.width - 2 * CELL_PADDING))
            for value, column in zip(values, columns)
        ))


class TableState(Enum):
    NEW_PAGE = "new_page"
    HEADER = "header"
    ROWS = "rows"
    DONE = "done"


@dataclass(frozen=True)
class Placement:
    """Where a table header (row_index None) or row is drawn."""
    kind: str
    page: int
    top: float
    row_index: Optional[int] = None


class TablePaginator:
    """
    Decides page and vertical position for a table's header and rows.

    A row that would cross ``bottom_limit`` moves to a new page, where the header
    is emitted again first. A header is never left alone at the bottom of a
    page, and a row taller than a whole page is placed anyway rather than
    looping.
    """

    def __init__(
        self,
        header_height: float = HEADER_HEIGHT,
        page_top: float = TOP_MARGIN,
        bottom_limit: float = PAGE_BOTTOM_LIMIT,
    ):
        self.header_height = header_height
        self.page_top = page_top
        self.bottom_limit = bottom_limit

    def paginate(
        self,
        row_heights: Sequence[float],
        page: int,
        top: float,
    ) -> Tuple[List[Placement], int, float]:
        """
        Lay out a table starting at ``top`` on ``page``.

        Returns:
            (placements, last page, cursor below the table)
        """
        placements: List[Placement] = []
        state = TableState.HEADER
        cursor = top
        fresh_page = top <= self.page_top
        index = 0
        rows_on_page = 0

        while state is not TableState.DONE:
            if state is TableState.NEW_PAGE:
                page += 1
                cursor = self.page_top
                fresh_page = True
                state = TableState.HEADER

            elif state is TableState.HEADER:
                first_row = row_heights[index] if index < len(row_heights) else 0
                if not fresh_page and cursor + self.header_height + first_row > self.bottom_limit:
                    state = TableState.NEW_PAGE
                    continue
                placements.append(Placement("header", page, cursor))
                cursor += self.header_height
                fresh_page = False
                rows_on_page = 0
                state = TableState.ROWS

            elif state is TableState.ROWS:
                if index >= len(row_heights):
                    state = TableState.DONE
                    continue
                height = row_heights[index]
                if rows_on_page and cursor + height > self.bottom_limit:
                    state = TableState.NEW_PAGE
                    continue
                placements.append(Placement("row", page, cursor, index))
                cursor += height
                index += 1
                rows_on_page += 1

        return placements, page, cursor


# =============================================================================
# CANVAS
# =============================================================================

class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Page X of Y" on every page once Y is known."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._page_states = []

    def showPage(self):
        self._page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._page_states)
        for state in self._page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        self.setFont(FONT, 8)
        self.setFillGray(0)
        self.drawCentredString(PAGE_WIDTH / 2, FOOTER_BASELINE * mm, f"Page {self.getPageNumber()} of {total}")


def _y(top: float) -> float:
    """Convert millimetres-from-top to reportlab points-from-bottom."""
    return PAGE_HEIGHT - top * mm


class ReportDocument:
    """Cursor-tracking wrapper around the canvas."""

    def __init__(self, pdf: canvas.Canvas, paginator: TablePaginator):
        self.pdf = pdf
        self.paginator = paginator
        self.page = 1
        self.cursor = TOP_MARGIN

    def new_page(self) -> None:
        self.pdf.showPage()
        self.page += 1
        self.cursor = TOP_MARGIN

    def text(self, x: float, top: float, value: str, font: str = FONT, size: float = 10) -> None:
        """Draw ``value`` in a 7mm-high line whose top edge is at ``top``."""
        self.pdf.setFont(font, size)
        self.pdf.setFillGray(0)
        self.pdf.drawString(x * mm, _y(top + 5), value)

    def label_value(self, label: str, value: str) -> None:
        self.text(LEFT_MARGIN, self.cursor, f"{label}:")
        self.text(LEFT_MARGIN + 50, self.cursor, value, FONT_BOLD)
        self.cursor += TEXT_LINE_HEIGHT

    def heading(self, value: str, size: float = 14) -> None:
        self.text(LEFT_MARGIN, self.cursor, value, FONT_BOLD, size)
        self.cursor += HEADING_HEIGHT

    def section(self, title: str, body_height: float) -> None:
        """
        Start a titled section below the previous one.

        ``body_height`` is what must fit under the heading (table header plus
        first row, or a placeholder line); otherwise the section opens a page.
        """
        self.cursor += SECTION_GAP
        if self.cursor + HEADING_HEIGHT + body_height > PAGE_BOTTOM_LIMIT:
            self.new_page()
        self.heading(title)

    def _column_lines(self, top: float, height: float, columns: Sequence[Column]) -> None:
        x = LEFT_MARGIN
        for column in columns[:-1]:
            x += column.width
            self.pdf.line(x * mm, _y(top), x * mm, _y(top + height))

    def _draw_header(self, top: float, columns: Sequence[Column]) -> None:
        total_width = sum(c.width for c in columns)
        self.pdf.setLineWidth(0.5)
        self.pdf.setStrokeGray(0)
        self.pdf.setFillGray(HEADER_FILL)
        self.pdf.rect(LEFT_MARGIN * mm, _y(top + HEADER_HEIGHT), total_width * mm, HEADER_HEIGHT * mm, stroke=1, fill=1)
        self._column_lines(top, HEADER_HEIGHT, columns)

        self.pdf.setFont(FONT_BOLD, HEADER_FONT_SIZE)
        self.pdf.setFillGray(0)
        x = LEFT_MARGIN
        for column in columns:
            title = truncate_text(column.title, column.width - 2 * CELL_PADDING)
            self.pdf.drawString((x + CELL_PADDING) * mm, _y(top + 6.5), title)
            x += column.width

    def _draw_row(self, top: float, row: LayoutRow, index: int, columns: Sequence[Column]) -> None:
        total_width = sum(c.width for c in columns)
        height = row.height
        self.pdf.setLineWidth(0.5)
        self.pdf.setStrokeGray(0)
        self.pdf.setFillGray(STRIPE_FILLS[index % 2])
        self.pdf.rect(LEFT_MARGIN * mm, _y(top + height), total_width * mm, height * mm, stroke=1, fill=1)
        self._column_lines(top, height, columns)

        self.pdf.setFont(FONT, BODY_FONT_SIZE)
        self.pdf.setFillGray(0)
        x = LEFT_MARGIN
        for lines, column in zip(row.cells, columns):
            for line_no, line in enumerate(lines):
                baseline = top + ROW_PADDING / 2 + (line_no + 1) * LINE_HEIGHT - 1
                self.pdf.drawString((x + CELL_PADDING) * mm, _y(baseline), line)
            x += column.width

    def table(self, columns: Sequence[Column], rows: Sequence[Sequence[str]]) -> None:
        layout = [LayoutRow.build(values, columns) for values in rows]
        placements, _, end = self.paginator.paginate([r.height for r in layout], self.page, self.cursor)
        for placement in placements:
            while placement.page > self.page:
                self.new_page()
            if placement.row_index is None:
                self._draw_header(placement.top, columns)
            else:
                self._draw_row(placement.top, layout[placement.row_index], placement.row_index, columns)
        self.cursor = end


# =============================================================================
# RENDERER
# =============================================================================

class PdfReportRenderer:
    """
    Renders a ReportContext to PDF bytes.

    Args:
        compress: Compress page content streams. Turn off to make the output
            greppable in tests.
    """

    def __init__(self, compress: bool = True, paginator: Optional[TablePaginator] = None):
        self._compress = compress
        self._paginator = paginator or TablePaginator()

    def _reading_rows(self, ctx: ReportContext) -> List[List[str]]:
        rows = []
        for entry in ctx.history.reading_history:
            family = get_family(entry.metric_type)
            rows.append([
                to_local(entry.timestamp, ctx.tz).strftime("%d/%m/%Y %H:%M"),
                family.display_name if family else entry.metric_type,
                entry.value,
                entry.status,
                entry.context or "",
                entry.notes or "",
            ])
        return rows

    def _cover(self, doc: ReportDocument, ctx: ReportContext) -> None:
        doc.text(LEFT_MARGIN, 30, "HEALTH HISTORY REPORT", FONT_BOLD, 18)
        doc.pdf.setLineWidth(1.0)
        doc.pdf.setStrokeGray(0)
        doc.pdf.line(LEFT_MARGIN * mm, _y(42), (LEFT_MARGIN + CONTENT_WIDTH) * mm, _y(42))

        doc.cursor = 48
        doc.text(LEFT_MARGIN, doc.cursor, "Patient Information", FONT_BOLD, 12)
        doc.cursor += 10
        for label, value in ctx.patient_lines():
            doc.label_value(label, value)
        doc.cursor += 8
        doc.label_value("Report Period", ctx.period_label)
        doc.cursor += 1
        doc.label_value("Generated", ctx.generated_label)
        doc.cursor += 13

    def render(self, ctx: ReportContext) -> bytes:
        """Render the full report and return the PDF bytes."""
        buffer = io.BytesIO()
        pdf = NumberedCanvas(buffer, pagesize=A4, pageCompression=1 if self._compress else 0)
        pdf.setTitle("Health History Report")
        pdf.setSubject(ctx.period_label)
        doc = ReportDocument(pdf, self._paginator)

        self._cover(doc, ctx)

        doc.heading("STATISTICS SUMMARY")
        statistics = statistics_table_rows(ctx.history.summary)
        if statistics:
            doc.table(STATISTICS_COLUMNS, statistics)
        else:
            doc.text(LEFT_MARGIN, doc.cursor, "No statistics available for this period.")
            doc.cursor += TEXT_LINE_HEIGHT

        readings = self._reading_rows(ctx)
        if readings:
            first_row = LayoutRow.build(readings[0], READING_COLUMNS).height
            doc.section("READING HISTORY", HEADER_HEIGHT + first_row)
            doc.table(READING_COLUMNS, readings)
        else:
            doc.section("READING HISTORY", TEXT_LINE_HEIGHT)
            doc.text(LEFT_MARGIN, doc.cursor, "No readings recorded for this period.")

        pdf.showPage()
        pdf.save()
        logger.debug("PDF rendered", extra={"pages": doc.page, "readings": len(readings)})
        return buffer.getvalue()
