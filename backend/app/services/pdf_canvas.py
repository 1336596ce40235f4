"""
Thin layer over a reportlab canvas.

Layouts are described in millimetres measured from the top-left corner of the
page, which is how the document templates are designed. Line widths are in
millimetres as well. Conversion to reportlab's bottom-left point
coordinates happens here and nowhere else.
"""

import io
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from app.core.logging_config import logger


FONTS = {
    "normal": "Helvetica",
    "bold": "Helvetica-Bold",
    "italic": "Helvetica-Oblique",
    "serif": "Times-Roman",
    "serif-bold": "Times-Bold",
}

# A styled run: (text, style) where style is a FONTS key
Run = Tuple[str, str]


class PdfCanvas:
    """Top-left millimetre coordinates over reportlab's canvas"""

    def __init__(self, pagesize: Tuple[float, float], title: Optional[str] = None):
        self._buffer = io.BytesIO()
        self.canvas = canvas.Canvas(self._buffer, pagesize=pagesize)
        if title:
            self.canvas.setTitle(title)
        self.page_width, self.page_height = pagesize
        self.width = self.page_width / mm
        self.height = self.page_height / mm

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def _x(self, x: float) -> float:
        return x * mm

    def _y(self, y: float) -> float:
        return self.page_height - y * mm

    @property
    def center_x(self) -> float:
        return self.width / 2

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    @staticmethod
    def text_width(text: str, style: str = "normal", size: float = 12) -> float:
        """Width of ``text`` in millimetres"""
        return stringWidth(text, FONTS[style], size) / mm

    def text(
        self,
        text: str,
        x: float,
        y: float,
        style: str = "normal",
        size: float = 12,
        align: str = "left",
        color=colors.black,
    ) -> None:
        c = self.canvas
        c.setFont(FONTS[style], size)
        c.setFillColor(color)
        if align == "center":
            c.drawCentredString(self._x(x), self._y(y), text)
        elif align == "right":
            c.drawRightString(self._x(x), self._y(y), text)
        else:
            c.drawString(self._x(x), self._y(y), text)

    def underlined_text(
        self,
        text: str,
        x: float,
        y: float,
        style: str = "bold",
        size: float = 24,
        gap: float = 5,
        line_width: float = 1,
    ) -> None:
        """Centred text with a rule ``gap`` mm below the baseline"""
        self.text(text, x, y, style=style, size=size, align="center")
        half = self.text_width(text, style, size) / 2
        self.line(x - half, y + gap, x + half, y + gap, width=line_width)

    def wrapped_runs(
        self,
        runs: Sequence[Run],
        x: float,
        y: float,
        max_width: float,
        size: float = 12,
        line_height: float = 7,
        align: str = "left",
    ) -> float:
        """
        Word-wrap styled runs inside ``max_width`` mm starting at ``(x, y)``.

        Words are accumulated until the next one would overflow, then the
        line is flushed. Returns the baseline y of the last line drawn.
        """
        lines: List[List[Tuple[str, str, float]]] = [[]]
        used = 0.0

        for text, style in runs:
            words = text.split(" ")
            for i, word in enumerate(words):
                piece = word + (" " if i < len(words) - 1 else "")
                if not piece:
                    continue
                width = self.text_width(piece, style, size)
                if lines[-1] and used + width > max_width:
                    lines.append([])
                    used = 0.0
                lines[-1].append((piece, style, width))
                used += width

        for index, line in enumerate(lines):
            line_y = y + index * line_height
            if align == "center":
                total = sum(width for _, _, width in line)
                cursor = x + (max_width - total) / 2
            else:
                cursor = x
            for piece, style, width in line:
                self.text(piece, cursor, line_y, style=style, size=size)
                cursor += width

        return y + (len(lines) - 1) * line_height

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------

    def line(self, x1: float, y1: float, x2: float, y2: float,
             width: float = 0.2, color=colors.black) -> None:
        c = self.canvas
        c.setStrokeColor(color)
        c.setLineWidth(width * mm)
        c.line(self._x(x1), self._y(y1), self._x(x2), self._y(y2))

    def rect(self, x: float, y: float, w: float, h: float,
             line_width: float = 0.5, stroke_color=colors.black, fill_color=None) -> None:
        c = self.canvas
        c.setStrokeColor(stroke_color)
        c.setLineWidth(line_width * mm)
        if fill_color is not None:
            c.setFillColor(fill_color)
        c.rect(self._x(x), self._y(y + h), w * mm, h * mm,
               stroke=1, fill=1 if fill_color is not None else 0)

    def triangle(self, points: Sequence[Tuple[float, float]], fill_color) -> None:
        c = self.canvas
        path = c.beginPath()
        (x0, y0), *rest = points
        path.moveTo(self._x(x0), self._y(y0))
        for px, py in rest:
            path.lineTo(self._x(px), self._y(py))
        path.close()
        c.setFillColor(fill_color)
        c.drawPath(path, stroke=0, fill=1)

    def circle(self, cx: float, cy: float, r: float, fill_color=None,
               stroke_color=None, line_width: float = 1) -> None:
        c = self.canvas
        if fill_color is not None:
            c.setFillColor(fill_color)
        if stroke_color is not None:
            c.setStrokeColor(stroke_color)
            c.setLineWidth(line_width * mm)
        c.circle(self._x(cx), self._y(cy), r * mm,
                 stroke=1 if stroke_color is not None else 0,
                 fill=1 if fill_color is not None else 0)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def image(self, data: bytes, x: float, y: float, w: float, h: float,
              opacity: Optional[float] = None, name: str = "image") -> bool:
        """
        Draw image bytes into the box at ``(x, y)`` sized ``w`` x ``h`` mm.

        Empty or undecodable images are skipped; returns whether it was drawn.
        """
        if not data:
            return False
        c = self.canvas
        c.saveState()
        try:
            if opacity is not None:
                c.setFillAlpha(opacity)
                c.setStrokeAlpha(opacity)
            reader = ImageReader(io.BytesIO(data))
            c.drawImage(reader, self._x(x), self._y(y + h), w * mm, h * mm, mask="auto")
        except Exception as e:
            logger.warning(f"Skipping {name}: cannot decode image ({e})")
            return False
        finally:
            c.restoreState()
        return True

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def finish(self) -> bytes:
        """Close the page and return the PDF bytes"""
        self.canvas.showPage()
        self.canvas.save()
        pdf_bytes = self._buffer.getvalue()
        self._buffer.close()
        return pdf_bytes


def display_name(first_name: str, last_name: str) -> str:
    """Candidate name as printed on documents, each part title-cased"""
    return " ".join(part.strip().title() for part in (first_name, last_name) if part and part.strip())
