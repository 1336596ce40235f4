"""
Offer Letter Service - renders internship offer letters (A4 portrait)
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from reportlab.lib.pagesizes import A4

from app.core.config import Settings
from app.core.exceptions import DocumentGenerationError
from app.core.logging_config import logger
from app.services.asset_loader import AssetLoader
from app.services.pdf_canvas import PdfCanvas, display_name
from app.services.period_calculator import format_display_date, issue_date


@dataclass
class OfferLetterData:
    """Everything printed on an offer letter"""
    submission_id: str
    first_name: str
    last_name: str
    domain: str
    start_date: date
    end_date: date
    issued_on: Optional[date] = None

    @property
    def candidate_name(self) -> str:
        return display_name(self.first_name, self.last_name)

    @classmethod
    def from_record(cls, record):
        return cls(
            submission_id=record.submission_id,
            first_name=record.first_name,
            last_name=record.last_name,
            domain=record.domain,
            start_date=record.start_date,
            end_date=record.end_date,
        )


@dataclass
class OfferLetterAssets:
    logo: bytes = b""
    signature: bytes = b""
    watermark: bytes = b""
    stamp: bytes = b""


class OfferLetterRenderer:
    """Draws the offer letter layout onto a single A4 page"""

    MARGIN = 13
    LINE_HEIGHT = 7
    BODY_SIZE = 12
    WATERMARK_SIZE = 120
    WATERMARK_OPACITY = 0.08

    def __init__(self, settings: Settings, assets: AssetLoader):
        self.settings = settings
        self.assets = assets

    async def load_assets(self) -> OfferLetterAssets:
        s = self.settings
        return OfferLetterAssets(
            logo=await self.assets.load(s.OFFER_LOGO_PATH),
            signature=await self.assets.load(s.OFFER_SIGNATURE_PATH),
            watermark=await self.assets.load(s.OFFER_WATERMARK_PATH),
            stamp=await self.assets.load(s.OFFER_STAMP_PATH),
        )

    async def render(self, data: OfferLetterData) -> bytes:
        """Render the offer letter and return PDF bytes"""
        images = await self.load_assets()
        try:
            pdf_bytes = self.draw(data, images)
        except Exception as e:
            logger.error(f"Offer letter rendering failed for {data.submission_id}: {e}", exc_info=True)
            raise DocumentGenerationError(f"Failed to generate offer letter: {e}", doc_type="offer_letter")

        logger.log_document_event("offer_letter", "rendered", data.submission_id, pdf_size=len(pdf_bytes))
        return pdf_bytes

    def draw(self, data: OfferLetterData, images: OfferLetterAssets) -> bytes:
        pdf = PdfCanvas(A4, title=f"Internship Offer Letter - {data.candidate_name}")
        org = self.settings.ORGANIZATION_NAME
        left = self.MARGIN
        right = pdf.width - self.MARGIN
        content_width = right - left

        # Header
        pdf.image(images.logo, pdf.center_x - 50, 5, 105, 35, name="logo")

        watermark_x = (pdf.width - self.WATERMARK_SIZE) / 2
        pdf.image(
            images.watermark,
            watermark_x,
            (pdf.height - self.WATERMARK_SIZE) / 2,
            self.WATERMARK_SIZE,
            self.WATERMARK_SIZE,
            opacity=self.WATERMARK_OPACITY,
            name="watermark",
        )

        pdf.text("INTERNSHIP OFFER LETTER", pdf.center_x, 55, style="bold", size=18, align="center")
        pdf.line(left, 60, right, 60, width=0.2)

        # Date and id
        issued = format_display_date(data.issued_on or issue_date())
        pdf.text("Date:", left, 70)
        pdf.text(issued, left + 11, 70, style="bold")
        pdf.text("Id:", right - 87, 70)
        pdf.text(data.submission_id, right - 82, 70, style="bold")

        # Salutation
        pdf.text("Dear,", left, 90)
        pdf.text(data.candidate_name, left + 20, 97, style="bold")

        start = format_display_date(data.start_date)
        end = format_display_date(data.end_date)

        paragraphs = [
            (110, [
                ('We would like to congratulate you on being selected for the "', "normal"),
                (data.domain, "bold"),
                ('" virtual internship position with "', "normal"),
                (org, "bold"),
                ('". We at ', "normal"),
                (org, "bold"),
                (" are excited that you will join our team.", "normal"),
            ]),
            (135, [
                ("The duration of the internship will be of ", "normal"),
                (f"{self.settings.INTERNSHIP_DURATION_LABEL}, ", "bold"),
                ("starting from ", "normal"),
                (start, "bold"),
                (" to ", "normal"),
                (end, "bold"),
                (". The internship is an educational opportunity for you hence the primary focus is on "
                 "learning and developing new skills and gaining hands-on knowledge. We believe that "
                 "you will perform all your tasks/projects.", "normal"),
            ]),
            (167, [
                ("As an intern, we expect you to perform all assigned tasks to the best of your ability "
                 "and follow any lawful and reasonable instructions provided to you.", "normal"),
            ]),
            (186, [
                ("We are confident that this internship will be a valuable experience for you, we look "
                 "forward to working with you and helping you achieve your career goals.", "normal"),
            ]),
            (205, [
                ("By accepting this offer, you commit to executing assigned tasks diligently and "
                 "ensuring excellence in all aspects of your work.", "normal"),
            ]),
        ]
        for y, runs in paragraphs:
            pdf.wrapped_runs(runs, left, y, content_width, size=self.BODY_SIZE, line_height=self.LINE_HEIGHT)

        # Closing
        pdf.text("Best of Luck!", left, 225)
        pdf.text("Thank You!", left, 240, style="bold")

        pdf.image(images.signature, left, 255, 40, 16, name="signature")
        pdf.image(images.stamp, 133, 250, 35, 35, name="stamp")

        pdf.text(self.settings.SIGNATORY_TITLE, left + 11, 280, style="bold", size=11)
        pdf.text(f"({org})", left, 285, style="bold", size=11)

        return pdf.finish()
