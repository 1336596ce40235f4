"""
Certificate Service - renders internship completion certificates (A4 landscape)

Every certificate carries a QR code pointing at the public verification page
so anyone holding a printed copy can check it against our records.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

import httpx
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape

from app.core.config import Settings
from app.core.exceptions import DocumentGenerationError
from app.core.logging_config import logger
from app.services.asset_loader import AssetLoader
from app.services.pdf_canvas import PdfCanvas, display_name
from app.services.period_calculator import format_display_date


PRIMARY_BLUE = colors.Color(63 / 255, 81 / 255, 181 / 255)
LIGHT_BLUE = colors.Color(144 / 255, 202 / 255, 249 / 255)
MEDAL_GOLD = colors.Color(1, 193 / 255, 7 / 255)
SUBTITLE_GRAY = colors.Color(0.5, 0.5, 0.5)


@dataclass
class CertificateData:
    """Everything printed on a certificate"""
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
class CertificateAssets:
    template: bytes = b""
    logo: bytes = b""
    signature: bytes = b""
    qr_code: bytes = b""
    badges: List[bytes] = field(default_factory=list)


class CertificateRenderer:
    """Generate PDF completion certificates"""

    QR_SIZE = 25
    MEDAL_RADIUS = 15

    def __init__(self, settings: Settings, assets: AssetLoader):
        self.settings = settings
        self.assets = assets

    def verification_url(self, submission_id: str) -> str:
        """URL encoded in the certificate's QR code"""
        return self.settings.public_url(f"verify-certificate/{submission_id}")

    async def _load_template(self) -> bytes:
        # A configured background is part of the design; missing it is fatal
        url = self.settings.CERTIFICATE_TEMPLATE_URL
        if not url:
            return b""
        try:
            content = await self.assets.fetch(url)
        except httpx.HTTPError as e:
            raise DocumentGenerationError(
                f"Certificate template could not be loaded: {e}", doc_type="certificate"
            )
        if not content:
            raise DocumentGenerationError("Certificate template is empty", doc_type="certificate")
        return content

    async def load_assets(self, submission_id: str) -> CertificateAssets:
        s = self.settings
        return CertificateAssets(
            template=await self._load_template(),
            logo=await self.assets.load(s.CERTIFICATE_LOGO_PATH),
            signature=await self.assets.load(s.CERTIFICATE_SIGNATURE_PATH),
            qr_code=await self.assets.fetch_qr(self.verification_url(submission_id)),
            badges=[await self.assets.load(path) for path in s.CERTIFICATE_BADGE_PATHS],
        )

    async def render(self, data: CertificateData) -> bytes:
        """
        Render a certificate.

        Args:
            data: Candidate, domain and internship period

        Returns:
            PDF bytes

        Raises:
            DocumentGenerationError: template unavailable or drawing failed
        """
        images = await self.load_assets(data.submission_id)
        try:
            pdf_bytes = self.draw(data, images)
        except DocumentGenerationError:
            raise
        except Exception as e:
            logger.error(f"Certificate rendering failed for {data.submission_id}: {e}", exc_info=True)
            raise DocumentGenerationError(f"Failed to generate certificate: {e}", doc_type="certificate")

        logger.log_document_event(
            "certificate", "rendered", data.submission_id,
            pdf_size=len(pdf_bytes), qr_embedded=bool(images.qr_code)
        )
        return pdf_bytes

    def draw(self, data: CertificateData, images: CertificateAssets) -> bytes:
        pdf = PdfCanvas(landscape(A4), title=f"Certificate of Completion - {data.candidate_name}")
        w, h = pdf.width, pdf.height
        cx = pdf.center_x

        if images.template and not pdf.image(images.template, 0, 0, w, h, name="template"):
            raise DocumentGenerationError("Certificate template is not a valid image", doc_type="certificate")

        # Corner triangles
        pdf.triangle([(0, 0), (60, 0), (0, 40)], PRIMARY_BLUE)
        pdf.triangle([(w, h), (w - 60, h), (w, h - 40)], PRIMARY_BLUE)
        pdf.triangle([(w, 0), (w - 40, 0), (w, 30)], LIGHT_BLUE)
        pdf.triangle([(0, h), (40, h), (0, h - 30)], LIGHT_BLUE)

        pdf.rect(10, 10, w - 20, h - 20, line_width=2)

        pdf.image(images.logo, w - 80, 20, 60, 20, name="logo")
        pdf.text(f"C.ID: {data.submission_id}", 20, 25, size=10)

        # Titles
        pdf.text("CERTIFICATE", cx, 60, style="serif", size=36, align="center")
        pdf.text("OF COMPLETION", cx, 75, size=14, align="center", color=SUBTITLE_GRAY)
        pdf.text("PROUDLY PRESENTED TO", cx, 90, size=12, align="center")

        pdf.underlined_text(data.candidate_name, cx, 110, style="bold", size=24, gap=5, line_width=0.5)

        # Body
        org = self.settings.ORGANIZATION_NAME
        start = format_display_date(data.start_date)
        end = format_display_date(data.end_date)
        duration = self.settings.INTERNSHIP_DURATION_LABEL

        pdf.text(
            f"has successfully completed {duration} of a virtual internship program in",
            cx, 130, size=12, align="center",
        )
        pdf.text(data.domain, cx, 145, style="bold", size=12, align="center")
        pdf.wrapped_runs(
            [
                (f"with wonderful remarks at {org} from ", "normal"),
                (start, "bold"),
                (" to ", "normal"),
                (end, "bold"),
            ],
            20, 160, w - 40, size=12, align="center",
        )
        pdf.text(
            "We were truly amazed by the showcased skills and invaluable contributions to",
            cx, 175, size=12, align="center",
        )
        pdf.text("the tasks and projects throughout the internship.", cx, 185, size=12, align="center")

        bottom = h - 60

        # QR code, or a placeholder when the QR service was unavailable
        qr_y = bottom - 20
        if not pdf.image(images.qr_code, 30, qr_y, self.QR_SIZE, self.QR_SIZE, name="qr code"):
            pdf.rect(30, qr_y, self.QR_SIZE, self.QR_SIZE, line_width=0.3)
            pdf.text("QR unavailable", 30 + self.QR_SIZE / 2, qr_y + self.QR_SIZE / 2 + 1,
                     size=7, align="center")
        pdf.text("Scan to verify", 30 + self.QR_SIZE / 2, qr_y + self.QR_SIZE + 4, size=7, align="center")

        if pdf.image(images.signature, 80, bottom - 15, 40, 15, name="signature"):
            pdf.text(self.settings.SIGNATORY_TITLE, 100, bottom + 5, size=10, align="center")

        # Medal
        pdf.circle(cx, bottom - 5, self.MEDAL_RADIUS, fill_color=MEDAL_GOLD)
        pdf.circle(cx, bottom - 5, self.MEDAL_RADIUS - 3, stroke_color=colors.white, line_width=0.5)

        # Accreditation badges, left to right
        badge_x = cx + 40
        for index, badge in enumerate(images.badges):
            pdf.image(badge, badge_x, bottom - 15, 25, 25, name=f"badge {index + 1}")
            badge_x += 35

        # Footer
        pdf.text(self.settings.ORGANIZATION_EMAIL, 30, h - 15, size=10)
        pdf.text(self.settings.ORGANIZATION_WEBSITE, cx, h - 15, size=10, align="center")
        issued = format_display_date(data.issued_on or date.today())
        pdf.text(f"Date: {issued}", w - 30, h - 15, size=10, align="right")

        return pdf.finish()
