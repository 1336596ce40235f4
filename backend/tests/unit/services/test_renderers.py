"""
Unit Tests for the offer letter and certificate renderers
"""
import io
import pytest
from datetime import date
from unittest.mock import patch

import httpx
from PIL import Image

from app.core.config import settings
from app.core.exceptions import DocumentGenerationError
from app.services.asset_loader import AssetLoader
from app.services.certificate_service import CertificateData, CertificateRenderer
from app.services.offer_letter_service import OfferLetterData, OfferLetterRenderer
from app.services.pdf_canvas import PdfCanvas, display_name


def png_bytes(color=(63, 81, 181)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (20, 20), color).save(buffer, format="PNG")
    return buffer.getvalue()


class StaticAssetLoader(AssetLoader):
    """Serves the same small PNG for every asset and QR request"""

    def __init__(self, config=settings, content: bytes = None):
        super().__init__(config, client=httpx.AsyncClient())
        self.content = png_bytes() if content is None else content
        self.requested = []

    async def fetch(self, url: str) -> bytes:
        self.requested.append(url)
        return self.content


OFFER = OfferLetterData(
    submission_id="abc-1",
    first_name="jane",
    last_name="DOE",
    domain="Web Development",
    start_date=date(2025, 3, 15),
    end_date=date(2025, 4, 14),
    issued_on=date(2025, 3, 6),
)

CERTIFICATE = CertificateData(
    submission_id="cert-1",
    first_name="jane",
    last_name="doe",
    domain="Data Science",
    start_date=date(2025, 3, 15),
    end_date=date(2025, 4, 14),
)


def test_display_name_title_cases_each_part():
    assert display_name("jane", "DOE") == "Jane Doe"
    assert OFFER.candidate_name == "Jane Doe"


class TestPdfCanvas:

    def test_undecodable_image_is_skipped(self):
        pdf = PdfCanvas((595, 842))

        assert pdf.image(b"definitely not an image", 0, 0, 10, 10) is False
        assert pdf.image(b"", 0, 0, 10, 10) is False
        assert pdf.image(png_bytes(), 0, 0, 10, 10, opacity=0.08) is True
        assert pdf.finish().startswith(b"%PDF")


class TestOfferLetterRenderer:

    @pytest.mark.asyncio
    async def test_renders_with_images(self):
        loader = StaticAssetLoader()
        pdf_bytes = await OfferLetterRenderer(settings, loader).render(OFFER)

        assert pdf_bytes.startswith(b"%PDF")
        assert len(loader.requested) == 4
        await loader.close()

    @pytest.mark.asyncio
    async def test_missing_images_are_skipped(self, assets):
        pdf_bytes = await OfferLetterRenderer(settings, assets).render(OFFER)

        assert pdf_bytes.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_drawing_failure_is_a_generation_error(self, assets):
        renderer = OfferLetterRenderer(settings, assets)

        with patch.object(PdfCanvas, "finish", side_effect=RuntimeError("boom")):
            with pytest.raises(DocumentGenerationError):
                await renderer.render(OFFER)


class TestCertificateRenderer:

    def test_verification_url(self):
        renderer = CertificateRenderer(settings, StaticAssetLoader())
        assert renderer.verification_url("cert-1") == "http://test/verify-certificate/cert-1"

    @pytest.mark.asyncio
    async def test_qr_encodes_verification_url(self):
        loader = StaticAssetLoader()
        pdf_bytes = await CertificateRenderer(settings, loader).render(CERTIFICATE)

        assert pdf_bytes.startswith(b"%PDF")
        qr_requests = [url for url in loader.requested if url.startswith(settings.QR_API_URL)]
        assert len(qr_requests) == 1
        assert "verify-certificate%2Fcert-1" in qr_requests[0]
        await loader.close()

    @pytest.mark.asyncio
    async def test_qr_failure_draws_placeholder(self, assets):
        renderer = CertificateRenderer(settings, assets)
        with patch.object(PdfCanvas, "text", autospec=True, side_effect=PdfCanvas.text) as text, \
                patch.object(PdfCanvas, "rect", autospec=True, side_effect=PdfCanvas.rect) as rect:
            pdf_bytes = await renderer.render(CERTIFICATE)

        assert pdf_bytes.startswith(b"%PDF")
        assert any(url.startswith(settings.QR_API_URL) for url in assets.requested)
        assert "QR unavailable" in [c.args[1] for c in text.call_args_list]
        qr_size = CertificateRenderer.QR_SIZE
        assert any(c.args[3:5] == (qr_size, qr_size) for c in rect.call_args_list)

    @pytest.mark.asyncio
    async def test_qr_image_replaces_placeholder(self):
        loader = StaticAssetLoader()
        with patch.object(PdfCanvas, "text", autospec=True, side_effect=PdfCanvas.text) as text:
            await CertificateRenderer(settings, loader).render(CERTIFICATE)

        assert "QR unavailable" not in [c.args[1] for c in text.call_args_list]
        await loader.close()

    @pytest.mark.asyncio
    async def test_configured_template_that_fails_is_fatal(self, assets):
        config = settings.model_copy(update={"CERTIFICATE_TEMPLATE_URL": "https://assets.test/template.png"})

        with pytest.raises(DocumentGenerationError):
            await CertificateRenderer(config, assets).render(CERTIFICATE)

    @pytest.mark.asyncio
    async def test_configured_template_that_is_not_an_image_is_fatal(self):
        config = settings.model_copy(update={"CERTIFICATE_TEMPLATE_URL": "https://assets.test/template.png"})
        loader = StaticAssetLoader(config, content=b"<html>404</html>")

        with pytest.raises(DocumentGenerationError):
            await CertificateRenderer(config, loader).render(CERTIFICATE)
        await loader.close()

    @pytest.mark.asyncio
    async def test_renders_over_template(self):
        config = settings.model_copy(update={"CERTIFICATE_TEMPLATE_URL": "https://assets.test/template.png"})
        loader = StaticAssetLoader(config)

        pdf_bytes = await CertificateRenderer(config, loader).render(CERTIFICATE)

        assert pdf_bytes.startswith(b"%PDF")
        assert "https://assets.test/template.png" in loader.requested
        await loader.close()
