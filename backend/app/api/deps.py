"""
Request dependencies for process-wide resources.

Handles are created in the application lifespan and stored on ``app.state``;
endpoints reach them only through these functions so tests can swap them
with ``app.dependency_overrides``.
"""

from fastapi import Depends, Request

from app.core.config import settings
from app.services.asset_loader import AssetLoader
from app.services.certificate_service import CertificateRenderer
from app.services.email_service import EmailService
from app.services.form_api_service import FormApiService
from app.services.offer_letter_service import OfferLetterRenderer
from app.services.storage_service import StorageService


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email


def get_asset_loader(request: Request) -> AssetLoader:
    return request.app.state.assets


def get_form_api(request: Request) -> FormApiService:
    return request.app.state.form_api


def get_offer_letter_renderer(assets: AssetLoader = Depends(get_asset_loader)) -> OfferLetterRenderer:
    return OfferLetterRenderer(settings, assets)


def get_certificate_renderer(assets: AssetLoader = Depends(get_asset_loader)) -> CertificateRenderer:
    return CertificateRenderer(settings, assets)
