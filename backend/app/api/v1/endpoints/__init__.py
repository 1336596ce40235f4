# API endpoints
from . import auth, certificates, offer_letters, pages, submissions, webhook

__all__ = ["auth", "certificates", "offer_letters", "pages", "submissions", "webhook"]
