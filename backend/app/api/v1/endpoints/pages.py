"""
Server-rendered HTML pages: certificate verification and the passcode prompt

Mounted at the application root, outside /api/v1, because the verification
URL is printed into every certificate's QR code.
"""

from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import SubmissionNotFoundError
from app.core.logging_config import logger
from app.models.certificate import Certificate
from app.services.document_workflow import CERTIFICATE_ROUTES
from app.services.period_calculator import format_display_date
from app.services.submission_repository import SubmissionRepository

router = APIRouter(tags=["Pages"], include_in_schema=False)


PAGE_STYLE = """
    body { margin: 0; font-family: Arial, Helvetica, sans-serif; background: #f0f4ff; color: #111827; }
    .hero { background: linear-gradient(90deg, #2563eb, #4f46e5); color: #fff; text-align: center; padding: 40px 16px; }
    .hero h1 { margin: 0 0 8px; font-size: 32px; }
    .card { max-width: 720px; margin: -24px auto 48px; background: #fff; border-radius: 12px;
            box-shadow: 0 10px 30px rgba(0,0,0,0.08); padding: 32px; }
    .status { text-align: center; margin-bottom: 24px; }
    .ok { color: #15803d; }
    .bad { color: #b91c1c; }
    dl { display: grid; grid-template-columns: 180px 1fr; gap: 10px 16px; }
    dt { font-weight: bold; color: #4b5563; }
    .actions { margin-top: 24px; text-align: center; }
    .actions a { display: inline-block; margin: 0 6px; padding: 10px 18px; border-radius: 6px;
                 background: #2563eb; color: #fff; text-decoration: none; }
    form { text-align: center; }
    input { padding: 10px; font-size: 16px; width: 240px; border: 1px solid #d1d5db; border-radius: 6px; }
    button { padding: 10px 18px; font-size: 16px; border: 0; border-radius: 6px; background: #2563eb; color: #fff; }
    #message { color: #b91c1c; margin-top: 12px; }
"""


def _page(title: str, body: str) -> str:
    org = escape(settings.ORGANIZATION_NAME)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{escape(title)} | {org}</title>
    <style>{PAGE_STYLE}</style>
</head>
<body>
    <div class="hero">
        <h1>{escape(title)}</h1>
        <p>{org}</p>
    </div>
    <div class="card">
        {body}
    </div>
</body>
</html>"""


def render_verified(certificate: Certificate) -> str:
    submission_id = certificate.submission_id
    links = "".join(
        f'<li><a href="{escape(link)}">{escape(link)}</a></li>'
        for link in certificate.linkedin_links + certificate.github_links
    )
    body = f"""
        <div class="status ok">
            <h2>Certificate Verified &#10003;</h2>
            <p>This certificate is authentic and issued by {escape(settings.ORGANIZATION_NAME)}</p>
        </div>
        <dl>
            <dt>Certificate ID</dt><dd>{escape(submission_id)}</dd>
            <dt>Name</dt><dd>{escape(certificate.candidate_name)}</dd>
            <dt>Domain</dt><dd>{escape(certificate.domain)}</dd>
            <dt>Internship period</dt>
            <dd>{format_display_date(certificate.start_date)} - {format_display_date(certificate.end_date)}</dd>
            <dt>Tasks performed</dt><dd>{certificate.tasks_performed or 0}</dd>
        </dl>
        {f"<h3>Project links</h3><ul>{links}</ul>" if links else ""}
        <div class="actions">
            <a href="{escape(CERTIFICATE_ROUTES.view_url(settings, submission_id))}">View certificate</a>
            <a href="{escape(CERTIFICATE_ROUTES.download_url(settings, submission_id))}">Download</a>
        </div>
    """
    return _page("Certificate Verification", body)


def render_not_found(submission_id: str) -> str:
    body = f"""
        <div class="status bad">
            <h2>Certificate Not Found</h2>
            <p>No certificate has been issued with this ID.</p>
            <p><strong>Certificate ID:</strong> {escape(submission_id)}</p>
        </div>
    """
    return _page("Certificate Verification", body)


@router.get("/verify-certificate/{submission_id}", response_class=HTMLResponse)
async def verify_certificate_page(submission_id: str, db: AsyncSession = Depends(get_db)):
    try:
        certificate = await SubmissionRepository(db, Certificate).get_complete(submission_id)
    except SubmissionNotFoundError:
        logger.log_document_event("certificate", "verify_page_not_found", submission_id)
        return HTMLResponse(render_not_found(submission_id), status_code=404)
    return HTMLResponse(render_verified(certificate))


@router.get("/auth/passcode", response_class=HTMLResponse)
async def passcode_page():
    verify_url = f"/api/{settings.API_VERSION}/verify-passcode"
    body = f"""
        <form id="passcode-form">
            <p>Enter the passcode to open the dashboards.</p>
            <input type="password" id="passcode" autocomplete="current-password" required />
            <button type="submit">Continue</button>
            <div id="message"></div>
        </form>
        <script>
            document.getElementById("passcode-form").addEventListener("submit", async (event) => {{
                event.preventDefault();
                const input = document.getElementById("passcode").value;
                const response = await fetch("{verify_url}", {{
                    method: "POST",
                    headers: {{ "Content-Type": "application/json" }},
                    body: JSON.stringify({{ input }}),
                }});
                if (response.ok) {{
                    const next = new URLSearchParams(window.location.search).get("next") || "/";
                    window.location.href = next;
                }} else {{
                    document.getElementById("message").textContent = "Incorrect passcode";
                }}
            }});
        </script>
    """
    return HTMLResponse(_page("Protected Area", body))
