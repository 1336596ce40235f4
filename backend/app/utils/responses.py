"""Response helpers shared by the document endpoints"""

from fastapi import Response

from app.services.storage_service import sanitize_key_part


def pdf_response(content: bytes, filename: str, inline: bool = False) -> Response:
    """PDF bytes as a download (attachment) or for in-browser viewing (inline)"""
    disposition = "inline" if inline else "attachment"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'{disposition}; filename="{sanitize_key_part(filename)}"',
            "Cache-Control": "private, max-age=0",
        },
    )
