import unicodedata
from urllib.parse import quote

from fastapi import Response

from app.services.export import ExportResult


def content_disposition(filename: str) -> str:
    """
    Cabecera de descarga. Las cabeceras HTTP viajan en latin-1: un nombre no
    ASCII va en `filename*` (RFC 5987) con una alternativa ASCII en `filename`.
    """
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    if ascii_name == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{ascii_name}\"; filename*=utf-8''{quote(filename)}"


def xml_attachment(result: ExportResult) -> Response:
    """Respuesta de descarga para un documento de exportación."""
    return Response(
        content=result.content,
        media_type="application/xml",
        headers={"Content-Disposition": content_disposition(result.filename)},
    )
