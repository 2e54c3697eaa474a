"""Table QR codes pointing at the guest ordering page."""

import base64
import io

import qrcode
import qrcode.image.svg
from fastapi import APIRouter, Depends, Path

from festbar.core.config import settings
from festbar.core.pin_gate import require_pin
from festbar.schemas.table import QRCodeRequest, QRCodeResponse

router = APIRouter()


def table_url(table_number: int) -> str:
    return f"{settings.public_base_url.rstrip('/')}/table/{table_number}"


def render_qr(url: str, fmt: str = "png") -> str:
    """QR code for ``url``: base64 PNG, or SVG markup."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(url)
    qr.make(fit=True)

    buffer = io.BytesIO()
    if fmt == "svg":
        img = qr.make_image(image_factory=qrcode.image.svg.SvgPathImage)
        img.save(buffer)
        return buffer.getvalue().decode("utf-8")

    img = qr.make_image(fill_color="black", back_color="white")
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


@router.post(
    "/{table_number}/qr-code",
    response_model=QRCodeResponse,
    dependencies=[Depends(require_pin("table_management"))],
)
def generate_table_qr(body: QRCodeRequest, table_number: int = Path(..., ge=1)):
    """Generate the QR code printed on a table."""
    url = table_url(table_number)
    return QRCodeResponse(
        table_number=table_number,
        url=url,
        format=body.format,
        qr_data=render_qr(url, body.format),
    )
