"""Table QR code schemas"""
from typing import Literal

from pydantic import BaseModel


class QRCodeRequest(BaseModel):
    format: Literal["png", "svg"] = "png"


class QRCodeResponse(BaseModel):
    table_number: int
    url: str
    format: str
    qr_data: str  # base64 for PNG, markup for SVG
