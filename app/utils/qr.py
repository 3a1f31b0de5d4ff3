"""
QR code rendering for member check-in tokens
"""
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def render_qr_png(data: str, box_size: int = 8, border: int = 2) -> bytes:
    """Encode ``data`` as a black-on-white PNG"""
    if not data:
        raise ValueError("Nothing to encode")

    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
