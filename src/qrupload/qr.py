"""QR code rendering."""

from __future__ import annotations

import io
import logging

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage

from qrupload.models.config import QRConfig

logger = logging.getLogger(__name__)

PNG_CONTENT_TYPE = "image/png"

_ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


class QRRenderError(ValueError):
    """Raised when data cannot be encoded as a QR code."""


def render_qr_png(data: str, options: QRConfig | None = None) -> bytes:
    """Encode `data` as a QR code and return the PNG bytes.

    The smallest QR version that fits the data is chosen.

    Raises:
        QRRenderError: If the encoder rejects the data (e.g. exceeds QR capacity).
    """
    opts = options or QRConfig()
    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[opts.error_correction],
        box_size=opts.box_size,
        border=opts.border,
        image_factory=PilImage,
    )
    try:
        qr.add_data(data)
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        # qrcode 8 reports overflow as an invalid version instead of DataOverflowError
        raise QRRenderError(
            f"Data too large for a QR code ({len(data)} chars, level {opts.error_correction})"
        ) from exc

    img = qr.make_image(fill_color=opts.fill_color, back_color=opts.back_color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    png = buf.getvalue()
    logger.debug("Rendered QR code: version=%d bytes=%d", qr.version, len(png))
    return png
