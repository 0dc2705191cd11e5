"""
QR Image Renderer

Encodes a string into a PNG QR code and returns it as a base64 data URL
ready for an <img src>. Stateless; the qrcode library does the encoding and
Pillow the rasterizing.
"""

import base64
from io import BytesIO

import qrcode
from PIL import Image, ImageColor
from qrcode.constants import ERROR_CORRECT_M

from qrlink.core.exceptions import QRRenderError

DATA_URL_PREFIX = "data:image/png;base64,"


def render_qr_png(
    data: str,
    fg_color: str = "#000000",
    bg_color: str = "#FFFFFF",
    width: int = 512,
    margin: int = 2
) -> bytes:
    """
    Render ``data`` as a square PNG.

    Args:
        data: Text to encode (the short URL)
        fg_color: Module color, #RRGGBB
        bg_color: Background color, #RRGGBB
        width: Output width and height in pixels
        margin: Quiet zone around the symbol, in modules

    Raises:
        QRRenderError: If the colors are invalid or encoding fails
    """
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,
            box_size=10,
            border=margin,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(
            fill_color=ImageColor.getrgb(fg_color),
            back_color=ImageColor.getrgb(bg_color),
        ).get_image().convert("RGB")

        # Nearest-neighbour keeps module edges sharp at any size
        img = img.resize((width, width), Image.Resampling.NEAREST)

        buffered = BytesIO()
        img.save(buffered, format="PNG")
        return buffered.getvalue()

    except Exception as e:
        raise QRRenderError(f"Failed to render QR code for {data!r}: {e}", original_error=e)


def render_qr_data_url(
    data: str,
    fg_color: str = "#000000",
    bg_color: str = "#FFFFFF",
    width: int = 512,
    margin: int = 2
) -> str:
    png = render_qr_png(data, fg_color=fg_color, bg_color=bg_color, width=width, margin=margin)
    return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")
