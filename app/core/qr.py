import base64
from io import BytesIO

import cv2
import numpy as np
import qrcode
from PIL import Image, UnidentifiedImageError

from app.core.config import settings
from app.core.exceptions.registration_exceptions import InvalidQRCode
from app.core.logger import logger


def generate_qr_png(data: str) -> bytes:
    """
    Render the given string as a QR code and return the PNG bytes.

    :param data: The string to encode in the QR code
    :return: PNG image bytes
    """
    qr = qrcode.QRCode(
        version=None,  # fit=True picks the smallest version that holds the data
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=settings.QR_BOX_SIZE,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color='black', back_color='white')

    buffered = BytesIO()
    img.save(buffered, format='PNG')
    return buffered.getvalue()


def generate_qr_base64(data: str) -> str:
    return base64.b64encode(generate_qr_png(data)).decode('utf-8')


def decode_qr_image(image_bytes: bytes) -> str:
    """Read the first QR code found in an uploaded image (PNG, JPEG...)."""
    try:
        image = Image.open(BytesIO(image_bytes)).convert('RGB')
    except (UnidentifiedImageError, OSError) as e:
        logger.error('Uploaded file is not a readable image: %s', str(e))
        raise InvalidQRCode()

    gray = cv2.cvtColor(np.array(image), cv2.COLOR_RGB2GRAY)
    data, points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    if points is None or not data:
        logger.error('No QR code found in uploaded image')
        raise InvalidQRCode()

    return data.strip()
