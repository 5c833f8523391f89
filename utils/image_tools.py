# utils/image_tools.py

from io import BytesIO

from PIL import Image, UnidentifiedImageError

# Pillow format name -> (file extension, content type)
ALLOWED_FORMATS = {
    "JPEG": ("jpg", "image/jpeg"),
    "PNG": ("png", "image/png"),
    "GIF": ("gif", "image/gif"),
}


def inspect_image_bytes(data: bytes) -> tuple[str, str]:
    """
    Identifies an uploaded profile photo by its content rather than by the
    client-supplied content type.

    Returns (ext, content_type). Raises ValueError if the bytes are not an
    image or the format is not JPG, PNG or GIF.
    """
    try:
        img = Image.open(BytesIO(data))
        img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValueError("Profile photo must be JPG, PNG, or GIF")

    fmt = (img.format or "").upper()
    if fmt not in ALLOWED_FORMATS:
        raise ValueError("Profile photo must be JPG, PNG, or GIF")
    return ALLOWED_FORMATS[fmt]
