"""Local preview generation for selected images."""
import base64
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from humorai.models.pipeline import ImageFile


def to_data_url(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def build_preview(image_file: ImageFile, max_size: int = 512) -> str:
    """
    Build a `data:` URL preview of an image.

    A JPEG thumbnail is produced when Pillow can decode the image. Formats it cannot
    read (HEIC without a plugin, truncated files) fall back to the original bytes.

    :param image_file: Selected image
    :param max_size: Longest edge of the thumbnail in pixels
    :return: A data URL suitable for an <img> src
    """
    try:
        with Image.open(BytesIO(image_file.data)) as pil_image:
            pil_image.thumbnail((max_size, max_size))
            out_bytes = BytesIO()
            pil_image.convert('RGB').save(out_bytes, 'jpeg')
            return to_data_url(out_bytes.getvalue(), 'image/jpeg')
    except (UnidentifiedImageError, OSError):
        return to_data_url(image_file.data, image_file.content_type)
