#!/usr/bin/env python3
import io
import os

from PIL import Image, UnidentifiedImageError


JPEG_QUALITY = 92
SUPPORTED_FORMATS = ["png", "jpg", "jpeg", "webp"]
PIL_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
}


class LogoDecodeError(Exception):
    """Source bytes are not an image Pillow can read."""


def logo_extension(fmt: str) -> str:
    return "jpg" if fmt == "jpeg" else fmt


def decode_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise LogoDecodeError(f"unable to decode image: {e}") from e
    return image


def fit_to_square(image: Image.Image, size: int) -> Image.Image:
    """
    Scale an image to fit inside size x size, keeping its aspect ratio,
    and center it on a transparent canvas.
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")

    width, height = image.size
    scale = min(size / width, size / height)
    new_width = max(1, int(round(width * scale)))
    new_height = max(1, int(round(height * scale)))
    if (new_width, new_height) != (width, height):
        image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    paste_x = (size - new_width) // 2
    paste_y = (size - new_height) // 2
    canvas.paste(image, (paste_x, paste_y))
    return canvas


def normalize_logo(data: bytes, size: int, fmt: str) -> bytes:
    """
    Resize raw image bytes to a size x size logo and encode it as fmt.

    Args:
        data: Source image bytes in any format Pillow can decode
        size: Edge length of the square output in pixels
        fmt: One of png, jpg, jpeg, webp

    Returns:
        Encoded image bytes

    Raises:
        LogoDecodeError: If the source bytes are not a readable image
    """
    if fmt not in PIL_FORMATS:
        raise ValueError(f"unsupported logo format: {fmt}")

    with decode_image(data) as image:
        canvas = fit_to_square(image, size)

    output = io.BytesIO()
    if PIL_FORMATS[fmt] == "JPEG":
        # JPEG has no alpha channel, flatten onto the black letterbox
        flattened = Image.new("RGB", canvas.size, (0, 0, 0))
        flattened.paste(canvas, (0, 0), canvas)
        flattened.save(output, "JPEG", quality=JPEG_QUALITY)
    else:
        canvas.save(output, PIL_FORMATS[fmt])
    return output.getvalue()


def write_logo(data: bytes, target_path: str, size: int, fmt: str):
    output = normalize_logo(data, size, fmt)
    os.makedirs(os.path.dirname(target_path) or ".", exist_ok=True)
    with open(target_path, "wb") as f:
        f.write(output)
