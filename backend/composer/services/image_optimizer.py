# backend/composer/services/image_optimizer.py
import asyncio
import base64
import binascii
import logging
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from composer.core.config import settings

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/"


def _decode_data_uri(data_uri: str) -> Optional[bytes]:
    if not data_uri or not data_uri.startswith(DATA_URI_PREFIX):
        return None
    header, _, payload = data_uri.partition(",")
    if not payload or ";base64" not in header:
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None


def optimize_image_bytes(data: bytes, max_width: int, quality: int) -> bytes:
    """Downscale to `max_width` (aspect ratio kept) and re-encode as JPEG."""
    with Image.open(BytesIO(data)) as img:
        img.load()
        if img.width > max_width:
            height = max(1, round(img.height * max_width / img.width))
            img = img.resize((max_width, height), Image.Resampling.LANCZOS)
        # JPEG can't have alpha; flatten onto white like a page background
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, (255, 255, 255))
            flattened.paste(rgba, mask=rgba.split()[-1])
            img = flattened
        elif img.mode != "RGB":
            img = img.convert("RGB")

        buf = BytesIO()
        img.save(buf, format="JPEG", quality=quality, optimize=True)
        return buf.getvalue()


def optimize_data_uri(data_uri: str, max_width: Optional[int] = None, quality: Optional[int] = None) -> str:
    """
    Optimised copy of an embedded image. Anything that is not a decodable
    base64 image payload is returned unchanged.
    """
    max_width = max_width or settings.IMAGE_MAX_WIDTH
    quality = quality or settings.IMAGE_JPEG_QUALITY
    data = _decode_data_uri(data_uri)
    if data is None:
        return data_uri
    try:
        optimized = optimize_image_bytes(data, max_width, quality)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("Keeping image payload as is, it could not be decoded: %s", e)
        return data_uri
    return "data:image/jpeg;base64," + base64.b64encode(optimized).decode("ascii")


def optimize_library_image(data_uri: str) -> str:
    """Images picked from the user's library are pre-sized for placement."""
    return optimize_data_uri(
        data_uri,
        max_width=settings.LIBRARY_IMAGE_MAX_WIDTH,
        quality=settings.LIBRARY_IMAGE_JPEG_QUALITY,
    )


async def optimize_data_uri_async(data_uri: str, max_width: Optional[int] = None, quality: Optional[int] = None) -> str:
    # Pillow work is CPU bound; keep it off the event loop
    loop = asyncio.get_event_loop()
    with ThreadPoolExecutor() as pool:
        return await loop.run_in_executor(pool, lambda: optimize_data_uri(data_uri, max_width, quality))
