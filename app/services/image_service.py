"""Validate uploaded product images and stage them for the product form.

Images are re-encoded locally, then uploaded to the product API's upload
endpoint, which answers with the hosted URL. Only the URL is staged in the
form; the product itself references the image once the form is submitted.
"""
import asyncio
import io
import logging

from PIL import Image as PILImage

from app.exceptions import ApiError, EntityNotFoundError
from app.models.image import StagedImage

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


def validate_image(image_bytes):
    """Validate and sanitize uploaded image.

    - Checks file size
    - Verifies it's a real image via Pillow
    - Strips EXIF data by re-encoding
    - Converts to JPEG

    Returns:
        Sanitized JPEG bytes

    Raises:
        ValueError on invalid input
    """
    if not image_bytes:
        raise ValueError("Empty image file")
    if len(image_bytes) > MAX_FILE_SIZE:
        raise ValueError(f"Image too large: {len(image_bytes)} bytes (max {MAX_FILE_SIZE})")

    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        img.verify()  # verify it's a real image
    except Exception:
        raise ValueError("Invalid image file")

    # Re-open (verify() closes the file) and re-encode to strip EXIF
    img = PILImage.open(io.BytesIO(image_bytes))
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


async def upload_image(client, filename, image_bytes):
    """Upload one image. Returns the hosted URL."""
    data = await client.post(
        client.context.product_url("/api/upload"),
        json_body=False,
        files={"file": (filename, image_bytes, "image/jpeg")},
    )
    url = data.get("url") if isinstance(data, dict) else None
    if not url:
        raise ApiError("Upload succeeded but no URL was returned")
    return url


async def upload_images(client, files):
    """Validate and upload ``files`` concurrently.

    Args:
        files: iterable of (filename, bytes)

    Returns:
        (urls, errors): URLs in completion order, and one message per
        file that failed validation or upload.
    """
    errors = []
    prepared = []
    for filename, raw in files:
        try:
            prepared.append((filename, validate_image(raw)))
        except ValueError as e:
            errors.append(f"{filename}: {e}")

    async def upload(filename, data):
        try:
            return await upload_image(client, filename, data), None
        except ApiError as e:
            logger.warning("Upload of %s failed: %s", filename, e.message)
            return None, f"{filename}: {e.message}"

    urls = []
    for finished in asyncio.as_completed([upload(f, d) for f, d in prepared]):
        url, error = await finished
        if url:
            urls.append(url)
        else:
            errors.append(error)
    return urls, errors


def stage_uploaded(images, urls):
    images.extend(StagedImage(url=url) for url in urls)
    return images


def remove_image(images, index):
    """Drop a staged image. Server images are deleted on submit, not here."""
    if not 0 <= index < len(images):
        raise EntityNotFoundError("Image", index)
    return images.pop(index)


def images_from_snapshot(snapshot):
    if snapshot is None:
        return []
    ordered = sorted(snapshot.images, key=lambda img: img.position)
    return [StagedImage(url=img.url, id=img.id) for img in ordered]
