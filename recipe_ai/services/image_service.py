"""Image validation and downscaling for vision prompts."""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from recipe_ai.config import settings
from recipe_ai.utils.exceptions import ImageProcessingError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_MIME = ("image/jpeg", "image/png", "image/webp")

# Resize/compress before sending to the model
VISION_MAX_DIM = 1400
JPEG_QUALITY = 78
RESIZE_THRESHOLD_BYTES = 350_000


class ImageService:
    """Service for processing uploaded images."""

    @staticmethod
    def validate_image(file_content: bytes, max_size: Optional[int] = None) -> Tuple[bytes, str]:
        """
        Validate an uploaded ingredient photo.

        Args:
            file_content: Image file bytes
            max_size: Size cap in bytes, ``settings.max_request_size`` by default

        Returns:
            Tuple of (image_bytes, mime_type)

        Raises:
            ImageProcessingError: If image is empty, too large or not JPEG/PNG/WebP
        """
        if not file_content:
            raise ImageProcessingError("La imagen está vacía")

        max_size = max_size or settings.max_request_size
        if len(file_content) > max_size:
            raise ImageProcessingError(
                f"La imagen es demasiado grande (máximo {max_size / 1024 / 1024:.0f}MB)"
            )

        mime_type = ImageService.detect_mime_type(file_content)
        if mime_type not in ALLOWED_IMAGE_MIME:
            raise ImageProcessingError(
                f"Formato de imagen no soportado: {mime_type}. Formatos válidos: JPEG, PNG, WebP"
            )

        return file_content, mime_type

    @staticmethod
    def detect_mime_type(file_content: bytes) -> str:
        """Detect MIME type from magic bytes, falling back to Pillow."""
        if file_content.startswith(b"\xff\xd8\xff"):
            return "image/jpeg"
        if file_content.startswith(b"\x89PNG\r\n\x1a\n"):
            return "image/png"
        if file_content.startswith(b"RIFF") and b"WEBP" in file_content[:12]:
            return "image/webp"

        try:
            with Image.open(io.BytesIO(file_content)) as image:
                return f"image/{image.format.lower()}" if image.format else "application/octet-stream"
        except (UnidentifiedImageError, OSError):
            return "application/octet-stream"

    @staticmethod
    def optimize_for_vision(image_bytes: bytes, mime_type: str) -> Tuple[bytes, str]:
        """
        Downscale + compress large photos to reduce model latency.

        Returns: (new_bytes, new_mime). Small images, or images Pillow cannot
        process, are returned unchanged.
        """
        if len(image_bytes) < RESIZE_THRESHOLD_BYTES:
            return image_bytes, mime_type

        try:
            with Image.open(io.BytesIO(image_bytes)) as im:
                # Normalize to RGB; if alpha exists, composite onto white
                if im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info):
                    bg = Image.new("RGBA", im.size, (255, 255, 255, 255))
                    im = Image.alpha_composite(bg, im.convert("RGBA")).convert("RGB")
                else:
                    im = im.convert("RGB")

                w, h = im.size
                max_side = max(w, h)
                if max_side > VISION_MAX_DIM:
                    scale = VISION_MAX_DIM / float(max_side)
                    im = im.resize((max(1, int(w * scale)), max(1, int(h * scale))), Image.LANCZOS)

                out = io.BytesIO()
                im.save(out, format="JPEG", quality=JPEG_QUALITY, optimize=True)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("Image resize/compress skipped: %s", e)
            return image_bytes, mime_type

        optimized = out.getvalue()
        logger.info(
            "Image optimized for vision",
            extra={"orig_bytes": len(image_bytes), "opt_bytes": len(optimized)},
        )
        return optimized, "image/jpeg"
