"""
Ciclus RD - Photo Storage
Downscale evidence photos to JPEG and store them under a path-addressed
directory; the persisted reference is the public URL.
"""

import io
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from ciclus_rd.shared.config import Settings, settings as default_settings
from ciclus_rd.shared.enums import PhotoKind
from ciclus_rd.shared.errors import BackendWriteError, ValidationError
from ciclus_rd.shared.utils import sanitize_path_segment


class PhotoStorage:
    """Compress-then-store for report photos"""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.root = Path(self.settings.photo_dir)

    def compress(self, data: bytes) -> bytes:
        """Cap the longest edge and re-encode as JPEG at the configured quality"""
        try:
            image = Image.open(io.BytesIO(data))
            image = ImageOps.exif_transpose(image)
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError("Arquivo de imagem inválido") from e

        max_dim = self.settings.photo_max_dimension
        image.thumbnail((max_dim, max_dim))
        if image.mode != "RGB":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=self.settings.photo_jpeg_quality)
        return buffer.getvalue()

    def upload(self, data: bytes, path: str) -> str:
        """Store the compressed image at <path>.jpg (overwriting) and return its URL"""
        compressed = self.compress(data)
        relative = "/".join(sanitize_path_segment(part) for part in path.split("/") if part) + ".jpg"
        target = self.root / relative

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(compressed)
        except OSError as e:
            raise BackendWriteError(f"Falha ao enviar foto: {e}") from e

        logger.info(f"Photo stored: {relative} ({len(data)} -> {len(compressed)} bytes)")
        return f"{self.settings.photo_base_url.rstrip('/')}/{relative}"

    def upload_report_photo(self, data: bytes, owner_id: str, kind: PhotoKind) -> str:
        stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        return self.upload(data, f"{owner_id}/{kind.value}_{stamp}")

    def resolve(self, url: str) -> Optional[Path]:
        """Local file behind a stored photo URL, if it is one of ours"""
        prefix = self.settings.photo_base_url.rstrip("/") + "/"
        if not url or not url.startswith(prefix):
            return None
        return self.root / url[len(prefix):]
