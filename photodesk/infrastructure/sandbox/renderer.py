from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image, ImageEnhance

from photodesk.application.dtos.processing_dto import AdjustmentVector
from photodesk.application.dtos.watermark_dto import WatermarkSettings

# Preset tunings expressed on the manual slider scale
PRESET_ADJUSTMENTS: dict[str, dict[str, float]] = {
    "natural": {"brightness": 5, "contrast": 10, "saturation": 5, "sharpness": 20},
    "bright": {"brightness": 15, "contrast": 15, "saturation": 10, "sharpness": 30},
    "professional": {"brightness": 3, "contrast": 15, "saturation": 2, "sharpness": 40},
    "hdr": {"brightness": 5, "contrast": 25, "saturation": 10, "sharpness": 30, "shadows": 15, "highlights": -15},
    "interior": {"brightness": 12, "contrast": 8, "sharpness": 20, "shadows": 20, "highlights": -10},
    "exterior": {"brightness": 5, "contrast": 18, "saturation": 15, "sharpness": 40, "shadows": 10, "highlights": -5},
    "twilight": {"brightness": 8, "contrast": 20, "saturation": -5, "sharpness": 10, "shadows": 25, "highlights": -5},
}

MIME_TYPES = {"jpeg": "image/jpeg", "png": "image/png", "webp": "image/webp"}


class AdjustmentRenderer:
    """NumPy tone adjustments. Arrays are float32 RGB (H, W, 3) normalized to [0, 1].

    Every amount is on the slider scale: -100..100, 0 leaves the image as is.
    """

    # I_out = I_in * (1 + a)
    @staticmethod
    def adjust_brightness(matrix: np.ndarray, amount: float) -> np.ndarray:
        return np.clip(matrix * (1.0 + amount / 100.0), 0.0, 1.0).astype(np.float32)

    # I_out = (I_in - 0.5) * (1 + a) + 0.5
    @staticmethod
    def adjust_contrast(matrix: np.ndarray, amount: float) -> np.ndarray:
        out = (matrix - 0.5) * (1.0 + amount / 100.0) + 0.5
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Push each pixel away from (or towards) its luminosity
    @staticmethod
    def adjust_saturation(matrix: np.ndarray, amount: float) -> np.ndarray:
        weights = np.array([0.299, 0.587, 0.114], dtype=np.float32)
        gray = np.dot(matrix, weights)[..., np.newaxis]
        out = gray + (matrix - gray) * (1.0 + amount / 100.0)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Warm shifts red up and blue down; cool does the opposite
    @staticmethod
    def adjust_temperature(matrix: np.ndarray, amount: float) -> np.ndarray:
        shift = 0.1 * amount / 100.0
        out = matrix.copy()
        out[..., 0] += shift
        out[..., 2] -= shift
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # Gamma curve: lifts (or crushes) the dark end more than the bright end
    @staticmethod
    def adjust_shadows(matrix: np.ndarray, amount: float) -> np.ndarray:
        gamma = 1.0 - amount / 200.0
        return np.clip(np.power(matrix, gamma), 0.0, 1.0).astype(np.float32)

    # Weighted by I^2 so mid-tones barely move
    @staticmethod
    def adjust_highlights(matrix: np.ndarray, amount: float) -> np.ndarray:
        out = matrix + np.square(matrix) * (0.25 * amount / 100.0)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    @classmethod
    def apply(cls, matrix: np.ndarray, vector: AdjustmentVector) -> np.ndarray:
        out = matrix
        if vector.crop_enabled and vector.crop is not None:
            c = vector.crop
            out = out[c.y : c.y + c.height, c.x : c.x + c.width]
        if vector.brightness:
            out = cls.adjust_brightness(out, vector.brightness)
        if vector.contrast:
            out = cls.adjust_contrast(out, vector.contrast)
        if vector.saturation:
            out = cls.adjust_saturation(out, vector.saturation)
        if vector.temperature:
            out = cls.adjust_temperature(out, vector.temperature)
        if vector.shadows:
            out = cls.adjust_shadows(out, vector.shadows)
        if vector.highlights:
            out = cls.adjust_highlights(out, vector.highlights)
        return out


def decode(data: bytes) -> np.ndarray:
    img = Image.open(BytesIO(data)).convert("RGB")
    return np.asarray(img).astype(np.float32) / 255.0


def encode(matrix: np.ndarray, format: str = "jpeg", quality: int = 85, sharpness: float = 0) -> bytes:
    img = Image.fromarray((np.clip(matrix, 0.0, 1.0) * 255).astype(np.uint8))
    if sharpness:
        img = ImageEnhance.Sharpness(img).enhance(1.0 + sharpness / 50.0)
    buf = BytesIO()
    if format == "png":
        img.save(buf, format="PNG")
    else:
        img.save(buf, format=format.upper(), quality=quality)
    return buf.getvalue()


def preset_vector(preset: str) -> AdjustmentVector:
    return AdjustmentVector(**PRESET_ADJUSTMENTS[preset])


def render(data: bytes, vector: AdjustmentVector) -> bytes:
    """Decode, adjust, and re-encode with the vector's output settings."""
    out = AdjustmentRenderer.apply(decode(data), vector)
    return encode(out, vector.output.format, vector.output.quality, vector.sharpness)


def apply_watermark(data: bytes, mark: bytes, settings: WatermarkSettings) -> bytes:
    """Composite ``mark`` over ``data``; the result is always a PNG."""
    base = Image.open(BytesIO(data)).convert("RGBA")
    overlay = Image.open(BytesIO(mark)).convert("RGBA")

    width = max(1, base.width * settings.size // 100)
    height = max(1, overlay.height * width // overlay.width)
    overlay = overlay.resize((width, height))
    alpha = (np.asarray(overlay.getchannel("A")).astype(np.float32) * settings.opacity).astype(np.uint8)
    overlay.putalpha(Image.fromarray(alpha))

    pad = settings.padding
    positions = {
        "topLeft": (pad, pad),
        "topRight": (base.width - width - pad, pad),
        "bottomLeft": (pad, base.height - height - pad),
        "bottomRight": (base.width - width - pad, base.height - height - pad),
        "center": ((base.width - width) // 2, (base.height - height) // 2),
    }
    x, y = positions[settings.position]
    base.alpha_composite(overlay, (max(0, x), max(0, y)))

    buf = BytesIO()
    base.save(buf, format="PNG")
    return buf.getvalue()
