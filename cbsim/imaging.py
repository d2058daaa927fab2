"""Pixel-level image filters and colour-vision deficiency simulation."""

from __future__ import annotations

import io
from typing import BinaryIO, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

Matrix = Sequence[Sequence[float]]

PROTANOPIA: Matrix = ((0.56667, 0.43333, 0), (0.55833, 0.44167, 0), (0, 0.24167, 0.75833))
DEUTERANOPIA: Matrix = ((0.625, 0.375, 0), (0.7, 0.3, 0), (0, 0.3, 0.7))
TRITANOPIA: Matrix = ((0.95, 0.05, 0), (0, 0.43333, 0.56667), (0, 0.475, 0.525))
PROTANOMALY: Matrix = ((0.816, 0.184, 0), (0.333, 0.667, 0), (0, 0.125, 0.875))
DEUTERANOMALY: Matrix = ((0.8, 0.2, 0), (0.258, 0.742, 0), (0, 0.142, 0.858))
TRITANOMALY: Matrix = ((0.967, 0.033, 0), (0, 0.733, 0.267), (0, 0.183, 0.817))
ACHROMATOPSIA: Matrix = ((0.299, 0.587, 0.114), (0.299, 0.587, 0.114), (0.299, 0.587, 0.114))
MONOCHROMACY: Matrix = ((0.33, 0.33, 0.33), (0.33, 0.33, 0.33), (0.33, 0.33, 0.33))

BOX_BLUR_KERNEL: Matrix = tuple((1.0 / 9, 1.0 / 9, 1.0 / 9) for _ in range(3))
GAUSSIAN_BLUR_KERNEL: Matrix = (
    (0.0625, 0.125, 0.0625),
    (0.125, 0.25, 0.125),
    (0.0625, 0.125, 0.0625),
)
SOBEL_X: Matrix = ((-1, 0, 1), (-2, 0, 2), (-1, 0, 1))
SOBEL_Y: Matrix = ((-1, -2, -1), (0, 0, 0), (1, 2, 1))

DALTONIZE_STRENGTH = 0.6
JPEG_QUALITY = 95


def _to_array(img: Image.Image) -> np.ndarray:
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def _from_array(arr: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8))


def _to_channel(values: np.ndarray) -> np.ndarray:
    """Clamp to [0, 255] and truncate to 8-bit."""
    return np.clip(values, 0, 255).astype(np.uint8)


def _check_matrix(matrix: Matrix) -> tuple[tuple[float, ...], ...]:
    rows = tuple(tuple(float(v) for v in row) for row in matrix)
    if len(rows) != 3 or any(len(row) != 3 for row in rows):
        raise ValueError("matrix must be 3x3")
    return rows


def flip_image(img: Image.Image) -> Image.Image:
    """Flip the image upside down."""
    return _from_array(_to_array(img)[::-1])


def rotate_image(img: Image.Image, angle: float) -> Image.Image:
    """Rotate counter-clockwise by ``angle`` degrees, growing the canvas to fit."""
    return img.convert("RGBA").rotate(
        angle,
        resample=Image.Resampling.BILINEAR,
        expand=True,
        fillcolor=(0, 0, 0, 0),
    )


def _shear(arr: np.ndarray, factor: float, horizontal: bool) -> np.ndarray:
    height, width = arr.shape[:2]
    out = np.zeros_like(arr)
    ys, xs = np.mgrid[0:height, 0:width]
    if horizontal:
        new_x = xs + np.trunc(ys * factor).astype(np.int64)
        new_y = ys
    else:
        new_x = xs
        new_y = ys + np.trunc(xs * factor).astype(np.int64)
    inside = (new_x >= 0) & (new_x < width) & (new_y >= 0) & (new_y < height)
    out[new_y[inside], new_x[inside]] = arr[ys[inside], xs[inside]]
    return out


def rotate_image_with_shear(img: Image.Image, angle: float) -> Image.Image:
    """Rotate by ``angle`` degrees using three shears, keeping the original size."""
    theta = np.deg2rad(angle)
    alpha = -np.tan(theta / 2)
    beta = np.sin(theta)
    arr = _to_array(img)
    arr = _shear(arr, alpha, horizontal=True)
    arr = _shear(arr, beta, horizontal=False)
    arr = _shear(arr, alpha, horizontal=True)
    return _from_array(arr)


def _grayscale_array(arr: np.ndarray) -> np.ndarray:
    rgb = arr[..., :3].astype(np.float64)
    gray = (0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]).astype(np.uint8)
    out = np.empty_like(arr)
    out[..., 0] = out[..., 1] = out[..., 2] = gray
    out[..., 3] = arr[..., 3]
    return out


def convert_to_grayscale(img: Image.Image) -> Image.Image:
    """Convert to luma-weighted grayscale, keeping alpha."""
    return _from_array(_grayscale_array(_to_array(img)))


def _convolve(channels: np.ndarray, kernel: Matrix) -> np.ndarray:
    """Sum a 3x3 neighbourhood over the interior, in row-major kernel order."""
    height, width = channels.shape[:2]
    acc = np.zeros((height - 2, width - 2) + channels.shape[2:], dtype=np.float64)
    for ky, row in enumerate(kernel):
        for kx, weight in enumerate(row):
            acc = acc + channels[ky:ky + height - 2, kx:kx + width - 2] * weight
    return acc


def _apply_kernel(img: Image.Image, kernel: Matrix) -> Image.Image:
    arr = _to_array(img)
    height, width = arr.shape[:2]
    out = np.zeros_like(arr)
    if height >= 3 and width >= 3:
        acc = _convolve(arr[..., :3].astype(np.float64), kernel)
        out[1:-1, 1:-1, :3] = _to_channel(acc)
        out[1:-1, 1:-1, 3] = 255
    return _from_array(out)


def apply_box_blur(img: Image.Image) -> Image.Image:
    """Blur with a 3x3 box kernel; the one-pixel border is left transparent."""
    return _apply_kernel(img, BOX_BLUR_KERNEL)


def apply_gaussian_blur(img: Image.Image) -> Image.Image:
    """Blur with a 3x3 Gaussian kernel; the one-pixel border is left transparent."""
    return _apply_kernel(img, GAUSSIAN_BLUR_KERNEL)


def apply_edge_detection(img: Image.Image) -> Image.Image:
    """Sobel gradient magnitude of the grayscale image; border left transparent."""
    arr = _to_array(img)
    height, width = arr.shape[:2]
    out = np.zeros_like(arr)
    if height >= 3 and width >= 3:
        gray = _grayscale_array(arr)[..., 0].astype(np.float64)
        gx = _convolve(gray, SOBEL_X)
        gy = _convolve(gray, SOBEL_Y)
        magnitude = _to_channel(np.sqrt(gx * gx + gy * gy))
        out[1:-1, 1:-1, 0] = out[1:-1, 1:-1, 1] = out[1:-1, 1:-1, 2] = magnitude
        out[1:-1, 1:-1, 3] = 255
    return _from_array(out)


def _transform(arr: np.ndarray, rows: tuple[tuple[float, ...], ...]) -> list[np.ndarray]:
    r, g, b = (arr[..., i].astype(np.float64) for i in range(3))
    return [np.clip(r * m0 + g * m1 + b * m2, 0, 255) for m0, m1, m2 in rows]


def simulate_color_blindness(img: Image.Image, matrix: Matrix) -> Image.Image:
    """Apply a 3x3 colour transform to every pixel, keeping alpha."""
    rows = _check_matrix(matrix)
    arr = _to_array(img)
    out = np.empty_like(arr)
    for channel, values in enumerate(_transform(arr, rows)):
        out[..., channel] = values.astype(np.uint8)
    out[..., 3] = arr[..., 3]
    return _from_array(out)


def daltonize(img: Image.Image, matrix: Matrix) -> Image.Image:
    """Shift colours away from what the deficiency ``matrix`` loses."""
    rows = _check_matrix(matrix)
    arr = _to_array(img)
    out = np.empty_like(arr)
    for channel, simulated in enumerate(_transform(arr, rows)):
        original = arr[..., channel].astype(np.float64)
        error = original - simulated
        out[..., channel] = _to_channel(original + error * DALTONIZE_STRENGTH)
    out[..., 3] = arr[..., 3]
    return _from_array(out)


def decode_image(data: Union[bytes, bytearray, BinaryIO]) -> Image.Image:
    """Decode image bytes (or a binary stream) in any format Pillow reads."""
    if hasattr(data, "read"):
        data = data.read()
    try:
        img = Image.open(io.BytesIO(bytes(data)))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"cannot decode image: {exc}") from exc
    return img


def encode_to_jpeg(img: Image.Image) -> bytes:
    """Encode as JPEG, compositing any transparency over black."""
    rgba = img.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
    flat = Image.alpha_composite(background, rgba).convert("RGB")
    buffer = io.BytesIO()
    flat.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()