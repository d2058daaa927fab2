"""Named image operations and their numeric wire codes."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Union

from PIL import Image

from cbsim import imaging


class Operation(Enum):
    """An image operation, identified by name; ``code`` is its wire number."""

    FLIP = "flip"
    ROTATE = "rotate"
    ROTATE_SHEAR = "rotate_shear"
    GRAYSCALE = "grayscale"
    BOX_BLUR = "box_blur"
    GAUSSIAN_BLUR = "gaussian_blur"
    EDGE_DETECTION = "edge_detection"
    PROTANOPIA = "protanopia"
    DEUTERANOPIA = "deuteranopia"
    TRITANOPIA = "tritanopia"
    PROTANOMALY = "protanomaly"
    DEUTERANOMALY = "deuteranomaly"
    TRITANOMALY = "tritanomaly"
    ACHROMATOPSIA = "achromatopsia"
    MONOCHROMACY = "monochromacy"
    DALTONIZE = "daltonize"

    @property
    def code(self) -> int:
        return _CODES[self]


_CODES = {op: number for number, op in enumerate(Operation, start=1)}
_BY_CODE = {number: op for op, number in _CODES.items()}


def _matrix_filter(matrix: imaging.Matrix) -> Callable[[Image.Image, float], Image.Image]:
    return lambda img, _angle: imaging.simulate_color_blindness(img, matrix)


_HANDLERS: dict[Operation, Callable[[Image.Image, float], Image.Image]] = {
    Operation.FLIP: lambda img, _angle: imaging.flip_image(img),
    Operation.ROTATE: imaging.rotate_image,
    Operation.ROTATE_SHEAR: imaging.rotate_image_with_shear,
    Operation.GRAYSCALE: lambda img, _angle: imaging.convert_to_grayscale(img),
    Operation.BOX_BLUR: lambda img, _angle: imaging.apply_box_blur(img),
    Operation.GAUSSIAN_BLUR: lambda img, _angle: imaging.apply_gaussian_blur(img),
    Operation.EDGE_DETECTION: lambda img, _angle: imaging.apply_edge_detection(img),
    Operation.PROTANOPIA: _matrix_filter(imaging.PROTANOPIA),
    Operation.DEUTERANOPIA: _matrix_filter(imaging.DEUTERANOPIA),
    Operation.TRITANOPIA: _matrix_filter(imaging.TRITANOPIA),
    Operation.PROTANOMALY: _matrix_filter(imaging.PROTANOMALY),
    Operation.DEUTERANOMALY: _matrix_filter(imaging.DEUTERANOMALY),
    Operation.TRITANOMALY: _matrix_filter(imaging.TRITANOMALY),
    Operation.ACHROMATOPSIA: _matrix_filter(imaging.ACHROMATOPSIA),
    Operation.MONOCHROMACY: _matrix_filter(imaging.MONOCHROMACY),
    Operation.DALTONIZE: lambda img, _angle: imaging.daltonize(img, imaging.PROTANOPIA),
}


def operation_from_code(code: int) -> Optional[Operation]:
    """Return the operation with wire number ``code``, or None if there is none."""
    return _BY_CODE.get(code)


def apply_operation(
    img: Image.Image,
    operation: Union[Operation, str, None],
    angle: float = 0.0,
) -> Image.Image:
    """Apply ``operation`` to ``img``; unknown or missing operations return ``img`` unchanged."""
    if isinstance(operation, str) and not isinstance(operation, Operation):
        try:
            operation = Operation(operation)
        except ValueError:
            return img
    if operation is None:
        return img
    return _HANDLERS[operation](img, angle)