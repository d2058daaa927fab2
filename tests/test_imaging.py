import io

import numpy as np
import pytest
from PIL import Image

from cbsim import imaging

IDENTITY = ((1, 0, 0), (0, 1, 0), (0, 0, 1))


def random_image(height=6, width=5, seed=0, opaque=True):
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, (height, width, 4), dtype=np.uint8)
    if opaque:
        arr[..., 3] = 255
    return Image.fromarray(arr)


def uniform_image(value, height=5, width=5):
    arr = np.full((height, width, 4), value, dtype=np.uint8)
    arr[..., 3] = 255
    return Image.fromarray(arr)


def pixels(img):
    return np.array(img.convert("RGBA"))


def test_flip_moves_top_row_to_bottom():
    img = random_image()
    flipped = pixels(imaging.flip_image(img))
    original = pixels(img)
    assert np.array_equal(flipped[-1], original[0])
    assert np.array_equal(flipped[0], original[-1])


def test_flip_twice_restores_image():
    img = random_image(seed=3)
    assert np.array_equal(pixels(imaging.flip_image(imaging.flip_image(img))), pixels(img))


def test_rotate_ninety_swaps_dimensions():
    img = random_image(height=2, width=4)
    assert imaging.rotate_image(img, 90).size == (2, 4)


def test_rotate_ninety_four_times_restores_image():
    img = random_image(height=3, width=4, seed=5)
    out = img
    for _ in range(4):
        out = imaging.rotate_image(out, 90)
    assert np.array_equal(pixels(out), pixels(img))


def test_shear_rotation_by_zero_is_identity():
    img = random_image(seed=1)
    assert np.array_equal(pixels(imaging.rotate_image_with_shear(img, 0)), pixels(img))


def test_shear_rotation_keeps_size_and_pixel_multiset_subset():
    img = random_image(height=7, width=7, seed=2)
    out = imaging.rotate_image_with_shear(img, 30)
    assert out.size == img.size
    original_colours = {tuple(p) for p in pixels(img).reshape(-1, 4)}
    for p in pixels(out).reshape(-1, 4):
        assert tuple(p) in original_colours or p[3] == 0


def test_grayscale_channels_equal_and_alpha_kept():
    img = random_image(opaque=False, seed=4)
    gray = pixels(imaging.convert_to_grayscale(img))
    assert np.array_equal(gray[..., 0], gray[..., 1])
    assert np.array_equal(gray[..., 1], gray[..., 2])
    assert np.array_equal(gray[..., 3], pixels(img)[..., 3])


def test_grayscale_of_black_is_black():
    gray = pixels(imaging.convert_to_grayscale(uniform_image(0)))
    assert not gray[..., :3].any()


def test_box_blur_border_transparent_and_interior_opaque():
    out = pixels(imaging.apply_box_blur(random_image(seed=6)))
    assert not out[0].any() and not out[-1].any()
    assert not out[:, 0].any() and not out[:, -1].any()
    assert (out[1:-1, 1:-1, 3] == 255).all()


def test_box_blur_stays_within_input_range():
    img = random_image(height=8, width=8, seed=7)
    src = pixels(img)[..., :3]
    out = pixels(imaging.apply_box_blur(img))[1:-1, 1:-1, :3].astype(int)
    assert out.max() <= int(src.max())
    assert out.min() >= int(src.min()) - 1


def test_gaussian_blur_of_uniform_image_keeps_value():
    out = pixels(imaging.apply_gaussian_blur(uniform_image(120)))
    assert (out[1:-1, 1:-1, :3] == 120).all()


def test_blur_of_tiny_image_is_empty():
    out = pixels(imaging.apply_gaussian_blur(random_image(height=2, width=2)))
    assert not out.any()


def test_edge_detection_of_uniform_image_is_dark():
    out = pixels(imaging.apply_edge_detection(uniform_image(120)))
    assert not out[1:-1, 1:-1, :3].any()
    assert (out[1:-1, 1:-1, 3] == 255).all()
    assert not out[0].any()


def test_edge_detection_finds_vertical_edge():
    arr = np.zeros((5, 6, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[:, 3:, :3] = 200
    out = pixels(imaging.apply_edge_detection(Image.fromarray(arr)))
    assert out[2, 2, 0] > out[2, 1, 0]
    assert out[2, 3, 0] > out[2, 4, 0]


def test_simulate_with_identity_matrix_preserves_image():
    img = random_image(opaque=False, seed=8)
    assert np.array_equal(pixels(imaging.simulate_color_blindness(img, IDENTITY)), pixels(img))


def test_achromatopsia_gives_equal_channels():
    out = pixels(imaging.simulate_color_blindness(random_image(seed=9), imaging.ACHROMATOPSIA))
    assert np.array_equal(out[..., 0], out[..., 1])
    assert np.array_equal(out[..., 1], out[..., 2])


def test_simulation_clamps_to_255():
    doubled = ((2, 0, 0), (0, 2, 0), (0, 0, 2))
    out = pixels(imaging.simulate_color_blindness(uniform_image(200), doubled))
    assert (out[..., :3] == 255).all()


def test_simulation_rejects_non_square_matrix():
    with pytest.raises(ValueError):
        imaging.simulate_color_blindness(random_image(), ((1, 0), (0, 1)))


def test_daltonize_with_identity_matrix_preserves_image():
    img = random_image(seed=10)
    assert np.array_equal(pixels(imaging.daltonize(img, IDENTITY)), pixels(img))


def test_daltonize_keeps_grays_where_protanopia_keeps_them():
    img = uniform_image(0)
    assert not pixels(imaging.daltonize(img, imaging.PROTANOPIA))[..., :3].any()


def test_encode_to_jpeg_produces_jpeg_that_decodes():
    img = random_image(height=4, width=9, seed=11)
    data = imaging.encode_to_jpeg(img)
    assert data[:2] == b"\xff\xd8"
    decoded = imaging.decode_image(data)
    assert decoded.format == "JPEG"
    assert decoded.size == img.size


def test_decode_png_round_trip_is_exact():
    img = random_image(seed=12, opaque=False)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    decoded = imaging.decode_image(buffer.getvalue())
    assert np.array_equal(pixels(decoded), pixels(img))


def test_decode_accepts_stream():
    img = random_image(seed=13)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    assert imaging.decode_image(buffer).size == img.size


def test_decode_rejects_garbage():
    with pytest.raises(ValueError):
        imaging.decode_image(b"not an image")