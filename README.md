# cbsim

Simulate how images look to people with different kinds of colour
blindness, apply a handful of classic image filters, and serve a small
colour-vision quiz backed by MongoDB.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Image processing

`cbsim.imaging` works on Pillow images:

```python
from cbsim.imaging import decode_image, simulate_color_blindness, daltonize, encode_to_jpeg, PROTANOPIA
from cbsim.operations import Operation, apply_operation

with open("photo.jpg", "rb") as fh:
    img = decode_image(fh.read())

protan = simulate_color_blindness(img, PROTANOPIA)
corrected = daltonize(img, PROTANOPIA)
rotated = apply_operation(img, Operation.ROTATE, 30.0)
jpeg_bytes = encode_to_jpeg(protan)
```

Functions in `cbsim.imaging`:

- `flip_image`, `rotate_image` (counter-clockwise, canvas grows to fit,
  corners transparent), `rotate_image_with_shear` (three shears, size kept);
- `convert_to_grayscale`;
- `apply_box_blur`, `apply_gaussian_blur` and `apply_edge_detection`
  (3x3 kernels; the one-pixel border is left transparent);
- `simulate_color_blindness(img, matrix)` and `daltonize(img, matrix)`
  with any 3x3 matrix, for instance the module's `PROTANOPIA`,
  `DEUTERANOPIA`, `TRITANOPIA`, `PROTANOMALY`, `DEUTERANOMALY`,
  `TRITANOMALY`, `ACHROMATOPSIA` and `MONOCHROMACY`;
- `decode_image` (bytes or a binary stream; raises `ValueError` on
  undecodable data) and `encode_to_jpeg` (transparency is composited
  over black).

`cbsim.operations.Operation` names every operation: flip, rotate,
rotate_shear, grayscale, box_blur, gaussian_blur, edge_detection,
protanopia, deuteranopia, tritanopia, protanomaly, deuteranomaly,
tritanomaly, achromatopsia, monochromacy and daltonize (which corrects
for protanopia). `apply_operation(img, operation, angle)` takes an
`Operation` or its name; an unknown name or `None` returns the image
unchanged. Each operation has a wire number, `Operation.code`, from 1
(flip) to 16 (daltonize) in that order; `operation_from_code` maps back.

## Quizzes

`cbsim.models.Quiz` holds a level, question, options, answer and
explanation; `quiz_from_document` builds one from a stored document.
`cbsim.quiz_api` offers `parse_level`, `find_quizzes(collection, level)`
and `add_quiz(collection, data)`, which raise `QuizError` carrying the
HTTP status to answer with.

## Running the server

```
cbsim
```

The command requires an environment file (`.env` in the working
directory unless `--env-file` says otherwise) and reads `MONGO_URI` from
it; without a URI the MongoDB client's default host is used. Quizzes are
read from the `quizzes` collection of the `gopro` database. Other
options: `--port` (default 8080), `--udp-port` (default 8081),
`--output-dir` (default `output`), `--template-dir` (default
`templates`) and `--static-dir` (default `static`).

It starts:

- an HTTP server serving the pages `index.html`, `learn.html`,
  `quiz.html` and `visualize.html` from the template directory (sent as
  they are, at `/`, `/learn`, `/quiz` and `/visualize`; any other
  unknown path gets the index page), static assets under `/static/` and
  processed images under `/output/`;
- `GET /api/quizzes?level=N`, returning the quizzes of one level as
  JSON, a JSON message with status 404 when there are none, and 400 for
  a missing or non-integer level;
- `POST /visualize` with an `image` form file and one or more
  `operation` query parameters (plus an optional `angle`). It empties the
  output directory, saves `original.jpg` and one `step_<n>_<name>.jpg`
  per operation applied in order, and returns
  `{"images": [...], "operations": [...]}`;
- a UDP service: send a datagram of a 4-byte big-endian operation code
  followed by an encoded image. Rotations use 45 degrees, unknown codes
  leave the image unchanged, the result is written to
  `udp_processed.jpg` in the output directory and
  `Image processed successfully` is sent back. Failed packets are logged
  and get no reply. `cbsim.udp_server.serve` runs the service alone.

`cbsim.web.create_app` builds the Flask application for use under any
WSGI server.

## What it does not do

- No page templates or static assets come with the package; the
  directories given to the server must supply them.
- The quiz collection is never created or filled; it must already hold
  quiz documents. `add_quiz` and `save_upload` are available from Python
  but have no HTTP endpoint.