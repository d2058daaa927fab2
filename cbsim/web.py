"""HTTP front end: pages, image uploads, processed output and the quiz API."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import threading
from http import HTTPStatus
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Union

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request, send_from_directory
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from cbsim import imaging, udp_server
from cbsim.operations import apply_operation
from cbsim.quiz_api import QuizError, find_quizzes, parse_level

logger = logging.getLogger(__name__)

HTTP_PORT = 8080
DATABASE_NAME = "gopro"
COLLECTION_NAME = "quizzes"
ORIGINAL_NAME = "original.jpg"
OUTPUT_URL_PREFIX = "/output/"

PathLike = Union[str, "os.PathLike[str]"]


def cleanup_output_directory(output_dir: PathLike = "output") -> None:
    """Delete every regular file directly inside ``output_dir``; subdirectories stay."""
    for entry in Path(output_dir).iterdir():
        if not entry.is_dir():
            entry.unlink()


def _save_jpeg(img: Any, path: Path) -> None:
    try:
        path.write_bytes(imaging.encode_to_jpeg(img))
    except OSError as exc:
        logger.error("Error saving image %s: %s", path, exc)


def process_upload(
    image_data: bytes,
    operations: Iterable[str],
    angle: float = 0.0,
    output_dir: PathLike = "output",
) -> dict[str, Any]:
    """Apply ``operations`` in turn, saving the original and every step as JPEG.

    Returns the URLs of the saved images and the operations applied
    (None when there were none). Raises ValueError if the image cannot be decoded.
    """
    src = imaging.decode_image(image_data)
    names = list(operations)
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    processed = src
    _save_jpeg(processed, directory / ORIGINAL_NAME)
    urls = [OUTPUT_URL_PREFIX + ORIGINAL_NAME]

    for step, name in enumerate(names, start=1):
        processed = apply_operation(processed, name, angle)
        filename = f"step_{step}_{name}.jpg"
        _save_jpeg(processed, directory / filename)
        urls.append(OUTPUT_URL_PREFIX + filename)

    return {"images": urls, "operations": names or None}


def save_upload(filename: str, data: bytes, output_dir: PathLike = "output") -> Path:
    """Store an uploaded file under its own base name in ``output_dir``."""
    name = Path(filename.replace("\\", "/")).name
    if not name or name in (".", ".."):
        raise ValueError("invalid upload file name")
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / name
    target.write_bytes(data)
    logger.info("File uploaded successfully: %s", name)
    return target


def _error(message: str, status: HTTPStatus) -> Response:
    return Response(
        message + "\n",
        status=int(status),
        content_type="text/plain; charset=utf-8",
    )


def _parse_angle(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        return float(value)
    except ValueError:
        return 0.0


def create_app(
    collection: Any = None,
    output_dir: PathLike = "output",
    template_dir: PathLike = "templates",
    static_dir: PathLike = "static",
) -> Flask:
    """Build the web application around a quiz collection and three directories."""
    output_path = Path(output_dir).resolve()
    template_path = Path(template_dir).resolve()
    static_path = Path(static_dir).resolve()

    app = Flask(__name__, static_folder=None)

    def render_page(name: str) -> Response:
        page = template_path / f"{name}.html"
        try:
            text = page.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error loading template %s: %s", name, exc)
            return _error("Error loading page", HTTPStatus.INTERNAL_SERVER_ERROR)
        return Response(text, mimetype="text/html")

    def handle_upload() -> Response:
        try:
            cleanup_output_directory(output_path)
        except OSError as exc:
            logger.error("Error cleaning up output directory: %s", exc)

        upload = request.files.get("image")
        if upload is None:
            return _error("Error reading file", HTTPStatus.BAD_REQUEST)
        data = upload.read()

        operations: Sequence[str] = request.args.getlist("operation")
        angle = _parse_angle(request.args.get("angle"))
        try:
            result = process_upload(data, operations, angle, output_path)
        except ValueError:
            return _error("Error decoding image", HTTPStatus.INTERNAL_SERVER_ERROR)
        return jsonify(result)

    @app.route("/", defaults={"_path": ""})
    @app.route("/<path:_path>")
    def index(_path: str) -> Response:
        return render_page("index")

    @app.route("/learn")
    def learn() -> Response:
        return render_page("learn")

    @app.route("/quiz")
    def quiz() -> Response:
        return render_page("quiz")

    @app.route("/visualize", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
    def visualize() -> Response:
        if request.method == "POST":
            return handle_upload()
        return render_page("visualize")

    @app.route("/output/<path:filename>")
    def output_file(filename: str) -> Response:
        return send_from_directory(output_path, filename)

    @app.route("/static/<path:filename>")
    def static_file(filename: str) -> Response:
        return send_from_directory(static_path, filename)

    @app.route("/api/quizzes", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
    def api_quizzes() -> Response:
        try:
            level = parse_level(request.args.get("level"))
            if collection is None:
                raise QuizError(HTTPStatus.INTERNAL_SERVER_ERROR, "Error querying database")
            quizzes = find_quizzes(collection, level)
        except QuizError as exc:
            if exc.status == HTTPStatus.NOT_FOUND:
                response = jsonify({"message": exc.message})
                response.status_code = int(exc.status)
                return response
            return _error(exc.message, exc.status)
        return jsonify([quiz.to_dict() for quiz in quizzes])

    return app


def _run_udp_server(port: int, output_dir: Path) -> None:
    asyncio.run(udp_server.serve(port=port, output_dir=output_dir))


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Start the UDP image service and the web server."""
    parser = argparse.ArgumentParser(prog="cbsim", description="Colour-blindness simulator server.")
    parser.add_argument("--env-file", default=".env", help="environment file to load")
    parser.add_argument("--port", type=int, default=HTTP_PORT, help="HTTP port")
    parser.add_argument("--udp-port", type=int, default=udp_server.UDP_PORT, help="UDP port")
    parser.add_argument("--output-dir", default="output", help="directory for processed images")
    parser.add_argument("--template-dir", default="templates", help="directory of page templates")
    parser.add_argument("--static-dir", default="static", help="directory of static assets")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    if not Path(args.env_file).is_file():
        raise SystemExit("Error loading .env file")
    load_dotenv(args.env_file)

    uri = os.environ.get("MONGO_URI") or None
    try:
        client: MongoClient = MongoClient(uri)
    except (PyMongoError, ValueError, TypeError) as exc:
        raise SystemExit(str(exc)) from exc

    try:
        collection = client[DATABASE_NAME][COLLECTION_NAME]
        output_dir = Path(args.output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SystemExit(f"Failed to create output directory: {exc}") from exc

        threading.Thread(
            target=_run_udp_server,
            args=(args.udp_port, output_dir),
            daemon=True,
        ).start()

        app = create_app(collection, output_dir, args.template_dir, args.static_dir)
        print(f"🚀 Server started at http://localhost:{args.port}")
        app.run(host="0.0.0.0", port=args.port)
    finally:
        client.close()