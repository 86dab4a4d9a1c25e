import logging
import os
import uuid

from flask import Flask, jsonify, request

from config import (
    ALLOWED_EXTENSIONS,
    DEFAULT_MAX_SUB_CHAPTER_DEPTH,
    DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS,
    DEFAULT_USE_SMART_DETECTION,
    LOG_LEVEL,
    MAX_FILE_SIZE,
    UPLOAD_FOLDER,
)
from extractors import (
    ExtractionError,
    FetchError,
    detect_kind,
    extract_chapters,
    extract_chapters_from_text,
    extract_chapters_from_url,
    parse_document,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_FILE_SIZE

os.makedirs(UPLOAD_FOLDER, exist_ok=True)

TRUE_VALUES = {"1", "true", "yes", "on"}


def allowed_file(filename):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _as_bool(value, default):
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def read_options(values):
    """Extraction options from form fields or a JSON body.

    Raises ValueError for a depth that is not a non-negative integer.
    """
    depth = values.get("max_sub_chapter_depth", DEFAULT_MAX_SUB_CHAPTER_DEPTH)
    try:
        depth = int(depth)
    except (TypeError, ValueError):
        raise ValueError("max_sub_chapter_depth must be an integer.")
    if depth < 0:
        raise ValueError("max_sub_chapter_depth must be zero or positive.")
    return {
        "use_smart_detection": _as_bool(
            values.get("use_smart_detection"), DEFAULT_USE_SMART_DETECTION
        ),
        "skip_non_essential_chapters": _as_bool(
            values.get("skip_non_essential_chapters"), DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS
        ),
        "max_sub_chapter_depth": depth,
    }


def chapters_response(chapters, **extra):
    body = dict(extra)
    body["chapter_count"] = len(chapters)
    body["chapters"] = [chapter.to_dict() for chapter in chapters]
    return jsonify(body)


def error_response(e):
    """Map an extraction failure to its HTTP status."""
    if isinstance(e, FetchError):
        return jsonify({"error": str(e), "kind": e.kind}), 502
    if isinstance(e, (ExtractionError, ValueError)):
        return jsonify({"error": str(e)}), 400
    logger.exception("Unexpected failure while analyzing document")
    return jsonify({"error": f"Failed to analyze document: {e}"}), 500


def save_upload():
    """Validate and store the uploaded file.

    Returns ``(path, filename, None)`` or ``(None, None, error_response)``.
    """
    if "file" not in request.files:
        return None, None, (jsonify({"error": "No file uploaded."}), 400)

    file = request.files["file"]
    if file.filename == "":
        return None, None, (jsonify({"error": "No file selected."}), 400)

    if not allowed_file(file.filename):
        ext = file.filename.rsplit(".", 1)[1].lower() if "." in file.filename else ""
        return None, None, (
            jsonify({"error": f"unsupported file format: .{ext}" if ext else "unsupported file format"}),
            400,
        )

    ext = file.filename.rsplit(".", 1)[1].lower()
    upload_path = os.path.join(UPLOAD_FOLDER, f"{uuid.uuid4()}.{ext}")
    file.save(upload_path)
    return upload_path, file.filename, None


def remove_upload(path):
    try:
        os.remove(path)
    except OSError:
        pass


@app.route("/api/formats")
def api_formats():
    return jsonify({
        "extensions": sorted(ALLOWED_EXTENSIONS),
        "defaults": {
            "use_smart_detection": DEFAULT_USE_SMART_DETECTION,
            "skip_non_essential_chapters": DEFAULT_SKIP_NON_ESSENTIAL_CHAPTERS,
            "max_sub_chapter_depth": DEFAULT_MAX_SUB_CHAPTER_DEPTH,
        },
    })


@app.route("/api/metadata", methods=["POST"])
def api_metadata():
    """Title and author of an uploaded document."""
    upload_path, filename, error = save_upload()
    if error:
        return error

    try:
        metadata = parse_document(upload_path, filename=filename)
        return jsonify(metadata.to_dict())
    except Exception as e:
        return error_response(e)
    finally:
        remove_upload(upload_path)


@app.route("/api/analyze", methods=["POST"])
def api_analyze():
    """Upload a document and split it into chapters."""
    try:
        options = read_options(request.form)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    upload_path, filename, error = save_upload()
    if error:
        return error

    try:
        kind = detect_kind(filename)
        metadata = parse_document(upload_path, filename=filename)
        chapters = extract_chapters(upload_path, filename=filename, **options)
        logger.info("Analyzed %s: %d chapters", filename, len(chapters))
        return chapters_response(
            chapters,
            filename=filename,
            kind=kind.value,
            metadata=metadata.to_dict(),
        )
    except Exception as e:
        return error_response(e)
    finally:
        remove_upload(upload_path)


@app.route("/api/analyze-url", methods=["POST"])
def api_analyze_url():
    data = request.get_json(silent=True) or {}
    url = (data.get("url") or "").strip()
    if not url:
        return jsonify({"error": "No URL provided."}), 400

    try:
        options = read_options(data)
        chapters = extract_chapters_from_url(url, **options)
        return chapters_response(chapters, url=url, kind="web")
    except Exception as e:
        return error_response(e)


@app.route("/api/analyze-text", methods=["POST"])
def api_analyze_text():
    data = request.get_json(silent=True) or {}
    text = data.get("text") or ""
    if not isinstance(text, str) or not text.strip():
        return jsonify({"error": "No text provided."}), 400

    try:
        options = read_options(data)
        chapters = extract_chapters_from_text(text, **options)
        return chapters_response(chapters, kind="text")
    except Exception as e:
        return error_response(e)


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(debug=False, host="0.0.0.0", port=port)
