"""Flask application for the Shelf Label Designer."""

import sys
import os
import json
import logging
import tempfile
import uuid
from io import BytesIO

from urllib.parse import urlparse

from flask import Flask, request, jsonify, send_file, abort
from PIL import Image

Image.MAX_IMAGE_PIXELS = 25_000_000

# Add parent directory so we can import shared modules
app_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if app_dir not in sys.path:
    sys.path.insert(0, app_dir)

from export.label_renderer import render_label
from export.pdf_export import export_sheet_pdf
from export.sheet_layout import compose_sheet, grid_shape
from models.errors import InvalidConfiguration
from models.layer import Layer
from models.product_data import ProductData
from utils.fonts import get_font_families
from utils.image_utils import encode_image_payload
from web.state import state

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.urandom(32)
app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # 50 MB upload limit

ALLOWED_HOSTS = {"localhost", "127.0.0.1"}

LAYER_ALLOWED_KEYS = {"name", "content", "x", "y", "style", "class_name"}

# Temp directory for uploads and exports
UPLOAD_DIR = os.path.join(tempfile.gettempdir(), "label_designer_web")
os.makedirs(UPLOAD_DIR, exist_ok=True)


@app.before_request
def csrf_check():
    """Reject non-GET/HEAD/OPTIONS requests with a foreign Origin or Referer."""
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return
    origin = request.headers.get("Origin") or request.headers.get("Referer")
    if origin:
        host = urlparse(origin).hostname
        if host not in ALLOWED_HOSTS:
            return jsonify(error="Forbidden: cross-origin request"), 403


@app.errorhandler(InvalidConfiguration)
def invalid_configuration(e):
    return jsonify(error=str(e)), 400


def _png_response(img: Image.Image, download_name=None):
    buf = BytesIO()
    img.convert("RGB").save(buf, format="PNG")
    buf.seek(0)
    if download_name:
        return send_file(buf, mimetype="image/png", as_attachment=True,
                         download_name=download_name)
    return send_file(buf, mimetype="image/png")


def _layers_payload():
    return [layer.to_dict() for layer in state.layers]


# ---------------------------------------------------------------------------
# Layers & canvas
# ---------------------------------------------------------------------------

@app.route("/api/layers")
def get_layers():
    return jsonify(layers=_layers_payload(), layer_mapping=state.layer_mapping)


@app.route("/api/layers/<layer_id>", methods=["PUT"])
def update_layer(layer_id):
    data = request.get_json() or {}
    updates = {k: v for k, v in data.items() if k in LAYER_ALLOWED_KEYS}
    if "style" in updates and not isinstance(updates["style"], dict):
        return jsonify(error="style must be an object"), 400
    with state.lock:
        layer = state.update_layer(layer_id, updates)
    if layer is None:
        return jsonify(error="Unknown layer"), 404
    return jsonify(ok=True, layer=layer.to_dict())


@app.route("/api/layers/<layer_id>", methods=["DELETE"])
def delete_layer(layer_id):
    with state.lock:
        state.delete_layer(layer_id)
    return jsonify(ok=True)


@app.route("/api/layers/reset", methods=["POST"])
def reset_layers():
    with state.lock:
        state.reset_layout()
    return jsonify(ok=True, layers=_layers_payload())


@app.route("/api/layers/<layer_id>/bind", methods=["PUT"])
def bind_layer(layer_id):
    data = request.get_json() or {}
    key = data.get("system_key")
    if not key:
        return jsonify(error="system_key is required"), 400
    with state.lock:
        state.bind_layer(layer_id, key)
    return jsonify(ok=True, layer_mapping=state.layer_mapping)


@app.route("/api/badges", methods=["POST"])
def upload_badge():
    if "file" not in request.files:
        return jsonify(error="No file provided"), 400
    f = request.files["file"]
    try:
        img = Image.open(f.stream)
        pixels = img.width * img.height
        if pixels > Image.MAX_IMAGE_PIXELS:
            return jsonify(error=f"Image too large ({pixels:,} pixels, max {Image.MAX_IMAGE_PIXELS:,})"), 400
        payload = encode_image_payload(img.convert("RGBA"))
    except OSError as e:
        return jsonify(error=f"Invalid image: {e}"), 400
    with state.lock:
        idx = state.add_custom_badge(payload)
    return jsonify(ok=True, index=idx)


@app.route("/api/badges/<int:idx>/layer", methods=["POST"])
def add_badge_layer(idx):
    if idx < 0 or idx >= len(state.custom_badges):
        return jsonify(error="Invalid badge index"), 404
    with state.lock:
        layer = state.add_custom_badge_layer(state.custom_badges[idx])
    return jsonify(ok=True, layer=layer.to_dict())


@app.route("/api/canvas-config")
def get_canvas_config():
    return jsonify(state.canvas_config.to_dict())


@app.route("/api/canvas-config", methods=["PUT"])
def update_canvas_config():
    data = request.get_json() or {}
    with state.lock:
        config = state.update_canvas_config(data)
    return jsonify(ok=True, config=config.to_dict())


@app.route("/api/fonts")
def get_fonts():
    return jsonify(fonts=get_font_families())


# ---------------------------------------------------------------------------
# Product data & mappings
# ---------------------------------------------------------------------------

@app.route("/api/upload-csv", methods=["POST"])
def upload_csv():
    if "file" not in request.files:
        return jsonify(error="No file provided"), 400
    f = request.files["file"]
    if not f.filename:
        return jsonify(error="Empty filename"), 400

    # Save to temp then load
    tmp_path = os.path.join(UPLOAD_DIR, "uploaded.csv")
    f.save(tmp_path)
    products = ProductData()
    try:
        products.load(tmp_path)
    except (ValueError, OSError) as e:
        return jsonify(error=f"CSV error: {e}"), 400

    with state.lock:
        state.load_products(products, f.filename)
    return jsonify(
        ok=True,
        filename=f.filename,
        headers=products.headers,
        row_count=products.row_count,
    )


@app.route("/api/products")
def list_products():
    term = request.args.get("q", "")
    results = []
    for i in state.filtered_products(term):
        results.append({
            "index": i,
            "name": state.products.display_name(i),
            "checked": i in state.checked,
            "selected": i == state.selected_index,
        })
    return jsonify(products=results, total=state.products.row_count)


@app.route("/api/products/<int:idx>/select", methods=["POST"])
def select_product(idx):
    with state.lock:
        ok = state.select_product(idx)
    if not ok:
        return jsonify(error="Row index out of range"), 404
    return jsonify(ok=True, layers=_layers_payload())


@app.route("/api/products/<int:idx>/check", methods=["POST"])
def check_product(idx):
    if state.products.get(idx) is None:
        return jsonify(error="Row index out of range"), 404
    with state.lock:
        checked = state.toggle_checked(idx)
    return jsonify(ok=True, checked=checked)


@app.route("/api/column-mapping")
def get_column_mapping():
    return jsonify(mapping=state.column_mapping)


@app.route("/api/column-mapping", methods=["PUT"])
def update_column_mapping():
    data = request.get_json() or {}
    mapping = data.get("mapping")
    if not isinstance(mapping, dict):
        return jsonify(error="mapping must be an object"), 400
    with state.lock:
        state.change_column_mapping({str(k): str(v) for k, v in mapping.items()})
    return jsonify(ok=True, mapping=state.column_mapping, layers=_layers_payload())


# ---------------------------------------------------------------------------
# Print queue & sheet layout
# ---------------------------------------------------------------------------

@app.route("/api/queue")
def get_queue():
    return jsonify(queue=[{"index": i, "id": e.id} for i, e in enumerate(state.queue)])


@app.route("/api/queue", methods=["POST"])
def add_to_queue():
    with state.lock:
        added = state.add_checked_to_queue()
    return jsonify(ok=True, added=added, length=len(state.queue))


@app.route("/api/queue/<int:idx>", methods=["DELETE"])
def remove_queue_entry(idx):
    with state.lock:
        state.remove_from_queue(idx)
    return jsonify(ok=True, length=len(state.queue))


@app.route("/api/queue/reorder", methods=["POST"])
def reorder_queue():
    data = request.get_json() or {}
    try:
        from_index = int(data["from"])
        to_index = int(data["to"])
    except (KeyError, TypeError, ValueError):
        return jsonify(error="from and to indices are required"), 400
    with state.lock:
        state.reorder_queue(from_index, to_index)
    return jsonify(ok=True, queue=[e.id for e in state.queue])


@app.route("/api/queue/flush", methods=["POST"])
def flush_queue():
    with state.lock:
        count = state.flush_queue()
    return jsonify(ok=True, recorded=count)


@app.route("/api/print-layout")
def get_print_layout():
    return jsonify(state.print_layout.to_dict())


@app.route("/api/print-layout", methods=["PUT"])
def update_print_layout():
    data = request.get_json() or {}
    with state.lock:
        layout = state.update_print_layout(data)
    return jsonify(ok=True, layout=layout.to_dict())


@app.route("/api/sheet")
def get_sheet():
    pages = compose_sheet(state.queue, state.print_layout, state.canvas_config)
    columns, rows = grid_shape(state.print_layout, state.canvas_config)
    return jsonify(
        columns=columns,
        rows=rows,
        pages=[p.to_dict() for p in pages],
    )


# ---------------------------------------------------------------------------
# Rendering & export
# ---------------------------------------------------------------------------

@app.route("/api/preview")
def preview_label():
    try:
        scale = float(request.args.get("scale", 1.0))
    except ValueError:
        return jsonify(error="Invalid scale"), 400
    if scale <= 0 or scale > 4:
        return jsonify(error="scale must be in (0, 4]"), 400
    return _png_response(render_label(state.layers, state.canvas_config, scale))


@app.route("/api/preview/queue/<int:idx>")
def preview_queue_entry(idx):
    if idx < 0 or idx >= len(state.queue):
        abort(404)
    return _png_response(render_label(state.queue[idx].layers, state.canvas_config),
                         download_name=f"label_{idx + 1}.png")


@app.route("/api/preview-custom", methods=["POST"])
def preview_custom():
    """Render an arbitrary layer set (e.g. an unsaved edit) without touching the session."""
    data = request.get_json() or {}
    try:
        layers = [Layer.from_dict(d) for d in data.get("layers", [])]
    except (TypeError, KeyError) as e:
        return jsonify(error=f"Invalid layers: {e}"), 400
    return _png_response(render_label(layers, state.canvas_config))


@app.route("/api/export-pdf", methods=["POST"])
def export_pdf():
    if not state.queue:
        return jsonify(error="Queue is empty"), 400
    output_path = os.path.join(UPLOAD_DIR, f"label_sheet_{uuid.uuid4().hex[:8]}.pdf")
    with state.lock:
        queue = list(state.queue)
        layout = state.print_layout
        canvas = state.canvas_config
    export_sheet_pdf(queue, layout, canvas, output_path)
    return send_file(
        output_path,
        mimetype="application/pdf",
        as_attachment=True,
        download_name="label_sheet.pdf",
    )


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

@app.route("/api/history")
def get_history():
    return jsonify(history=state.document.history)


@app.route("/api/history/<record_id>", methods=["PUT"])
def update_history(record_id):
    data = request.get_json() or {}
    if not any(h.get("id") == record_id for h in state.document.history):
        return jsonify(error="Unknown history record"), 404
    with state.lock:
        for key, value in data.items():
            if key != "id":
                state.update_history_record(record_id, key, value)
    return jsonify(ok=True, history=state.document.history)


@app.route("/api/document")
def download_document():
    buf = BytesIO()
    buf.write(json.dumps(state.document.to_store(), indent=2).encode("utf-8"))
    buf.seek(0)
    return send_file(
        buf,
        mimetype="application/json",
        as_attachment=True,
        download_name="label_document.json",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    logging.basicConfig(level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO))
    state.open_document(os.environ.get("LABEL_STORE_PATH", os.path.join(UPLOAD_DIR, "document.json")))
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    logger.info("Shelf Label Designer - http://localhost:%d", port)
    app.run(host="127.0.0.1", port=port, debug=debug)


if __name__ == "__main__":
    main()
