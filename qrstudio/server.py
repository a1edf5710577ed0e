"""HTTP service: render, export and gallery endpoints over Flask."""

import json

from flask import Flask, Response, jsonify, request

from qrstudio.errors import GalleryEntryNotFound, InvalidStyleError, LogoDecodeError, LogoTooLargeError
from qrstudio.export import export_filename, export_png, export_svg
from qrstudio.gallery import Gallery
from qrstudio.logging import audit, get_logger
from qrstudio.logo import decode_logo, validate_logo_upload
from qrstudio.render import render_config
from qrstudio.style import PRESET_THEMES, StyleConfig

log = get_logger("server")


def _request_config() -> StyleConfig:
    """Style from a JSON body, or from the ``config`` field of a multipart form."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise InvalidStyleError("request body is not valid JSON")
        if isinstance(data, dict):
            data = data.get("config", data)
    else:
        raw = request.form.get("config", "{}")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidStyleError(f"config field is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidStyleError("config must be a JSON object")
    return StyleConfig.from_dict(data)


def _request_logo(config: StyleConfig):
    upload = request.files.get("logo")
    if upload is None:
        return config, None
    data = validate_logo_upload(upload.read(), upload.filename or "logo")
    try:
        logo = decode_logo(data)
    except LogoDecodeError as e:
        log.warning("Ignoring undecodable logo %r: %s", upload.filename, e)
        return config, None
    return config.evolve(logo_url=upload.filename or "logo"), logo


def create_app(gallery: Gallery | None = None) -> Flask:
    """Create the Flask app. The gallery defaults to an in-memory one."""
    gallery = gallery if gallery is not None else Gallery()
    app = Flask(__name__)

    @app.errorhandler(InvalidStyleError)
    def invalid_style(e):
        audit("http.invalid_style", logger=log, path=request.path, error=str(e))
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(LogoTooLargeError)
    def logo_too_large(e):
        return jsonify({"error": str(e)}), 413

    @app.errorhandler(GalleryEntryNotFound)
    def entry_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.route("/api/render.png", methods=["POST"])
    def render_png():
        config, logo = _request_logo(_request_config())
        data = export_png(render_config(config, logo))
        return Response(data, mimetype="image/png", headers={
            "Content-Disposition": f'attachment; filename="{export_filename(config.label, "png")}"',
        })

    @app.route("/api/render.svg", methods=["POST"])
    def render_svg():
        config = _request_config()
        return Response(export_svg(config), mimetype="image/svg+xml", headers={
            "Content-Disposition": f'attachment; filename="{export_filename(config.label, "svg")}"',
        })

    @app.route("/api/themes")
    def themes():
        return jsonify([
            {"name": t.name, "c1": t.c1, "c2": t.c2, "bg": t.bg, "corner": t.corner, "cornerDot": t.corner_dot}
            for t in PRESET_THEMES
        ])

    @app.route("/api/gallery", methods=["GET"])
    def list_gallery():
        return jsonify([e.to_dict() for e in gallery.entries])

    @app.route("/api/gallery", methods=["POST"])
    def save_gallery():
        entry = gallery.save(_request_config())
        return jsonify(entry.to_dict()), 201

    @app.route("/api/gallery/<entry_id>", methods=["GET"])
    def get_entry(entry_id):
        return jsonify(gallery.get(entry_id).to_dict())

    @app.route("/api/gallery/<entry_id>", methods=["DELETE"])
    def delete_entry(entry_id):
        gallery.delete(entry_id)
        return "", 204

    return app
