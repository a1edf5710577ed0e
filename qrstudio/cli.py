"""qrstudio CLI - render, export and manage styled QR designs from the command line."""

import argparse
import json
import sys
from pathlib import Path

from qrstudio.errors import LogoDecodeError, StudioError
from qrstudio.logging import audit, get_logger, setup_logging
from qrstudio.matrix import ECLevel
from qrstudio.style import (
    DEFAULT_CONFIG,
    CornerDotStyle,
    CornerSquareStyle,
    FrameStyle,
    GradientConfig,
    GradientDirection,
    PatternStyle,
    PRESET_THEMES,
    StyleConfig,
    apply_theme,
)

log = get_logger("cli")

DEFAULT_GALLERY = "qrstudio_gallery.json"


def _choices(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


def _add_style_args(p: argparse.ArgumentParser) -> None:
    """Per-field overrides; each one is applied on top of --config (or the defaults)."""
    p.add_argument("url", nargs="?", default=None, help="URL or text to encode")
    p.add_argument("--config", type=Path, default=None, help="Style JSON file to start from")
    p.add_argument("--label", default=None, help="Design name (also names the exported file)")
    p.add_argument("--theme", default=None, choices=[t.name for t in PRESET_THEMES], help="Preset theme")
    p.add_argument("--pattern", default=None, choices=_choices(PatternStyle), help="Data module shape")
    p.add_argument("--color", default=None, help="Module color")
    p.add_argument("--gradient", nargs=2, metavar=("C1", "C2"), default=None, help="Module gradient colors")
    p.add_argument("--gradient-direction", default=None, choices=_choices(GradientDirection))
    p.add_argument("--bg", default=None, help="Background color")
    p.add_argument("--bg-gradient", nargs=2, metavar=("C1", "C2"), default=None, help="Background gradient colors")
    p.add_argument("--bg-gradient-direction", default=None, choices=_choices(GradientDirection))
    p.add_argument("--transparent", action="store_true", help="Transparent background")
    p.add_argument("--corner-square", default=None, choices=_choices(CornerSquareStyle), help="Finder ring style")
    p.add_argument("--corner-square-color", default=None)
    p.add_argument("--corner-dot", default=None, choices=_choices(CornerDotStyle), help="Finder dot style")
    p.add_argument("--corner-dot-color", default=None)
    p.add_argument("--frame", default=None, choices=_choices(FrameStyle), help="Frame kind")
    p.add_argument("--frame-text", default=None, help="Frame caption")
    p.add_argument("--frame-color", default=None)
    p.add_argument("--frame-text-color", default=None)
    p.add_argument("-s", "--size", type=int, default=None, help="Symbol size in px (100-1000)")
    p.add_argument("-e", "--ec", default=None, choices=_choices(ECLevel), help="Error correction level")


def _gradient(base: GradientConfig, colors, direction) -> GradientConfig:
    if colors is None and direction is None:
        return base
    changes = {"enabled": True}
    if colors is not None:
        changes["color1"], changes["color2"] = colors
    if direction is not None:
        changes["direction"] = direction
    return base.evolve(**changes)


def build_config(args) -> StyleConfig:
    """Style from --config plus flags. Flags win over the file, --theme is applied first."""
    config = StyleConfig.from_json(args.config) if args.config else DEFAULT_CONFIG
    if args.theme:
        config = apply_theme(config, args.theme)

    flags = {
        "url": args.url,
        "label": args.label,
        "pattern_style": args.pattern,
        "pattern_color": args.color,
        "bg_color": args.bg,
        "corner_square_style": args.corner_square,
        "corner_square_color": args.corner_square_color,
        "corner_dot_style": args.corner_dot,
        "corner_dot_color": args.corner_dot_color,
        "frame_color": args.frame_color,
        "frame_text_color": args.frame_text_color,
        "size": args.size,
        "error_correction": args.ec,
    }
    changes = {k: v for k, v in flags.items() if v is not None}
    if args.transparent:
        changes["transparent_bg"] = True
    changes["pattern_gradient"] = _gradient(config.pattern_gradient, args.gradient, args.gradient_direction)
    changes["bg_gradient"] = _gradient(config.bg_gradient, args.bg_gradient, args.bg_gradient_direction)
    config = config.evolve(**changes)

    if args.frame is not None:
        config = config.with_frame(args.frame, args.frame_text)
    elif args.frame_text is not None:
        config = config.evolve(frame_text=args.frame_text)
    return config


def _output_path(args, config: StyleConfig, ext: str) -> Path:
    from qrstudio.export import export_filename

    if args.output:
        path = Path(args.output)
    else:
        path = Path(args.out_dir) / export_filename(config.label, ext)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _print_results(results) -> bool:
    for r in results:
        status = "PASS" if r.success else "FAIL"
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    return any(r.success for r in results)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_render(args):
    """Render a styled PNG."""
    from qrstudio.export import export_png
    from qrstudio.logo import decode_logo, read_logo_file
    from qrstudio.render import render_config

    config = build_config(args)
    logo = None
    if args.logo:
        data, name = read_logo_file(args.logo)
        try:
            logo = decode_logo(data)
            config = config.evolve(logo_url=name)
        except LogoDecodeError as e:
            log.warning("Rendering without logo: %s", e)

    surface = render_config(config, logo)
    output = _output_path(args, config, "png")
    output.write_bytes(export_png(surface))
    print(f"Rendered: {output} ({surface.width}x{surface.height})")

    if args.verify:
        from qrstudio.matrix import resolve_text
        from qrstudio.verify import verify

        ok = _print_results(verify(surface.to_image(), resolve_text(config.url, config.error_correction)))
        sys.exit(0 if ok else 1)


def cmd_svg(args):
    """Export the flat two-color SVG."""
    from qrstudio.export import export_svg

    config = build_config(args)
    output = _output_path(args, config, "svg")
    output.write_text(export_svg(config), encoding="utf-8")
    print(f"Exported: {output}")


def cmd_verify(args):
    """Decode a rendered image."""
    from qrstudio.verify import load_image, verify

    ok = _print_results(verify(load_image(args.image), expected_data=args.expected))
    sys.exit(0 if ok else 1)


def cmd_themes(args):
    """List preset themes."""
    for t in PRESET_THEMES:
        print(f"  {t.name:12s} {t.c1} -> {t.c2}  bg {t.bg}  corners {t.corner}/{t.corner_dot}")


def cmd_gallery(args):
    """Saved designs."""
    from qrstudio.gallery import Gallery, JsonFileStore

    gallery = Gallery(JsonFileStore(args.gallery))

    if args.gallery_command == "list":
        if not len(gallery):
            print("Gallery is empty.")
        for entry in gallery.entries:
            print(f"  {entry.id}  {entry.created_at}  {entry.config.label}  ({entry.config.url})")

    elif args.gallery_command == "save":
        entry = gallery.save(build_config(args))
        print(f"Saved: {entry.id}")

    elif args.gallery_command == "load":
        config = gallery.load(args.id)
        if args.output:
            from qrstudio.export import export_png
            from qrstudio.render import render_config

            output = Path(args.output)
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(export_png(render_config(config)))
            print(f"Rendered: {output}")
        else:
            print(config.to_json(indent=2))

    elif args.gallery_command == "delete":
        gallery.delete(args.id)
        print(f"Deleted: {args.id}")


def cmd_serve(args):
    """Start the HTTP service."""
    from qrstudio.gallery import Gallery, JsonFileStore
    from qrstudio.server import create_app

    app = create_app(Gallery(JsonFileStore(args.gallery)))
    print(f"Starting qrstudio server on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrstudio", description="qrstudio: styled QR code rendering and export")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    parser.add_argument("--gallery", default=DEFAULT_GALLERY, help="Gallery JSON file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a styled PNG")
    _add_style_args(p_render)
    p_render.add_argument("--logo", default=None, help="Logo image (max 1 MB)")
    p_render.add_argument("-o", "--output", default=None, help="Output file (default: <label>_QR.png)")
    p_render.add_argument("--out-dir", default="output", help="Directory for label-named output")
    p_render.add_argument("--verify", action="store_true", help="Decode the result and report")

    # --- svg ---
    p_svg = subparsers.add_parser("svg", help="Export a flat two-color SVG")
    _add_style_args(p_svg)
    p_svg.add_argument("-o", "--output", default=None, help="Output file (default: <label>_QR.svg)")
    p_svg.add_argument("--out-dir", default="output", help="Directory for label-named output")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Decode a QR image")
    p_ver.add_argument("image", help="Path to QR image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    # --- themes ---
    subparsers.add_parser("themes", help="List preset themes")

    # --- gallery ---
    p_gal = subparsers.add_parser("gallery", help="Saved designs")
    gal_sub = p_gal.add_subparsers(dest="gallery_command", required=True)
    gal_sub.add_parser("list", help="List saved designs")
    p_save = gal_sub.add_parser("save", help="Save a design")
    _add_style_args(p_save)
    p_load = gal_sub.add_parser("load", help="Print (or render) a saved design")
    p_load.add_argument("id", help="Entry id (qr_...)")
    p_load.add_argument("-o", "--output", default=None, help="Render to this PNG instead of printing")
    p_del = gal_sub.add_parser("delete", help="Delete a saved design")
    p_del.add_argument("id", help="Entry id (qr_...)")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Start the HTTP service")
    p_serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    p_serve.add_argument("--port", type=int, default=8080, help="Port to listen on")
    p_serve.add_argument("--debug", action="store_true", help="Enable debug mode")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "svg": cmd_svg,
        "verify": cmd_verify,
        "themes": cmd_themes,
        "gallery": cmd_gallery,
        "serve": cmd_serve,
    }
    try:
        commands[args.command](args)
    except StudioError as e:
        log.error("%s failed: %s", args.command, e)
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)
    except json.JSONDecodeError as e:
        log.error("%s failed: %s", args.command, e)
        print(f"error: malformed JSON: {e}", file=sys.stderr)
        sys.exit(2)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
