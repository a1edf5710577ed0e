import json

import pytest
from PIL import Image

from conftest import make_logo_png
from qrstudio.cli import build_config, build_parser, main
from qrstudio.style import DEFAULT_CONFIG, FrameStyle, PatternStyle


def _parse(*argv):
    return build_parser().parse_args(list(argv))


def test_build_config_defaults():
    assert build_config(_parse("render")) == DEFAULT_CONFIG


def test_build_config_flags_override_file(tmp_path):
    path = tmp_path / "style.json"
    path.write_text(json.dumps({"patternStyle": "classy", "size": 500, "label": "From file"}))
    config = build_config(_parse(
        "render", "https://example.com", "--config", str(path),
        "--size", "320", "--frame", "banner-bottom", "--gradient", "#ff0000", "#0000ff",
    ))
    assert config.url == "https://example.com"
    assert config.pattern_style is PatternStyle.CLASSY
    assert config.size == 320
    assert config.label == "From file"
    assert config.frame_style is FrameStyle.BANNER_BOTTOM
    assert config.frame_text == "Scan Me !"
    assert config.pattern_gradient.enabled
    assert config.pattern_gradient.color2 == "#0000ff"


def test_render_writes_png(tmp_path, capsys):
    out = tmp_path / "qr.png"
    main(["render", "https://example.com", "--frame", "simple", "-o", str(out)])
    with Image.open(out) as img:
        assert img.size == (344, 414)
    assert "Rendered" in capsys.readouterr().out


def test_render_with_logo(tmp_path):
    logo = tmp_path / "logo.png"
    logo.write_bytes(make_logo_png())
    main(["render", "--logo", str(logo), "--label", "With Logo", "--out-dir", str(tmp_path)])
    assert (tmp_path / "With_Logo_QR.png").exists()


def test_oversized_logo_exits_with_error(tmp_path, capsys):
    logo = tmp_path / "huge.png"
    logo.write_bytes(b"\0" * (2 * 1024 * 1024))
    with pytest.raises(SystemExit) as exc:
        main(["render", "--logo", str(logo), "-o", str(tmp_path / "x.png")])
    assert exc.value.code == 2
    assert "Logo must be under 1 MB" in capsys.readouterr().err
    assert not (tmp_path / "x.png").exists()


def test_invalid_size_exits_with_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["render", "--size", "50", "-o", str(tmp_path / "x.png")])
    assert exc.value.code == 2


def test_svg_named_from_label(tmp_path):
    main(["svg", "--label", "Spring Promo", "--out-dir", str(tmp_path)])
    assert (tmp_path / "Spring_Promo_QR.svg").read_text().startswith("<svg")


def test_themes(capsys):
    main(["themes"])
    out = capsys.readouterr().out
    assert "PicklePlay" in out and "Forest" in out


def test_gallery_commands(tmp_path, capsys):
    store = str(tmp_path / "gallery.json")
    main(["--gallery", store, "gallery", "save", "https://example.com", "--label", "Court 1"])
    entry_id = capsys.readouterr().out.split("Saved: ")[1].strip()

    main(["--gallery", store, "gallery", "list"])
    assert entry_id in capsys.readouterr().out

    main(["--gallery", store, "gallery", "load", entry_id])
    loaded = json.loads(capsys.readouterr().out)
    assert loaded["label"] == "Court 1"

    main(["--gallery", store, "gallery", "delete", entry_id])
    with pytest.raises(SystemExit) as exc:
        main(["--gallery", store, "gallery", "load", entry_id])
    assert exc.value.code == 2


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
