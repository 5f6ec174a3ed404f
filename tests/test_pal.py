"""End-to-end tests for the palette pipeline and CLI."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest
from PIL import Image

import pal
from conftest import solid_rgba
from decode_image import DecodeFailure, DecodedImage, decode_image
from pal_config import Config, Method, build_settings, get_settings
from palette_cache import CacheStore, CacheWriteFailure


@pytest.fixture(autouse=True)
def _setup_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("PAL_CACHE_DIR", raising=False)
    monkeypatch.delenv("PAL_TEMPLATE_DIR", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _fail_decode(path: str) -> DecodedImage:
    raise AssertionError(f"decode_image called for {path}")


def test_solid_gray_area_average_gives_short_palette() -> None:
    image = DecodedImage(64, 64, solid_rgba(64, 64, (128, 128, 128)))

    palette = pal.generate_palette(image, Config(method=Method.AREA_AVERAGE))

    assert palette.background.luminance == pytest.approx(0.50, abs=0.01)
    assert palette.foreground.luminance == pytest.approx(0.50, abs=0.01)
    assert palette.accents == ()


def test_kmeans_emits_requested_accent_count() -> None:
    image = DecodedImage(64, 64, solid_rgba(64, 64, (255, 0, 0)))

    palette = pal.generate_palette(image, Config(accent_count=5))

    assert len(palette.accents) == 5
    assert palette.background.rgb == (255, 0, 0)


def test_saturation_applies_after_selection() -> None:
    image = DecodedImage(64, 64, solid_rgba(64, 64, (200, 100, 100)))

    palette = pal.generate_palette(image, Config(accent_count=1, saturation=0.0))

    gray = palette.accents[0]
    assert gray.r == gray.g == gray.b
    assert palette.background == gray


def test_cache_hit_skips_decoding(make_image, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    image = make_image("red.png", (255, 0, 0))
    store = CacheStore(tmp_path / "cache")
    config = Config()

    first = pal.process_image(image, config, store)
    monkeypatch.setattr(pal, "decode_image", _fail_decode)
    second = pal.process_image(image, config, store)

    assert second == first


def test_fresh_and_cached_palettes_match(noisy_image: str, tmp_path: Path) -> None:
    config = Config(method=Method.AREA_AVERAGE, saturation=1.3)
    fresh = pal.generate_palette(decode_image(noisy_image), config)

    pal.process_image(noisy_image, config, CacheStore(tmp_path / "cache"))
    cached = pal.process_image(noisy_image, config, CacheStore(tmp_path / "cache"))

    assert cached == fresh


def test_cache_write_failure_is_only_a_warning(
    make_image, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    image = make_image("red.png", (255, 0, 0))
    store = CacheStore(tmp_path / "cache")

    def _broken_store(key, palette):
        raise CacheWriteFailure("disk full")

    monkeypatch.setattr(store, "store", _broken_store)

    with caplog.at_level(logging.WARNING, logger="pal"):
        palette = pal.process_image(image, Config(accent_count=2), store)

    assert [c.rgb for c in palette.accents] == [(255, 0, 0)] * 2
    assert "disk full" in caplog.text


def test_missing_image_is_a_decode_failure(tmp_path: Path) -> None:
    with pytest.raises(DecodeFailure):
        pal.process_image(str(tmp_path / "missing.png"), Config(), CacheStore(tmp_path / "cache"))


def test_corrupt_image_is_a_decode_failure(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image at all")

    with pytest.raises(DecodeFailure):
        pal.process_image(str(path), Config(), CacheStore(tmp_path / "cache"))


def test_batch_continues_after_failure(make_image, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    good = make_image("red.png", (255, 0, 0))
    settings = build_settings({"HOME": str(tmp_path / "home")})
    config = Config(accent_count=1, show_bg_fg=False)

    status = pal.run_batch([str(tmp_path / "missing.png"), good], config, settings)

    out, err = capsys.readouterr()
    assert status == 1
    assert out.splitlines() == ["#FF0000"]
    assert "missing.png" in err


@pytest.mark.parametrize("jobs", [1, 3])
def test_batch_output_follows_input_order(make_image, tmp_path: Path, capsys: pytest.CaptureFixture, jobs: int) -> None:
    images = [
        make_image("red.png", (255, 0, 0)),
        make_image("green.png", (0, 255, 0)),
        make_image("blue.png", (0, 0, 255)),
    ]
    settings = build_settings({"HOME": str(tmp_path / "home")})
    config = Config(accent_count=1, show_bg_fg=False)

    status = pal.run_batch(images, config, settings, jobs=jobs)

    assert status == 0
    assert capsys.readouterr().out.splitlines() == ["#FF0000", "#00FF00", "#0000FF"]


def test_main_renders_templates_and_prints(make_image, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    image = make_image("red.png", (255, 0, 0))
    template_dir = tmp_path / "home" / ".config" / "pal"
    template_dir.mkdir(parents=True)
    (template_dir / "colors.conf").write_text("bg `@background`\nc3 `@color3`\nc16 `@color16`\n")

    status = pal.main(["-f", "0", "-c", "4", image])

    out = capsys.readouterr().out.splitlines()
    assert status == 0
    assert out == ["rgb(255, 0, 0)"] * 6
    rendered = tmp_path / "home" / ".cache" / "pal" / "colors.conf"
    assert rendered.read_text() == "bg rgb(255, 0, 0)\nc3 rgb(255, 0, 0)\nc16 `@color16`\n"
    assert len(list((tmp_path / "home" / ".cache" / "pal" / "other").iterdir())) == 1


def test_main_silent(make_image, capsys: pytest.CaptureFixture) -> None:
    image = make_image("red.png", (255, 0, 0))

    assert pal.main(["-nv", image]) == 0
    assert capsys.readouterr().out == ""


def test_main_hides_background_and_foreground(make_image, capsys: pytest.CaptureFixture) -> None:
    image = make_image("blue.png", (0, 0, 255))

    assert pal.main(["-n", image]) == 0
    assert capsys.readouterr().out.splitlines() == ["#0000FF"] * 16


@pytest.mark.parametrize(
    "argv",
    [
        ["-s", "6", "x.png"],
        ["-s", "-0.5", "x.png"],
        ["-m", "2", "x.png"],
        ["-f", "3", "x.png"],
        ["-c", "0", "x.png"],
        ["-c", "17", "x.png"],
    ],
)
def test_main_rejects_out_of_range_config(argv: list[str], capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    assert pal.main(argv) == 1
    assert "Error" in capsys.readouterr().err
    assert not (tmp_path / "home" / ".cache").exists()


def test_main_without_images_prints_usage(capsys: pytest.CaptureFixture) -> None:
    assert pal.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_color_sentinels_survive_to_output(make_image, capsys: pytest.CaptureFixture) -> None:
    # All-black image: no valid background/foreground, sentinels are printed
    image = make_image("black.png", (0, 0, 0))

    assert pal.main(["-c", "1", image]) == 0
    assert capsys.readouterr().out.splitlines() == ["#FFFFFF", "#000000", "#000000"]


def test_batch_handles_non_utf8_file_names(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    path = os.fsdecode(bytes(tmp_path) + b"/img\xff.png")
    try:
        Image.new("RGB", (64, 64), (0, 0, 255)).save(path, format="PNG")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")
    settings = build_settings({"HOME": str(tmp_path / "home")})
    config = Config(accent_count=1, show_bg_fg=False)

    status = pal.run_batch([path], config, settings)

    assert status == 0
    assert capsys.readouterr().out.splitlines() == ["#0000FF"]


def test_cached_palette_is_not_reused_across_methods(noisy_image: str, tmp_path: Path) -> None:
    store = CacheStore(tmp_path / "cache")
    average_rgb = Config(method=Method.AREA_AVERAGE, format=0)
    fresh = pal.generate_palette(decode_image(noisy_image), average_rgb)

    pal.process_image(noisy_image, Config(), store)
    served = pal.process_image(noisy_image, average_rgb, store)

    assert served == fresh
