"""
Tests for the garment preview description and its PNG rendering.
"""
import io

import pytest
from PIL import Image

from models import Artwork, SelectionState
from services.preview import contain_fit, derive_preview, render_preview_png
from utils.uploads import encode_data_uri
from conftest import make_image_bytes


def _artwork(width=64, height=64, mime_type="image/png"):
    data = make_image_bytes(width, height)
    return Artwork(
        data_uri=encode_data_uri(data, mime_type),
        file_name="logo.png",
        mime_type=mime_type,
        size_bytes=len(data),
        width=width,
        height=height,
    )


class TestContainFit:
    @pytest.mark.parametrize("native, expected", [
        ((240, 120), (120, 60)),
        ((120, 480), (30, 120)),
        ((60, 40), (60, 40)),
        ((1000, 1000), (120, 120)),
        ((None, None), (120, 120)),
        ((0, 50), (120, 120)),
    ])
    def test_fit_inside_box(self, native, expected):
        assert contain_fit(native[0], native[1], 120, 120) == expected


class TestDerivePreview:
    def test_placeholder_when_no_artwork(self):
        preview = derive_preview(SelectionState())
        assert preview.overlay is None
        assert preview.placeholder.label == "Upload your design"
        assert preview.garment.fill_hex == "#ffffff"
        assert preview.garment.border_hex == "#e5e7eb"

    def test_overlay_is_centered_on_garment(self):
        state = SelectionState(artwork=_artwork(240, 120), color_key="black")
        preview = derive_preview(state)

        assert preview.placeholder is None
        overlay = preview.overlay
        assert (overlay.width, overlay.height) == (120, 60)
        assert overlay.left + overlay.width / 2 == 150
        assert overlay.top + overlay.height / 2 == 144
        assert preview.garment.fill_hex == "#000000"
        assert preview.garment.border_hex is None

    def test_is_pure(self):
        state = SelectionState(artwork=_artwork(), color_key="navy", size_key="L", quantity=4)
        copy = state.snapshot()

        assert derive_preview(state) == derive_preview(copy)
        assert state == copy

    def test_only_color_and_artwork_matter(self):
        a = SelectionState(color_key="red", product_name="A", quantity=2, size_key="XS")
        b = SelectionState(color_key="red", product_name="B", quantity=9, size_key="XXL")
        assert derive_preview(a) == derive_preview(b)

    def test_to_dict_can_drop_image(self):
        preview = derive_preview(SelectionState(artwork=_artwork()))
        full = preview.to_dict()
        slim = preview.to_dict(include_image=False)

        assert full["overlay"]["data_uri"].startswith("data:image/png")
        assert "data_uri" not in slim["overlay"]
        assert slim["garment"]["outline_pct"][0] == [25, 20]


class TestRenderPng:
    def _open(self, png):
        img = Image.open(io.BytesIO(png))
        img.load()
        return img

    def test_placeholder_render(self):
        img = self._open(render_preview_png(derive_preview(SelectionState(color_key="green"))))
        assert img.format == "PNG"
        assert img.size == (300, 360)
        # Inside the silhouette, below the artwork box
        r, g, b = img.getpixel((150, 300))[:3]
        assert g > r and g > b

    def test_artwork_is_composited(self):
        # Solid red artwork over a white garment
        png = render_preview_png(derive_preview(SelectionState(artwork=_artwork(100, 100))))
        img = self._open(png)
        r, g, b = img.getpixel((150, 144))[:3]
        assert r > 150 and g < 80 and b < 80

    def test_vector_artwork_draws_box(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg"></svg>'
        art = Artwork(
            data_uri=encode_data_uri(svg, "image/svg+xml"),
            file_name="logo.svg",
            mime_type="image/svg+xml",
            size_bytes=len(svg),
        )
        png = render_preview_png(derive_preview(SelectionState(artwork=art)))
        assert png.startswith(b"\x89PNG")
