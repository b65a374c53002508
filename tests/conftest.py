"""
Pytest configuration for local imports.
"""

# Standard Library
import io
import os
import sys

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

# PIP3 modules
import PIL.Image
import pytest


#============================================
def build_gradient_image(width: int, height: int) -> PIL.Image.Image:
	"""
	Build an RGB image where nearly every pixel has a distinct color.

	Args:
		width: Image width.
		height: Image height.

	Returns:
		RGB image.
	"""
	image = PIL.Image.new("RGB", (width, height))
	pixels = [
		(x % 256, y % 256, (x * 7 + y * 13) % 256)
		for y in range(height)
		for x in range(width)
	]
	image.putdata(pixels)
	return image


#============================================
def encode_png_bytes(image: PIL.Image.Image, dpi: int | None = None) -> bytes:
	"""
	Encode an image to PNG bytes, optionally tagged with a DPI.
	"""
	buffer = io.BytesIO()
	if dpi is None:
		image.save(buffer, format="PNG")
	else:
		image.save(buffer, format="PNG", dpi=(dpi, dpi))
	return buffer.getvalue()


#============================================
@pytest.fixture
def gradient_png() -> bytes:
	"""
	Square gradient artwork as PNG bytes without DPI metadata.
	"""
	return encode_png_bytes(build_gradient_image(200, 200))


#============================================
@pytest.fixture
def tall_png() -> bytes:
	"""
	Narrow, tall gradient artwork as PNG bytes.
	"""
	return encode_png_bytes(build_gradient_image(50, 200))
