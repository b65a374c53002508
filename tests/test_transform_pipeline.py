import PIL.Image
import pytest

import print_tiler.config
import print_tiler.errors
import print_tiler.transform


ArtworkTransform = print_tiler.config.ArtworkTransform
CropRect = print_tiler.config.CropRect
ValidationError = print_tiler.errors.ValidationError

RED = (255, 0, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


#============================================
def build_strip() -> PIL.Image.Image:
	"""
	Two-pixel strip: red on the left, blue on the right.
	"""
	image = PIL.Image.new("RGB", (2, 1))
	image.putpixel((0, 0), RED)
	image.putpixel((1, 0), BLUE)
	return image


#============================================
def test_crop_in_source_pixels() -> None:
	image = PIL.Image.new("RGB", (100, 80), WHITE)
	image.putpixel((10, 20), RED)
	transform = ArtworkTransform(crop_rect=CropRect(left=10, top=20, width=30, height=40))
	result = print_tiler.transform.apply_transform(image, transform)
	assert result.size == (30, 40)
	assert result.getpixel((0, 0)) == RED


#============================================
def test_crop_outside_source_is_rejected() -> None:
	image = PIL.Image.new("RGB", (100, 80), WHITE)
	for crop in (
		CropRect(left=-1, top=0, width=10, height=10),
		CropRect(left=95, top=0, width=10, height=10),
		CropRect(left=0, top=75, width=10, height=10),
		CropRect(left=0, top=0, width=0, height=10),
	):
		with pytest.raises(ValidationError):
			print_tiler.transform.apply_transform(image, ArtworkTransform(crop_rect=crop))
	with pytest.raises(ValidationError, match="integer"):
		print_tiler.transform.validate_crop(CropRect(left=0.5, top=0, width=10, height=10), 100, 80)


#============================================
def test_positive_rotation_is_clockwise() -> None:
	"""
	A quarter turn clockwise moves the left end of a strip to the top.
	"""
	result = print_tiler.transform.apply_transform(build_strip(), ArtworkTransform(rotation_degrees=90))
	assert result.size == (1, 2)
	assert result.getpixel((0, 0)) == RED
	assert result.getpixel((0, 1)) == BLUE
	result = print_tiler.transform.apply_transform(build_strip(), ArtworkTransform(rotation_degrees=-90))
	assert result.getpixel((0, 0)) == BLUE


#============================================
def test_flip_runs_after_rotation() -> None:
	"""
	Flipping before rotating would leave red on top here.
	"""
	transform = ArtworkTransform(rotation_degrees=90, flip_vertical=True)
	result = print_tiler.transform.apply_transform(build_strip(), transform)
	assert result.getpixel((0, 0)) == BLUE
	assert result.getpixel((0, 1)) == RED


#============================================
def test_free_rotation_expands_with_white_corners() -> None:
	image = PIL.Image.new("RGB", (100, 60), RED)
	result = print_tiler.transform.apply_transform(image, ArtworkTransform(rotation_degrees=30))
	assert result.mode == "RGB"
	assert result.width > 100
	assert result.height > 60
	assert result.getpixel((0, 0)) == WHITE
	assert result.getpixel((result.width - 1, result.height - 1)) == WHITE
	center = result.getpixel((result.width // 2, result.height // 2))
	assert center == RED


#============================================
def test_rotated_size_matches_pillow() -> None:
	for width, height in ((100, 60), (37, 211), (1, 1)):
		for angle in (15, 30, 45, 90, 100, 180, 200, 333.3, -30, 720):
			image = PIL.Image.new("RGB", (width, height))
			expected = image.rotate(-angle, expand=True).size
			assert print_tiler.transform.rotated_size(width, height, angle) == expected


#============================================
def test_transformed_size_follows_crop_then_rotation() -> None:
	transform = ArtworkTransform(
		crop_rect=CropRect(left=0, top=0, width=30, height=40),
		rotation_degrees=270,
		flip_horizontal=True,
	)
	assert print_tiler.transform.transformed_size(100, 80, transform) == (40, 30)


#============================================
def test_transparency_flattens_onto_white() -> None:
	image = PIL.Image.new("RGBA", (10, 10), (0, 0, 0, 0))
	image.putpixel((5, 5), (0, 0, 255, 255))
	result = print_tiler.transform.apply_transform(image, ArtworkTransform())
	assert result.mode == "RGB"
	assert result.getpixel((0, 0)) == WHITE
	assert result.getpixel((5, 5)) == BLUE


#============================================
def test_rotation_must_be_finite() -> None:
	with pytest.raises(ValidationError):
		print_tiler.transform.normalize_rotation(float("inf"))
	assert print_tiler.transform.normalize_rotation(-90) == 270.0
