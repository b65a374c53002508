"""
Crop, rotate, and flip the source artwork before tiling.

The order is fixed: crop in source pixels, rotate about the crop
center, then flip. Positive angles turn the artwork clockwise.
"""

# Standard Library
import math

# PIP3 modules
import PIL.Image

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors


ArtworkTransform = prt.config.ArtworkTransform
CropRect = prt.config.CropRect
ValidationError = prt.errors.ValidationError
GeometryInconsistency = prt.errors.GeometryInconsistency

WHITE_RGB = prt.config.WHITE_RGB

RIGHT_ANGLE_TRANSPOSE = {
	90: PIL.Image.Transpose.ROTATE_270,
	180: PIL.Image.Transpose.ROTATE_180,
	270: PIL.Image.Transpose.ROTATE_90,
}


#============================================
def normalize_rotation(degrees: float) -> float:
	"""
	Fold an angle into [0, 360).

	Args:
		degrees: Clockwise angle.

	Returns:
		Equivalent angle in [0, 360).
	"""
	if not math.isfinite(degrees):
		raise ValidationError("Rotation must be a finite number")
	folded = degrees % 360.0
	if folded >= 360.0:
		folded = 0.0
	return folded


#============================================
def validate_crop(crop: CropRect, width: int, height: int) -> CropRect:
	"""
	Check that a crop rectangle lies inside the source image.

	Args:
		crop: Crop rectangle in source pixels.
		width: Source width.
		height: Source height.

	Returns:
		The crop rectangle, unchanged.
	"""
	for name in ("left", "top", "width", "height"):
		value = getattr(crop, name)
		if isinstance(value, bool) or not isinstance(value, int):
			raise ValidationError(f"Crop {name} must be an integer pixel value")
	if crop.width <= 0 or crop.height <= 0:
		raise ValidationError("Crop rectangle must have positive size")
	if (
		crop.left < 0
		or crop.top < 0
		or crop.left + crop.width > width
		or crop.top + crop.height > height
	):
		raise ValidationError(
			f"Crop rectangle {crop.left},{crop.top} {crop.width}x{crop.height} "
			f"lies outside the {width}x{height} source image"
		)
	return crop


#============================================
def validate_transform(transform: ArtworkTransform, width: int, height: int) -> ArtworkTransform:
	"""
	Check a full artwork transform against a source size.

	Args:
		transform: Artwork transform.
		width: Source width.
		height: Source height.

	Returns:
		The transform, unchanged.
	"""
	if transform.crop_rect is not None:
		validate_crop(transform.crop_rect, width, height)
	normalize_rotation(transform.rotation_degrees)
	return transform


#============================================
def flatten_to_rgb(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Convert to opaque RGB, compositing any transparency over white.

	Args:
		image: Source image in any mode.

	Returns:
		RGB image.
	"""
	if image.mode == "RGB":
		return image
	has_alpha = image.mode in ("RGBA", "LA", "PA") or (
		image.mode == "P" and "transparency" in image.info
	)
	if not has_alpha:
		return image.convert("RGB")
	rgba = image.convert("RGBA")
	background = PIL.Image.new("RGBA", rgba.size, WHITE_RGB + (255,))
	background.alpha_composite(rgba)
	return background.convert("RGB")


#============================================
def rotated_size(width: int, height: int, degrees: float) -> tuple[int, int]:
	"""
	Bounding size of an image after a clockwise rotation.

	Mirrors Pillow's expand arithmetic so geometry-only callers get the
	same size the raster pipeline produces.

	Args:
		width: Width before rotation.
		height: Height before rotation.
		degrees: Clockwise angle.

	Returns:
		Tuple of (width, height).
	"""
	angle = normalize_rotation(degrees)
	if angle == 0.0 or angle == 180.0:
		return (width, height)
	if angle == 90.0 or angle == 270.0:
		return (height, width)
	# Pillow turns counterclockwise, so its angle is the negation
	pillow_angle = (-angle) % 360.0
	radians = -math.radians(pillow_angle)
	a = round(math.cos(radians), 15)
	b = round(math.sin(radians), 15)
	d = round(-math.sin(radians), 15)
	e = round(math.cos(radians), 15)
	center_x = width / 2.0
	center_y = height / 2.0
	c = a * -center_x + b * -center_y + center_x
	f = d * -center_x + e * -center_y + center_y
	xs = []
	ys = []
	for x, y in ((0, 0), (width, 0), (width, height), (0, height)):
		xs.append(a * x + b * y + c)
		ys.append(d * x + e * y + f)
	new_width = math.ceil(max(xs)) - math.floor(min(xs))
	new_height = math.ceil(max(ys)) - math.floor(min(ys))
	return (new_width, new_height)


#============================================
def transformed_size(width: int, height: int, transform: ArtworkTransform) -> tuple[int, int]:
	"""
	Pixel size of the artwork after the transform, without touching pixels.

	Args:
		width: Source width.
		height: Source height.
		transform: Artwork transform.

	Returns:
		Tuple of (width, height).
	"""
	validate_transform(transform, width, height)
	if transform.crop_rect is not None:
		width = transform.crop_rect.width
		height = transform.crop_rect.height
	return rotated_size(width, height, transform.rotation_degrees)


#============================================
def crop_image(image: PIL.Image.Image, crop: CropRect | None) -> PIL.Image.Image:
	if crop is None:
		return image
	validate_crop(crop, image.width, image.height)
	return image.crop((crop.left, crop.top, crop.left + crop.width, crop.top + crop.height))


#============================================
def rotate_image(image: PIL.Image.Image, degrees: float) -> PIL.Image.Image:
	"""
	Rotate clockwise about the center, growing the canvas to keep every pixel.

	Corners uncovered by a non-right-angle rotation are filled white.

	Args:
		image: RGB image.
		degrees: Clockwise angle.

	Returns:
		Rotated RGB image.
	"""
	angle = normalize_rotation(degrees)
	if angle == 0.0:
		return image
	if angle in RIGHT_ANGLE_TRANSPOSE:
		return image.transpose(RIGHT_ANGLE_TRANSPOSE[int(angle)])
	rotated = image.rotate(
		-angle,
		resample=PIL.Image.Resampling.BICUBIC,
		expand=True,
		fillcolor=WHITE_RGB,
	)
	return rotated


#============================================
def flip_image(image: PIL.Image.Image, horizontal: bool, vertical: bool) -> PIL.Image.Image:
	if horizontal:
		image = image.transpose(PIL.Image.Transpose.FLIP_LEFT_RIGHT)
	if vertical:
		image = image.transpose(PIL.Image.Transpose.FLIP_TOP_BOTTOM)
	return image


#============================================
def apply_transform(image: PIL.Image.Image, transform: ArtworkTransform) -> PIL.Image.Image:
	"""
	Run crop, rotate, and flip in that order.

	The result is always opaque RGB.

	Args:
		image: Decoded source image.
		transform: Artwork transform.

	Returns:
		Transformed RGB image.
	"""
	validate_transform(transform, image.width, image.height)
	expected = transformed_size(image.width, image.height, transform)
	result = crop_image(image, transform.crop_rect)
	result = flatten_to_rgb(result)
	result = rotate_image(result, transform.rotation_degrees)
	result = flip_image(result, transform.flip_horizontal, transform.flip_vertical)
	if result.size != expected:
		raise GeometryInconsistency(
			f"transformed image is {result.size}, geometry expected {expected}"
		)
	return result
