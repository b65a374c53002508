"""
Image decoding, resampling kernel selection, and the standalone resize entry point.
"""

# Standard Library
import base64
import binascii
import dataclasses
import io
import math
import re

# PIP3 modules
import PIL.Image

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors
import print_tiler.transform
import print_tiler.units


ResizeRequest = prt.config.ResizeRequest
ResizeResult = prt.config.ResizeResult
ValidationError = prt.errors.ValidationError
DecodeError = prt.errors.DecodeError

UPSCALE_ALGORITHM = prt.config.UPSCALE_ALGORITHM
DOWNSCALE_ALGORITHM = prt.config.DOWNSCALE_ALGORITHM
DOWNSCALE_REDUCING_GAP = prt.config.DOWNSCALE_REDUCING_GAP
SOURCE_FALLBACK_DPI = prt.config.SOURCE_FALLBACK_DPI
PNG_COMPRESS_LEVEL = prt.config.PNG_COMPRESS_LEVEL

DATA_URL_PATTERN = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)

round_half_up = prt.units.round_half_up


@dataclasses.dataclass(frozen=True)
class ResampleChoice:
	algorithm: str
	resample: PIL.Image.Resampling
	was_upscaled: bool
	reducing_gap: float | None


#============================================
def decode_image(source: bytes | str | PIL.Image.Image) -> PIL.Image.Image:
	"""
	Decode raw bytes, a base64 string, or a data URL into a loaded image.

	Args:
		source: Encoded image, or an already decoded PIL image.

	Returns:
		Loaded PIL image.
	"""
	if isinstance(source, PIL.Image.Image):
		image = source
	else:
		if isinstance(source, str):
			text = DATA_URL_PATTERN.sub("", source.strip(), count=1)
			try:
				data = base64.b64decode(text, validate=True)
			except (binascii.Error, ValueError) as error:
				raise DecodeError(f"Image is not valid base64: {error}") from error
		elif isinstance(source, (bytes, bytearray)):
			data = bytes(source)
		else:
			raise DecodeError(f"Unsupported image source type {type(source).__name__}")
		if not data:
			raise DecodeError("Image data is empty")
		try:
			image = PIL.Image.open(io.BytesIO(data))
			image.load()
		except (PIL.UnidentifiedImageError, PIL.Image.DecompressionBombError, OSError, ValueError) as error:
			raise DecodeError(f"Could not decode image: {error}") from error
	width, height = image.size
	if width <= 0 or height <= 0:
		raise DecodeError("Could not read image dimensions")
	return image


#============================================
def source_dpi(image: PIL.Image.Image) -> int:
	"""
	Horizontal DPI recorded in the image metadata, or the fallback.

	Args:
		image: Decoded image.

	Returns:
		DPI as an integer.
	"""
	dpi = image.info.get("dpi")
	if not dpi:
		return SOURCE_FALLBACK_DPI
	try:
		value = float(dpi[0])
	except (TypeError, ValueError, IndexError):
		return SOURCE_FALLBACK_DPI
	if not math.isfinite(value) or value <= 0:
		return SOURCE_FALLBACK_DPI
	return round_half_up(value)


#============================================
def select_resampling(
	source_width: int,
	source_height: int,
	target_width: int,
	target_height: int,
) -> ResampleChoice:
	"""
	Pick a reconstruction kernel from the change in total pixel count.

	Growing images get Lanczos for sharp enlargement. Shrinking (or
	same-size) images get bicubic with a reducing gap, which
	pre-reduces with box filtering before the final pass and keeps
	fine patterns from aliasing into moire.

	Args:
		source_width: Source width in pixels.
		source_height: Source height in pixels.
		target_width: Target width in pixels.
		target_height: Target height in pixels.

	Returns:
		ResampleChoice.
	"""
	if min(source_width, source_height, target_width, target_height) <= 0:
		raise ValidationError("Resample dimensions must be positive")
	pixels_in = source_width * source_height
	pixels_out = target_width * target_height
	if pixels_out > pixels_in:
		return ResampleChoice(
			algorithm=UPSCALE_ALGORITHM,
			resample=PIL.Image.Resampling.LANCZOS,
			was_upscaled=True,
			reducing_gap=None,
		)
	return ResampleChoice(
		algorithm=DOWNSCALE_ALGORITHM,
		resample=PIL.Image.Resampling.BICUBIC,
		was_upscaled=False,
		reducing_gap=DOWNSCALE_REDUCING_GAP,
	)


#============================================
def resample_image(
	image: PIL.Image.Image,
	target_width: int,
	target_height: int,
) -> tuple[PIL.Image.Image, ResampleChoice]:
	"""
	Resize to an exact pixel size with the selected kernel.

	Args:
		image: Source image.
		target_width: Output width.
		target_height: Output height.

	Returns:
		Tuple of (resized image, kernel choice).
	"""
	choice = select_resampling(image.width, image.height, target_width, target_height)
	if image.size == (target_width, target_height):
		return (image.copy(), choice)
	resized = image.resize(
		(target_width, target_height),
		resample=choice.resample,
		reducing_gap=choice.reducing_gap,
	)
	return (resized, choice)


#============================================
def encode_png(image: PIL.Image.Image, dpi: int) -> bytes:
	"""
	Encode an image as PNG tagged with the given DPI.

	Args:
		image: Image to encode.
		dpi: DPI written to the pHYs chunk.

	Returns:
		PNG bytes.
	"""
	buffer = io.BytesIO()
	image.save(buffer, format="PNG", dpi=(dpi, dpi), compress_level=PNG_COMPRESS_LEVEL)
	return buffer.getvalue()


#============================================
def validate_resize_request(request: ResizeRequest) -> ResizeRequest:
	"""
	Reject resize requests before any pixel work.

	Args:
		request: Resize request.

	Returns:
		The request, unchanged.
	"""
	if request.target_width_cm is None and request.target_height_cm is None:
		raise ValidationError("Provide at least targetWidthCm or targetHeightCm")
	for name in ("target_width_cm", "target_height_cm"):
		value = getattr(request, name)
		if value is None:
			continue
		if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
			raise ValidationError(f"{name} must be a finite number")
		if value <= 0:
			raise ValidationError(f"{name} must be positive")
	prt.units.validate_dpi(request.dpi)
	return request


#============================================
def calculate_dimensions(
	original_width: int,
	original_height: int,
	target_width_cm: float | None,
	target_height_cm: float | None,
	dpi: int,
	maintain_aspect: bool = True,
) -> tuple[int, int]:
	"""
	Final pixel size for a resize.

	With the aspect kept, width wins when both targets are given and
	the other axis follows the source ratio.

	Args:
		original_width: Source width in pixels.
		original_height: Source height in pixels.
		target_width_cm: Target width or None.
		target_height_cm: Target height or None.
		dpi: Output DPI.
		maintain_aspect: Keep the source aspect ratio.

	Returns:
		Tuple of (width_px, height_px).
	"""
	if original_width <= 0 or original_height <= 0:
		raise DecodeError("Could not read image dimensions")
	aspect_ratio = original_width / original_height
	if not maintain_aspect and target_width_cm is not None and target_height_cm is not None:
		width = prt.units.cm_to_pixels(target_width_cm, dpi)
		height = prt.units.cm_to_pixels(target_height_cm, dpi)
	elif target_width_cm is not None:
		width = prt.units.cm_to_pixels(target_width_cm, dpi)
		height = round_half_up(width / aspect_ratio)
	elif target_height_cm is not None:
		height = prt.units.cm_to_pixels(target_height_cm, dpi)
		width = round_half_up(height * aspect_ratio)
	else:
		raise ValidationError("Provide at least targetWidthCm or targetHeightCm")
	return (max(1, width), max(1, height))


#============================================
def resize_image(source: bytes | str | PIL.Image.Image, request: ResizeRequest) -> ResizeResult:
	"""
	Resize artwork to a physical size at a print DPI.

	Args:
		source: Encoded image or decoded PIL image.
		request: Resize request.

	Returns:
		ResizeResult with a PNG buffer tagged at the requested DPI.
	"""
	validate_resize_request(request)
	image = decode_image(source)
	original_dpi = source_dpi(image)
	width, height = calculate_dimensions(
		image.width,
		image.height,
		request.target_width_cm,
		request.target_height_cm,
		request.dpi,
		request.maintain_aspect,
	)
	rgb = prt.transform.flatten_to_rgb(image)
	resized, choice = resample_image(rgb, width, height)
	result = ResizeResult(
		image_buffer=encode_png(resized, request.dpi),
		original_width_px=image.width,
		original_height_px=image.height,
		original_width_cm=prt.units.pixels_to_cm(image.width, original_dpi),
		original_height_cm=prt.units.pixels_to_cm(image.height, original_dpi),
		final_width_px=width,
		final_height_px=height,
		final_width_cm=prt.units.pixels_to_cm(width, request.dpi),
		final_height_cm=prt.units.pixels_to_cm(height, request.dpi),
		dpi=request.dpi,
		was_upscaled=choice.was_upscaled,
		algorithm=choice.algorithm,
	)
	return result
