"""
Physical unit conversion between centimeters and pixels.
"""

# Standard Library
import math

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors


ValidationError = prt.errors.ValidationError

CM_PER_INCH = prt.config.CM_PER_INCH
MIN_DPI = prt.config.MIN_DPI
MAX_DPI = prt.config.MAX_DPI


#============================================
def round_half_up(value: float) -> int:
	"""
	Round to the nearest integer, ties toward positive infinity.

	Every cm-to-pixel boundary in the preview and the renderer goes
	through this function so both sides land on the same pixel.

	Args:
		value: Value to round.

	Returns:
		Rounded integer.
	"""
	return int(math.floor(value + 0.5))


#============================================
def _require_finite(name: str, value: float) -> None:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise ValidationError(f"{name} must be a number")
	if not math.isfinite(value):
		raise ValidationError(f"{name} must be a finite number")


#============================================
def pixels_per_cm(dpi: float) -> float:
	"""
	Pixel density per centimeter.

	Args:
		dpi: Dots per inch.

	Returns:
		Pixels per centimeter.
	"""
	_require_finite("dpi", dpi)
	if dpi <= 0:
		raise ValidationError("dpi must be positive")
	return dpi / CM_PER_INCH


#============================================
def cm_to_pixels(cm: float, dpi: float) -> int:
	"""
	Convert centimeters to whole pixels at a DPI.

	Args:
		cm: Length in centimeters.
		dpi: Dots per inch.

	Returns:
		Pixel count.
	"""
	_require_finite("cm", cm)
	return round_half_up(cm * pixels_per_cm(dpi))


#============================================
def pixels_to_cm(pixels: float, dpi: float) -> float:
	"""
	Convert pixels to centimeters at a DPI, rounded to 2 decimals.

	Args:
		pixels: Length in pixels.
		dpi: Dots per inch.

	Returns:
		Length in centimeters.
	"""
	_require_finite("pixels", pixels)
	value = pixels / pixels_per_cm(dpi)
	return round_half_up(value * 100.0) / 100.0


#============================================
def validate_dpi(dpi: int) -> int:
	"""
	Check an output DPI against the supported print range.

	Args:
		dpi: Requested DPI.

	Returns:
		The DPI, unchanged.
	"""
	_require_finite("dpi", dpi)
	if dpi < MIN_DPI or dpi > MAX_DPI:
		raise ValidationError(f"DPI must be between {MIN_DPI} and {MAX_DPI}")
	return dpi
