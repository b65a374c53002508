import math

import pytest

import print_tiler.errors
import print_tiler.units


ValidationError = print_tiler.errors.ValidationError


#============================================
def test_round_half_up_breaks_ties_upward() -> None:
	"""
	Ties go up, unlike Python's round-half-even.
	"""
	assert print_tiler.units.round_half_up(0.5) == 1
	assert print_tiler.units.round_half_up(1.5) == 2
	assert print_tiler.units.round_half_up(2.5) == 3
	assert print_tiler.units.round_half_up(-0.5) == 0
	assert print_tiler.units.round_half_up(2.49) == 2


#============================================
def test_cm_to_pixels_known_values() -> None:
	assert print_tiler.units.cm_to_pixels(2.54, 300) == 300
	assert print_tiler.units.cm_to_pixels(10, 300) == 1181
	assert print_tiler.units.cm_to_pixels(21.0, 300) == 2480
	assert print_tiler.units.cm_to_pixels(29.7, 300) == 3508
	assert print_tiler.units.cm_to_pixels(0.5, 72) == 14


#============================================
def test_pixels_to_cm_two_decimals() -> None:
	assert print_tiler.units.pixels_to_cm(300, 300) == pytest.approx(2.54)
	assert print_tiler.units.pixels_to_cm(1181, 300) == pytest.approx(10.0)
	assert print_tiler.units.pixels_to_cm(2000, 300) == pytest.approx(16.93)


#============================================
def test_conversions_reject_non_finite() -> None:
	with pytest.raises(ValidationError):
		print_tiler.units.cm_to_pixels(math.nan, 300)
	with pytest.raises(ValidationError):
		print_tiler.units.cm_to_pixels(math.inf, 300)
	with pytest.raises(ValidationError):
		print_tiler.units.pixels_to_cm(10, math.nan)
	with pytest.raises(ValidationError):
		print_tiler.units.pixels_per_cm(0)


#============================================
def test_validate_dpi_range() -> None:
	"""
	Accept the print range endpoints and reject values just outside it.
	"""
	assert print_tiler.units.validate_dpi(72) == 72
	assert print_tiler.units.validate_dpi(600) == 600
	for dpi in (71, 601, 0):
		with pytest.raises(ValidationError, match="DPI must be between 72 and 600"):
			print_tiler.units.validate_dpi(dpi)
