"""
Error types raised by the tiling pipeline.
"""


class ValidationError(ValueError):
	"""
	Caller input rejected before any computation runs.
	"""


class DecodeError(ValueError):
	"""
	Source image could not be decoded or has no usable dimensions.
	"""


class GeometryInconsistency(AssertionError):
	"""
	An internal layout invariant does not hold.
	"""


class RenderSuperseded(Exception):
	"""
	A page render was abandoned because newer parameters arrived.
	"""
