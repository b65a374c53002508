"""
Last-write-wins scheduling for page exports.

Each submit supersedes every render still in flight. A superseded render
stops at the next sheet boundary and its pages are thrown away; nothing
is queued behind a newer request.
"""

# Standard Library
import threading

# PIP3 modules
import PIL.Image

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors
import print_tiler.rasterize


PrintJobConfig = prt.config.PrintJobConfig
ArtworkTransform = prt.config.ArtworkTransform
PlacementOffset = prt.config.PlacementOffset
TilingResult = prt.config.TilingResult
RenderSuperseded = prt.errors.RenderSuperseded

DEFAULT_DPI = prt.config.DEFAULT_DPI


class ExportScheduler:
	"""
	Hands out render generations and keeps only the newest result.
	"""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._generation = 0
		self._latest: TilingResult | None = None
		self._discarded = 0

	#============================================
	def begin(self) -> int:
		"""
		Start a new generation, superseding all earlier ones.

		Returns:
			Generation number for the new render.
		"""
		with self._lock:
			self._generation += 1
			return self._generation

	#============================================
	def is_current(self, generation: int) -> bool:
		with self._lock:
			return generation == self._generation

	#============================================
	def cancel(self) -> None:
		"""
		Supersede whatever is in flight without starting a new render.
		"""
		self.begin()

	@property
	def latest(self) -> TilingResult | None:
		with self._lock:
			return self._latest

	@property
	def discarded(self) -> int:
		with self._lock:
			return self._discarded

	#============================================
	def _finish(self, generation: int, result: TilingResult | None) -> TilingResult | None:
		with self._lock:
			if result is None or generation != self._generation:
				self._discarded += 1
				return None
			self._latest = result
			return result

	#============================================
	def submit(
		self,
		source: bytes | str | PIL.Image.Image,
		config: PrintJobConfig,
		transform: ArtworkTransform | None = None,
		offset: PlacementOffset | None = None,
		dpi: int = DEFAULT_DPI,
	) -> TilingResult | None:
		"""
		Render pages unless a newer submit arrives first.

		Validation and decode errors propagate to the caller.

		Args:
			source: Encoded image or decoded PIL image.
			config: Print job configuration.
			transform: Crop/rotate/flip transform.
			offset: Artwork placement.
			dpi: Output DPI.

		Returns:
			TilingResult, or None when this render was superseded.
		"""
		generation = self.begin()
		try:
			result = prt.rasterize.render_pages(
				source,
				config,
				transform=transform,
				offset=offset,
				dpi=dpi,
				is_current=lambda: self.is_current(generation),
			)
		except RenderSuperseded:
			result = None
		return self._finish(generation, result)
