"""
Rasterize the placed artwork into one paper-sized image per sheet.
"""

# Standard Library
import typing

# PIP3 modules
import PIL.Image

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors
import print_tiler.geometry
import print_tiler.layout
import print_tiler.resample
import print_tiler.transform
import print_tiler.units


PrintJobConfig = prt.config.PrintJobConfig
ArtworkTransform = prt.config.ArtworkTransform
PlacementOffset = prt.config.PlacementOffset
Page = prt.config.Page
TilingResult = prt.config.TilingResult
PixelLayout = prt.geometry.PixelLayout
GeometryInconsistency = prt.errors.GeometryInconsistency
RenderSuperseded = prt.errors.RenderSuperseded

DEFAULT_DPI = prt.config.DEFAULT_DPI
WHITE_RGB = prt.config.WHITE_RGB
PROGRESS_BAR_WIDTH = prt.config.PROGRESS_BAR_WIDTH


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


class ArtworkBands:
	"""
	Resamples the placed artwork one grid band at a time.

	Band edges fall on every sheet edge and on the artwork edges, so each
	band lies wholly inside or wholly outside any sheet. A band inside an
	overlap strip is resampled once and pasted into every sheet sharing
	it; a band is dropped after the last sheet that uses it.
	"""

	def __init__(
		self,
		source: PIL.Image.Image,
		layout: PixelLayout,
		choice: prt.resample.ResampleChoice,
	) -> None:
		self.source = source
		self.layout = layout
		self.choice = choice
		self.artwork_box = prt.geometry.artwork_box_px(layout)
		self.cells = [(col, row) for row in range(layout.rows) for col in range(layout.cols)]
		left, top, right, bottom = self.artwork_box
		x_edges = {left, right}
		y_edges = {top, bottom}
		for col, row in self.cells:
			sheet_box = prt.geometry.sheet_box_px(layout, col, row)
			x_edges.update((sheet_box[0], sheet_box[2]))
			y_edges.update((sheet_box[1], sheet_box[3]))
		self.x_edges = sorted(x for x in x_edges if left <= x <= right)
		self.y_edges = sorted(y for y in y_edges if top <= y <= bottom)
		self.resampled = 0
		self._cache: dict[tuple[int, int], PIL.Image.Image] = {}
		self._last_use: dict[tuple[int, int], int] = {}
		for index, (col, row) in enumerate(self.cells):
			for key in self.keys_for(col, row):
				self._last_use[key] = index

	@property
	def cached(self) -> int:
		return len(self._cache)

	#============================================
	def keys_for(self, col: int, row: int) -> list[tuple[int, int]]:
		"""
		Bands inside the part of one sheet the artwork covers.

		Args:
			col: Column index.
			row: Row index.

		Returns:
			List of (x band, y band) index pairs.
		"""
		sheet_box = prt.geometry.sheet_box_px(self.layout, col, row)
		region = prt.geometry.intersect_boxes(sheet_box, self.artwork_box)
		if region is None:
			return []
		left, top, right, bottom = region
		x_bands = [
			index for index in range(len(self.x_edges) - 1)
			if self.x_edges[index] >= left and self.x_edges[index + 1] <= right
		]
		y_bands = [
			index for index in range(len(self.y_edges) - 1)
			if self.y_edges[index] >= top and self.y_edges[index + 1] <= bottom
		]
		return [(x_band, y_band) for y_band in y_bands for x_band in x_bands]

	#============================================
	def band(self, key: tuple[int, int]) -> PIL.Image.Image:
		"""
		Resampled pixels of one band, computed on first use.

		Args:
			key: (x band, y band) index pair.

		Returns:
			RGB image exactly the band size.
		"""
		if key in self._cache:
			return self._cache[key]
		x_band, y_band = key
		x0 = self.x_edges[x_band] - self.artwork_box[0]
		x1 = self.x_edges[x_band + 1] - self.artwork_box[0]
		y0 = self.y_edges[y_band] - self.artwork_box[1]
		y1 = self.y_edges[y_band + 1] - self.artwork_box[1]
		target_size = (self.layout.artwork_width_px, self.layout.artwork_height_px)
		if self.source.size == target_size:
			piece = self.source.crop((x0, y0, x1, y1))
		else:
			width, height = self.source.size
			# artwork pixels back to source coordinates
			source_box = (
				x0 * width / target_size[0],
				y0 * height / target_size[1],
				min(width, x1 * width / target_size[0]),
				min(height, y1 * height / target_size[1]),
			)
			piece = self.source.resize(
				(x1 - x0, y1 - y0),
				resample=self.choice.resample,
				box=source_box,
				reducing_gap=self.choice.reducing_gap,
			)
		if piece.size != (x1 - x0, y1 - y0):
			raise GeometryInconsistency(f"band {key} is {piece.size}, expected {(x1 - x0, y1 - y0)}")
		self._cache[key] = piece
		self.resampled += 1
		return piece

	#============================================
	def release(self, sheet_index: int) -> None:
		"""
		Drop every band no sheet after this one needs.

		Args:
			sheet_index: Row-major index of the sheet just painted.
		"""
		for key in [key for key in self._cache if self._last_use[key] <= sheet_index]:
			del self._cache[key]


#============================================
def rasterize_sheet(
	bands: ArtworkBands,
	layout: PixelLayout,
	col: int,
	row: int,
) -> tuple[PIL.Image.Image, bool]:
	"""
	Paint the part of the artwork that falls on one sheet.

	Args:
		bands: Band resampler for the placed artwork.
		layout: Pixel layout.
		col: Column index.
		row: Row index.

	Returns:
		Tuple of (paper-sized RGB image, whether any artwork landed on it).
	"""
	sheet_box = prt.geometry.sheet_box_px(layout, col, row)
	canvas = PIL.Image.new("RGB", (layout.paper_width_px, layout.paper_height_px), WHITE_RGB)
	keys = bands.keys_for(col, row)
	for key in keys:
		x_band, y_band = key
		position = (bands.x_edges[x_band] - sheet_box[0], bands.y_edges[y_band] - sheet_box[1])
		canvas.paste(bands.band(key), position)
	return (canvas, bool(keys))


#============================================
def prepare_artwork(
	image: PIL.Image.Image,
	config: PrintJobConfig,
	transform: ArtworkTransform,
	offset: PlacementOffset,
	dpi: int,
) -> tuple[ArtworkBands, PixelLayout, TilingResult]:
	"""
	Transform and size the artwork once for every sheet.

	Resampling is deferred to the bands each sheet needs, so the full
	grid-sized artwork is never held in memory.

	Args:
		image: Decoded source image.
		config: Print job configuration.
		transform: Crop/rotate/flip transform.
		offset: Artwork placement.
		dpi: Output DPI.

	Returns:
		Tuple of (band resampler, pixel layout, result shell without pages).
	"""
	transformed = prt.transform.apply_transform(image, transform)
	geometry, rendered = prt.layout.plan_artwork(config, transformed.width, transformed.height)
	layout = prt.geometry.compute_pixel_layout(config, rendered, offset, dpi)
	choice = prt.resample.select_resampling(
		transformed.width,
		transformed.height,
		layout.artwork_width_px,
		layout.artwork_height_px,
	)
	bands = ArtworkBands(transformed, layout, choice)
	shell = TilingResult(
		pages=[],
		config=config,
		geometry=geometry,
		rendered_size=rendered,
		offset=offset,
		transform=transform,
		dpi=dpi,
		algorithm=choice.algorithm,
		was_upscaled=choice.was_upscaled,
	)
	return (bands, layout, shell)


#============================================
def render_pages(
	source: bytes | str | PIL.Image.Image,
	config: PrintJobConfig,
	transform: ArtworkTransform | None = None,
	offset: PlacementOffset | None = None,
	dpi: int = DEFAULT_DPI,
	verbose: bool = False,
	is_current: typing.Callable[[], bool] | None = None,
) -> TilingResult:
	"""
	Render every sheet of the print job.

	Inputs are validated before any pixel work. Pages come back in
	row-major order numbered from 1, each exactly paper-sized at the
	output DPI with white wherever the artwork does not reach.

	Args:
		source: Encoded image or decoded PIL image.
		config: Print job configuration.
		transform: Crop/rotate/flip transform.
		offset: Artwork placement in grid space.
		dpi: Output DPI.
		verbose: Print a progress bar.
		is_current: Polled between sheets; returning False abandons the render.

	Returns:
		TilingResult.
	"""
	if transform is None:
		transform = ArtworkTransform()
	if offset is None:
		offset = PlacementOffset()
	prt.layout.validate_config(config)
	prt.layout.validate_offset(offset)
	prt.units.validate_dpi(dpi)
	image = prt.resample.decode_image(source)
	prt.transform.validate_transform(transform, image.width, image.height)

	bands, layout, result = prepare_artwork(image, config, transform, offset, dpi)
	cells = prt.geometry.iter_cells(config)
	total = len(cells)
	if verbose:
		print_progress("Pages", 0, total)
	pages: list[Page] = []
	for page_number, (col, row) in enumerate(cells, start=1):
		if is_current is not None and not is_current():
			raise RenderSuperseded(f"render abandoned before page {page_number}")
		sheet, has_artwork = rasterize_sheet(bands, layout, col, row)
		if sheet.size != (layout.paper_width_px, layout.paper_height_px):
			raise GeometryInconsistency(
				f"page {page_number} is {sheet.size}, expected "
				f"{(layout.paper_width_px, layout.paper_height_px)}"
			)
		pages.append(
			Page(
				page_number=page_number,
				col_index=col,
				row_index=row,
				image_buffer=prt.resample.encode_png(sheet, dpi),
				width_px=layout.paper_width_px,
				height_px=layout.paper_height_px,
				dpi=dpi,
				has_artwork=has_artwork,
			)
		)
		bands.release(page_number - 1)
		if verbose:
			print_progress("Pages", page_number, total)
	if verbose:
		print()
	if bands.cached:
		raise GeometryInconsistency(f"{bands.cached} artwork bands outlived the render")
	if len(pages) != config.sheet_count:
		raise GeometryInconsistency(f"rendered {len(pages)} pages for {config.sheet_count} sheets")
	result.pages = pages
	return result
