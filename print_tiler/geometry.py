"""
Coordinate spaces for the sheet grid.

Three spaces are in play:
	global cm: origin at the grid's top-left corner, y grows downward.
	output pixels: global cm sampled at the output DPI, integer boxes.
	preview canvas: global cm scaled into a fixed viewport.

Boxes are (left, top, right, bottom) tuples in every space.
"""

# Standard Library
import dataclasses

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors
import print_tiler.layout
import print_tiler.units


PrintJobConfig = prt.config.PrintJobConfig
PlacementOffset = prt.config.PlacementOffset
RenderedArtworkSize = prt.config.RenderedArtworkSize
GeometryInconsistency = prt.errors.GeometryInconsistency
ValidationError = prt.errors.ValidationError

round_half_up = prt.units.round_half_up

# relative slack for deciding that an artwork axis spans the grid
SPAN_TOLERANCE = 1e-9

Box = tuple[float, float, float, float]
PixelBox = tuple[int, int, int, int]


@dataclasses.dataclass(frozen=True)
class PixelLayout:
	dpi: int
	cols: int
	rows: int
	paper_width_px: int
	paper_height_px: int
	overlap_px: int
	effective_width_px: int
	effective_height_px: int
	offset_x_px: int
	offset_y_px: int
	artwork_width_px: int
	artwork_height_px: int

	@property
	def grid_width_px(self) -> int:
		return (self.cols - 1) * self.effective_width_px + self.paper_width_px

	@property
	def grid_height_px(self) -> int:
		return (self.rows - 1) * self.effective_height_px + self.paper_height_px


@dataclasses.dataclass(frozen=True)
class Viewport:
	canvas_width: int
	canvas_height: int
	cm_to_px: float
	scale: float
	offset_x: float
	offset_y: float
	grid_width_px: float
	grid_height_px: float


#============================================
def _check_cell(config: PrintJobConfig, col: int, row: int) -> None:
	if not (0 <= col < config.cols and 0 <= row < config.rows):
		raise GeometryInconsistency(
			f"cell ({col}, {row}) outside a {config.cols}x{config.rows} grid"
		)


#============================================
def sheet_box_cm(config: PrintJobConfig, col: int, row: int) -> Box:
	"""
	Global-space box of one sheet.

	Sheets step by the effective cell size but keep the full paper size,
	so each one overlaps its right and lower neighbors by overlap_cm.

	Args:
		config: Print job configuration.
		col: Column index.
		row: Row index.

	Returns:
		Box in cm.
	"""
	_check_cell(config, col, row)
	left = col * (config.paper_width_cm - config.overlap_cm)
	top = row * (config.paper_height_cm - config.overlap_cm)
	return (left, top, left + config.paper_width_cm, top + config.paper_height_cm)


#============================================
def intersect_boxes(box_a: Box, box_b: Box) -> Box | None:
	"""
	Intersection of two boxes.

	Args:
		box_a: First box.
		box_b: Second box.

	Returns:
		Intersection box, or None when the overlap is empty.
	"""
	left = max(box_a[0], box_b[0])
	top = max(box_a[1], box_b[1])
	right = min(box_a[2], box_b[2])
	bottom = min(box_a[3], box_b[3])
	if right <= left or bottom <= top:
		return None
	return (left, top, right, bottom)


#============================================
def iter_cells(config: PrintJobConfig) -> list[tuple[int, int]]:
	"""
	Grid cells in row-major order.

	Args:
		config: Print job configuration.

	Returns:
		List of (col, row) tuples.
	"""
	return [(col, row) for row in range(config.rows) for col in range(config.cols)]


#============================================
def compute_pixel_layout(
	config: PrintJobConfig,
	rendered: RenderedArtworkSize,
	offset: PlacementOffset,
	dpi: int,
) -> PixelLayout:
	"""
	Snap the cm layout to whole output pixels.

	Each length is converted once with round-half-up and all sheet and
	artwork boxes are derived from those integers, so the shared strip of
	two neighbor sheets covers exactly the same artwork pixels. An
	artwork axis that spans the grid in cm is never shorter than the
	pixel grid on that axis, so the outer sheet edges stay covered.

	Args:
		config: Print job configuration.
		rendered: Rendered artwork size.
		offset: Artwork placement.
		dpi: Output DPI.

	Returns:
		PixelLayout.
	"""
	geometry = prt.layout.compute_grid_geometry(config)
	paper_width_px = prt.units.cm_to_pixels(config.paper_width_cm, dpi)
	paper_height_px = prt.units.cm_to_pixels(config.paper_height_cm, dpi)
	overlap_px = prt.units.cm_to_pixels(config.overlap_cm, dpi)
	effective_width_px = paper_width_px - overlap_px
	effective_height_px = paper_height_px - overlap_px
	if effective_width_px <= 0 or effective_height_px <= 0:
		raise GeometryInconsistency(
			f"overlap {overlap_px}px swallows a {paper_width_px}x{paper_height_px}px sheet"
		)
	grid_width_px = (config.cols - 1) * effective_width_px + paper_width_px
	grid_height_px = (config.rows - 1) * effective_height_px + paper_height_px
	artwork_width_px = max(1, prt.units.cm_to_pixels(rendered.width_cm, dpi))
	artwork_height_px = max(1, prt.units.cm_to_pixels(rendered.height_cm, dpi))
	tolerance = SPAN_TOLERANCE * max(geometry.grid_width_cm, geometry.grid_height_cm)
	if rendered.width_cm >= geometry.grid_width_cm - tolerance:
		artwork_width_px = max(artwork_width_px, grid_width_px)
	if rendered.height_cm >= geometry.grid_height_cm - tolerance:
		artwork_height_px = max(artwork_height_px, grid_height_px)
	layout = PixelLayout(
		dpi=dpi,
		cols=config.cols,
		rows=config.rows,
		paper_width_px=paper_width_px,
		paper_height_px=paper_height_px,
		overlap_px=overlap_px,
		effective_width_px=effective_width_px,
		effective_height_px=effective_height_px,
		offset_x_px=prt.units.cm_to_pixels(offset.offset_x_cm, dpi),
		offset_y_px=prt.units.cm_to_pixels(offset.offset_y_cm, dpi),
		artwork_width_px=artwork_width_px,
		artwork_height_px=artwork_height_px,
	)
	return layout


#============================================
def sheet_box_px(layout: PixelLayout, col: int, row: int) -> PixelBox:
	"""
	Output-pixel box of one sheet.

	Args:
		layout: Pixel layout.
		col: Column index.
		row: Row index.

	Returns:
		Integer box.
	"""
	if not (0 <= col < layout.cols and 0 <= row < layout.rows):
		raise GeometryInconsistency(
			f"cell ({col}, {row}) outside a {layout.cols}x{layout.rows} grid"
		)
	left = col * layout.effective_width_px
	top = row * layout.effective_height_px
	return (left, top, left + layout.paper_width_px, top + layout.paper_height_px)


#============================================
def artwork_box_px(layout: PixelLayout) -> PixelBox:
	"""
	Output-pixel box of the placed artwork.

	Args:
		layout: Pixel layout.

	Returns:
		Integer box.
	"""
	return (
		layout.offset_x_px,
		layout.offset_y_px,
		layout.offset_x_px + layout.artwork_width_px,
		layout.offset_y_px + layout.artwork_height_px,
	)


#============================================
def pixel_box_to_cm(box: PixelBox, dpi: int) -> Box:
	"""
	Express an output-pixel box in global cm.

	Args:
		box: Integer box at the output DPI.
		dpi: Output DPI.

	Returns:
		Box in cm.
	"""
	factor = prt.units.pixels_per_cm(dpi)
	return (box[0] / factor, box[1] / factor, box[2] / factor, box[3] / factor)


#============================================
def compute_viewport(
	config: PrintJobConfig,
	canvas_width: int = prt.config.PREVIEW_CANVAS_WIDTH,
	canvas_height: int = prt.config.PREVIEW_CANVAS_HEIGHT,
	preview_dpi: int = prt.config.PREVIEW_DPI,
	margin: float = prt.config.PREVIEW_MARGIN,
) -> Viewport:
	"""
	Fit the whole sheet grid into a preview canvas, centered.

	scale = min(canvas_w * margin / grid_w_px, canvas_h * margin / grid_h_px, 1)

	Args:
		config: Print job configuration.
		canvas_width: Canvas width in pixels.
		canvas_height: Canvas height in pixels.
		preview_dpi: Sampling density of the preview.
		margin: Fraction of the canvas the grid may use.

	Returns:
		Viewport.
	"""
	if canvas_width <= 0 or canvas_height <= 0:
		raise ValidationError("Preview canvas must have positive size")
	if not 0.0 < margin <= 1.0:
		raise ValidationError("Preview margin must be in (0, 1]")
	geometry = prt.layout.compute_grid_geometry(config)
	cm_to_px = prt.units.pixels_per_cm(preview_dpi)
	grid_width_px = geometry.grid_width_cm * cm_to_px
	grid_height_px = geometry.grid_height_cm * cm_to_px
	scale = min(
		canvas_width * margin / grid_width_px,
		canvas_height * margin / grid_height_px,
		1.0,
	)
	viewport = Viewport(
		canvas_width=canvas_width,
		canvas_height=canvas_height,
		cm_to_px=cm_to_px,
		scale=scale,
		offset_x=(canvas_width - grid_width_px * scale) / 2.0,
		offset_y=(canvas_height - grid_height_px * scale) / 2.0,
		grid_width_px=grid_width_px,
		grid_height_px=grid_height_px,
	)
	return viewport


#============================================
def to_canvas(viewport: Viewport, x_cm: float, y_cm: float) -> tuple[float, float]:
	"""
	Map a global cm point onto the preview canvas.

	Args:
		viewport: Preview viewport.
		x_cm: Global x in cm.
		y_cm: Global y in cm.

	Returns:
		Canvas (x, y).
	"""
	factor = viewport.cm_to_px * viewport.scale
	return (viewport.offset_x + x_cm * factor, viewport.offset_y + y_cm * factor)


#============================================
def from_canvas(viewport: Viewport, x: float, y: float) -> tuple[float, float]:
	"""
	Map a canvas point back to global cm.

	Args:
		viewport: Preview viewport.
		x: Canvas x.
		y: Canvas y.

	Returns:
		Global (x_cm, y_cm).
	"""
	factor = viewport.cm_to_px * viewport.scale
	return ((x - viewport.offset_x) / factor, (y - viewport.offset_y) / factor)


#============================================
def box_to_canvas(viewport: Viewport, box: Box) -> Box:
	left, top = to_canvas(viewport, box[0], box[1])
	right, bottom = to_canvas(viewport, box[2], box[3])
	return (left, top, right, bottom)


#============================================
def box_from_canvas(viewport: Viewport, box: Box) -> Box:
	left, top = from_canvas(viewport, box[0], box[1])
	right, bottom = from_canvas(viewport, box[2], box[3])
	return (left, top, right, bottom)


#============================================
def canvas_delta_to_cm(viewport: Viewport, dx: float, dy: float) -> tuple[float, float]:
	"""
	Convert a canvas-pixel drag delta into a cm delta.

	Args:
		viewport: Preview viewport.
		dx: Horizontal delta in canvas pixels.
		dy: Vertical delta in canvas pixels.

	Returns:
		Delta (dx_cm, dy_cm).
	"""
	factor = viewport.cm_to_px * viewport.scale
	return (dx / factor, dy / factor)
