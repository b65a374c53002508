"""
Interactive placement preview.

Every frame is recomputed from immutable inputs through the same layout
and coordinate functions the page renderer uses; only the final
viewport mapping is preview-specific.
"""

# Standard Library
import dataclasses

# PIP3 modules
import PIL.Image
import PIL.ImageDraw

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.geometry
import print_tiler.layout
import print_tiler.resample
import print_tiler.transform
import print_tiler.units


PrintJobConfig = prt.config.PrintJobConfig
PlacementOffset = prt.config.PlacementOffset
GridGeometry = prt.config.GridGeometry
RenderedArtworkSize = prt.config.RenderedArtworkSize
ArtworkTransform = prt.config.ArtworkTransform
Viewport = prt.geometry.Viewport
Box = prt.geometry.Box
PixelBox = prt.geometry.PixelBox
PixelLayout = prt.geometry.PixelLayout

DEFAULT_DPI = prt.config.DEFAULT_DPI
PREVIEW_CANVAS_WIDTH = prt.config.PREVIEW_CANVAS_WIDTH
PREVIEW_CANVAS_HEIGHT = prt.config.PREVIEW_CANVAS_HEIGHT
PREVIEW_DPI = prt.config.PREVIEW_DPI
PREVIEW_MARGIN = prt.config.PREVIEW_MARGIN
PREVIEW_BACKGROUND = prt.config.PREVIEW_BACKGROUND
PREVIEW_PAGE_COLOR = prt.config.PREVIEW_PAGE_COLOR
PREVIEW_OVERLAP_COLOR = prt.config.PREVIEW_OVERLAP_COLOR


@dataclasses.dataclass(frozen=True)
class PreviewSheet:
	page_number: int
	col_index: int
	row_index: int
	label: str
	box_cm: Box
	canvas_box: Box
	overlap_boxes: tuple[Box, ...]


@dataclasses.dataclass(frozen=True)
class PreviewFrame:
	viewport: Viewport
	geometry: GridGeometry
	rendered_size: RenderedArtworkSize
	offset: PlacementOffset
	artwork_box_cm: Box
	artwork_canvas_box: Box
	sheets: tuple[PreviewSheet, ...]


#============================================
def overlap_strips_px(layout: PixelLayout, col: int, row: int) -> list[PixelBox]:
	"""
	Strips of a sheet that are shared with its right and lower neighbors.

	Args:
		layout: Pixel layout at the output DPI.
		col: Column index.
		row: Row index.

	Returns:
		List of integer boxes in output pixels.
	"""
	left, top, right, bottom = prt.geometry.sheet_box_px(layout, col, row)
	strips: list[PixelBox] = []
	if layout.overlap_px <= 0:
		return strips
	if col < layout.cols - 1:
		strips.append((right - layout.overlap_px, top, right, bottom))
	if row < layout.rows - 1:
		strips.append((left, bottom - layout.overlap_px, right, bottom))
	return strips


#============================================
def compute_preview_frame(
	config: PrintJobConfig,
	artwork_width_px: int,
	artwork_height_px: int,
	offset: PlacementOffset,
	dpi: int = DEFAULT_DPI,
	canvas_width: int = PREVIEW_CANVAS_WIDTH,
	canvas_height: int = PREVIEW_CANVAS_HEIGHT,
	preview_dpi: int = PREVIEW_DPI,
	margin: float = PREVIEW_MARGIN,
) -> PreviewFrame:
	"""
	Compute one preview frame without touching any pixels.

	Sheet, overlap, and artwork boxes come from the same pixel layout
	the page renderer cuts with at the output DPI, expressed in cm.

	Args:
		config: Print job configuration.
		artwork_width_px: Artwork width after crop/rotate/flip.
		artwork_height_px: Artwork height after crop/rotate/flip.
		offset: Artwork placement in grid space.
		dpi: Output DPI the pages will be rendered at.
		canvas_width: Canvas width in pixels.
		canvas_height: Canvas height in pixels.
		preview_dpi: Preview sampling density.
		margin: Fraction of the canvas the grid may use.

	Returns:
		PreviewFrame.
	"""
	prt.layout.validate_offset(offset)
	prt.units.validate_dpi(dpi)
	geometry, rendered = prt.layout.plan_artwork(config, artwork_width_px, artwork_height_px)
	layout = prt.geometry.compute_pixel_layout(config, rendered, offset, dpi)
	viewport = prt.geometry.compute_viewport(
		config,
		canvas_width=canvas_width,
		canvas_height=canvas_height,
		preview_dpi=preview_dpi,
		margin=margin,
	)
	sheets: list[PreviewSheet] = []
	for page_number, (col, row) in enumerate(prt.geometry.iter_cells(config), start=1):
		box_cm = prt.geometry.pixel_box_to_cm(prt.geometry.sheet_box_px(layout, col, row), dpi)
		strips = tuple(
			prt.geometry.box_to_canvas(viewport, prt.geometry.pixel_box_to_cm(strip, dpi))
			for strip in overlap_strips_px(layout, col, row)
		)
		sheets.append(
			PreviewSheet(
				page_number=page_number,
				col_index=col,
				row_index=row,
				label=f"{col + 1},{row + 1}",
				box_cm=box_cm,
				canvas_box=prt.geometry.box_to_canvas(viewport, box_cm),
				overlap_boxes=strips,
			)
		)
	artwork_cm = prt.geometry.pixel_box_to_cm(prt.geometry.artwork_box_px(layout), dpi)
	frame = PreviewFrame(
		viewport=viewport,
		geometry=geometry,
		rendered_size=rendered,
		offset=offset,
		artwork_box_cm=artwork_cm,
		artwork_canvas_box=prt.geometry.box_to_canvas(viewport, artwork_cm),
		sheets=tuple(sheets),
	)
	return frame


#============================================
def frame_sheet_boxes_cm(frame: PreviewFrame) -> list[Box]:
	"""
	Undo the viewport mapping on every sheet drawn in a frame.

	Args:
		frame: Preview frame.

	Returns:
		Sheet boxes in global cm, row-major.
	"""
	return [prt.geometry.box_from_canvas(frame.viewport, sheet.canvas_box) for sheet in frame.sheets]


#============================================
def drag_offset(
	start: PlacementOffset,
	dx: float,
	dy: float,
	viewport: Viewport,
) -> PlacementOffset:
	"""
	New placement after dragging the artwork by a canvas delta.

	Dragging right or down moves the artwork right or down. Offsets
	never go negative.

	Args:
		start: Placement when the drag began.
		dx: Horizontal pointer delta in canvas pixels.
		dy: Vertical pointer delta in canvas pixels.
		viewport: Viewport of the frame the drag began on.

	Returns:
		PlacementOffset.
	"""
	dx_cm, dy_cm = prt.geometry.canvas_delta_to_cm(viewport, dx, dy)
	return PlacementOffset(
		offset_x_cm=max(0.0, start.offset_x_cm + dx_cm),
		offset_y_cm=max(0.0, start.offset_y_cm + dy_cm),
	)


#============================================
def center_offset(config: PrintJobConfig, rendered: RenderedArtworkSize) -> PlacementOffset:
	"""
	Placement that centers the artwork on the first sheet.

	Args:
		config: Print job configuration.
		rendered: Rendered artwork size.

	Returns:
		PlacementOffset, clamped at zero.
	"""
	return PlacementOffset(
		offset_x_cm=max(0.0, (config.paper_width_cm - rendered.width_cm) / 2.0),
		offset_y_cm=max(0.0, (config.paper_height_cm - rendered.height_cm) / 2.0),
	)


#============================================
def reset_offset() -> PlacementOffset:
	return PlacementOffset(offset_x_cm=0.0, offset_y_cm=0.0)


#============================================
def _round_box(box: Box) -> tuple[int, int, int, int]:
	return tuple(prt.units.round_half_up(value) for value in box)


#============================================
def draw_preview(
	frame: PreviewFrame,
	artwork: PIL.Image.Image | None = None,
) -> PIL.Image.Image:
	"""
	Draw a preview frame: artwork, sheet outlines, overlap strips, page numbers.

	Args:
		frame: Preview frame.
		artwork: Transformed artwork image, or None for outlines only.

	Returns:
		RGB canvas image.
	"""
	viewport = frame.viewport
	canvas = PIL.Image.new("RGB", (viewport.canvas_width, viewport.canvas_height), PREVIEW_BACKGROUND)
	if artwork is not None:
		left, top, right, bottom = _round_box(frame.artwork_canvas_box)
		size = (max(1, right - left), max(1, bottom - top))
		scaled, _choice = prt.resample.resample_image(prt.transform.flatten_to_rgb(artwork), *size)
		canvas.paste(scaled, (left, top))
	draw = PIL.ImageDraw.Draw(canvas)
	for sheet in frame.sheets:
		for strip in sheet.overlap_boxes:
			draw.rectangle(_round_box(strip), outline=PREVIEW_OVERLAP_COLOR, width=1)
		draw.rectangle(_round_box(sheet.canvas_box), outline=PREVIEW_PAGE_COLOR, width=2)
		left, top = sheet.canvas_box[0], sheet.canvas_box[1]
		draw.text((left + 8, top + 8), f"#{sheet.page_number}", fill=PREVIEW_PAGE_COLOR)
	return canvas


#============================================
def preview_artwork(
	source: bytes | str | PIL.Image.Image,
	transform: ArtworkTransform | None = None,
) -> PIL.Image.Image:
	"""
	Decode and transform the artwork once for a preview session.

	Args:
		source: Encoded image or decoded PIL image.
		transform: Crop/rotate/flip transform.

	Returns:
		Transformed RGB artwork.
	"""
	if transform is None:
		transform = ArtworkTransform()
	image = prt.resample.decode_image(source)
	return prt.transform.apply_transform(image, transform)
