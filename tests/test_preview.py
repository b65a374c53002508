import PIL.Image
import pytest

import print_tiler.config
import print_tiler.geometry
import print_tiler.layout
import print_tiler.preview


ArtworkTransform = print_tiler.config.ArtworkTransform
PlacementOffset = print_tiler.config.PlacementOffset
RenderedArtworkSize = print_tiler.config.RenderedArtworkSize

ARTWORK_COLOR = (200, 30, 30)


#============================================
def test_frame_lists_sheets_and_overlap_guides() -> None:
	config = print_tiler.layout.build_print_job_config(4, "A4", "portrait", 0.5)
	frame = print_tiler.preview.compute_preview_frame(config, 1000, 1000, PlacementOffset())
	assert [sheet.page_number for sheet in frame.sheets] == [1, 2, 3, 4]
	assert [sheet.label for sheet in frame.sheets] == ["1,1", "2,1", "1,2", "2,2"]
	assert [len(sheet.overlap_boxes) for sheet in frame.sheets] == [2, 1, 1, 0]
	assert frame.rendered_size.width_cm == pytest.approx(41.5)
	# boxes are snapped to whole pixels at the output DPI
	assert frame.artwork_box_cm == pytest.approx((0.0, 0.0, 41.5, 41.5), abs=0.01)


#============================================
def test_overlap_strips_skip_outer_edges() -> None:
	config = print_tiler.layout.build_print_job_config(2, "A4", "portrait", 0.5)
	rendered = RenderedArtworkSize(width_cm=41.5, height_cm=29.7)
	layout = print_tiler.geometry.compute_pixel_layout(config, rendered, PlacementOffset(), 300)
	# A4 at 300 DPI is 2480 px wide with a 59 px strip
	assert print_tiler.preview.overlap_strips_px(layout, 0, 0) == [(2421, 0, 2480, 3508)]
	assert print_tiler.preview.overlap_strips_px(layout, 1, 0) == []
	no_overlap = print_tiler.layout.build_print_job_config(2, "A4", "portrait", 0.0)
	layout = print_tiler.geometry.compute_pixel_layout(no_overlap, rendered, PlacementOffset(), 300)
	assert print_tiler.preview.overlap_strips_px(layout, 0, 0) == []


#============================================
def test_drag_moves_and_clamps() -> None:
	"""
	Dragging converts canvas pixels to cm and never goes negative.
	"""
	config = print_tiler.layout.build_print_job_config(4, "A4", "portrait", 0.5)
	frame = print_tiler.preview.compute_preview_frame(config, 1000, 1000, PlacementOffset())
	viewport = frame.viewport
	pixels_per_cm = viewport.cm_to_px * viewport.scale
	start = PlacementOffset(offset_x_cm=2.0, offset_y_cm=1.0)
	moved = print_tiler.preview.drag_offset(start, pixels_per_cm * 3, pixels_per_cm * 0.5, viewport)
	assert moved.offset_x_cm == pytest.approx(5.0)
	assert moved.offset_y_cm == pytest.approx(1.5)
	clamped = print_tiler.preview.drag_offset(start, -pixels_per_cm * 10, -pixels_per_cm * 10, viewport)
	assert clamped == PlacementOffset(offset_x_cm=0.0, offset_y_cm=0.0)


#============================================
def test_center_and_reset() -> None:
	config = print_tiler.layout.build_print_job_config(1, "A4", "portrait", 0.0)
	_geometry, rendered = print_tiler.layout.plan_artwork(config, 500, 500)
	assert (rendered.width_cm, rendered.height_cm) == pytest.approx((21.0, 21.0))
	centered = print_tiler.preview.center_offset(config, rendered)
	assert centered.offset_x_cm == pytest.approx(0.0)
	assert centered.offset_y_cm == pytest.approx(4.35)
	oversized = RenderedArtworkSize(width_cm=50.0, height_cm=50.0)
	assert print_tiler.preview.center_offset(config, oversized) == PlacementOffset(0.0, 0.0)
	assert print_tiler.preview.reset_offset() == PlacementOffset(0.0, 0.0)


#============================================
def test_draw_preview_paints_artwork() -> None:
	config = print_tiler.layout.build_print_job_config(1, "A4", "portrait", 0.0)
	artwork = print_tiler.preview.preview_artwork(PIL.Image.new("RGB", (500, 500), ARTWORK_COLOR))
	offset = PlacementOffset(offset_x_cm=0.0, offset_y_cm=4.35)
	frame = print_tiler.preview.compute_preview_frame(config, artwork.width, artwork.height, offset)
	canvas = print_tiler.preview.draw_preview(frame, artwork)
	assert canvas.size == (600, 400)
	assert canvas.mode == "RGB"
	left, top, right, bottom = frame.artwork_canvas_box
	center = canvas.getpixel((int((left + right) / 2), int((top + bottom) / 2)))
	for got, want in zip(center, ARTWORK_COLOR):
		assert abs(got - want) <= 2
	assert canvas.getpixel((2, 2)) == print_tiler.config.PREVIEW_BACKGROUND


#============================================
def test_preview_artwork_applies_transform() -> None:
	artwork = print_tiler.preview.preview_artwork(
		PIL.Image.new("RGB", (40, 10), ARTWORK_COLOR),
		ArtworkTransform(rotation_degrees=90),
	)
	assert artwork.size == (10, 40)
