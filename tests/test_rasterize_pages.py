import io

import PIL.Image
import PIL.ImageChops
import pytest

import conftest
import print_tiler.config
import print_tiler.errors
import print_tiler.geometry
import print_tiler.layout
import print_tiler.rasterize
import print_tiler.resample


ArtworkTransform = print_tiler.config.ArtworkTransform
CropRect = print_tiler.config.CropRect
PlacementOffset = print_tiler.config.PlacementOffset
ValidationError = print_tiler.errors.ValidationError
DecodeError = print_tiler.errors.DecodeError
RenderSuperseded = print_tiler.errors.RenderSuperseded

DPI = 72
# A4 at 72 DPI: 595 x 842 px with a 14 px overlap strip
PAPER_PX = (595, 842)
OVERLAP_PX = 14


#============================================
def open_page(page: print_tiler.config.Page) -> PIL.Image.Image:
	image = PIL.Image.open(io.BytesIO(page.image_buffer))
	image.load()
	return image


#============================================
def build_four_sheet_config() -> print_tiler.config.PrintJobConfig:
	return print_tiler.layout.build_print_job_config(4, "A4", "portrait", 0.5)


#============================================
def test_pages_are_paper_sized_and_row_major(gradient_png: bytes) -> None:
	config = build_four_sheet_config()
	result = print_tiler.rasterize.render_pages(gradient_png, config, dpi=DPI)
	assert [page.page_number for page in result.pages] == [1, 2, 3, 4]
	assert [page.label for page in result.pages] == ["1,1", "2,1", "1,2", "2,2"]
	for page in result.pages:
		assert (page.width_px, page.height_px) == PAPER_PX
		assert page.dpi == DPI
		image = open_page(page)
		assert image.format == "PNG"
		assert image.mode == "RGB"
		assert image.size == PAPER_PX
		assert image.info["dpi"][0] == pytest.approx(DPI, abs=0.01)
	assert result.rendered_size.width_cm == pytest.approx(41.5)
	assert result.algorithm == "Lanczos3"
	assert result.was_upscaled


#============================================
def test_render_is_byte_identical(gradient_png: bytes) -> None:
	config = build_four_sheet_config()
	transform = ArtworkTransform(rotation_degrees=17, flip_horizontal=True)
	offset = PlacementOffset(offset_x_cm=0.3, offset_y_cm=1.7)
	first = print_tiler.rasterize.render_pages(gradient_png, config, transform, offset, DPI)
	second = print_tiler.rasterize.render_pages(gradient_png, config, transform, offset, DPI)
	assert [page.image_buffer for page in first.pages] == [page.image_buffer for page in second.pages]


#============================================
def test_horizontal_overlap_strips_match(gradient_png: bytes) -> None:
	"""
	Right strip of (col, row) and left strip of (col + 1, row) carry the same pixels.
	"""
	config = build_four_sheet_config()
	offset = PlacementOffset(offset_x_cm=0.2, offset_y_cm=0.4)
	result = print_tiler.rasterize.render_pages(gradient_png, config, offset=offset, dpi=DPI)
	width, height = PAPER_PX
	for left_index, right_index in ((0, 1), (2, 3)):
		left_page = open_page(result.pages[left_index])
		right_page = open_page(result.pages[right_index])
		left_strip = left_page.crop((width - OVERLAP_PX, 0, width, height))
		right_strip = right_page.crop((0, 0, OVERLAP_PX, height))
		assert left_strip.tobytes() == right_strip.tobytes()
		# the strip is not trivially blank
		assert left_strip.getextrema() != ((255, 255), (255, 255), (255, 255))


#============================================
def test_vertical_overlap_strips_match(gradient_png: bytes) -> None:
	config = build_four_sheet_config()
	result = print_tiler.rasterize.render_pages(gradient_png, config, dpi=DPI)
	width, height = PAPER_PX
	upper = open_page(result.pages[0]).crop((0, height - OVERLAP_PX, width, height))
	lower = open_page(result.pages[2]).crop((0, 0, width, OVERLAP_PX))
	assert upper.tobytes() == lower.tobytes()


#============================================
def test_sheet_without_artwork_is_white(tall_png: bytes) -> None:
	"""
	A narrow artwork only reaches the first of two sheets; both are still emitted.
	"""
	config = print_tiler.layout.build_print_job_config(2, "A4", "portrait", 0.5)
	result = print_tiler.rasterize.render_pages(tall_png, config, dpi=DPI)
	assert len(result.pages) == 2
	assert result.pages[0].has_artwork
	assert not result.pages[1].has_artwork
	blank = open_page(result.pages[1])
	assert blank.size == PAPER_PX
	assert blank.getextrema() == ((255, 255), (255, 255), (255, 255))
	first = open_page(result.pages[0])
	assert first.getpixel((PAPER_PX[0] - 1, PAPER_PX[1] // 2)) == (255, 255, 255)


#============================================
def test_decode_error_produces_no_pages() -> None:
	config = build_four_sheet_config()
	with pytest.raises(DecodeError):
		print_tiler.rasterize.render_pages(b"\x89PNG broken", config, dpi=DPI)


#============================================
def test_inputs_validated_before_rendering(gradient_png: bytes) -> None:
	config = build_four_sheet_config()
	with pytest.raises(ValidationError):
		print_tiler.rasterize.render_pages(gradient_png, config, dpi=50)
	with pytest.raises(ValidationError):
		print_tiler.rasterize.render_pages(
			gradient_png,
			config,
			ArtworkTransform(crop_rect=CropRect(left=150, top=0, width=100, height=100)),
			dpi=DPI,
		)
	with pytest.raises(ValidationError):
		print_tiler.rasterize.render_pages(
			gradient_png,
			config,
			offset=PlacementOffset(offset_x_cm=-1.0),
			dpi=DPI,
		)


#============================================
def test_superseded_render_stops(gradient_png: bytes) -> None:
	config = build_four_sheet_config()
	with pytest.raises(RenderSuperseded):
		print_tiler.rasterize.render_pages(gradient_png, config, dpi=DPI, is_current=lambda: False)


#============================================
def test_verbose_prints_progress(gradient_png: bytes, capsys: pytest.CaptureFixture) -> None:
	config = print_tiler.layout.build_print_job_config(1, "A4", "portrait", 0.0)
	print_tiler.rasterize.render_pages(gradient_png, config, dpi=DPI, verbose=True)
	captured = capsys.readouterr()
	assert "Pages [" in captured.out
	assert "1/1 (100%)" in captured.out


#============================================
def build_black_png(width: int, height: int) -> bytes:
	return conftest.encode_png_bytes(PIL.Image.new("RGB", (width, height), (0, 0, 0)))


#============================================
def test_cover_artwork_reaches_last_column() -> None:
	"""
	Artwork spanning the grid width paints the outermost pixel column.

	10.2 cm sheets round up at 300 DPI while the 19.9 cm artwork rounds
	down, so an unsnapped artwork stops one pixel short of the grid.
	"""
	config = print_tiler.layout.build_print_job_config(
		2, orientation="portrait", overlap_cm=0.5,
		paper_width_cm=10.2, paper_height_cm=10.2, fit_mode="cover",
	)
	source = build_black_png(100, 400)
	for dpi in (72, 150, 300):
		result = print_tiler.rasterize.render_pages(source, config, dpi=dpi)
		last = open_page(result.pages[-1])
		width, height = last.size
		assert max(last.getpixel((width - 1, height // 2))) < 16
		assert max(last.getpixel((width - 1, height - 1))) < 16


#============================================
def test_cover_artwork_reaches_last_row() -> None:
	config = print_tiler.layout.build_print_job_config(
		2, orientation="landscape", overlap_cm=0.5,
		paper_width_cm=10.2, paper_height_cm=10.2, fit_mode="cover",
	)
	assert (config.cols, config.rows) == (1, 2)
	source = build_black_png(400, 100)
	for dpi in (72, 150, 300):
		result = print_tiler.rasterize.render_pages(source, config, dpi=dpi)
		last = open_page(result.pages[-1])
		width, height = last.size
		assert max(last.getpixel((width // 2, height - 1))) < 16
		assert max(last.getpixel((width - 1, height - 1))) < 16


#============================================
def test_overlap_bands_resampled_once() -> None:
	"""
	Each artwork band is resampled once, shared by every sheet that holds it,
	and released after the last of those sheets.
	"""
	config = build_four_sheet_config()
	image = conftest.build_gradient_image(200, 200)
	offset = PlacementOffset(offset_x_cm=0.2, offset_y_cm=0.4)
	bands, layout, _shell = print_tiler.rasterize.prepare_artwork(
		image, config, ArtworkTransform(), offset, DPI
	)
	assert bands.resampled == 0
	used: set[tuple[int, int]] = set()
	for index, (col, row) in enumerate(print_tiler.geometry.iter_cells(config)):
		sheet, has_artwork = print_tiler.rasterize.rasterize_sheet(bands, layout, col, row)
		assert has_artwork
		assert sheet.size == PAPER_PX
		used.update(bands.keys_for(col, row))
		bands.release(index)
	# 3 column and 3 row bands fall on sheets; the artwork also hangs
	# 6 px past the right grid edge
	assert bands.x_edges == [6, 581, 595, 1176, 1182]
	assert bands.y_edges == [11, 828, 842, 1187]
	assert bands.resampled == len(used) == 9
	assert bands.cached == 0


#============================================
def test_banded_pages_match_whole_resample() -> None:
	"""
	Pasting bands gives the same pixels as resampling the artwork in one go.
	"""
	config = print_tiler.layout.build_print_job_config(2, "A4", "portrait", 0.5)
	image = conftest.build_gradient_image(200, 200)
	result = print_tiler.rasterize.render_pages(conftest.encode_png_bytes(image), config, dpi=DPI)
	bands, layout, _shell = print_tiler.rasterize.prepare_artwork(
		image, config, ArtworkTransform(), PlacementOffset(), DPI
	)
	whole, _choice = print_tiler.resample.resample_image(
		image, layout.artwork_width_px, layout.artwork_height_px
	)
	for page, (col, row) in zip(result.pages, print_tiler.geometry.iter_cells(config)):
		left, top, right, bottom = print_tiler.geometry.sheet_box_px(layout, col, row)
		width = min(right, layout.artwork_width_px) - left
		height = min(bottom, layout.artwork_height_px) - top
		expected = whole.crop((left, top, left + width, top + height))
		painted = open_page(page).crop((0, 0, width, height))
		difference = PIL.ImageChops.difference(painted, expected)
		assert max(high for _low, high in difference.getextrema()) <= 2
