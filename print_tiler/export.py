"""
Write rendered pages to PNG files, a ZIP archive, a PDF, and a manifest.
"""

# Standard Library
import dataclasses
import io
import json
import pathlib
import zipfile

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.lib.units
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors


Page = prt.config.Page
TilingResult = prt.config.TilingResult
ValidationError = prt.errors.ValidationError

CM_PER_INCH = prt.config.CM_PER_INCH
POINTS_PER_INCH = prt.config.POINTS_PER_INCH
PDF_MARGIN_MM = prt.config.PDF_MARGIN_MM
PDF_CROP_MARK_MM = prt.config.PDF_CROP_MARK_MM
PDF_CAPTION_FONT = prt.config.PDF_CAPTION_FONT
PDF_CAPTION_SIZE = prt.config.PDF_CAPTION_SIZE
DEFAULT_EXPORT_NAME = prt.config.DEFAULT_EXPORT_NAME
ZIP_COMPRESS_LEVEL = prt.config.ZIP_COMPRESS_LEVEL


#============================================
def cm_to_points(value: float) -> float:
	"""
	Convert centimeters to PDF points.

	Args:
		value: Centimeters value.

	Returns:
		Points value.
	"""
	return value / CM_PER_INCH * POINTS_PER_INCH


#============================================
def page_filename(name: str, page: Page) -> str:
	return f"{name}-page-{page.page_number:02d}.png"


#============================================
def write_page_pngs(
	pages: list[Page],
	output_dir: pathlib.Path,
	name: str = DEFAULT_EXPORT_NAME,
) -> list[pathlib.Path]:
	"""
	Write each page buffer as its own PNG file.

	Args:
		pages: Rendered pages.
		output_dir: Output directory, created when missing.
		name: Base file name.

	Returns:
		Written paths in page order.
	"""
	output_dir.mkdir(parents=True, exist_ok=True)
	paths: list[pathlib.Path] = []
	for page in pages:
		path = output_dir / page_filename(name, page)
		path.write_bytes(page.image_buffer)
		paths.append(path)
	return paths


#============================================
def build_readme(result: TilingResult) -> str:
	"""
	Assembly instructions bundled with the ZIP export.

	Args:
		result: Tiling result.

	Returns:
		README text.
	"""
	config = result.config
	lines = [
		"Print tiles",
		"===========",
		"",
		f"{len(result.pages)} page(s), {config.cols} x {config.rows} grid of "
		f"{config.paper_name} {config.orientation} "
		f"({config.paper_width_cm:g} x {config.paper_height_cm:g} cm) at {result.dpi} DPI.",
		f"Neighbor pages share a {config.overlap_cm:g} cm overlap strip.",
		"",
		"Assembly:",
		"1. Print every page at 100% scale, borderless.",
		"2. Lay pages out in order; page N sits at column,row shown below.",
		"3. Line up the shared overlap strips and tape the pages together.",
		"",
	]
	for page in result.pages:
		lines.append(f"page {page.page_number:02d}: column,row {page.label}")
	return "\n".join(lines) + "\n"


#============================================
def build_zip(result: TilingResult, name: str = DEFAULT_EXPORT_NAME) -> bytes:
	"""
	Pack every page plus a README into an in-memory ZIP archive.

	Args:
		result: Tiling result.
		name: Base file name for the page entries.

	Returns:
		ZIP archive bytes.
	"""
	buffer = io.BytesIO()
	with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=ZIP_COMPRESS_LEVEL) as archive:
		for page in result.pages:
			archive.writestr(page_filename(name, page), page.image_buffer)
		archive.writestr("README.txt", build_readme(result))
	return buffer.getvalue()


#============================================
def draw_crop_marks(
	pdf: reportlab.pdfgen.canvas.Canvas,
	page_width: float,
	page_height: float,
	margin: float,
) -> None:
	"""
	Draw short corner marks at the image edges.

	Args:
		pdf: ReportLab canvas.
		page_width: Page width in points.
		page_height: Page height in points.
		margin: Margin in points.
	"""
	mark = PDF_CROP_MARK_MM * reportlab.lib.units.mm
	pdf.setStrokeColorRGB(0.78, 0.78, 0.78)
	pdf.setLineWidth(0.3)
	for x in (margin, page_width - margin):
		for y in (margin, page_height - margin):
			pdf.line(x - mark, y, x + mark, y)
			pdf.line(x, y - mark, x, y + mark)


#============================================
def build_crop_mark_overlay(page_width: float, page_height: float, margin: float) -> pypdf.PageObject:
	"""
	Build a PDF overlay page with crop marks.

	Args:
		page_width: Page width in points.
		page_height: Page height in points.
		margin: Margin in points.

	Returns:
		PDF page object.
	"""
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
	draw_crop_marks(pdf, page_width, page_height, margin)
	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def build_sheet_page(
	page: Page,
	total: int,
	page_width: float,
	page_height: float,
	margin: float,
) -> pypdf.PageObject:
	"""
	Draw one sheet image onto its own paper-sized PDF page.

	Args:
		page: Rendered page.
		total: Number of pages in the document.
		page_width: Page width in points.
		page_height: Page height in points.
		margin: Margin in points.

	Returns:
		PDF page object.
	"""
	image = PIL.Image.open(io.BytesIO(page.image_buffer))
	image.load()
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(image),
		margin,
		margin,
		width=page_width - 2.0 * margin,
		height=page_height - 2.0 * margin,
		mask=None,
		preserveAspectRatio=False,
	)
	if margin > 0:
		pdf.setFillColorRGB(0.6, 0.6, 0.6)
		pdf.setFont(PDF_CAPTION_FONT, PDF_CAPTION_SIZE)
		caption = f"Page {page.page_number} of {total} ({page.label})"
		pdf.drawRightString(page_width - margin, page_height - margin + 2.0, caption)
	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def write_pdf(
	result: TilingResult,
	output_path: pathlib.Path,
	name: str = DEFAULT_EXPORT_NAME,
	margin_mm: float = PDF_MARGIN_MM,
) -> int:
	"""
	Write one PDF page per sheet at the paper size.

	A zero margin gives borderless pages without caption or crop marks.

	Args:
		result: Tiling result.
		output_path: Output PDF path.
		name: Title stored in the PDF metadata.
		margin_mm: Margin around each page image.

	Returns:
		Number of PDF pages written.
	"""
	if margin_mm < 0:
		raise ValidationError("PDF margin must not be negative")
	config = result.config
	page_width = cm_to_points(config.paper_width_cm)
	page_height = cm_to_points(config.paper_height_cm)
	margin = margin_mm * reportlab.lib.units.mm
	if 2.0 * margin >= min(page_width, page_height):
		raise ValidationError("PDF margin leaves no room for the page image")

	overlay = None
	if margin > 0:
		overlay = build_crop_mark_overlay(page_width, page_height, margin)
	writer = pypdf.PdfWriter()
	total = len(result.pages)
	for page in result.pages:
		sheet = build_sheet_page(page, total, page_width, page_height, margin)
		if overlay is not None:
			sheet.merge_page(overlay)
		writer.add_page(sheet)
	writer.add_metadata({
		"/Title": name,
		"/Subject": f"{config.cols} x {config.rows} print tiles",
	})
	writer.write(str(output_path))
	return total


#============================================
def build_manifest(result: TilingResult, source_name: str | None = None) -> dict:
	"""
	Describe a tiling result as JSON-ready data.

	Args:
		result: Tiling result.
		source_name: Optional source image name.

	Returns:
		Manifest dictionary.
	"""
	config = result.config
	transform = result.transform
	crop = None
	if transform.crop_rect is not None:
		crop = dataclasses.asdict(transform.crop_rect)
	data = {
		"source": source_name,
		"dpi": result.dpi,
		"algorithm": result.algorithm,
		"was_upscaled": result.was_upscaled,
		"layout": {
			"paper": config.paper_name,
			"orientation": config.orientation,
			"paper_width_cm": config.paper_width_cm,
			"paper_height_cm": config.paper_height_cm,
			"overlap_cm": config.overlap_cm,
			"sheet_count": config.sheet_count,
			"cols": config.cols,
			"rows": config.rows,
			"fit_mode": config.fit_mode,
		},
		"grid": dataclasses.asdict(result.geometry),
		"rendered_size": dataclasses.asdict(result.rendered_size),
		"offset": dataclasses.asdict(result.offset),
		"transform": {
			"crop_rect": crop,
			"rotation_degrees": transform.rotation_degrees,
			"flip_horizontal": transform.flip_horizontal,
			"flip_vertical": transform.flip_vertical,
		},
		"pages": [
			{
				"page_number": page.page_number,
				"label": page.label,
				"col_index": page.col_index,
				"row_index": page.row_index,
				"width_px": page.width_px,
				"height_px": page.height_px,
				"has_artwork": page.has_artwork,
			}
			for page in result.pages
		],
	}
	return data


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	result: TilingResult,
	source_name: str | None = None,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		result: Tiling result.
		source_name: Optional source image name.
	"""
	data = build_manifest(result, source_name)
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
