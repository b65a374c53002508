"""
CLI entry points for tiling artwork across printer sheets.
"""

# Standard Library
import argparse
import pathlib
import sys
import time

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors
import print_tiler.export
import print_tiler.layout
import print_tiler.preview
import print_tiler.rasterize
import print_tiler.resample
import print_tiler.transform


PrintJobConfig = prt.config.PrintJobConfig
ArtworkTransform = prt.config.ArtworkTransform
CropRect = prt.config.CropRect
PlacementOffset = prt.config.PlacementOffset
ResizeRequest = prt.config.ResizeRequest
ValidationError = prt.errors.ValidationError
DecodeError = prt.errors.DecodeError

DEFAULT_DPI = prt.config.DEFAULT_DPI
DEFAULT_OVERLAP_CM = prt.config.DEFAULT_OVERLAP_CM
DEFAULT_PAPER = prt.config.DEFAULT_PAPER
DEFAULT_ORIENTATION = prt.config.DEFAULT_ORIENTATION
DEFAULT_SHEET_COUNT = prt.config.DEFAULT_SHEET_COUNT
DEFAULT_FIT_MODE = prt.config.DEFAULT_FIT_MODE
DEFAULT_EXPORT_NAME = prt.config.DEFAULT_EXPORT_NAME


#============================================
def build_job_config(args: argparse.Namespace) -> PrintJobConfig:
	"""
	Build print job config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PrintJobConfig.
	"""
	return prt.layout.build_print_job_config(
		sheet_count=args.sheets,
		paper_name=args.paper,
		orientation=args.orientation,
		overlap_cm=args.overlap_cm,
		paper_width_cm=args.paper_width_cm,
		paper_height_cm=args.paper_height_cm,
		fit_mode=args.fit_mode,
	)


#============================================
def build_transform(args: argparse.Namespace) -> ArtworkTransform:
	"""
	Build artwork transform from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		ArtworkTransform.
	"""
	crop = None
	if args.crop is not None:
		left, top, width, height = args.crop
		crop = CropRect(left=left, top=top, width=width, height=height)
	return ArtworkTransform(
		crop_rect=crop,
		rotation_degrees=args.rotation,
		flip_horizontal=args.flip_horizontal,
		flip_vertical=args.flip_vertical,
	)


#============================================
def build_offset(args: argparse.Namespace) -> PlacementOffset:
	return PlacementOffset(offset_x_cm=args.offset_x_cm, offset_y_cm=args.offset_y_cm)


#============================================
def add_layout_arguments(parser: argparse.ArgumentParser) -> None:
	"""
	Add sheet layout and placement options shared by tile and preview.

	Args:
		parser: Subcommand parser.
	"""
	parser.add_argument("input_path", help="Artwork image file.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-s", "--sheets", dest="sheets", type=int, default=DEFAULT_SHEET_COUNT, help="Number of sheets (1, 2, 4, 6, 8).")
	layout_group.add_argument("-p", "--paper", dest="paper", default=DEFAULT_PAPER, help="Paper preset (A4, A3, Letter).")
	layout_group.add_argument("-r", "--orientation", dest="orientation", default=DEFAULT_ORIENTATION, help="portrait or landscape.")
	layout_group.add_argument("--paper-width-cm", dest="paper_width_cm", type=float, default=None, help="Custom paper width in cm.")
	layout_group.add_argument("--paper-height-cm", dest="paper_height_cm", type=float, default=None, help="Custom paper height in cm.")
	layout_group.add_argument("-l", "--overlap-cm", dest="overlap_cm", type=float, default=DEFAULT_OVERLAP_CM, help="Overlap strip between sheets in cm.")
	layout_group.add_argument("-f", "--fit", dest="fit_mode", choices=prt.config.FIT_MODES, default=DEFAULT_FIT_MODE, help="Artwork sizing against the grid.")

	placement_group = parser.add_argument_group("Placement")
	placement_group.add_argument("-x", "--offset-x-cm", dest="offset_x_cm", type=float, default=0.0, help="Artwork left edge in grid space.")
	placement_group.add_argument("-y", "--offset-y-cm", dest="offset_y_cm", type=float, default=0.0, help="Artwork top edge in grid space.")
	placement_group.add_argument("-c", "--center", dest="center", action="store_true", help="Center the artwork on the first sheet.")

	transform_group = parser.add_argument_group("Transform")
	transform_group.add_argument("--crop", dest="crop", type=int, nargs=4, metavar=("LEFT", "TOP", "WIDTH", "HEIGHT"), default=None, help="Crop rectangle in source pixels.")
	transform_group.add_argument("--rotate", dest="rotation", type=float, default=0.0, help="Clockwise rotation in degrees.")
	transform_group.add_argument("--flip-h", dest="flip_horizontal", action="store_true", help="Mirror left to right.")
	transform_group.add_argument("--flip-v", dest="flip_vertical", action="store_true", help="Mirror top to bottom.")


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Tile artwork across printer sheets.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	tile_parser = subparsers.add_parser("tile", help="Render one image per sheet.")
	add_layout_arguments(tile_parser)
	output_group = tile_parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output-dir", dest="output_dir", required=True, help="Directory for page PNGs.")
	output_group.add_argument("-d", "--dpi", dest="dpi", type=int, default=DEFAULT_DPI, help="Output DPI (72-600).")
	output_group.add_argument("-n", "--name", dest="name", default=DEFAULT_EXPORT_NAME, help="Base name for output files.")
	output_group.add_argument("-z", "--zip", dest="zip_path", default=None, help="Also write a ZIP archive.")
	output_group.add_argument("-P", "--pdf", dest="pdf_path", default=None, help="Also write a multi-page PDF.")
	output_group.add_argument("--pdf-margin-mm", dest="pdf_margin_mm", type=float, default=prt.config.PDF_MARGIN_MM, help="PDF margin in mm, 0 for borderless.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Manifest JSON path.")

	preview_parser = subparsers.add_parser("preview", help="Draw the placement preview.")
	add_layout_arguments(preview_parser)
	preview_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Preview PNG path.")
	preview_parser.add_argument("-d", "--dpi", dest="dpi", type=int, default=DEFAULT_DPI, help="Output DPI the sheets are cut at.")

	resize_parser = subparsers.add_parser("resize", help="Resize artwork to a physical size.")
	resize_parser.add_argument("input_path", help="Image file.")
	resize_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output PNG path.")
	resize_parser.add_argument("-W", "--width-cm", dest="width_cm", type=float, default=None, help="Target width in cm.")
	resize_parser.add_argument("-H", "--height-cm", dest="height_cm", type=float, default=None, help="Target height in cm.")
	resize_parser.add_argument("-d", "--dpi", dest="dpi", type=int, default=DEFAULT_DPI, help="Output DPI (72-600).")
	resize_parser.add_argument("-a", "--keep-aspect", dest="maintain_aspect", action="store_true", help="Keep the source aspect ratio.")
	resize_parser.add_argument("-A", "--no-keep-aspect", dest="maintain_aspect", action="store_false", help="Stretch to both targets.")
	resize_parser.set_defaults(maintain_aspect=True)

	args = parser.parse_args(argv)
	return args


#============================================
def resolve_offset(args: argparse.Namespace, config: PrintJobConfig, transform: ArtworkTransform, source: bytes) -> PlacementOffset:
	"""
	Placement from CLI args, or the first-sheet center when requested.

	Args:
		args: Parsed argparse namespace.
		config: Print job configuration.
		transform: Artwork transform.
		source: Encoded image.

	Returns:
		PlacementOffset.
	"""
	if not args.center:
		return build_offset(args)
	image = prt.resample.decode_image(source)
	width, height = prt.transform.transformed_size(image.width, image.height, transform)
	_geometry, rendered = prt.layout.plan_artwork(config, width, height)
	return prt.preview.center_offset(config, rendered)


#============================================
def run_tile(args: argparse.Namespace) -> None:
	"""
	Render pages and write every requested output.

	Args:
		args: Parsed argparse namespace.
	"""
	input_path = pathlib.Path(args.input_path)
	output_dir = pathlib.Path(args.output_dir)
	print("Print tiling pipeline")
	print(f"Input: {input_path}")
	print(f"Output directory: {output_dir}")

	config = build_job_config(args)
	transform = build_transform(args)
	source = input_path.read_bytes()
	offset = resolve_offset(args, config, transform, source)
	print(
		f"Layout: {config.sheet_count} x {config.paper_name} {config.orientation} "
		f"({config.cols} x {config.rows}), overlap {config.overlap_cm:g} cm"
	)
	print(f"Offset: {offset.offset_x_cm:.2f} x {offset.offset_y_cm:.2f} cm")
	print(f"DPI: {args.dpi}")

	start_time = time.perf_counter()
	result = prt.rasterize.render_pages(
		source,
		config,
		transform=transform,
		offset=offset,
		dpi=args.dpi,
		verbose=True,
	)
	render_end = time.perf_counter()
	print(
		f"Artwork size: {result.rendered_size.width_cm:.2f} x "
		f"{result.rendered_size.height_cm:.2f} cm ({result.algorithm})"
	)

	paths = prt.export.write_page_pngs(result.pages, output_dir, args.name)
	print(f"Pages written: {len(paths)}")
	if args.zip_path:
		zip_path = pathlib.Path(args.zip_path)
		zip_path.write_bytes(prt.export.build_zip(result, args.name))
		print(f"ZIP written: {zip_path}")
	if args.pdf_path:
		pdf_path = pathlib.Path(args.pdf_path)
		prt.export.write_pdf(result, pdf_path, args.name, args.pdf_margin_mm)
		print(f"PDF written: {pdf_path}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = output_dir / f"{args.name}.json"
	prt.export.write_manifest(pathlib.Path(manifest_path), result, input_path.name)
	print(f"Manifest written: {manifest_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s total={:.2f}s".format(
			render_end - start_time,
			total_time,
		)
	)


#============================================
def run_preview(args: argparse.Namespace) -> None:
	"""
	Draw the placement preview to a PNG.

	Args:
		args: Parsed argparse namespace.
	"""
	config = build_job_config(args)
	transform = build_transform(args)
	source = pathlib.Path(args.input_path).read_bytes()
	offset = resolve_offset(args, config, transform, source)
	artwork = prt.preview.preview_artwork(source, transform)
	frame = prt.preview.compute_preview_frame(config, artwork.width, artwork.height, offset, dpi=args.dpi)
	canvas = prt.preview.draw_preview(frame, artwork)
	canvas.save(args.output_path, format="PNG")
	print(f"Preview written: {args.output_path}")
	for sheet in frame.sheets:
		left, top, right, bottom = sheet.box_cm
		print(f"#{sheet.page_number} ({sheet.label}): {left:.2f},{top:.2f} - {right:.2f},{bottom:.2f} cm")


#============================================
def run_resize(args: argparse.Namespace) -> None:
	"""
	Resize one image to a physical size.

	Args:
		args: Parsed argparse namespace.
	"""
	request = ResizeRequest(
		target_width_cm=args.width_cm,
		target_height_cm=args.height_cm,
		dpi=args.dpi,
		maintain_aspect=args.maintain_aspect,
	)
	prt.resample.validate_resize_request(request)
	source = pathlib.Path(args.input_path).read_bytes()
	result = prt.resample.resize_image(source, request)
	pathlib.Path(args.output_path).write_bytes(result.image_buffer)
	print(
		f"Original: {result.original_width_px}x{result.original_height_px}px "
		f"({result.original_width_cm}x{result.original_height_cm}cm)"
	)
	print(
		f"Final: {result.final_width_px}x{result.final_height_px}px "
		f"({result.final_width_cm}x{result.final_height_cm}cm) at {result.dpi} DPI"
	)
	print(f"Algorithm: {result.algorithm} (upscaled: {result.was_upscaled})")
	print(f"Output written: {args.output_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	runners = {
		"tile": run_tile,
		"preview": run_preview,
		"resize": run_resize,
	}
	try:
		runners[args.command](args)
	except (ValidationError, DecodeError) as error:
		print(f"Error: {error}", file=sys.stderr)
		raise SystemExit(2) from error
