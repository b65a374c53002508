"""
Sheet grid layout and cover-fit sizing.
"""

# Standard Library
import math

# local repo modules
import print_tiler as prt
import print_tiler.config
import print_tiler.errors


PrintJobConfig = prt.config.PrintJobConfig
GridGeometry = prt.config.GridGeometry
RenderedArtworkSize = prt.config.RenderedArtworkSize
PlacementOffset = prt.config.PlacementOffset
ValidationError = prt.errors.ValidationError
GeometryInconsistency = prt.errors.GeometryInconsistency

PAPER_SIZES_CM = prt.config.PAPER_SIZES_CM
ORIENTATIONS = prt.config.ORIENTATIONS
SHEET_LAYOUTS = prt.config.SHEET_LAYOUTS
VALID_SHEET_COUNTS = prt.config.VALID_SHEET_COUNTS
MIN_PAPER_CM = prt.config.MIN_PAPER_CM
MAX_PAPER_CM = prt.config.MAX_PAPER_CM
FIT_MODES = prt.config.FIT_MODES
FIT_COVER = prt.config.FIT_COVER


#============================================
def normalize_orientation(orientation: str) -> str:
	"""
	Normalize and check an orientation name.

	Args:
		orientation: "portrait" or "landscape", any case.

	Returns:
		Lowercase orientation.
	"""
	normalized = orientation.strip().lower()
	if normalized not in ORIENTATIONS:
		raise ValidationError(f"Orientation must be one of {', '.join(ORIENTATIONS)}")
	return normalized


#============================================
def resolve_paper_size(paper_name: str, orientation: str) -> tuple[float, float]:
	"""
	Look up paper dimensions for a preset name and orientation.

	Args:
		paper_name: Preset name (A4, A3, Letter).
		orientation: "portrait" or "landscape".

	Returns:
		Tuple of (width_cm, height_cm).
	"""
	key = paper_name.strip().upper()
	if key not in PAPER_SIZES_CM:
		names = ", ".join(sorted(PAPER_SIZES_CM))
		raise ValidationError(f"Unknown paper size {paper_name!r} (expected one of {names})")
	width, height = PAPER_SIZES_CM[key]
	if normalize_orientation(orientation) == "landscape":
		return (height, width)
	return (width, height)


#============================================
def grid_dimensions(sheet_count: int, orientation: str) -> tuple[int, int]:
	"""
	Fixed (cols, rows) layout for a sheet count.

	Args:
		sheet_count: Number of physical sheets.
		orientation: "portrait" or "landscape".

	Returns:
		Tuple of (cols, rows).
	"""
	if sheet_count not in SHEET_LAYOUTS:
		counts = ", ".join(str(count) for count in VALID_SHEET_COUNTS)
		raise ValidationError(f"Sheet count must be one of {counts}")
	cols, rows = SHEET_LAYOUTS[sheet_count][normalize_orientation(orientation)]
	if cols * rows != sheet_count:
		raise GeometryInconsistency(
			f"layout {cols}x{rows} does not hold {sheet_count} sheets"
		)
	return (cols, rows)


#============================================
def validate_config(config: PrintJobConfig) -> PrintJobConfig:
	"""
	Check a print job config before any geometry runs.

	Args:
		config: Print job configuration.

	Returns:
		The config, unchanged.
	"""
	for name in ("paper_width_cm", "paper_height_cm", "overlap_cm"):
		value = getattr(config, name)
		if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
			raise ValidationError(f"{name} must be a finite number")
	if config.sheet_count not in SHEET_LAYOUTS:
		counts = ", ".join(str(count) for count in VALID_SHEET_COUNTS)
		raise ValidationError(f"Sheet count must be one of {counts}")
	for name in ("paper_width_cm", "paper_height_cm"):
		value = getattr(config, name)
		if value < MIN_PAPER_CM or value > MAX_PAPER_CM:
			raise ValidationError(
				f"Paper size must be between {MIN_PAPER_CM:g} and {MAX_PAPER_CM:g} cm"
			)
	if config.fit_mode not in FIT_MODES:
		raise ValidationError(f"Fit mode must be one of {', '.join(FIT_MODES)}")
	if config.overlap_cm < 0:
		raise ValidationError("Overlap must not be negative")
	if config.overlap_cm >= min(config.paper_width_cm, config.paper_height_cm):
		raise ValidationError("Overlap must be smaller than the paper dimensions")
	if config.cols * config.rows != config.sheet_count:
		raise GeometryInconsistency(
			f"cols*rows = {config.cols * config.rows} but sheet_count = {config.sheet_count}"
		)
	return config


#============================================
def build_print_job_config(
	sheet_count: int,
	paper_name: str = prt.config.DEFAULT_PAPER,
	orientation: str = prt.config.DEFAULT_ORIENTATION,
	overlap_cm: float = prt.config.DEFAULT_OVERLAP_CM,
	paper_width_cm: float | None = None,
	paper_height_cm: float | None = None,
	fit_mode: str = prt.config.DEFAULT_FIT_MODE,
) -> PrintJobConfig:
	"""
	Build a validated print job config.

	Explicit paper dimensions override the preset size and must come as
	a pair.

	Args:
		sheet_count: Number of sheets (1, 2, 4, 6, 8).
		paper_name: Paper preset name.
		orientation: "portrait" or "landscape".
		overlap_cm: Shared strip between neighbor sheets.
		paper_width_cm: Optional custom paper width.
		paper_height_cm: Optional custom paper height.
		fit_mode: "contain" or "cover" artwork sizing.

	Returns:
		PrintJobConfig.
	"""
	orientation = normalize_orientation(orientation)
	if (paper_width_cm is None) != (paper_height_cm is None):
		raise ValidationError("Provide both paper width and height")
	if paper_width_cm is not None and paper_height_cm is not None:
		width, height = paper_width_cm, paper_height_cm
		name = "CUSTOM"
	else:
		width, height = resolve_paper_size(paper_name, orientation)
		name = paper_name.strip().upper()
	cols, rows = grid_dimensions(sheet_count, orientation)
	config = PrintJobConfig(
		paper_width_cm=width,
		paper_height_cm=height,
		overlap_cm=overlap_cm,
		sheet_count=sheet_count,
		cols=cols,
		rows=rows,
		paper_name=name,
		orientation=orientation,
		fit_mode=fit_mode,
	)
	return validate_config(config)


#============================================
def compute_grid_geometry(config: PrintJobConfig) -> GridGeometry:
	"""
	Compute total grid size and per-cell stride in cm.

	Neighbor sheets share an overlap strip, so the grid is
	cols * paper - (cols - 1) * overlap wide.

	Args:
		config: Print job configuration.

	Returns:
		GridGeometry.
	"""
	if config.cols * config.rows != config.sheet_count:
		raise GeometryInconsistency(
			f"cols*rows = {config.cols * config.rows} but sheet_count = {config.sheet_count}"
		)
	grid_width = config.cols * config.paper_width_cm - (config.cols - 1) * config.overlap_cm
	grid_height = config.rows * config.paper_height_cm - (config.rows - 1) * config.overlap_cm
	effective_width = config.paper_width_cm - config.overlap_cm
	effective_height = config.paper_height_cm - config.overlap_cm
	if grid_width <= 0 or grid_height <= 0 or effective_width <= 0 or effective_height <= 0:
		raise GeometryInconsistency(
			f"non-positive grid {grid_width}x{grid_height} cm"
		)
	return GridGeometry(
		grid_width_cm=grid_width,
		grid_height_cm=grid_height,
		effective_cell_width_cm=effective_width,
		effective_cell_height_cm=effective_height,
	)


#============================================
def compute_cover_fit(
	aspect_ratio: float,
	geometry: GridGeometry,
	fit_mode: str = prt.config.DEFAULT_FIT_MODE,
) -> RenderedArtworkSize:
	"""
	Size the artwork against the grid while preserving its aspect ratio.

	In "contain" mode the artwork spans the grid edge-to-edge along the
	axis it is relatively wider on and stays within the other axis. In
	"cover" mode it fills the whole grid and overflows one axis. Either
	way at least one axis reaches the grid size.

	Args:
		aspect_ratio: Artwork width / height.
		geometry: Grid geometry.
		fit_mode: "contain" or "cover".

	Returns:
		RenderedArtworkSize in cm.
	"""
	if not math.isfinite(aspect_ratio) or aspect_ratio <= 0:
		raise ValidationError("Artwork aspect ratio must be a positive finite number")
	if fit_mode not in FIT_MODES:
		raise ValidationError(f"Fit mode must be one of {', '.join(FIT_MODES)}")
	grid_aspect = geometry.grid_width_cm / geometry.grid_height_cm
	width_limited = aspect_ratio > grid_aspect
	if fit_mode == FIT_COVER:
		width_limited = not width_limited
	if width_limited:
		width_cm = geometry.grid_width_cm
		height_cm = width_cm / aspect_ratio
	else:
		height_cm = geometry.grid_height_cm
		width_cm = height_cm * aspect_ratio
	# float noise is allowed, a real shortfall is not
	tolerance = 1e-9 * max(geometry.grid_width_cm, geometry.grid_height_cm)
	short_width = width_cm < geometry.grid_width_cm - tolerance
	short_height = height_cm < geometry.grid_height_cm - tolerance
	if (short_width and short_height) or (fit_mode == FIT_COVER and (short_width or short_height)):
		raise GeometryInconsistency(
			f"{fit_mode} fit {width_cm}x{height_cm} cm does not reach a "
			f"{geometry.grid_width_cm}x{geometry.grid_height_cm} cm grid"
		)
	return RenderedArtworkSize(width_cm=width_cm, height_cm=height_cm)


#============================================
def artwork_aspect_ratio(width_px: int, height_px: int) -> float:
	"""
	Aspect ratio of a pixel size.

	Args:
		width_px: Width in pixels.
		height_px: Height in pixels.

	Returns:
		width / height.
	"""
	if width_px <= 0 or height_px <= 0:
		raise ValidationError("Artwork dimensions must be positive")
	return width_px / height_px


#============================================
def validate_offset(offset: PlacementOffset) -> PlacementOffset:
	"""
	Check a placement offset.

	Args:
		offset: Artwork top-left in grid space.

	Returns:
		The offset, unchanged.
	"""
	for name in ("offset_x_cm", "offset_y_cm"):
		value = getattr(offset, name)
		if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
			raise ValidationError(f"{name} must be a finite number")
		if value < 0:
			raise ValidationError(f"{name} must not be negative")
	return offset


#============================================
def plan_artwork(
	config: PrintJobConfig,
	artwork_width_px: int,
	artwork_height_px: int,
) -> tuple[GridGeometry, RenderedArtworkSize]:
	"""
	Grid geometry and rendered artwork size for a transformed artwork.

	The live preview and the page renderer both size the artwork here.

	Args:
		config: Print job configuration.
		artwork_width_px: Artwork width after crop/rotate/flip.
		artwork_height_px: Artwork height after crop/rotate/flip.

	Returns:
		Tuple of (GridGeometry, RenderedArtworkSize).
	"""
	validate_config(config)
	geometry = compute_grid_geometry(config)
	aspect_ratio = artwork_aspect_ratio(artwork_width_px, artwork_height_px)
	rendered = compute_cover_fit(aspect_ratio, geometry, config.fit_mode)
	return (geometry, rendered)
