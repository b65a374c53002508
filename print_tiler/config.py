"""
Shared configuration, constants, and layout data types.
"""

import dataclasses


CM_PER_INCH = 2.54
POINTS_PER_INCH = 72.0

DEFAULT_DPI = 300
MIN_DPI = 72
MAX_DPI = 600
SOURCE_FALLBACK_DPI = 300

DEFAULT_OVERLAP_CM = 0.5
MIN_PAPER_CM = 10.0
MAX_PAPER_CM = 100.0

PAPER_SIZES_CM = {
	"A4": (21.0, 29.7),
	"A3": (29.7, 42.0),
	"LETTER": (21.59, 27.94),
}
ORIENTATIONS = ("portrait", "landscape")
DEFAULT_PAPER = "A4"
DEFAULT_ORIENTATION = "portrait"

# (cols, rows) keyed by sheet count, then orientation
SHEET_LAYOUTS = {
	1: {"portrait": (1, 1), "landscape": (1, 1)},
	2: {"portrait": (2, 1), "landscape": (1, 2)},
	4: {"portrait": (2, 2), "landscape": (2, 2)},
	6: {"portrait": (3, 2), "landscape": (3, 2)},
	8: {"portrait": (4, 2), "landscape": (4, 2)},
}
VALID_SHEET_COUNTS = tuple(sorted(SHEET_LAYOUTS))
DEFAULT_SHEET_COUNT = 2

FIT_CONTAIN = "contain"
FIT_COVER = "cover"
FIT_MODES = (FIT_CONTAIN, FIT_COVER)
DEFAULT_FIT_MODE = FIT_CONTAIN

WHITE_RGB = (255, 255, 255)

UPSCALE_ALGORITHM = "Lanczos3"
DOWNSCALE_ALGORITHM = "Bicubic"
DOWNSCALE_REDUCING_GAP = 3.0
PNG_COMPRESS_LEVEL = 6
ZIP_COMPRESS_LEVEL = 6

PREVIEW_CANVAS_WIDTH = 600
PREVIEW_CANVAS_HEIGHT = 400
PREVIEW_DPI = 100
PREVIEW_MARGIN = 0.95
PREVIEW_BACKGROUND = (24, 24, 27)
PREVIEW_PAGE_COLOR = (168, 85, 247)
PREVIEW_OVERLAP_COLOR = (236, 72, 153)

PDF_MARGIN_MM = 5.0
PDF_CROP_MARK_MM = 3.0
PDF_CAPTION_FONT = "Helvetica"
PDF_CAPTION_SIZE = 10
PROGRESS_BAR_WIDTH = 20

DEFAULT_EXPORT_NAME = "print-tiles"


@dataclasses.dataclass(frozen=True)
class PrintJobConfig:
	paper_width_cm: float
	paper_height_cm: float
	overlap_cm: float
	sheet_count: int
	cols: int
	rows: int
	paper_name: str = "CUSTOM"
	orientation: str = DEFAULT_ORIENTATION
	fit_mode: str = DEFAULT_FIT_MODE


@dataclasses.dataclass(frozen=True)
class CropRect:
	left: int
	top: int
	width: int
	height: int


@dataclasses.dataclass(frozen=True)
class ArtworkTransform:
	crop_rect: CropRect | None = None
	rotation_degrees: float = 0.0
	flip_horizontal: bool = False
	flip_vertical: bool = False


@dataclasses.dataclass(frozen=True)
class PlacementOffset:
	offset_x_cm: float = 0.0
	offset_y_cm: float = 0.0


@dataclasses.dataclass(frozen=True)
class GridGeometry:
	grid_width_cm: float
	grid_height_cm: float
	effective_cell_width_cm: float
	effective_cell_height_cm: float


@dataclasses.dataclass(frozen=True)
class RenderedArtworkSize:
	width_cm: float
	height_cm: float


@dataclasses.dataclass
class Page:
	page_number: int
	col_index: int
	row_index: int
	image_buffer: bytes
	width_px: int
	height_px: int
	dpi: int
	has_artwork: bool = True

	@property
	def label(self) -> str:
		return f"{self.col_index + 1},{self.row_index + 1}"


@dataclasses.dataclass(frozen=True)
class ResizeRequest:
	target_width_cm: float | None = None
	target_height_cm: float | None = None
	dpi: int = DEFAULT_DPI
	maintain_aspect: bool = True


@dataclasses.dataclass
class ResizeResult:
	image_buffer: bytes
	original_width_px: int
	original_height_px: int
	original_width_cm: float
	original_height_cm: float
	final_width_px: int
	final_height_px: int
	final_width_cm: float
	final_height_cm: float
	dpi: int
	was_upscaled: bool
	algorithm: str


@dataclasses.dataclass
class TilingResult:
	pages: list[Page]
	config: PrintJobConfig
	geometry: GridGeometry
	rendered_size: RenderedArtworkSize
	offset: PlacementOffset
	transform: ArtworkTransform
	dpi: int
	algorithm: str
	was_upscaled: bool
