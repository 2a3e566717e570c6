"""Global constants for the JLC EDA silkscreen MCP server.

All lengths are editor units (mil), all angles are degrees.
"""

# Conflict Detection Constants
CONFLICT_TOLERANCE = 0.5
"""Gap (mil) below which two boxes still count as overlapping."""

BOARD_MARGIN = 0.0
"""Allowed overhang of a label past the board outline."""

BOARD_TARGET_ID = "BOARD"
"""Synthetic target id for out-of-board conflicts."""

# Text Size Heuristic
TEXT_CHAR_WIDTH_FACTOR = 0.6
"""Estimated glyph advance as a fraction of font size."""

TEXT_MIN_WIDTH_FACTOR = 0.8
"""Minimum estimated label width as a fraction of font size."""

DEFAULT_FONT_SIZE = 10.0

VERTICAL_TOLERANCE_DEG = 20.0
"""Rotations within this many degrees of +/-90 swap width and height."""

# Obstacle Boxes
DEFAULT_OBSTACLE_DIAMETER = 10.0
MIN_OBSTACLE_SIZE = 1.0

# Placement Scoring (lower is better)
SCORE_PAD_OVERLAP = 20
SCORE_VIA_OVERLAP = 18
SCORE_SILKSCREEN_OVERLAP = 12
SCORE_OUT_OF_BOARD = 50

# Placement Search Defaults
DEFAULT_MAX_MOVES = 80
DEFAULT_STEP = 12.0
MIN_STEP = 2.0
DEFAULT_MAX_RADIUS = 96.0
DEFAULT_TRY_ANGLES = (0.0, 90.0, 180.0, -90.0)
MIN_LABEL_SIZE = 1.0

SEARCH_DIRECTIONS = (
    (1, 0),
    (-1, 0),
    (0, 1),
    (0, -1),
    (1, 1),
    (-1, 1),
    (1, -1),
    (-1, -1),
    (0, 0),
)
"""Eight compass directions followed by the zero vector."""

# Inventory Limits
DEFAULT_SILKSCREEN_LIMIT = 20_000
DEFAULT_OBSTACLE_LIMIT = 10_000

# Editor Layer Ids
TOP_SILKSCREEN_LAYER = 3
BOTTOM_SILKSCREEN_LAYER = 4
SILKSCREEN_LAYERS = (TOP_SILKSCREEN_LAYER, BOTTOM_SILKSCREEN_LAYER)
BOARD_OUTLINE_LAYER = 11

# Bridge Transport
DEFAULT_GATEWAY_URL = "ws://127.0.0.1:18800/ws/bridge"
COMMAND_TIMEOUT_SECONDS = 60.0
"""Seconds to wait for a bridge command result."""
