# Product size table (in inches, nominal width x height). 1 inch = 25.4 mm
# For cards this is the FOLDED size, i.e. one panel. The builder converts to mm
# before doing any geometry; orientation is applied after lookup so entries may
# be written in either order.

SIZES = {
    "a6": {"width": 4.1, "height": 5.8},      # A6 metric
    "5x7": {"width": 5.0, "height": 7.0},     # US standard card
    "a5": {"width": 5.8, "height": 8.3},      # A5 metric
    "square": {"width": 5.5, "height": 5.5},
    "4x6": {"width": 4.0, "height": 6.0},     # Small postcard
    "8x10": {"width": 8.0, "height": 10.0},   # Prints
    "11x14": {"width": 11.0, "height": 14.0},
    "16x20": {"width": 16.0, "height": 20.0},
    "18x24": {"width": 18.0, "height": 24.0},
    "24x36": {"width": 24.0, "height": 36.0},
}

# Used when a size id is not in the table (soft fail, logged by the builder)
DEFAULT_SIZE_ID = "5x7"

PRODUCT_TYPES = ("card", "postcard", "invitation", "announcement", "print")
ORIENTATIONS = ("portrait", "landscape")
FOLD_OPTIONS = ("bifold", "flat")

# Closed set of panel ids, in no particular order
SIDE_IDS = ("front", "inside", "inside-left", "inside-right", "inside-top", "inside-bottom", "back")

SIDE_NAMES = {
    "front": "Front",
    "inside": "Inside",
    "inside-left": "Inside Left",
    "inside-right": "Inside Right",
    "inside-top": "Inside Top",
    "inside-bottom": "Inside Bottom",
    "back": "Back",
}

CORNER_STYLES = ("square", "rounded")
FOLD_KINDS = ("fold", "score", "perforate")

# Label background shapes understood by the renderers.
# corner_ratio: default corner radius as a fraction of the shorter box side
LABEL_SHAPES = {
    "rectangle": {"kind": "rect", "corner_ratio": 0.0},
    "rounded-rect": {"kind": "rect", "corner_ratio": 0.1},
    "rounded-rectangle": {"kind": "rect", "corner_ratio": 0.1},
    "pill": {"kind": "rect", "corner_ratio": 0.5},
    "circle": {"kind": "ellipse", "corner_ratio": 0.0},
    "oval": {"kind": "ellipse", "corner_ratio": 0.0},
    "ellipse": {"kind": "ellipse", "corner_ratio": 0.0},
}
DEFAULT_LABEL_SHAPE = "rounded-rect"
