# config.py
EARTH_R = 6_371_008.8  # Earth mean radius (m)
DEFAULT_VARIABLE = "z"

# Great-circle radius used to gather samples for each gradient fit
GRADIENT_SEARCH_M = 4000.0
# Gradient magnitude (field units per meter) drawn at full intensity
GRADIENT_MAG_CAP = 5e-5

# Cells with NaN or value >= this are kept by the default partition predicate
MIN_VALUE_TO_KEEP = 10.0

MIN_FIT_SAMPLES = 3
# Normal-equation matrices worse conditioned than this count as singular
SINGULAR_COND = 1e8

# Floor for cos(latitude) near the poles
POLE_EPS = 1e-6

GOLDEN_RATIO_CONJ = 0.618_033_988_75

NO_DATA_COLOR = (0, 0, 0)
UNDEFINED_COLOR = (255, 0, 0)
NO_PARTITION_COLOR = (0, 0, 0)
