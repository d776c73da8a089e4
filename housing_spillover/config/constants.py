"""Constants for the subsidized-housing spillover analysis."""

# Spatial thresholds (miles)
INNER_RADIUS_MILES = 0.5  # Sales at or inside this radius are "inside"
OUTER_RADIUS_MILES = 1.0  # Sales beyond this radius are discarded

# Temporal windows (housing_year - sale_year, in years)
PRE_WINDOW_MIN = 2  # Inclusive
PRE_WINDOW_MAX = 5  # Inclusive
MID_WINDOW_MIN = 0  # Inclusive; same-year sales are "mid"
MID_WINDOW_MAX = 2  # Exclusive
MAX_YEAR_GAP = 5  # |sale_year - housing_year| bound for the model sample

# Sale price filtering
MAX_SALE_AMOUNT = 10_000_000  # Outlier cap, inclusive

# Housing program sanity bounds
MIN_HOUSING_YEAR = 2000  # Inclusive
MAX_HOUSING_YEAR = 5000  # Exclusive

# Distance
METERS_PER_MILE = 1609.34
EARTH_RADIUS_METERS = 6371008.8  # Mean earth radius for spherical distances
WGS84_SEMI_MAJOR_AXIS = 6378137.0
WGS84_FLATTENING = 1 / 298.257223563
VINCENTY_MAX_ITERATIONS = 200
VINCENTY_TOLERANCE = 1e-12
DISTANCE_METHODS = ["vincenty", "haversine"]
DEFAULT_DISTANCE_METHOD = "vincenty"
CRS = "EPSG:4326"

# Nearest-neighbour candidate re-ranking and tie detection (relative)
TIE_TOLERANCE = 1e-12
CANDIDATE_SLACK = 0.01  # Sphere vs. WGS84 distance ratios differ by well under 1%

# Inference
CONFIDENCE_Z = 1.96  # 95% normal interval
CONTRAST_COVARIANCE_SIGN = 1  # sqrt(var(a) + var(b) + 2 * cov(a, b))

# Housing program labels
LIHTC_PROGRAM = "lihtc"
SECOND_PROGRAM = "barnes"
HOUSING_PROGRAMS = [LIHTC_PROGRAM, SECOND_PROGRAM]

# Required input columns
PROPERTY_COLUMNS = ["apn", "centroid", "tract", "square_footage", "year_built"]
LIHTC_COLUMNS = ["HUD_ID", "YR_PIS", "LATITUDE", "LONGITUDE"]
SALES_COLUMNS = ["apn", "ownerdate", "amount"]
SECOND_PROGRAM_COLUMNS = ["Barnes.Year", "lat", "lng"]

# Fixed effects available to the hedonic models
FIXED_EFFECT_COLUMNS = ["sale_year", "tract"]

# File formats
SUPPORTED_INPUT_FORMATS = [".csv", ".parquet", ".feather"]
DEFAULT_OUTPUT_FORMAT = ".csv"

# Logging
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
