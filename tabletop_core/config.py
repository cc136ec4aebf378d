# Ranking engine parameters
TIE_TOLERANCE = 1e-4  # Normalized scores closer than this are treated as tied
DEFAULT_SCHEME = "damped"  # "equal", "damped", "linear"

# Tie-break vote thresholds
FIRST_PLACE_RANK = 1
TOP_TWO_RANK = 2

# Input sanitization limits
MAX_NAME_LENGTH = 255
MAX_CATEGORY_LENGTH = 100
MAX_CATEGORIES_PER_GAME = 50
