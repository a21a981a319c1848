# Garment Color Catalog
# key -> swatch. "border" is only set where the swatch would vanish on a white page.
GARMENT_COLORS = {
    "white": {"name": "White", "hex": "#ffffff", "border": "#e5e7eb"},   # Default
    "black": {"name": "Black", "hex": "#000000"},
    "navy": {"name": "Navy", "hex": "#1e40af"},
    "red": {"name": "Red", "hex": "#dc2626"},
    "green": {"name": "Green", "hex": "#16a34a"},
    "purple": {"name": "Purple", "hex": "#9333ea"},
    "orange": {"name": "Orange", "hex": "#ea580c"},
    "pink": {"name": "Pink", "hex": "#ec4899"},
}

DEFAULT_COLOR_KEY = "white"

# Garment Sizes (display order)
SIZE_OPTIONS = ("XS", "S", "M", "L", "XL", "XXL")

DEFAULT_SIZE_KEY = "M"

# Size Chart (centimeters)
SIZE_CHART = {
    "Shoulder": {"XS": 20, "S": 20.5, "M": 21.5, "L": 21.5, "XL": 22, "XXL": 22.5},
    "Chest": {"XS": 50, "S": 53.6, "M": 56, "L": 56.05, "XL": 59, "XXL": 61.05},
    "Sleeve Length": {"XS": 20, "S": 23, "M": 24, "L": 24.8, "XL": 25, "XXL": 25.4},
    "Front Length": {"XS": 67, "S": 70.5, "M": 73.5, "L": 74.5, "XL": 77, "XXL": 78},
}

SIZE_CHART_UNIT = "cm"

SIZE_CHART_NOTES = (
    "All measurements are in centimeters",
    "Oversized fit designed for comfort",
    "For exact fit, measure against existing garment",
    "Measurements may vary by ±1cm due to manufacturing tolerance",
)

# Artwork Upload
MAX_ARTWORK_BYTES = 10 * 1024 * 1024  # 10 MiB
ARTWORK_MIME_PREFIX = "image/"

# Notifications
NOTIFICATION_TTL_SECONDS = 3.0

MSG_INVALID_FILE_TYPE = "Please upload a valid image file"
MSG_FILE_TOO_LARGE = "File size must be less than 10MB"
MSG_UPLOAD_SUCCESS = "Image uploaded successfully!"
MSG_UPLOAD_UNREADABLE = "Could not read the selected file"
MSG_DESIGN_REQUIRED = "Please upload a design first"
MSG_NAME_REQUIRED = "Please enter a product name"
MSG_QUANTITY_MIN = "Quantity must be at least 1"

# Preview Geometry (pixels / percent of canvas)
PREVIEW_CANVAS_SIZE = (300, 360)
PREVIEW_FRAME_HEX = "#e5e7eb"
PREVIEW_GARMENT_OPACITY = 0.95
PREVIEW_ARTWORK_BOX = (120, 120)
PREVIEW_ARTWORK_CENTER_PCT = (50.0, 40.0)
PREVIEW_PLACEHOLDER_LABEL = "Upload your design"

# T-shirt silhouette outline, (x%, y%) clockwise from the left collar.
GARMENT_SILHOUETTE_PCT = (
    (25, 20), (25, 18), (22, 15), (28, 12), (35, 10), (40, 8), (45, 8),
    (55, 8), (60, 8), (65, 10), (72, 12), (78, 15), (75, 18), (75, 20),
    (80, 25), (80, 35), (78, 33), (78, 92), (76, 96), (24, 96), (22, 92),
    (22, 33), (20, 35), (20, 25),
)

# Session storage key for the signed-in user record
SESSION_USER_KEY = "user"
SESSION_CUSTOMIZATION_KEY = "customization_id"

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"
