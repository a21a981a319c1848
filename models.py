import copy
from dataclasses import dataclass, field, asdict
from typing import Optional

from flask_login import UserMixin

from constants import (
    GARMENT_COLORS,
    DEFAULT_COLOR_KEY,
    SIZE_OPTIONS,
    DEFAULT_SIZE_KEY,
    ARTWORK_MIME_PREFIX,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
)


class User(UserMixin):
    """
    Signed-in shopper as issued by the backend auth API.

    The bearer token travels with the user record so the API client can
    attach it without a second lookup.
    """
    def __init__(self, id, email, token, username=None, full_name=None, role=ROLE_CUSTOMER):
        self.id = id
        self.email = email
        self.token = token
        self._username = username
        self._full_name = full_name
        self.role = role or ROLE_CUSTOMER

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def username(self):
        return self._username

    @property
    def full_name(self):
        """Return full name with fallback to email prefix"""
        if self._full_name:
            return self._full_name
        if not self.email:
            return ""
        return self.email.split('@')[0].replace('.', ' ').replace('_', ' ').title()

    @property
    def display_name(self):
        """Primary display name for UI: username > full_name > email prefix"""
        if self._username:
            return self._username
        return self.full_name

    def get_id(self):
        return str(self.id)

    @staticmethod
    def from_record(record):
        """
        Build a User from a backend/session record.

        Accepts both the flat shape ({"id", "token", ...}) and the nested
        login response shape ({"token", "user": {...}}).

        Raises:
            ValueError: if the record is not a dict or lacks id/token.
        """
        if not isinstance(record, dict):
            raise ValueError(f"User record must be an object, got {type(record).__name__}")

        data = dict(record)
        nested = data.pop("user", None)
        if isinstance(nested, dict):
            data = {**nested, "token": data.get("token") or nested.get("token")}

        user_id = data.get("id")
        token = data.get("token")
        if user_id in (None, ""):
            raise ValueError("User record is missing 'id'")
        if not isinstance(token, str) or not token.strip():
            raise ValueError("User record is missing a bearer 'token'")

        role = data.get("role")
        if not role:
            roles = data.get("roles") or []
            role = ROLE_ADMIN if ROLE_ADMIN in [str(r).lower() for r in roles] else ROLE_CUSTOMER

        return User(
            id=user_id,
            email=data.get("email"),
            token=token.strip(),
            username=data.get("username"),
            full_name=data.get("full_name") or data.get("fullName"),
            role=str(role).lower(),
        )

    def to_record(self):
        return {
            "id": self.id,
            "email": self.email,
            "username": self._username,
            "full_name": self._full_name,
            "role": self.role,
            "token": self.token,
        }

    def __repr__(self):
        return f"<User {self.id} {self.email!r} role={self.role}>"


@dataclass(frozen=True)
class ColorOption:
    name: str
    key: str
    hex_value: str
    border_hex_value: Optional[str] = None


COLOR_OPTIONS = tuple(
    ColorOption(name=c["name"], key=key, hex_value=c["hex"], border_hex_value=c.get("border"))
    for key, c in GARMENT_COLORS.items()
)

_COLORS_BY_KEY = {c.key: c for c in COLOR_OPTIONS}


def get_color_option(key):
    """Resolve a color key, falling back to the default swatch."""
    return _COLORS_BY_KEY.get(key) or _COLORS_BY_KEY[DEFAULT_COLOR_KEY]


def is_color_key(key):
    return key in _COLORS_BY_KEY


@dataclass(frozen=True)
class Artwork:
    """Validated, fully transcoded upload. Never mutated; replaced wholesale."""
    data_uri: str
    file_name: str
    mime_type: str
    size_bytes: int
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_vector(self):
        return self.width is None or self.height is None


@dataclass(frozen=True)
class Notification:
    message: str
    expires_at: float
    token: int = field(default=0, compare=False)


@dataclass
class SelectionState:
    artwork: Optional[Artwork] = None
    color_key: str = DEFAULT_COLOR_KEY
    size_key: str = DEFAULT_SIZE_KEY
    product_name: str = ""
    description: str = ""
    quantity: int = 1
    notification: Optional[Notification] = None
    size_chart_visible: bool = False

    def snapshot(self):
        """Independent copy for pure derivations (preview, view model)."""
        return copy.copy(self)


@dataclass(frozen=True)
class HandoffPayload:
    """Validated bundle handed to the positioning stage."""
    uploaded_image: str
    uploaded_file_name: str
    selected_color: str
    selected_size: str
    name: str
    description: str
    quantity: int

    def __post_init__(self):
        if not self.uploaded_image or not self.uploaded_image.startswith(f"data:{ARTWORK_MIME_PREFIX}"):
            raise ValueError("uploaded_image must be an image data URI")
        if not self.name or self.name != self.name.strip():
            raise ValueError("name must be non-empty and trimmed")
        if self.description != self.description.strip():
            raise ValueError("description must be trimmed")
        if not is_color_key(self.selected_color):
            raise ValueError(f"Unknown color: {self.selected_color}")
        if self.selected_size not in SIZE_OPTIONS:
            raise ValueError(f"Unknown size: {self.selected_size}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError("quantity must be an integer >= 1")

    def to_dict(self):
        """Wire shape consumed by the positioning stage."""
        return {
            "uploadedImage": self.uploaded_image,
            "uploadedFileName": self.uploaded_file_name,
            "selectedColor": self.selected_color,
            "selectedSize": self.selected_size,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
        }

    def summary(self):
        """to_dict() without the inline image, for logs and admin listings."""
        data = asdict(self)
        data.pop("uploaded_image")
        data["image_bytes"] = len(self.uploaded_image)
        return data
