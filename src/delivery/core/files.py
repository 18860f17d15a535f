"""
Files attached to assets, and image transformation options.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode


@dataclass(frozen=True)
class File:
    """
    A file attached to an asset for one locale.

    Attributes:
        file_name: Original file name
        content_type: MIME type
        url: Protocol-relative or absolute URL
        size: Size in bytes
    """
    file_name: str
    content_type: str
    url: str
    size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "File":
        """
        Build a File or, for images with dimensions, an ImageFile.
        """
        details = data.get("details") or {}
        image = details.get("image") or {}
        content_type = data.get("contentType", "")
        kwargs = {
            "file_name": data.get("fileName", ""),
            "content_type": content_type,
            "url": data.get("url", ""),
            "size": details.get("size"),
        }
        if (
            content_type.startswith("image/")
            and image.get("width") is not None
            and image.get("height") is not None
        ):
            return ImageFile(width=image["width"], height=image["height"], **kwargs)
        return cls(**kwargs)

    def get_url(self) -> str:
        return self.url

    def to_dict(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {}
        if self.size is not None:
            details["size"] = self.size
        return {
            "fileName": self.file_name,
            "contentType": self.content_type,
            "details": details,
            "url": self.url,
        }


@dataclass(frozen=True)
class ImageFile(File):
    """An image file with known dimensions."""
    width: int = 0
    height: int = 0

    def get_url(self, options: Optional["ImageOptions"] = None) -> str:
        """
        URL of the image, optionally with transformation options applied.
        """
        if options is None:
            return self.url
        return f"{self.url}?{options.get_query_string()}"

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["details"]["image"] = {"width": self.width, "height": self.height}
        return result


_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

VALID_FORMATS = ("png", "jpg", "webp")
VALID_FITS = ("pad", "crop", "fill", "thumb", "scale")
VALID_FOCUS = (
    "face", "faces", "top", "bottom", "right", "left",
    "top_right", "top_left", "bottom_right", "bottom_left",
)


class ImageOptions:
    """
    Image transformation options rendered as a URL query suffix.

    Setters validate their input, raise ValueError on invalid values and
    return ``self`` so calls can be chained:

        >>> ImageOptions().set_width(100).set_format("png").get_query_string()
        'w=100&fm=png'
    """

    def __init__(self):
        self.width: Optional[int] = None
        self.height: Optional[int] = None
        self.format: Optional[str] = None
        self.quality: Optional[int] = None
        self.progressive = False
        self.resize_fit: Optional[str] = None
        self.resize_focus: Optional[str] = None
        self.radius: Optional[float] = None
        self.background_color: Optional[str] = None

    def set_width(self, width: Optional[int] = None) -> "ImageOptions":
        if width is not None and width < 0:
            raise ValueError("Width must not be negative")
        self.width = width
        return self

    def set_height(self, height: Optional[int] = None) -> "ImageOptions":
        if height is not None and height < 0:
            raise ValueError("Height must not be negative")
        self.height = height
        return self

    def set_format(self, fmt: Optional[str] = None) -> "ImageOptions":
        if fmt is not None and fmt not in VALID_FORMATS:
            raise ValueError(f"Unknown format '{fmt}' given. Expected one of {', '.join(VALID_FORMATS)} or None")
        self.format = fmt
        return self

    def set_quality(self, quality: Optional[int] = None) -> "ImageOptions":
        """JPEG quality between 1 and 100; forces the jpg format."""
        if quality is not None and not 1 <= quality <= 100:
            raise ValueError(f"Quality has to be between 1 and 100, {quality} given.")
        self.quality = quality
        return self

    def set_progressive(self, progressive: bool = True) -> "ImageOptions":
        """Load as progressive JPEG; forces the jpg format."""
        self.progressive = bool(progressive)
        return self

    def set_resize_fit(self, resize_fit: Optional[str] = None) -> "ImageOptions":
        if resize_fit is not None and resize_fit not in VALID_FITS:
            raise ValueError(f"Unknown resize behavior '{resize_fit}' given.")
        self.resize_fit = resize_fit
        return self

    def set_resize_focus(self, resize_focus: Optional[str] = None) -> "ImageOptions":
        """Focus area, only used with the 'thumb' resize fit."""
        if resize_focus is not None and resize_focus not in VALID_FOCUS:
            raise ValueError(f"Unknown resize focus '{resize_focus}' given.")
        self.resize_focus = resize_focus
        return self

    def set_radius(self, radius: Optional[float] = None) -> "ImageOptions":
        if radius is not None and radius < 0:
            raise ValueError("Radius must not be negative")
        self.radius = radius
        return self

    def set_background_color(self, color: Optional[str] = None) -> "ImageOptions":
        """Padding color like '#9090ff', only used with the 'pad' resize fit."""
        if color is not None and not _COLOR_RE.match(color):
            raise ValueError("Background color must be in hexadecimal format.")
        self.background_color = color
        return self

    def get_format(self) -> Optional[str]:
        if self.quality is not None or self.progressive:
            return "jpg"
        return self.format

    def get_query_string(self) -> str:
        options: Dict[str, Any] = {
            "w": self.width,
            "h": self.height,
            "fm": self.get_format(),
            "q": self.quality,
            "r": self.radius,
        }
        if self.progressive:
            options["fl"] = "progressive"
        if self.resize_fit is not None:
            options["fit"] = self.resize_fit
            if self.resize_fit == "thumb" and self.resize_focus is not None:
                options["f"] = self.resize_focus
            if self.resize_fit == "pad" and self.background_color is not None:
                options["bg"] = "rgb:" + self.background_color[1:]

        return urlencode(
            {k: v for k, v in options.items() if v is not None},
            quote_via=quote,
        )
