"""Typed failures of a render call. A render either succeeds fully or raises one of these."""


class BadgeRenderError(ValueError):
    """Base class for all renderer failures."""


class EncodingCapacityExceeded(BadgeRenderError):
    """Payload does not fit the QR capacity at the configured EC level."""

    def __init__(self, payload_bytes: int, ec_level: str, version: int | None = None):
        self.payload_bytes = payload_bytes
        self.ec_level = ec_level
        self.version = version
        limit = f"version {version}" if version else "version 40"
        super().__init__(
            f"payload of {payload_bytes} bytes exceeds {limit} capacity at EC level {ec_level}"
        )


class MalformedEncoderOutput(BadgeRenderError):
    """Encoder output does not have the expected SVG root/viewBox shape."""


class BadgeOcclusionTooLarge(BadgeRenderError):
    """Badge would hide more modules than the EC level can recover."""

    def __init__(self, fraction: float, recovery: float, ec_level: str):
        self.fraction = fraction
        self.recovery = recovery
        self.ec_level = ec_level
        super().__init__(
            f"badge occludes {fraction:.1%} of modules, EC level {ec_level} recovers {recovery:.0%}"
        )


class LabelTooLong(BadgeRenderError):
    """Label cannot be laid out inside the badge at the minimum font size."""

    def __init__(self, label: str, max_length: int):
        self.label = label
        self.max_length = max_length
        super().__init__(
            f"label {label!r} does not fit the badge at the minimum font size "
            f"(about {max_length} characters fit)"
        )


class InvalidLabel(BadgeRenderError):
    """Label holds a character an SVG text node cannot carry."""

    def __init__(self, label: str, char: str):
        self.label = label
        self.char = char
        super().__init__(f"label {label!r} contains forbidden character U+{ord(char):04X}")


class RasterizationError(BadgeRenderError):
    """Vector to raster conversion failed."""
