"""QR encoding: payload -> SVG in module units (one rect per dark module)."""

from enum import Enum
from html import escape

import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError

from qrbadge.errors import EncodingCapacityExceeded
from qrbadge.logging import audit, get_logger, trace

log = get_logger("encoder")

SVG_NS = "http://www.w3.org/2000/svg"
MODULE_CLASS = "qr-module"
BACKGROUND_CLASS = "qr-background"


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}

# Fraction of the symbol each level can reconstruct
ECC_RECOVERY = {"L": 0.07, "M": 0.15, "Q": 0.25, "H": 0.30}


def symbol_size(version: int) -> int:
    """Modules per side for a QR version (1-40)."""
    return version * 4 + 17


def _build(payload: str, ec_level: str, margin: int, version: int | None) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=version,
        error_correction=ECC_NAMES[ec_level].value,
        box_size=1,
        border=margin,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=(version is None))
    except DataOverflowError as e:
        raise EncodingCapacityExceeded(len(payload.encode("utf-8")), ec_level, version) from e
    return qr


@trace
def get_module_matrix(payload: str, ec_level: str = "H", margin: int = 4,
                      version: int | None = None) -> list[list[bool]]:
    """Module matrix including the quiet zone (True = dark)."""
    return _build(payload, ec_level.upper(), margin, version).get_matrix()


@trace
def encode(
    payload: str,
    ec_level: str = "H",
    margin: int = 4,
    dark_color: str = "#000000",
    light_color: str = "#FFFFFF",
    version: int | None = None,
) -> str:
    """Encode *payload* as a QR code SVG.

    The root element declares ``viewBox="0 0 S S"`` where S is the module
    count plus both margins, so every module sits on an integer grid cell.

    Args:
        payload: Data to encode, usually a URL.
        ec_level: L/M/Q/H.
        margin: Quiet zone width in modules.
        dark_color: Module fill.
        light_color: Background fill.
        version: Pin a QR version 1-40 (None = smallest that fits).

    Raises:
        EncodingCapacityExceeded: payload too large for the level/version.
    """
    ec_level = ec_level.upper()
    qr = _build(payload, ec_level, margin, version)
    matrix = qr.get_matrix()
    span = len(matrix)

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="{SVG_NS}" version="1.1" width="{span}" height="{span}" '
        f'viewBox="0 0 {span} {span}" shape-rendering="crispEdges">',
        f'<rect class="{BACKGROUND_CLASS}" width="{span}" height="{span}" fill="{escape(light_color)}"/>',
        f'<g fill="{escape(dark_color)}">',
    ]
    dark = 0
    for y, row in enumerate(matrix):
        for x, is_dark in enumerate(row):
            if is_dark:
                lines.append(f'<rect class="{MODULE_CLASS}" x="{x}" y="{y}" width="1" height="1"/>')
                dark += 1
    lines.append("</g>")
    lines.append("</svg>")

    audit("qr.encoded", logger=log,
          data=payload[:80], version=qr.version, size=f"{span - 2 * margin}x{span - 2 * margin}",
          span=span, ecc=ec_level, dark_modules=dark)
    return "\n".join(lines) + "\n"
