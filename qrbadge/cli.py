"""qrbadge CLI: render badge QR codes, verify them, inspect the occlusion budget."""

import argparse
import dataclasses
import sys
from pathlib import Path

from qrbadge.config import RenderConfig, base_url_from_env, env_settings
from qrbadge.logging import audit, get_logger, setup_logging

log = get_logger("cli")

_CONFIG_FLAGS = {
    "size": "pixel_size",
    "margin": "module_margin",
    "ecc": "ec_level",
    "rounded": "corner_roundness",
    "badge_ratio": "badge_ratio",
    "badge_bg": "badge_background_color",
    "badge_fg": "badge_text_color",
    "font": "font_family",
    "qr_version": "version",
}


def _overrides(args) -> dict:
    return {
        field: getattr(args, flag)
        for flag, field in _CONFIG_FLAGS.items()
        if getattr(args, flag, None) is not None
    }


def _config(args) -> RenderConfig:
    """Environment config with CLI flags layered on top."""
    overrides = _overrides(args)
    config = RenderConfig.from_env()
    return dataclasses.replace(config, **overrides) if overrides else config


def _settings(args) -> dict:
    """Unvalidated field values: defaults, then environment, then CLI flags."""
    settings = {f.name: f.default for f in dataclasses.fields(RenderConfig)}
    settings.update(env_settings())
    settings.update(_overrides(args))
    return settings


def _write(result, output: Path):
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".png":
        output.write_bytes(result.raster)
    else:
        output.write_text(result.vector, encoding="utf-8")
    badge = f", badge '{result.badge.text}'" if result.badge else ""
    print(f"Rendered: {output} (grid {result.span:g}{badge})")


def cmd_render(args):
    """Render a URL with a badge label."""
    from qrbadge.renderer import render

    output = Path(args.output)
    result = render(args.url, args.label, _config(args), raster=output.suffix.lower() == ".png")
    _write(result, output)


def cmd_slug(args):
    """Render the code for a slug."""
    from qrbadge.renderer import render_for_slug

    output = Path(args.output or f"output/{args.slug}.svg")
    result = render_for_slug(
        args.slug,
        args.product,
        args.base_url or base_url_from_env(),
        _config(args),
        raster=output.suffix.lower() == ".png",
    )
    _write(result, output)


def cmd_verify(args):
    """Decode an image and compare with the expected payload."""
    from PIL import Image

    from qrbadge.verify import verify

    with Image.open(args.image) as img:
        results = verify(img, expected_data=args.expected)
    for r in results:
        status = "PASS" if r.success else "FAIL"
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    sys.exit(0 if any(r.success for r in results) else 1)


def cmd_budget(args):
    """Print occlusion budget and label capacity."""
    from qrbadge.badge import max_label_length
    from qrbadge.encoder import ECC_RECOVERY, get_module_matrix
    from qrbadge.occlusion import compute_occlusion_budget, max_badge_ratio, worst_case_occlusion

    # not a RenderConfig: a ratio over budget is reported rather than rejected
    settings = _settings(args)
    ratio = settings["badge_ratio"]
    margin = settings["module_margin"]
    version = settings["version"]
    if not 0.0 < ratio < 1.0:
        raise ValueError(f"badge_ratio must be within (0, 1), got {ratio}")

    worst = worst_case_occlusion(ratio, margin, version)
    print(f"Badge ratio {ratio:.3f}, margin {margin}: worst-case occlusion {worst:.1%}")
    for ecc, recovery in ECC_RECOVERY.items():
        status = "OK" if worst <= recovery else "OVER BUDGET"
        print(f"  EC {ecc} ({recovery:.0%}): {status:11s} max ratio {max_badge_ratio(margin, ecc, version):.3f}")
    capacity = max_label_length(ratio, settings["font_family"], settings["font_weight"])
    print(f"Label capacity: {capacity} characters")

    if args.url:
        ecc = settings["ec_level"].upper()
        span = len(get_module_matrix(args.url, ecc, margin, version))
        print(compute_occlusion_budget(span, margin, ratio, ecc).summary())


def _add_config_flags(p):
    p.add_argument("--size", type=int, default=None, help="Output pixel size (QR_SIZE)")
    p.add_argument("--margin", type=int, default=None, help="Quiet zone modules (QR_MARGIN)")
    p.add_argument("-e", "--ecc", default=None, choices=["L", "M", "Q", "H"], help="Error correction level")
    p.add_argument("--rounded", type=float, default=None, help="Module corner roundness 0-1 (QR_ROUNDED)")
    p.add_argument("--badge-ratio", type=float, default=None, help="Badge diameter / grid span")
    p.add_argument("--badge-bg", default=None, help="Badge background colour")
    p.add_argument("--badge-fg", default=None, help="Badge text colour")
    p.add_argument("--font", default=None, help="CSS font-family list")
    p.add_argument("--qr-version", type=int, default=None, help="Pin QR version 1-40")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="qrbadge", description="QR codes with a centred product-code badge")
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    parser.add_argument("--json-logs", action="store_true", help="JSON console logs")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a URL with a badge")
    p_render.add_argument("url", help="URL or data to encode")
    p_render.add_argument("label", help="Badge text (upper-cased)")
    p_render.add_argument("-o", "--output", default="output/qr.svg", help="Output .svg or .png")
    _add_config_flags(p_render)

    # --- slug ---
    p_slug = subparsers.add_parser("slug", help="Render the code for a slug")
    p_slug.add_argument("slug", help="Short slug")
    p_slug.add_argument("--product", default=None, help="Product code for the badge (defaults to the slug)")
    p_slug.add_argument("--base-url", default=None, help="Public base URL (QR_BASE_URL)")
    p_slug.add_argument("-o", "--output", default=None, help="Output .svg or .png")
    _add_config_flags(p_slug)

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Decode a rendered image")
    p_ver.add_argument("image", help="Path to PNG")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data")

    # --- budget ---
    p_budget = subparsers.add_parser("budget", help="Show badge occlusion budget")
    p_budget.add_argument("--url", default=None, help="Also report the grid this URL encodes to")
    _add_config_flags(p_budget)

    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "INFO", log_file=args.log_file, json_format=args.json_logs)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "slug": cmd_slug,
        "verify": cmd_verify,
        "budget": cmd_budget,
    }
    try:
        commands[args.command](args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
