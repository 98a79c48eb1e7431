"""Summarise a GeoJSON track: zoom-adapted render payload plus terrain metrics."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import load_simplification_config, load_slope_config
from ..elevation import calculate_elevation_metrics
from ..errors import ConfigError, TrackGeometryError
from ..render import build_render_payload
from ..segments import segments_from_geometry
from ..slope import calculate_slope_metrics
from ..utils import json_dumps_sorted

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_GEOMETRY = 2


def load_track_document(
    path: Path,
) -> Tuple[Mapping[str, Any], Optional[List[Any]], Optional[List[Any]]]:
    """Return ``(geometry, elevation_profile, time)`` from a GeoJSON file.

    The file may hold a bare geometry or a Feature whose properties carry
    ``elevation_profile`` and ``time`` arrays.
    """

    document = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(document, Mapping):
        raise TrackGeometryError("GeoJSON document must be an object")
    if document.get("type") == "Feature":
        properties = document.get("properties") or {}
        geometry = document.get("geometry")
        if not isinstance(geometry, Mapping):
            raise TrackGeometryError("Feature has no geometry")
        return geometry, properties.get("elevation_profile"), properties.get("time")
    return document, None, None


def analyze_track(
    geometry: Mapping[str, Any],
    zoom: float,
    elevation_profile: Optional[Sequence[Optional[float]]] = None,
    time_data: Optional[Sequence[Any]] = None,
    track_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the JSON-ready report for one track."""

    simplification_config = load_simplification_config()
    slope_config = load_slope_config(use_dotenv=False)

    side_channels: Dict[str, Optional[Sequence[Any]]] = {}
    if elevation_profile is not None:
        side_channels["elevation"] = elevation_profile
    if time_data is not None:
        side_channels["time"] = time_data
    payload = build_render_payload(
        geometry, zoom, side_channels=side_channels, config=simplification_config
    )

    points = [pt for segment in segments_from_geometry(geometry) for pt in segment]
    profile = list(elevation_profile) if elevation_profile is not None else []
    slope = calculate_slope_metrics(
        points, profile, config=slope_config, track_name=track_name
    )
    report: Dict[str, Any] = {
        "render": payload.to_dict(),
        "slope": slope.to_dict(),
    }
    if elevation_profile is not None:
        report["elevation"] = calculate_elevation_metrics(profile).to_dict()
    return report


def _build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser for the track analysis tool."""

    parser = argparse.ArgumentParser(
        description=(
            "Simplify a GeoJSON track for a zoom level and report slope and"
            " elevation metrics as JSON."
        )
    )
    parser.add_argument("path", type=Path, help="GeoJSON geometry or Feature file")
    parser.add_argument(
        "--zoom",
        type=float,
        default=12.0,
        help="Map zoom level used to pick the tolerance (default: 12)",
    )
    parser.add_argument(
        "--elevation",
        type=Path,
        help="JSON file holding an elevation array aligned with the points",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the report here instead of stdout",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point used via ``python -m track_terrain.tools.analyze_track``."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )

    try:
        geometry, elevation_profile, time_data = load_track_document(args.path)
        if args.elevation is not None:
            elevation_profile = json.loads(args.elevation.read_text(encoding="utf-8"))
    except TrackGeometryError as exc:
        logging.error("Malformed track '%s': %s", args.path, exc)
        return EXIT_BAD_GEOMETRY
    except (OSError, ValueError) as exc:
        logging.error("Failed to load '%s': %s", args.path, exc)
        return EXIT_FAILURE

    try:
        report = analyze_track(
            geometry,
            args.zoom,
            elevation_profile=elevation_profile,
            time_data=time_data,
            track_name=args.path.stem,
        )
    except TrackGeometryError as exc:
        logging.error("Malformed track '%s': %s", args.path, exc)
        return EXIT_BAD_GEOMETRY
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return EXIT_FAILURE
    except ValueError as exc:
        logging.error("Failed to analyse '%s': %s", args.path, exc)
        return EXIT_FAILURE

    text = json_dumps_sorted(report, indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        logging.info("Report written to %s", args.output)
    else:
        print(text)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
