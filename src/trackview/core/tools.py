"""MCP tool handlers for trackview."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..config import TrackViewConfig
from ..errors import FeatureSourceError, LocusNotFound
from ..sources.vcf import VcfFeatureSource
from ..tracks.base import DisplayMode
from ..tracks.variant import VariantTrack
from .locus import GenomicStateSlot
from .session import BrowserSession
from .validation import validate_locus, validate_path, validate_point

logger = logging.getLogger(__name__)

NAVIGATE_ACTIONS = ("zoom_in", "zoom_out", "pan", "reset")


def _text(payload: dict) -> dict:
    return {"content": [{"type": "text", "text": json.dumps(payload, default=str)}]}


def _slot_state(slot: GenomicStateSlot) -> dict:
    frame = slot.current_frame
    state: dict[str, Any] = {
        "locus": slot.search_string,
        "chromosome": slot.chromosome,
        "locus_index": slot.locus_index,
        "pixel_width": slot.pixel_width,
    }
    if slot.is_whole_genome:
        state["whole_genome"] = True
    else:
        state.update(
            start=round(frame.start),
            end=round(frame.end(slot.pixel_width)),
            bp_per_pixel=frame.bp_per_pixel,
        )
    return state


def _view_state(session: BrowserSession) -> dict:
    return {
        "loci": [_slot_state(s) for s in session.slots],
        "whole_genome": session.whole_genome_mode,
        "zoom_enabled": session.zoom_enabled,
    }


def _require_loci(session: BrowserSession) -> None:
    if not session.slots:
        raise ValueError("No locus is open; call open_locus first")


async def handle_open_locus(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """Open one or more loci as side-by-side panels and load their features."""
    queries = validate_locus(args["locus"])

    try:
        unresolved = await session.open_loci(queries)
    except LocusNotFound as e:
        logger.info("%s", e)
        return _text({"error": str(e), "unresolved": e.queries})

    errors = await session.load_features()
    return _text({**_view_state(session), "unresolved": unresolved, "errors": errors})


async def handle_list_chromosomes(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """List the reference chromosomes and their whole-genome pixel spans."""
    table = session.whole_genome_table(args.get("width") or config.viewport_width)
    return _text(
        {
            "genome": session.genome.id,
            "chromosomes": [
                {"name": name, "length": length} for name, length in session.genome.chromosomes
            ],
            "whole_genome": [
                {"name": name, "start_px": start, "end_px": end}
                for name, start, end in table.spans()
            ],
        }
    )


async def handle_load_variants(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """Add a variant track backed by a VCF/BCF file."""
    file_path = args["file_path"]
    validate_path(file_path, config)

    source = VcfFeatureSource(file_path)
    track = VariantTrack.from_config(
        source, config, name=args.get("name"), whole_genome=session.whole_genome_mode
    )
    try:
        await track.load_header()
    except FeatureSourceError as e:
        logger.warning("Cannot load %s: %s", file_path, e)
        return _text({"error": str(e)})

    session.add_track(track)
    errors = await session.load_features() if session.slots else []
    return _text(
        {
            "track": track.name,
            "call_sets": [cs.name for cs in track.call_sets],
            "display_mode": track.display_mode.value,
            "visibility_window": track.visibility_window,
            "errors": errors,
        }
    )


async def handle_set_display_mode(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """Switch a track between COLLAPSED, SQUISHED and EXPANDED."""
    track = session.get_track(args.get("track"))
    track.set_display_mode(DisplayMode.parse(args["mode"]))
    return _text(
        {
            "track": track.name,
            "display_mode": track.display_mode.value,
            "required_height": session.track_height(track),
            "menu": track.menu_items(),
        }
    )


async def handle_navigate(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """Zoom, pan or reset one locus panel."""
    _require_loci(session)
    action = args["action"]
    if action not in NAVIGATE_ACTIONS:
        raise ValueError(f"Unknown action '{action}'. Expected one of {NAVIGATE_ACTIONS}")

    index = int(args.get("locus_index") or 0)
    if not 0 <= index < len(session.slots):
        raise ValueError(f"locus_index must be between 0 and {len(session.slots) - 1}")

    if action == "zoom_in":
        changed = session.zoom_in(index)
    elif action == "zoom_out":
        changed = session.zoom_out(index)
    elif action == "pan":
        changed = session.pan(index, float(args.get("pixels") or 0))
    else:
        session.reset(index)
        changed = True

    errors = await session.load_features() if changed else []
    return _text({**_view_state(session), "changed": changed, "errors": errors})


async def handle_render(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """Draw every track into a PNG."""
    _require_loci(session)
    surface = session.render()
    return {
        "content": [{"type": "image", "data": surface.to_png(), "mimeType": "image/png"}],
        "width": surface.width,
        "height": surface.height,
    }


async def handle_hit_test(
    args: dict[str, Any], session: BrowserSession, config: TrackViewConfig
) -> dict:
    """Describe the feature under a point of the last render."""
    _require_loci(session)
    x, y = float(args["x"]), float(args["y"])
    validate_point(x, y)

    wanted = session.get_track(args["track"]) if args.get("track") else None

    track, fields = session.hit_test(x, y)
    if wanted is not None and track is not wanted:
        track, fields = None, []
    return _text(
        {
            "track": track.name if track is not None else None,
            "fields": [{"name": name, "value": value} for name, value in fields],
        }
    )
