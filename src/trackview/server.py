"""MCP server setup for trackview using FastMCP."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP, Image

from .clients.genes import GeneClient
from .config import TrackViewConfig
from .core.session import BrowserSession
from .core.tools import (
    handle_hit_test,
    handle_list_chromosomes,
    handle_load_variants,
    handle_navigate,
    handle_open_locus,
    handle_render,
    handle_set_display_mode,
)

logger = logging.getLogger(__name__)


def create_server(
    config: TrackViewConfig | None = None, session: BrowserSession | None = None
) -> FastMCP:
    """Create and configure the trackview MCP server.

    Raises:
        MissingReference: If no reference genome is configured.
    """
    if config is None:
        config = TrackViewConfig.from_env()

    if session is None:
        session = BrowserSession.from_config(config)
        session.resolver = GeneClient(
            api_key=config.ncbi_api_key,
            genome_build=session.genome.id,
            cache_ttl=config.gene_cache_ttl,
        )

    mcp = FastMCP(name="trackview", host=config.host, port=config.port)

    async def _ready() -> None:
        # the configured start locus is opened on first use
        if not session.slots and config.locus:
            await handle_open_locus({"locus": config.locus}, session, config)

    # -- Tools ---------------------------------------------------------------
    # Thin wrappers delegate to the handlers in core/tools.py.
    # FastMCP derives the JSON-Schema from the function signature.

    @mcp.tool(
        description=(
            "Open one or more loci side by side. Accepts chr1:1000-2000, chr1:1500, "
            "chromosome names, gene symbols, or 'all' for the whole genome; "
            "separate several loci with spaces."
        ),
    )
    async def open_locus(locus: str) -> str:
        result = await handle_open_locus({"locus": locus}, session, config)
        return str(result["content"][0]["text"])

    @mcp.tool(description="List reference chromosomes and their whole-genome pixel spans")
    async def list_chromosomes(width: int | None = None) -> str:
        result = await handle_list_chromosomes({"width": width}, session, config)
        return str(result["content"][0]["text"])

    @mcp.tool(description="Add a variant track from an indexed VCF/BCF file")
    async def load_variants(file_path: str, name: str | None = None) -> str:
        await _ready()
        result = await handle_load_variants(
            {"file_path": file_path, "name": name}, session, config
        )
        return str(result["content"][0]["text"])

    @mcp.tool(description="Set a track's display mode: COLLAPSED, SQUISHED or EXPANDED")
    async def set_display_mode(mode: str, track: str | None = None) -> str:
        result = await handle_set_display_mode({"mode": mode, "track": track}, session, config)
        return str(result["content"][0]["text"])

    @mcp.tool(description="Zoom in, zoom out, pan (by pixels) or reset a locus panel")
    async def navigate(action: str, locus_index: int = 0, pixels: float | None = None) -> str:
        await _ready()
        result = await handle_navigate(
            {"action": action, "locus_index": locus_index, "pixels": pixels}, session, config
        )
        return str(result["content"][0]["text"])

    @mcp.tool(description="Render all tracks across the open loci as a PNG image")
    async def render() -> Image:
        await _ready()
        result = await handle_render({}, session, config)
        return Image(data=result["content"][0]["data"], format="png")

    @mcp.tool(
        description=(
            "Describe the variant or call under a point of the rendered image. "
            "Returns ordered name/value fields; '<hr>' separates overlapping features."
        ),
    )
    async def hit_test(x: float, y: float, track: str | None = None) -> str:
        await _ready()
        result = await handle_hit_test({"x": x, "y": y, "track": track}, session, config)
        return str(result["content"][0]["text"])

    return mcp
