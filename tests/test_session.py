"""Tests for trackview.core.session: loci, navigation, rendering and hit-testing together."""

from dataclasses import replace

import pytest

from trackview.config import TrackViewConfig
from trackview.core.features import InMemoryFeatureSource, Variant, assign_rows
from trackview.core.session import BrowserSession
from trackview.errors import FeatureSourceError, LocusNotFound, MissingReference
from trackview.render.surface import PillowSurface
from trackview.tracks.base import DisplayMode, PixelBounds
from trackview.tracks.variant import VariantTrack

TRACK_RGB = (0, 0, 150)
WHITE = (255, 255, 255)


class FlakySource:
    """Delegates to an in-memory source until told to fail."""

    def __init__(self, inner):
        self.inner = inner
        self.fail = False

    async def get_features(self, chromosome, start, end):
        if self.fail:
            raise FeatureSourceError("connection reset")
        return await self.inner.get_features(chromosome, start, end)


class BrokenSource:
    async def get_features(self, chromosome, start, end):
        raise RuntimeError("socket closed")


class PackingSource:
    """Returns fresh copies with rows packed per request, as file-backed sources do."""

    def __init__(self, features):
        self.features = features

    async def get_features(self, chromosome, start, end):
        hits = [
            replace(f)
            for f in self.features
            if f.reference_name == chromosome and f.start < end and f.end > start
        ]
        assign_rows(hits)
        return hits


@pytest.fixture
def session(genome):
    return BrowserSession(genome, 1000)


@pytest.fixture
def track(source, call_sets):
    return VariantTrack(source, name="calls", call_sets=call_sets)


class TestOpenLoci:
    """Tests for BrowserSession.open_loci."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_locus(self, session):
        assert await session.open_loci("chr1:1000-2000") == []
        (slot,) = session.slots
        assert slot.current_frame.bp_per_pixel == 1.0
        assert session.zoom_enabled

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_several_loci_from_string(self, session):
        unresolved = await session.open_loci("chr1:1,000-2,000 nowhere chr2")
        assert unresolved == ["nowhere"]
        assert session.unresolved == ["nowhere"]
        assert [s.chromosome for s in session.slots] == ["chr1", "chr2"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_out_of_range_locus_dropped(self, session):
        unresolved = await session.open_loci(["chr1:100-200", "chr1:20000-30000"])
        assert unresolved == ["chr1:20000-30000"]
        (slot,) = session.slots
        assert (slot.start, slot.end, slot.locus_count) == (100, 200, 1)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_only_out_of_range_locus(self, session):
        with pytest.raises(LocusNotFound):
            await session.open_loci(["chr2:9000-9500"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_default_is_first_chromosome(self, session):
        await session.open_loci(None)
        assert session.slots[0].chromosome == "chr1"
        assert session.slots[0].end == 10_000

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nothing_resolves(self, session):
        with pytest.raises(LocusNotFound):
            await session.open_loci(["nope"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_whole_genome_disables_zoom(self, session):
        await session.open_loci(["all"])
        assert session.whole_genome_mode
        assert not session.zoom_enabled
        before = session.slots
        assert session.zoom_in() is False
        assert session.zoom_out() is False
        assert session.pan(0, 10) is False
        assert session.slots == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_whole_genome_table_cached_per_width(self, session):
        await session.open_loci(["all"])
        table = session.whole_genome_table()
        assert session.whole_genome_table() is table
        session.resize(800)
        rebuilt = session.whole_genome_table()
        assert rebuilt is not table
        assert rebuilt.surface_width == 800

    @pytest.mark.unit
    def test_from_config_requires_reference(self):
        with pytest.raises(MissingReference):
            BrowserSession.from_config(TrackViewConfig())

    @pytest.mark.unit
    def test_from_config(self):
        session = BrowserSession.from_config(TrackViewConfig(genome="hg19", viewport_width=640))
        assert session.width == 640
        assert session.genome.get_chromosome("chr1") == ("chr1", 249250621)


class TestNavigation:
    """Frames are replaced, never edited."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_zoom_in_and_out(self, session):
        await session.open_loci("chr1:1000-2000")
        original = session.slots[0].current_frame

        assert session.zoom_in()
        frame = session.slots[0].current_frame
        assert (frame.start, frame.end(1000)) == (1250, 1750)
        assert original.start == 1000

        session.zoom_out()
        frame = session.slots[0].current_frame
        assert (frame.start, frame.end(1000)) == (1000, 2000)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pan(self, session):
        await session.open_loci("chr1:1000-2000")
        session.pan(0, 100)
        assert session.slots[0].current_frame.start == 1100

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pan_clamped_to_chromosome(self, session):
        await session.open_loci("chr1:1000-2000")
        session.pan(0, -5000)
        assert session.slots[0].current_frame.start == 0
        session.pan(0, 50_000)
        assert session.slots[0].current_frame.end(1000) == 10_000

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_zoom_out_clamped_to_chromosome(self, session):
        await session.open_loci("chrX")
        session.zoom_out()
        frame = session.slots[0].current_frame
        assert (frame.start, frame.end(1000)) == (0, 2000)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_whole_genome_panel_among_loci_refuses_zoom(self, session):
        await session.open_loci("chr1:1000-2000 all")
        assert session.zoom_enabled
        genome_panel = session.slots[1]
        assert session.zoom_in(1) is False
        assert session.zoom_out(1) is False
        assert session.slots[1] is genome_panel
        assert session.zoom_in(0) is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reset(self, session):
        await session.open_loci("chr1:1000-2000")
        session.zoom_in()
        session.pan(0, 30)
        session.reset(0)
        assert session.slots[0].current_frame == session.slots[0].initial_frame

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resize_keeps_interval(self, session):
        await session.open_loci("chr1:1000-2000 chr2:0-1000")
        session.resize(500)
        for slot in session.slots:
            assert slot.pixel_width == 250
            assert slot.current_frame.bp_per_pixel == 4.0

    @pytest.mark.unit
    def test_resize_rejects_zero(self, session):
        with pytest.raises(ValueError):
            session.resize(0)


class TestTracks:
    @pytest.mark.unit
    def test_get_track(self, session, track):
        with pytest.raises(ValueError, match="No tracks"):
            session.get_track(None)
        session.add_track(track)
        assert session.get_track(None) is track
        assert session.get_track("calls") is track
        with pytest.raises(ValueError, match="No track named"):
            session.get_track("other")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_features_per_slot(self, session, track, snv, chr2_variant):
        await session.open_loci("chr1:1000-2000 chr2:2000-3000")
        session.add_track(track)
        assert await session.load_features() == []
        assert session.features_for(track, 0) == [snv]
        assert session.features_for(track, 1) == [chr2_variant]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_panels_on_one_chromosome_share_residency(self, session, track, snv):
        await session.open_loci("chr1:1000-2000 chr1:5000-6000")
        session.add_track(track)
        await session.load_features()
        assert track.resident("chr1", 1400, 1600) == [snv]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_whole_genome_loads_every_chromosome(self, session, track, snv, chr2_variant):
        await session.open_loci("all")
        session.add_track(track)
        await session.load_features()
        assert session.features_for(track, 0) == [snv, chr2_variant]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_source_keeps_resident_features(self, session, source, snv):
        flaky = FlakySource(source)
        track = VariantTrack(flaky, name="flaky")
        await session.open_loci("chr1:1000-2000")
        session.add_track(track)
        await session.load_features()

        flaky.fail = True
        errors = await session.load_features()
        assert errors == ["flaky: connection reset"]
        assert session.features_for(track, 0) == [snv]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_source_exception_is_reported(self, session):
        track = VariantTrack(BrokenSource(), name="broken")
        await session.open_loci("chr1:1000-2000")
        session.add_track(track)
        assert await session.load_features() == ["broken: socket closed"]
        assert session.features_for(track, 0) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_track_height_follows_display_mode(self, session, track):
        await session.open_loci("chr1:1000-2000")
        session.add_track(track)
        await session.load_features()
        assert session.track_height(track) == 20
        track.set_display_mode(DisplayMode.EXPANDED)
        assert session.track_height(track) == 44


class TestRenderAndHitTest:
    """End-to-end: open a locus, load, draw to pixels, click."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_locate_returns_panel_bounds(self, session, track):
        await session.open_loci("chr1:1000-2000 chr2:2000-3000")
        session.add_track(track)
        await session.load_features()

        located, index, bounds = session.locate(750, 5)
        assert (located, index) == (track, 1)
        assert bounds == PixelBounds(500, 0, 500, 20)
        assert not bounds.contains(250, 5)
        assert session.locate(750, 20) is None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_render_pixels(self, session, track):
        await session.open_loci("chr1:1000-2000")
        session.add_track(track)
        await session.load_features()

        surface = session.render()
        assert isinstance(surface, PillowSurface)
        assert (surface.width, surface.height) == (1000, 20)
        assert surface.pixel(500, 15) == TRACK_RGB
        assert surface.pixel(499, 10) == TRACK_RGB
        assert surface.pixel(502, 15) == WHITE
        assert surface.pixel(100, 15) == WHITE

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_render_multi_locus(self, session, track):
        await session.open_loci("chr1:1000-2000 chr2:2000-3000")
        session.add_track(track)
        await session.load_features()

        surface = session.render()
        # each panel is 500px at 2 bp/px; both variants sit mid-panel
        assert surface.pixel(250, 15) == TRACK_RGB
        assert surface.pixel(750, 15) == TRACK_RGB

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_stacked_tracks(self, session, track, snv):
        other = VariantTrack(InMemoryFeatureSource([snv]), name="other")
        await session.open_loci("chr1:1000-2000")
        session.add_track(track)
        session.add_track(other)
        await session.load_features()

        assert [(t.name, top) for t, top, _ in session.track_bounds()] == [
            ("calls", 0),
            ("other", 20),
        ]
        assert session.render().height == 40
        assert session.hit_test(500, 35)[0] is other

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_hit_test(self, session, track):
        await session.open_loci("chr1:1000-2000")
        session.add_track(track)
        await session.load_features()

        hit_track, fields = session.hit_test(500, 15)
        assert hit_track is track
        assert fields[0] == ("Chr", "chr1")
        assert session.hit_test(500, 500) == (None, [])
        assert session.hit_test(2000, 15) == (None, [])

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_hit_test_second_panel(self, session, track):
        await session.open_loci("chr1:1000-2000 chr2:2000-3000")
        session.add_track(track)
        await session.load_features()

        _, fields = session.hit_test(750, 15)
        assert fields[:2] == [("Chr", "chr2"), ("Pos", 2500)]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_hit_test_whole_genome(self, genome, track):
        session = BrowserSession(genome, 1700)
        await session.open_loci("all")
        session.add_track(track)
        await session.load_features()

        _, fields = session.hit_test(1250, 15)
        assert fields[:2] == [("Chr", "chr2"), ("Pos", 2500)]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_hit_test_expanded_panels_sharing_chromosome(self, session):
        wide = Variant("chr1", 1000, 1350, "A", ["<DEL>"], calls={})
        late = Variant("chr1", 1300, 1450, "C", ["<DEL>"], calls={})
        track = VariantTrack(PackingSource([wide, late]), name="svs")
        track.set_display_mode(DisplayMode.EXPANDED)
        await session.open_loci("chr1:1000-1500 chr1:1400-1500")
        session.add_track(track)
        await session.load_features()

        # both panels hold the same object, so it sits in one row everywhere
        shared = session.features_for(track, 1)[0]
        assert shared is session.features_for(track, 0)[1]
        assert shared.row == 1

        # panel 1 starts at x=500 with 0.2 bp/px; bp 1420 is x=600, row 1 is y 22-32
        _, fields = session.hit_test(600, 25)
        assert fields[:2] == [("Chr", "chr1"), ("Pos", 1300)]
