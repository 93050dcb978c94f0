import asyncio

import pytest

from src.fleet.domain.exceptions import InvalidModeError, NetworkError
from src.fleet.domain.models.endpoint import EndpointKind, EndpointPhase
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from tests.conftest import KL, KL_PLACE, PJ, PJ_PLACE, SHAH_ALAM, SHAH_ALAM_PLACE

ORIGIN = EndpointKind.ORIGIN
DESTINATION = EndpointKind.DESTINATION


@pytest.mark.asyncio
async def test_rapid_edits_fire_a_single_search_with_the_final_text(make_locations, geocoder) -> None:
    geocoder.results["Kuala Lumpur"] = [KL_PLACE]
    locations = make_locations(debounce_seconds=0.05)

    for text in ("Kua", "Kuala", "Kuala L", "Kuala Lumpur"):
        locations.set_text(ORIGIN, text)
    assert locations.snapshot.origin.phase is EndpointPhase.DEBOUNCING

    await asyncio.sleep(0.2)
    await locations.flush()

    assert geocoder.search_calls == ["Kuala Lumpur"]
    assert locations.snapshot.origin.candidates == (KL_PLACE,)
    assert locations.snapshot.origin.resolving is False
    await locations.aclose()


@pytest.mark.asyncio
async def test_short_query_never_reaches_the_geocoder(make_locations, geocoder) -> None:
    locations = make_locations()

    locations.set_text(ORIGIN, "KL")
    await locations.flush()

    assert geocoder.search_calls == []
    assert locations.snapshot.origin.phase is EndpointPhase.TYPING


@pytest.mark.asyncio
async def test_late_result_for_superseded_query_is_dropped(make_locations, geocoder) -> None:
    geocoder.results["Kuala"] = [KL_PLACE]
    geocoder.results["Petaling"] = [PJ_PLACE]
    gate = geocoder.hold("Kuala")
    locations = make_locations(debounce_seconds=0.01)

    locations.set_text(ORIGIN, "Kuala")
    await asyncio.wait_for(geocoder.started("Kuala").wait(), timeout=1)
    assert locations.snapshot.origin.resolving is True

    locations.set_text(ORIGIN, "Petaling")
    gate.set()
    await asyncio.sleep(0)
    assert KL_PLACE not in locations.snapshot.origin.candidates

    await locations.flush()

    assert geocoder.search_calls == ["Kuala", "Petaling"]
    assert locations.snapshot.origin.text == "Petaling"
    assert locations.snapshot.origin.candidates == (PJ_PLACE,)


@pytest.mark.asyncio
async def test_search_failure_is_visible_but_not_fatal(make_locations, geocoder) -> None:
    geocoder.failing_queries.add("Kuala")
    locations = make_locations()
    phases: list[EndpointPhase] = []
    locations.subscribe(lambda snapshot: phases.append(snapshot.origin.phase))

    locations.set_text(ORIGIN, "Kuala")
    await locations.flush()

    assert EndpointPhase.RESOLUTION_FAILED in phases
    assert phases[-1] is EndpointPhase.TYPING
    origin = locations.snapshot.origin
    assert origin.candidates == ()
    assert origin.resolving is False

    locations.set_text(ORIGIN, "Kuala L")
    assert locations.snapshot.origin.phase is EndpointPhase.DEBOUNCING
    await locations.aclose()


@pytest.mark.asyncio
async def test_no_search_after_selection_text_is_reconfirmed(make_locations, geocoder) -> None:
    locations = make_locations()
    locations.select_candidate(ORIGIN, KL_PLACE)

    locations.set_text(ORIGIN, "Kuala Lumpur, Malaysi")
    assert locations.snapshot.origin_coordinate is None
    locations.set_text(ORIGIN, "Kuala Lumpur, Malaysia")
    await locations.flush()

    assert geocoder.search_calls == []
    assert locations.snapshot.origin_coordinate == KL
    assert locations.snapshot.origin.phase is EndpointPhase.RESOLVED


@pytest.mark.asyncio
async def test_route_is_fetched_once_both_endpoints_resolve(make_locations, router) -> None:
    locations = make_locations()

    locations.select_candidate(ORIGIN, KL_PLACE)
    await locations.flush()
    assert router.calls == []
    assert locations.snapshot.map_fit_bounds is None

    locations.select_candidate(DESTINATION, PJ_PLACE)
    await locations.flush()

    snapshot = locations.snapshot
    assert router.calls == [(KL, PJ)]
    assert snapshot.route_polyline[0] == KL
    assert snapshot.route_polyline[-1] == PJ
    bounds = snapshot.map_fit_bounds
    assert bounds is not None
    assert (bounds.south, bounds.north) == (PJ.latitude, KL.latitude)
    assert (bounds.west, bounds.east) == (PJ.longitude, KL.longitude)

    # Re-selecting the same place does not refetch.
    locations.select_candidate(ORIGIN, KL_PLACE)
    await locations.flush()
    assert router.calls == [(KL, PJ)]


@pytest.mark.asyncio
async def test_coordinate_change_clears_route_before_new_fetch(make_locations, router) -> None:
    locations = make_locations()
    published: list[LocationSnapshot] = []
    locations.subscribe(published.append)

    locations.select_candidate(ORIGIN, KL_PLACE)
    locations.select_candidate(DESTINATION, PJ_PLACE)
    await locations.flush()
    assert locations.snapshot.route is not None

    gate = router.hold(KL, SHAH_ALAM)
    locations.select_candidate(DESTINATION, SHAH_ALAM_PLACE)
    assert locations.snapshot.route is None

    gate.set()
    await locations.flush()

    assert locations.snapshot.route is not None
    assert locations.snapshot.route.destination_used == SHAH_ALAM
    for snapshot in published:
        if snapshot.route is not None:
            assert snapshot.route.matches(snapshot.origin_coordinate, snapshot.destination_coordinate)


@pytest.mark.asyncio
async def test_route_for_superseded_pair_is_discarded(make_locations, router) -> None:
    locations = make_locations()
    first_gate = router.hold(KL, PJ)

    locations.select_candidate(ORIGIN, KL_PLACE)
    locations.select_candidate(DESTINATION, PJ_PLACE)
    await asyncio.sleep(0)
    locations.select_candidate(DESTINATION, SHAH_ALAM_PLACE)
    await asyncio.sleep(0)

    # Let the newer fetch land first, then the stale one.
    first_gate.set()
    await locations.flush()

    assert router.calls == [(KL, PJ), (KL, SHAH_ALAM)]
    route = locations.snapshot.route
    assert route is not None
    assert route.matches(KL, SHAH_ALAM)


@pytest.mark.asyncio
async def test_unroutable_pair_leaves_route_absent(make_locations, router) -> None:
    router.unroutable.add((KL, PJ))
    locations = make_locations()

    locations.select_candidate(ORIGIN, KL_PLACE)
    locations.select_candidate(DESTINATION, PJ_PLACE)
    await locations.flush()

    assert locations.snapshot.route is None
    assert locations.snapshot.map_fit_bounds is not None


@pytest.mark.asyncio
async def test_device_location_uses_reverse_geocoded_name(make_locations, geocoder) -> None:
    geocoder.names[KL] = "Jalan Raja, Kuala Lumpur"
    locations = make_locations()

    await locations.use_device_location(ORIGIN, KL)

    origin = locations.snapshot.origin
    assert origin.text == "Jalan Raja, Kuala Lumpur"
    assert origin.coordinate == KL
    assert origin.phase is EndpointPhase.RESOLVED
    assert geocoder.search_calls == []


@pytest.mark.asyncio
async def test_device_location_falls_back_to_coordinate_text(make_locations, geocoder) -> None:
    geocoder.reverse_error = NetworkError("https://geocoder.test/reverse", "timed out")
    locations = make_locations()

    await locations.use_device_location(ORIGIN, KL)

    assert locations.snapshot.origin_text == "3.14120, 101.68650"
    assert locations.snapshot.origin_coordinate == KL


@pytest.mark.asyncio
async def test_hydrated_controller_is_read_only_and_skips_geocoding(
    make_locations, geocoder, router
) -> None:
    locations = make_locations()

    locations.hydrate("Kem Sungai Besi", KL, "Kem Batu Kentonmen", PJ)
    await locations.flush()

    assert locations.read_only is True
    assert locations.snapshot.origin.phase is EndpointPhase.RESOLVED
    assert geocoder.search_calls == []
    assert geocoder.reverse_calls == []
    assert router.calls == [(KL, PJ)]
    with pytest.raises(InvalidModeError):
        locations.set_text(ORIGIN, "Kem Terendak")
    with pytest.raises(InvalidModeError):
        locations.select_candidate(DESTINATION, SHAH_ALAM_PLACE)
    with pytest.raises(InvalidModeError):
        await locations.use_device_location(ORIGIN, SHAH_ALAM)


@pytest.mark.asyncio
async def test_hydrate_after_edit_is_rejected(make_locations) -> None:
    locations = make_locations()
    locations.set_text(ORIGIN, "Kem")

    with pytest.raises(InvalidModeError):
        locations.hydrate("A", KL, "B", PJ)
    await locations.aclose()


@pytest.mark.asyncio
async def test_unexpected_route_failure_is_logged(make_locations, router, caplog, monkeypatch) -> None:
    async def broken_route(origin, destination):
        raise RuntimeError("router exploded")

    monkeypatch.setattr(router, "route", broken_route)
    locations = make_locations()

    locations.select_candidate(ORIGIN, KL_PLACE)
    locations.select_candidate(DESTINATION, PJ_PLACE)
    await asyncio.sleep(0.01)

    assert locations.snapshot.route is None
    failures = [r for r in caplog.records if r.getMessage() == "Background lookup failed"]
    assert len(failures) == 1
    assert str(failures[0].exc_info[1]) == "router exploded"
