import asyncio

import pytest
from conftest import FakePage, FakeVision, make_handle, make_png

from adslot_scanner.classifier import ClassificationOutcome, OutcomeKind, classify, evaluate_slot
from adslot_scanner.errors import ClassificationParseError, ClassificationServiceError
from adslot_scanner.models import ANALYSIS_FAILED, NOT_AN_AD, UNKNOWN, AdSlotCandidate, AdType, Geometry, SlotLocation
from adslot_scanner.vision import BrandLabel

SOURCE = "https://www.infobae.com/"


def _candidate(x: float = 0.0) -> AdSlotCandidate:
    return AdSlotCandidate(
        geometry=Geometry(x=x, y=120.4, width=300.4, height=249.6),
        visibility_ok=True,
        location=SlotLocation.HEADER_TOP,
        ad_type=AdType.MEDIUM_RECTANGLE,
    )


@pytest.mark.asyncio
async def test_classify_returns_label_and_clips_screenshot(handle, page):
    vision = FakeVision(default=BrandLabel(brand="Coca-Cola", product="Coca-Cola Zero"))
    result = await classify(handle, _candidate(), SOURCE, vision=vision)
    assert (result.brand, result.product) == ("Coca-Cola", "Coca-Cola Zero")
    assert result.source_url == SOURCE
    assert result.ad_type == AdType.MEDIUM_RECTANGLE
    (call,) = page.screenshot_calls
    assert call["clip"] == {"x": 0.0, "y": 120.4, "width": 300.0, "height": 250.0}
    assert call["type"] == "png"


@pytest.mark.asyncio
async def test_service_error_degrades_to_analysis_failed(handle):
    vision = FakeVision(default=ClassificationServiceError("quota exceeded"))
    outcome = await evaluate_slot(handle, _candidate(), SOURCE, vision=vision)
    assert outcome.kind is OutcomeKind.SERVICE_FAILED
    assert (outcome.brand, outcome.product) == (ANALYSIS_FAILED, ANALYSIS_FAILED)
    assert "quota" in outcome.error


@pytest.mark.asyncio
async def test_parse_error_degrades_to_unknown(handle):
    vision = FakeVision(default=ClassificationParseError("response is not JSON", raw="I think it's Nike"))
    result = await classify(handle, _candidate(), SOURCE, vision=vision)
    assert (result.brand, result.product) == (UNKNOWN, UNKNOWN)


@pytest.mark.asyncio
async def test_unexpected_exception_never_escapes(handle):
    vision = FakeVision(default=KeyError("candidates"))
    result = await classify(handle, _candidate(), SOURCE, vision=vision)
    assert result.brand == ANALYSIS_FAILED


@pytest.mark.asyncio
async def test_screenshot_failure_skips_inference(handle, page):
    page.screenshot_error = RuntimeError("Target closed")
    vision = FakeVision()
    outcome = await evaluate_slot(handle, _candidate(), SOURCE, vision=vision)
    assert outcome.kind is OutcomeKind.SERVICE_FAILED
    assert vision.calls == []


@pytest.mark.asyncio
async def test_deadline_counts_as_service_failure(handle):
    async def slow():
        await asyncio.sleep(5)

    vision = FakeVision(default=slow)
    outcome = await evaluate_slot(handle, _candidate(), SOURCE, vision=vision, timeout_s=0.01)
    assert outcome.kind is OutcomeKind.SERVICE_FAILED
    assert "deadline" in outcome.error


@pytest.mark.asyncio
async def test_blank_capture_is_not_an_ad_without_inference():
    page = FakePage()

    async def solid(**kwargs):
        return make_png(solid=True)

    page.screenshot = solid
    vision = FakeVision()
    result = await classify(make_handle(page), _candidate(), SOURCE, vision=vision)
    assert (result.brand, result.product) == (NOT_AN_AD, NOT_AN_AD)
    assert vision.calls == []


@pytest.mark.asyncio
async def test_blank_short_circuit_can_be_disabled():
    page = FakePage()

    async def solid(**kwargs):
        return make_png(solid=True)

    page.screenshot = solid
    vision = FakeVision(default=BrandLabel(brand=NOT_AN_AD, product=NOT_AN_AD))
    await classify(make_handle(page), _candidate(), SOURCE, vision=vision, skip_blank=False)
    assert len(vision.calls) == 1


def test_outcome_constructors_use_failure_vocabulary():
    assert ClassificationOutcome.unparseable("x").brand == UNKNOWN
    assert ClassificationOutcome.service_failed("x").product == ANALYSIS_FAILED
    assert ClassificationOutcome.classified("Nike", "Air Max").kind is OutcomeKind.CLASSIFIED


@pytest.mark.asyncio
async def test_non_positive_deadline_means_no_deadline(handle):
    vision = FakeVision(default=BrandLabel(brand="Quilmes", product="Cerveza"))
    outcome = await evaluate_slot(handle, _candidate(), SOURCE, vision=vision, timeout_s=-1)
    assert outcome.kind is OutcomeKind.CLASSIFIED
    assert outcome.brand == "Quilmes"
