import dataclasses

import pytest

from testsuites.ui_testing.framework.errors import (
    ElementNotFoundError,
    LocatorValidationError,
)
from testsuites.ui_testing.framework.inference_client import InferenceClient
from testsuites.ui_testing.framework.locator_cache import LocatorCache
from testsuites.ui_testing.framework.locator_resolver import (
    LocatorResolver,
    ResolutionOutcome,
)
from testsuites.ui_testing.framework.locators import CachedLocatorResult, ElementLocator
from testsuites.ui_testing.framework.smart_locator import SmartLocator, ValidationGate
from testsuites.unit.fakes import (
    HEALED_SUBMIT,
    HEALED_SUBMIT_JSON,
    FakeBackend,
    FakeInspector,
)


class FakeElement:
    def __init__(self, selector):
        self.selector = selector
        self.actions = []

    def click(self, **kwargs):
        self.actions.append(("click", kwargs))

    def fill(self, value, **kwargs):
        self.actions.append(("fill", value))

    def text_content(self):
        return "Submit"


class FakePage:
    def __init__(self):
        self.elements = []

    def locator(self, selector):
        element = FakeElement(selector)
        self.elements.append(element)
        return element


def _smart_locator(inspector, settings, backend=None):
    client = InferenceClient(backend, "gpt-test") if backend is not None else None
    resolver = LocatorResolver(
        inspector=inspector,
        cache=LocatorCache(settings.cache_path),
        client=client,
        settings=settings,
        gate=ValidationGate(inspector, settings),
    )
    return SmartLocator(FakePage(), resolver, wait_timeout_ms=1000, inspector=inspector)


# ================================================================================
# ValidationGate
# ================================================================================

def test_gate_accepts_live_candidate(settings):
    inspector = FakeInspector(live={HEALED_SUBMIT})
    gate = ValidationGate(inspector, settings)

    locator = gate.verify(
        ElementLocator.css("#submit"),
        CachedLocatorResult("#submit", HEALED_SUBMIT, "CSS"),
    )

    assert locator == ElementLocator.css(HEALED_SUBMIT)
    assert inspector.probes == [(HEALED_SUBMIT, settings.probe_timeout_ms)]


@pytest.mark.parametrize(
    "generated, strategy, reason",
    [
        ("", "CSS", "empty"),
        (HEALED_SUBMIT, "", "empty"),
        (HEALED_SUBMIT, "ID", "Unexpected locator strategy"),
        ("#nowhere", "CSS", "does not match any element"),
    ],
)
def test_gate_rejects_unusable_candidates(settings, generated, strategy, reason):
    gate = ValidationGate(FakeInspector(live={HEALED_SUBMIT}), settings)

    with pytest.raises(LocatorValidationError) as exc_info:
        gate.verify(
            ElementLocator.css("#submit"),
            CachedLocatorResult("#submit", generated, strategy),
        )

    assert reason in exc_info.value.reason


def test_gate_rejects_when_substitution_disabled(settings, log_messages):
    settings = dataclasses.replace(settings, run_with_smart_locator=False)
    gate = ValidationGate(FakeInspector(live={HEALED_SUBMIT}), settings)

    with pytest.raises(LocatorValidationError) as exc_info:
        gate.verify(
            ElementLocator.css("#submit"),
            CachedLocatorResult("#submit", HEALED_SUBMIT, "CSS"),
        )

    message = str(exc_info.value)
    assert "Old: #submit" in message
    assert f"New: {HEALED_SUBMIT}" in message
    assert any("Valid smart locator generated" in m for m in log_messages)


# ================================================================================
# SmartLocator
# ================================================================================

def test_existing_element_is_used_as_is(settings):
    inspector = FakeInspector(live={"#submit"})
    backend = FakeBackend(HEALED_SUBMIT_JSON)
    smart = _smart_locator(inspector, settings, backend)

    smart.click("#submit")

    (element,) = smart.page.elements
    assert element.selector == "css=#submit"
    assert element.actions == [("click", {})]
    assert backend.calls == []
    assert smart.healing_records == []


def test_click_uses_healed_locator_and_records_it(settings):
    inspector = FakeInspector(live={HEALED_SUBMIT})
    smart = _smart_locator(inspector, settings, FakeBackend(HEALED_SUBMIT_JSON))

    smart.click("#submit", element_name="Submit button")

    (element,) = smart.page.elements
    assert element.selector == f"css={HEALED_SUBMIT}"
    (record,) = smart.healing_records
    assert record.element_name == "Submit button"
    assert record.original == "#submit"
    assert record.healed == HEALED_SUBMIT
    assert record.outcome == ResolutionOutcome.HEALED

    report = smart.get_health_report()
    assert "Failed original: #submit" in report
    assert HEALED_SUBMIT in report


def test_health_report_without_healing():
    smart = SmartLocator(FakePage(), inspector=FakeInspector())

    assert "No maintenance needed" in smart.get_health_report()


def test_missing_element_without_resolver_raises_not_found():
    smart = SmartLocator(FakePage(), wait_timeout_ms=2500, inspector=FakeInspector())

    with pytest.raises(ElementNotFoundError) as exc_info:
        smart.resolve("#submit")

    assert "'#submit' did not appear in '2.5' seconds" in str(exc_info.value)


def test_failed_healing_raises_not_found(settings):
    settings = dataclasses.replace(settings, use_smart_locator=False)
    smart = _smart_locator(FakeInspector(live={HEALED_SUBMIT}), settings, FakeBackend(HEALED_SUBMIT_JSON))

    with pytest.raises(ElementNotFoundError):
        smart.click("#submit")

    assert smart.page.elements == []


def test_rejected_healing_is_not_reported_as_missing(settings):
    settings = dataclasses.replace(settings, run_with_smart_locator=False)
    smart = _smart_locator(FakeInspector(live={HEALED_SUBMIT}), settings, FakeBackend(HEALED_SUBMIT_JSON))

    with pytest.raises(LocatorValidationError):
        smart.exists("#submit")


def test_exists_is_false_for_missing_element():
    smart = SmartLocator(FakePage(), inspector=FakeInspector())

    assert smart.exists("#submit") is False


def test_fill_ignores_blank_values(settings):
    smart = _smart_locator(FakeInspector(live={"#name"}), settings)

    smart.fill("#name", "   ")
    smart.fill("#name", "Ada")

    (element,) = smart.page.elements
    assert element.actions == [("fill", "Ada")]


def test_get_text_reads_resolved_element(settings):
    smart = _smart_locator(FakeInspector(live={"#title"}), settings)

    assert smart.get_text("#title") == "Submit"


def test_wait_till_exists_appends_custom_message():
    smart = SmartLocator(FakePage(), inspector=FakeInspector())

    with pytest.raises(ElementNotFoundError, match="Login form never rendered"):
        smart.wait_till_exists("#login", custom_message="Login form never rendered")


class LateInspector(FakeInspector):
    """The element renders only after the first wait has timed out."""

    def probe(self, locator, timeout_ms):
        found = super().probe(locator, timeout_ms)
        self.live.add("#submit")
        return found


def test_element_appearing_late_keeps_original_locator(settings):
    inspector = LateInspector()
    backend = FakeBackend(HEALED_SUBMIT_JSON)
    smart = _smart_locator(inspector, settings, backend)

    locator = smart.resolve("#submit")

    assert locator == ElementLocator.css("#submit")
    assert [value for value, _ in inspector.probes] == ["#submit", "#submit"]
    assert smart.healing_records == []
    assert backend.calls == []
