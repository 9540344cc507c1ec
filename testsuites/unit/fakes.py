"""
Fakes for the self-healing locator unit tests.

Nothing here launches a browser or talks to a model backend.
"""

from __future__ import annotations

import threading
import time
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional


SUBMIT_SNAPSHOT: Dict[str, Any] = {
    "nodes": [
        {
            "nodeId": "1",
            "role": {"type": "role", "value": "RootWebArea"},
            "name": {"type": "computedString", "value": "Login"},
            "childIds": ["2", "3"],
        },
        {"nodeId": "2", "role": {"type": "role", "value": "generic"}, "childIds": ["4"]},
        {
            "nodeId": "3",
            "role": {"type": "role", "value": "StaticText"},
            "name": {"type": "computedString", "value": "Welcome back"},
            "childIds": [],
        },
        {
            "nodeId": "4",
            "role": {"type": "role", "value": "button"},
            "name": {"type": "computedString", "value": "Submit"},
            "childIds": [],
        },
    ]
}

SUBMIT_HTML = ["<button data-testid=\"submit\">Submit</button>"]

HEALED_SUBMIT = "button[data-testid='submit']"
HEALED_SUBMIT_JSON = '{"locator": "button[data-testid=\'submit\']", "strategy": "CSS"}'


def nested_snapshot(depth: int, name: str = "Submit") -> Dict[str, Any]:
    """A chain of `depth` generic containers around a single button."""
    nodes: List[Dict[str, Any]] = [
        {"nodeId": str(i), "role": {"type": "role", "value": "generic"}, "childIds": [str(i + 1)]}
        for i in range(depth)
    ]
    nodes.append({
        "nodeId": str(depth),
        "role": {"type": "role", "value": "button"},
        "name": {"type": "computedString", "value": name},
        "childIds": [],
    })
    return {"nodes": nodes}


class FakeInspector:
    """
    In-memory PageInspector.

    `live` holds the selector texts that currently match an element.
    `snapshot` / `html` may be exceptions, which are raised when requested.
    """

    def __init__(
        self,
        live: Iterable[str] = (),
        snapshot: Any = None,
        html: Any = None,
    ) -> None:
        self.live = set(live)
        self.snapshot = SUBMIT_SNAPSHOT if snapshot is None else snapshot
        self.html = list(SUBMIT_HTML) if html is None else html
        self.probes: List[tuple] = []
        self.snapshot_calls = 0
        self.html_selectors: List[str] = []

    def accessibility_snapshot(self) -> Any:
        self.snapshot_calls += 1
        if isinstance(self.snapshot, Exception):
            raise self.snapshot
        return self.snapshot

    def outer_html(self, selector: str) -> List[str]:
        self.html_selectors.append(selector)
        if isinstance(self.html, Exception):
            raise self.html
        return self.html

    def probe(self, locator, timeout_ms: int) -> bool:
        self.probes.append((locator.value, timeout_ms))
        return locator.value in self.live


def make_completion(
    content: Optional[str],
    prompt_tokens: int = 120,
    completion_tokens: int = 30,
    finish_reason: str = "stop",
) -> SimpleNamespace:
    """Shape of an openai ChatCompletion as far as InferenceClient reads it."""
    return SimpleNamespace(
        choices=[
            SimpleNamespace(
                message=SimpleNamespace(content=content),
                finish_reason=finish_reason,
            )
        ],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


class FakeCompletions:
    def __init__(self, responses: List[Any], delay: float = 0.0) -> None:
        self.responses = responses
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def create(self, **kwargs: Any) -> Any:
        with self._lock:
            self.calls.append(kwargs)
            index = min(len(self.calls), len(self.responses)) - 1
        if self.delay:
            time.sleep(self.delay)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str) or response is None:
            return make_completion(response)
        return response


class FakeBackend:
    """
    Stand-in for `openai.OpenAI` exposing `chat.completions.create`.

    Each call consumes the next response; the last one repeats. A response
    may be content text, a prepared completion, or an exception to raise.
    """

    def __init__(self, *responses: Any, delay: float = 0.0) -> None:
        self.completions = FakeCompletions(list(responses) or [None], delay=delay)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.completions.calls


class DummyConfig:
    def __init__(self, data):
        self.data = data

    def get(self, key, default=None):
        return self.data.get(key, default)
