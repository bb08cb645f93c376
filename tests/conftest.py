"""Shared fixtures: a small page in the pkg.go.dev documentation layout."""

from __future__ import annotations

from collections import deque

import pytest

from docdeck.output.anki import AddNoteResult, AddNoteStatus


SAMPLE_URL = "https://pkg.go.dev/example/sub"
SAMPLE_BUCKET = "Root::pkg::example::sub"

SAMPLE_PAGE = """<!DOCTYPE html>
<html>
<head><title>sub</title></head>
<body>
<section class="Documentation-constants">
<h3>Constants</h3>
<div class="Documentation-declaration"><pre>const <span id="MaxSize" data-kind="constant">MaxSize</span> = 10</pre></div>
<p>MaxSize is the largest size.</p>
<p>See <a href="#Foo">Foo</a>.</p>
<h4>Unrelated heading</h4>
</section>
<section class="Documentation-variables">
<div class="Documentation-declaration"><pre>var <span id="ErrShort" data-kind="variable">ErrShort</span> = errors.New("short write")</pre></div>
<!-- spacer -->
<p>ErrShort means a write accepted fewer bytes.</p>
<div class="Documentation-declaration"><pre>var <span id="Foo" data-kind="variable">Foo</span> int</pre></div>
</section>
<div class="Documentation-function">
<h4 class="Documentation-functionHeader" id="Copy">func <a class="Documentation-source" href="/src/io/io.go#L1">Copy</a></h4>
<div class="Documentation-declaration"><pre>func Copy(dst Writer, src Reader) (int64, error)</pre></div>
<p>Copy copies from src to dst.</p>
</div>
<div class="Documentation-function">
<h4 class="Documentation-functionHeader" id="Pipe">func <a class="Documentation-source" href="/src/io/pipe.go#L9">Pipe</a></h4>
<p>Pipe creates a synchronous in-memory pipe.</p>
</div>
<div class="Documentation-type">
<h4 class="Documentation-typeHeader" id="Reader">type <a class="Documentation-source" href="https://cs.opensource.google/go/io.go#L83">Reader</a></h4>
<p>Reader is the interface that wraps Read.</p>
</div>
</body>
</html>
"""

MISMATCHED_PAGE = """<html><body>
<div class="Documentation-function">
<h4 class="Documentation-functionHeader">func <a class="Documentation-source" href="/a">A</a></h4>
</div>
<div class="Documentation-function"><p>header went missing</p></div>
</body></html>
"""


class FakeDestination:
    """In-memory note service.

    `outcomes` is consumed one entry per add_note call; once it runs out
    every call succeeds.
    """

    def __init__(self, buckets=(), outcomes=()):
        self.buckets = set(buckets)
        self.create_calls: list[str] = []
        self.notes: list[tuple[str, str, str, str]] = []
        self.add_calls = 0
        self.outcomes = deque(outcomes)

    def list_buckets(self) -> set[str]:
        return set(self.buckets)

    def create_bucket(self, name: str) -> None:
        self.create_calls.append(name)
        self.buckets.add(name)

    def add_note(self, bucket, front, back, implementation) -> AddNoteResult:
        self.add_calls += 1
        result = self.outcomes.popleft() if self.outcomes else AddNoteResult(AddNoteStatus.OK)
        if result.status is AddNoteStatus.OK:
            self.notes.append((bucket, front, back, implementation))
        return result


@pytest.fixture
def sample_page() -> str:
    return SAMPLE_PAGE


@pytest.fixture
def mismatched_page() -> str:
    return MISMATCHED_PAGE
