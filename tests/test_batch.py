import threading

from seql.batch import BatchOrchestrator, Priority, generate_batch
from seql.cache import IdentityCache
from seql.tree import h


def _catalogue(count=200):
    items = [h("button", {"data-testid": f"item-{index}"}, f"Item {index}") for index in range(count)]
    body = h("body", None, *items)
    h("html", None, body)
    return body, items


def test_batch_processes_every_semantic_node(provider):
    body, items = _catalogue(20)
    result = BatchOrchestrator(provider).run(body)
    assert result.stats.total_elements == 20
    assert result.stats.successful == 20
    assert result.stats.failed == 0
    assert not result.stats.cancelled
    assert [item.node for item in result.results] == items
    assert all(item.generation_ms >= 0 for item in result.results)


def test_cancel_mid_run_returns_partial_results(provider):
    body, _ = _catalogue(200)
    cancel = threading.Event()
    progress = []

    def on_progress(done, total):
        progress.append((done, total))
        if done >= 100:
            cancel.set()

    result = BatchOrchestrator(provider, on_progress=on_progress, progress_interval=50, cancel=cancel).run(body)

    assert result.stats.cancelled
    assert result.stats.planned == 200
    assert result.stats.total_elements == 100
    assert len(result.results) + len(result.failed) + result.stats.skipped == 100
    assert progress == [(50, 200), (100, 200), (100, 200)]


def test_priority_order_and_limit(provider):
    plain = h("a", {"href": "/plain"}, "Plain")
    marked = h("button", {"aria-label": "Close"}, "x")
    with_id = h("input", {"id": "email", "name": "email"})
    body = h("body", None, plain, marked, with_id, h("script", None, "1"), h("div", None, "wrapper"))
    h("html", None, body)
    orchestrator = BatchOrchestrator(provider, limit=2)

    assert orchestrator.priority(with_id) is Priority.HIGH
    assert orchestrator.priority(marked) is Priority.MEDIUM
    assert orchestrator.priority(plain) is Priority.LOW
    assert orchestrator.plan(provider.iter_descendants(body)) == [with_id, marked]

    everything = BatchOrchestrator(provider, skip_non_semantic=False).plan(provider.iter_descendants(body))
    assert [node.tag for node in everything] == ["input", "button", "a", "div"]


def test_shared_cache_serves_repeat_runs(provider):
    body, items = _catalogue(5)
    cache = IdentityCache()
    first = generate_batch(provider, body, cache=cache)
    second = generate_batch(provider, body, cache=cache)
    assert [item.identity for item in second.results] == [item.identity for item in first.results]
    assert all(item.generation_ms == 0.0 for item in second.results)
    assert second.stats.cache_hit_rate > 0


def test_failures_are_collected(provider, monkeypatch):
    body, items = _catalogue(3)
    orchestrator = BatchOrchestrator(provider)
    real = orchestrator.generator.generate

    def flaky(node):
        if node is items[1]:
            raise RuntimeError("boom")
        return real(node)

    monkeypatch.setattr(orchestrator.generator, "generate", flaky)
    result = orchestrator.run(body)
    assert result.stats.successful == 2
    assert [failure.error for failure in result.failed] == ["boom"]
