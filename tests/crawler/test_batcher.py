import asyncio
import threading
from unittest.mock import patch

import httpx

from summon.config.settings import SummonSettings
from summon.crawler.batcher import CandidateFetchBatcher
from summon.crawler.fetcher import build_client


def run_batch(handler, urls, config=None, inspect=None):
    config = config or SummonSettings()

    async def run():
        async with build_client(config, httpx.MockTransport(handler)) as client:
            batcher = CandidateFetchBatcher(client, config)
            if inspect:
                inspect(batcher)
            return await batcher.fetch_all(urls)
    return asyncio.run(run())


def test_partial_failures_do_not_abort_batch(png):
    def handler(request):
        path = request.url.path
        if path == "/down.png":
            raise httpx.ConnectError("connection reset", request=request)
        if path == "/missing.png":
            return httpx.Response(404)
        if path == "/text.png":
            return httpx.Response(200, content=b"not an image" * 1000)
        return httpx.Response(200, content=png(300, 200))

    urls = [
        "http://img.example.com/a.png",
        "http://img.example.com/down.png",
        "http://img.example.com/missing.png",
        "http://img.example.com/text.png",
        "http://img.example.com/b.png",
    ]
    candidates = run_batch(handler, urls)

    assert sorted(c.source_url for c in candidates) == [
        "http://img.example.com/a.png",
        "http://img.example.com/b.png",
    ]
    assert all((c.width, c.height) == (300, 200) for c in candidates)


def test_small_declared_length_skips_decoding(png):
    body = png(300, 200, pad_to=2000)
    assert len(body) == 2000

    def handler(request):
        return httpx.Response(200, content=body)

    with patch("summon.crawler.batcher.decode_dimensions") as decode:
        candidates = run_batch(handler, ["http://img.example.com/small.png"])

    assert candidates == []
    decode.assert_not_called()


def test_missing_content_length_still_decodes(png):
    body = png(120, 90, pad_to=0)

    def handler(request):
        return httpx.Response(200, stream=httpx.ByteStream(body))

    candidates = run_batch(handler, ["http://img.example.com/chunked.png"])

    assert len(candidates) == 1
    assert candidates[0].width == 120
    assert candidates[0].content_length == len(body)


def test_candidate_uses_final_url_after_redirect(png):
    def handler(request):
        if request.url.path == "/old.png":
            return httpx.Response(302, headers={"location": "http://cdn.example.com/new.png"})
        return httpx.Response(200, content=png(400, 300))

    candidates = run_batch(handler, ["http://img.example.com/old.png"])

    assert [c.source_url for c in candidates] == ["http://cdn.example.com/new.png"]
    assert candidates[0].area == 120000
    assert candidates[0].content_length == 8192


def test_transfer_width_bounds_requests_in_flight(png):
    body = png(100, 100)
    state = {"in_flight": 0, "peak": 0}

    async def handler(request):
        state["in_flight"] += 1
        state["peak"] = max(state["peak"], state["in_flight"])
        await asyncio.sleep(0.01)
        state["in_flight"] -= 1
        return httpx.Response(200, content=body)

    config = SummonSettings(TRANSFER_WIDTH=2)
    urls = [f"http://img.example.com/{i}.png" for i in range(6)]
    candidates = run_batch(handler, urls, config)

    assert len(candidates) == 6
    assert state["peak"] <= 2


def test_results_are_flushed_in_groups(png):
    body = png(100, 100)
    flushed = []

    def handler(request):
        return httpx.Response(200, content=body)

    def inspect(batcher):
        original = batcher._flush

        def recording_flush(group):
            flushed.append(len(group))
            return original(group)
        batcher._flush = recording_flush

    config = SummonSettings(AUTO_FLUSH_AT=2)
    urls = [f"http://img.example.com/{i}.png" for i in range(5)]
    candidates = run_batch(handler, urls, config, inspect=inspect)

    assert len(candidates) == 5
    assert flushed == [2, 2, 1]


def test_candidate_cap_limits_requests(png):
    requested = []
    body = png(100, 100)

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, content=body)

    config = SummonSettings(MAX_CANDIDATES=2)
    urls = [f"http://img.example.com/{i}.png" for i in range(3)]
    run_batch(handler, urls, config)

    assert sorted(requested) == urls[:2]


def test_empty_input():
    def handler(request):
        raise AssertionError("no request expected")

    assert run_batch(handler, []) == []


def test_candidates_keep_document_order_whatever_finishes_first(png):
    body = png(100, 60)
    urls = [f"http://img.example.com/{name}.png" for name in ("a", "b", "c")]

    def handler_with_delays(delays):
        async def handler(request):
            await asyncio.sleep(delays[request.url.path])
            return httpx.Response(200, content=body)
        return handler

    config = SummonSettings(TRANSFER_WIDTH=3)
    slow_first = run_batch(handler_with_delays({"/a.png": 0.03, "/b.png": 0.02, "/c.png": 0.0}), urls, config)
    fast_first = run_batch(handler_with_delays({"/a.png": 0.0, "/b.png": 0.02, "/c.png": 0.03}), urls, config)

    assert [c.source_url for c in slow_first] == urls
    assert [c.source_url for c in fast_first] == urls


def test_decoding_runs_off_the_event_loop_thread(png):
    threads = []

    def fake_decode(fp, url=""):
        threads.append(threading.get_ident())
        return 100, 100

    def handler(request):
        return httpx.Response(200, content=png(100, 100))

    with patch("summon.crawler.batcher.decode_dimensions", side_effect=fake_decode):
        candidates = run_batch(handler, ["http://img.example.com/a.png"])

    assert len(candidates) == 1
    assert threads and threads[0] != threading.get_ident()
