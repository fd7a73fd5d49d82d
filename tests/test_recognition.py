"""Scan session: payload decoding and hand-off to the completion handler."""
from __future__ import annotations

import asyncio
import base64
import threading
import time

import pytest

from epistemic.controller import StudyController
from epistemic.memory import SessionStore
from epistemic.recognition import ScanError, ScanSession, decode_image
from epistemic.schemas import ResponseState, ToggleSet


def test_decode_image_accepts_data_url():
    payload = base64.b64encode(b"png-bytes").decode()
    assert decode_image(payload) == b"png-bytes"
    assert decode_image(f"data:image/png;base64,{payload}") == b"png-bytes"


@pytest.mark.parametrize("payload", ["not base64!!", ""])
def test_decode_image_rejects_bad_payload(payload):
    with pytest.raises(ScanError):
        decode_image(payload)


def test_scan_delivers_text_to_handler():
    received: list[str] = []

    async def recognizer(image: bytes, mime: str) -> str:
        assert image == b"page"
        assert mime == "image/png"
        return "Chapter 3: Plate tectonics"

    session = ScanSession(recognizer, received.append)
    asyncio.run(session.scan(b"page", "IMAGE/PNG"))

    assert received == ["Chapter 3: Plate tectonics"]


def test_scan_rejects_unsupported_type():
    async def recognizer(image: bytes, mime: str) -> str:
        raise AssertionError("should not be called")

    session = ScanSession(recognizer, lambda text: None)
    with pytest.raises(ScanError):
        asyncio.run(session.scan(b"%PDF", "application/pdf"))


def test_scan_auto_submits_through_controller():
    async def recognizer(image: bytes, mime: str) -> str:
        return "Plate tectonics"

    async def generator(prompt: str) -> str:
        return "Summary of plates"

    controller = StudyController(generator)
    controller.set_toggles(ToggleSet(summary=True))
    session = ScanSession(recognizer, controller.on_text_recognized)

    asyncio.run(session.scan_base64(base64.b64encode(b"img").decode(), "image/jpeg"))

    assert controller.topic == "Plate tectonics"
    assert controller.response == ResponseState.succeeded("Summary of plates")


def test_session_store_reuses_controller():
    created: list[str] = []

    def factory(session_id: str) -> StudyController:
        created.append(session_id)
        return StudyController(lambda prompt: None)

    store = SessionStore(factory, maxsize=10, ttl_seconds=60)
    first = store.get_or_create("s1")
    assert store.get_or_create("s1") is first
    assert store.get("missing") is None
    assert created == ["s1"]
    assert len(store) == 1


def test_decode_image_accepts_wrapped_lines():
    payload = base64.encodebytes(b"x" * 200).decode()
    assert "\n" in payload
    assert decode_image(payload) == b"x" * 200
    assert decode_image("data:image/jpeg;base64,\r\n" + payload) == b"x" * 200


def test_session_store_creates_one_controller_under_contention():
    barrier = threading.Barrier(2)
    created: list[StudyController] = []

    def slow_factory(session_id: str) -> StudyController:
        time.sleep(0.05)
        controller = StudyController(lambda prompt: None)
        created.append(controller)
        return controller

    store = SessionStore(slow_factory)
    results: list[StudyController] = []

    def worker() -> None:
        barrier.wait()
        results.append(store.get_or_create("s1"))

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 1
    assert results[0] is results[1]
