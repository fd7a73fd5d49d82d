from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from epistemic.prompts import NEEDS_SELECTION_MESSAGE, PromptKind, build_prompt
from epistemic.schemas import IDLE, PENDING, ResponseState, StudySnapshot, ToggleSet

logger = logging.getLogger(__name__)

EMPTY_RESULT_MESSAGE = "Sorry, I could not process that.\nPlease try again."
FAILURE_PREFIX = "Something went wrong! "

Generator = Callable[[str], Awaitable[str | None]]
Listener = Callable[[StudySnapshot], None]


@dataclass(frozen=True)
class PendingRequest:
    instruction: str
    seq: int


class StudyController:
    """
    State for one study screen: topic, category toggles, and the outcome of the
    most recent generation request.

    Overlapping submits are not serialized: whichever call completes last
    writes the response, even if it was issued first. Pass
    discard_stale_results=True to drop completions from superseded submits.
    clear() never cancels an in-flight call.
    """

    def __init__(self, generator: Generator, *, discard_stale_results: bool = False) -> None:
        self._generate = generator
        self._discard_stale = discard_stale_results

        self._topic = ""
        self._toggles = ToggleSet()
        self._response = IDLE
        self._busy = False
        self._recognized = ""

        self._seq = 0
        self._listeners: list[Listener] = []

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def toggles(self) -> ToggleSet:
        return self._toggles

    @property
    def response(self) -> ResponseState:
        return self._response

    @property
    def busy(self) -> bool:
        return self._busy

    def snapshot(self) -> StudySnapshot:
        return StudySnapshot(
            topic=self._topic,
            toggles=self._toggles,
            response=self._response,
            busy=self._busy,
            recognizedText=self._recognized,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def set_topic(self, topic: str) -> None:
        self._topic = topic
        self._notify()

    def set_toggles(self, toggles: ToggleSet) -> None:
        self._toggles = toggles
        self._notify()

    def clear(self) -> None:
        self._toggles = ToggleSet()
        self._topic = ""
        self._recognized = ""
        self._response = IDLE
        self._busy = False
        # Only consulted when discarding stale results.
        self._seq += 1
        self._notify()

    def begin(self, topic: str, toggles: ToggleSet) -> PendingRequest | None:
        """
        Synchronous half of submit: validate, flip to pending, and return the
        request to complete. Returns None when nothing is left to send.
        """
        built = build_prompt(topic, toggles)
        if built.kind is PromptKind.noop:
            return None

        self._seq += 1
        self._response = PENDING
        self._busy = True

        if built.kind is PromptKind.needs_selection:
            self._response = ResponseState.failed(NEEDS_SELECTION_MESSAGE)
            self._busy = False
            self._notify()
            return None

        self._notify()
        return PendingRequest(instruction=built.instruction, seq=self._seq)

    async def complete(self, request: PendingRequest) -> None:
        try:
            text = await self._generate(request.instruction)
        except Exception as e:
            logger.warning("Generation request %d failed: %s", request.seq, e)
            result = ResponseState.failed(FAILURE_PREFIX + (str(e) or type(e).__name__))
        else:
            if text:
                result = ResponseState.succeeded(text)
            else:
                result = ResponseState.failed(EMPTY_RESULT_MESSAGE)

        if self._discard_stale and request.seq != self._seq:
            logger.info("Dropping stale result for request %d (latest is %d)", request.seq, self._seq)
            return

        self._response = result
        self._busy = False
        self._notify()

    async def submit(self, topic: str, toggles: ToggleSet) -> None:
        request = self.begin(topic, toggles)
        if request is not None:
            await self.complete(request)

    def receive_text(self, text: str) -> PendingRequest | None:
        # Recognized text replaces the topic and is submitted without confirmation.
        self._recognized = text
        self._topic = text
        self._notify()
        return self.begin(text, self._toggles)

    async def on_text_recognized(self, text: str) -> None:
        request = self.receive_text(text)
        if request is not None:
            await self.complete(request)
