from __future__ import annotations

import logging
import os

from google import genai
from google.genai import types

from epistemic.prompts import RECOGNIZE_SYSTEM

logger = logging.getLogger(__name__)


def _env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val


def _is_model_not_found(err: Exception) -> bool:
    msg = str(err)
    return (
        "NOT_FOUND" in msg
        and ("was not found" in msg or "not found" in msg or "does not have access" in msg)
        and ("Publisher Model" in msg or "models/" in msg or "Call ListModels" in msg)
    )


class GeminiClient:
    """
    Supports two modes:
    - Vertex AI mode: GOOGLE_CLOUD_PROJECT + GOOGLE_CLOUD_LOCATION
    - API key mode (local/dev): GOOGLE_API_KEY
    """

    def __init__(self) -> None:
        # Users can override with GEMINI_MODEL env var (e.g., gemini-2.5-pro).
        self.model = _env("GEMINI_MODEL", "gemini-2.5-flash")

        api_key = _env("GOOGLE_API_KEY")
        project = _env("GOOGLE_CLOUD_PROJECT")
        location = _env("GOOGLE_CLOUD_LOCATION", "us-central1")

        if api_key:
            self.client = genai.Client(api_key=api_key)
        elif project:
            # Uses ADC (service account)
            self.client = genai.Client(vertexai=True, project=project, location=location)
        else:
            raise RuntimeError(
                "Missing config: set GOOGLE_API_KEY (local) or GOOGLE_CLOUD_PROJECT (+ optional GOOGLE_CLOUD_LOCATION) (Vertex)."
            )

    def _candidates(self) -> list[str]:
        out: list[str] = []
        for m in [self.model, "gemini-2.5-flash", "gemini-2.0-flash", "gemini-2.5-pro"]:
            if m and m not in out:
                out.append(m)
        return out

    async def _generate(
        self, contents: list[types.Content], config: types.GenerateContentConfig | None = None
    ) -> types.GenerateContentResponse:
        last_err: Exception | None = None
        for m in self._candidates():
            try:
                return await self.client.aio.models.generate_content(model=m, contents=contents, config=config)
            except Exception as e:
                last_err = e
                # Only fall through to the next model on lookup/access failures.
                if _is_model_not_found(e):
                    logger.info("Model %s unavailable, trying next candidate", m)
                    continue
                raise
        raise RuntimeError(f"All model candidates failed. Last error: {last_err}")

    async def generate_text(self, prompt: str) -> str | None:
        """Returns the model's text, or None when the response carries no text."""
        resp = await self._generate(
            [types.Content(role="user", parts=[types.Part(text=prompt)])],
        )
        return resp.text

    async def extract_text(self, image: bytes, mime_type: str) -> str:
        resp = await self._generate(
            [
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_bytes(data=image, mime_type=mime_type),
                        types.Part(text="Transcribe the text on this page."),
                    ],
                )
            ],
            types.GenerateContentConfig(system_instruction=RECOGNIZE_SYSTEM, temperature=0.0),
        )
        return (resp.text or "").strip()
