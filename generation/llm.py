"""LLM article generator using the Claude Code CLI."""

import json
import logging
import os
import re
import shutil
import subprocess
from collections.abc import Sequence
from typing import Any

from articles.errors import GenerationFailure
from articles.models import GeneratedContent, ImageReference
from config import CLAUDE_CLI, GENERATION_TIMEOUT, GENERATOR_MODEL
from generation.base import Generator
from generation.context import fetch_context
from generation.keywords import tag_text

logger = logging.getLogger(__name__)

MAX_TAGS = 5


def _extract_json_object(text: str) -> dict[str, Any]:
    """Extract a JSON object from text that may contain surrounding prose or markdown."""
    # Try direct parse first
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Try extracting from markdown code block
    m = re.search(r"```(?:json)?\s*\n(.*?)```", text, re.DOTALL)
    if m:
        try:
            parsed = json.loads(m.group(1).strip())
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    # Try finding a bare JSON object in the text
    m = re.search(r"\{[\s\S]*\}", text)
    if m:
        try:
            parsed = json.loads(m.group(0))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    raise json.JSONDecodeError("No JSON object found in response", text, 0)


_SYSTEM_PROMPT = """You are a blog author. Write one complete blog article on the topic below.

Respond with a JSON object with exactly these keys:
- "title": a compelling headline (string)
- "description": a one or two sentence summary for listings (string)
- "content": the full article body in Markdown (string)
- "tags": 1-5 short topical tags (list of strings)

Example response:
{"title": "Understanding AI Ethics", "description": "An exploration of ethical considerations in AI development.", "content": "Artificial intelligence is rapidly transforming our world...", "tags": ["AI", "Ethics"]}

Write the article in the language of the topic. Respond ONLY with the JSON object, no other text."""


def build_prompt(topic: str, context: str = "", images: Sequence[ImageReference] = ()) -> str:
    parts = [_SYSTEM_PROMPT, f"\nTopic: {topic}"]
    if context:
        parts.append(f"\nReference material (use it for facts, do not copy it):\n{context}")
    if images:
        listing = "\n".join(f"- {i.filename} ({i.original_name})" for i in images)
        parts.append(
            "\nThese images are attached to the article. Reference them in the content "
            f"with Markdown image syntax using the filename as the URL:\n{listing}"
        )
    return "\n".join(parts)


def _parse_content(data: dict[str, Any]) -> GeneratedContent:
    title = str(data.get("title") or "").strip()
    content = str(data.get("content") or "").strip()
    if not title or not content:
        raise GenerationFailure("LLM response is missing title or content")

    description = str(data.get("description") or "").strip()
    raw_tags = data.get("tags", [])
    tags: list[str] = []
    if isinstance(raw_tags, list):
        tags = [str(t).strip() for t in raw_tags if str(t).strip()]
    if not tags:
        tags = tag_text(title, content)

    return GeneratedContent(
        title=title,
        description=description,
        content=content,
        tags=tuple(dict.fromkeys(tags))[:MAX_TAGS],  # dedup, preserve order
    )


class LLMGenerator(Generator):
    """Generate articles by prompting the Claude Code CLI."""

    name = "claude"

    def __init__(
        self,
        model: str = GENERATOR_MODEL,
        timeout: float = GENERATION_TIMEOUT,
        cli: str = CLAUDE_CLI,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._cli_path = shutil.which(cli) or cli
        self._articles_generated = 0

    def generate(
        self,
        topic: str,
        additional_context_url: str | None = None,
        images: Sequence[ImageReference] = (),
    ) -> GeneratedContent:
        context = fetch_context(additional_context_url)
        prompt = build_prompt(topic, context, images)

        try:
            # Clear CLAUDECODE env var to allow nested CLI calls
            env = {k: v for k, v in os.environ.items() if k != "CLAUDECODE"}
            result = subprocess.run(
                [self._cli_path, "-p", prompt, "--output-format", "json", "--model", self.model],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            raise GenerationFailure(f"claude CLI timed out after {self.timeout:g}s") from None
        except OSError as e:
            raise GenerationFailure(f"claude CLI could not be started: {e}") from e

        if result.returncode != 0:
            logger.error("claude CLI failed: %s", result.stderr.strip())
            raise GenerationFailure(f"claude CLI exited with status {result.returncode}")

        try:
            # claude --output-format json wraps response in {"type":"result","result":"..."}
            outer = json.loads(result.stdout)
            text = outer.get("result", result.stdout) if isinstance(outer, dict) else result.stdout
            if isinstance(outer, dict) and outer.get("is_error"):
                raise GenerationFailure(f"claude CLI reported an error: {str(text)[:200]}")
            data = _extract_json_object(str(text).strip())
        except json.JSONDecodeError as e:
            logger.error("Failed to parse LLM response: %s", e)
            raise GenerationFailure("LLM response is not valid JSON") from e

        generated = _parse_content(data)
        self._articles_generated += 1
        logger.info("Generated %r (%d chars, tags=%s)", generated.title, len(generated.content), list(generated.tags))
        return generated

    @property
    def articles_generated(self) -> int:
        return self._articles_generated
