"""
README synthesizer.

Picks a Gemini model, turns the collected repository data into a single
instruction prompt and returns the generated Markdown.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from readmegen.errors import ConfigurationError, NoModelAvailable
from readmegen.gemini_client import GeminiClient

logger = logging.getLogger("readmegen.synthesizer")

GENERATE_METHOD = "generateContent"
NO_README_SENTINEL = "No README generated."

_PRO_RE = re.compile(r"pro", re.IGNORECASE)

_INSTRUCTIONS = """\
You are an expert technical writer and open-source maintainer. Carefully \
analyze the GitHub repository details and the important project files \
below, and write a complete, professional and user-friendly README.md.

The README must include:
- Title & project description: use the repository name as the title and \
explain what the project does, who it is for and why it is useful.
- Table of contents for easy navigation.
- Features: the key features and benefits of the project.
- Installation: a step-by-step guide to clone and set up the project \
locally, including prerequisites (runtimes, package managers, services).
- Usage examples: how to run or use the project (commands or code snippets).
- Technologies used: frameworks, libraries and tools the project relies on.
- Contributing guidelines: forking, opening pull requests, reporting issues.
- License information: the license type, linking to the LICENSE file if \
one exists.
- Additional information (optional): roadmap, badges, acknowledgements, \
related projects or links to documentation.

Use clear Markdown formatting so the content helps both new users and \
contributors."""

_OUTPUT_RULES = (
    "Output format: return only the final README.md in valid Markdown "
    "syntax, ready to be saved as a file. Do not wrap it in code fences "
    "or add commentary before or after it."
)


def select_model(models: list[dict[str, Any]]) -> str:
    """Choose the model to generate with, in listing order.

    The first generateContent-capable model whose name does not contain
    "pro" wins; otherwise the first capable "pro" model is used.
    """
    preferred: str | None = None
    fallback: str | None = None
    for model in models:
        name = model.get("name")
        methods = model.get("supportedGenerationMethods") or []
        if not name or GENERATE_METHOD not in methods:
            continue
        if _PRO_RE.search(name):
            if fallback is None:
                fallback = name
        elif preferred is None:
            preferred = name
            break

    selected = preferred or fallback
    if not selected:
        raise NoModelAvailable("No Gemini model found that supports generateContent")
    return selected


def build_prompt(metadata: dict[str, Any], files: dict[str, str]) -> str:
    """Embed repository metadata and every collected file into the prompt."""
    topics = metadata.get("topics") or []
    details = (
        "Repository details:\n"
        f"- Name: {metadata.get('name')}\n"
        f"- Description: {metadata.get('description') or 'No description provided.'}\n"
        f"- Topics: {', '.join(topics) if topics else 'none'}\n"
        f"- URL: {metadata.get('html_url')}"
    )

    sections = [_INSTRUCTIONS, details]
    if files:
        file_sections = "".join(
            f"\n---\nFile: {path}\n\n{content}\n" for path, content in files.items()
        )
        sections.append("Important project files:\n" + file_sections)
    sections.append(_OUTPUT_RULES)
    return "\n\n".join(sections)


def extract_text(response: dict[str, Any]) -> str:
    """Return the first candidate's first text part, or the sentinel."""
    try:
        text = response["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return NO_README_SENTINEL
    if not isinstance(text, str) or not text:
        return NO_README_SENTINEL
    return text


async def synthesize(
    gemini: GeminiClient, metadata: dict[str, Any], files: dict[str, str],
) -> str:
    """Generate a README for the collected repository data.

    Raises ``ConfigurationError`` before any network call when no API key
    is configured. An empty generation is a soft success and yields
    ``NO_README_SENTINEL``.
    """
    if not gemini.configured:
        raise ConfigurationError("Gemini API key not set")

    model = select_model(await gemini.list_models())
    prompt = build_prompt(metadata, files)
    logger.info("Generating README with %s (prompt %d chars)", model, len(prompt))

    response = await gemini.generate_content(model, prompt)
    readme = extract_text(response)
    if readme == NO_README_SENTINEL:
        logger.warning("Gemini returned no usable text for %s", metadata.get("name"))
    return readme
