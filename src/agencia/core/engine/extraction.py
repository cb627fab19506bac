"""Structured extraction — input fields before a call, facts after it.

Both ask the backend to fill a described YAML mapping.  One retry is made,
with a clarification appended to the prompt, when the backend fails or
its answer is not a YAML mapping.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

import yaml

from agencia.core.interface.models import CompletionRequest
from agencia.errors import AgenciaError, BackendError, MissingRequiredInputError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from agencia.core.engine.context import RunContext
    from agencia.core.spec.models import Agent

logger = logging.getLogger(__name__)

_HEADER = (
    "Fill out the following YAML fields based on the input. "
    "Each value is described and includes a type hint.\n\nInput:\n{input}\n\nFields:\n"
)

_INPUTS_FOOTER = """
Respond ONLY with a valid YAML object that matches the above field descriptions.
Do not include markdown formatting or any explanation.

Example:

Input:
Please generate a greeting and optionally add a note.

Fields:
greeting: the greeting message. (type: string, required)
note: an optional note to include. (type: string, optional)

Expected YAML:
greeting: Hello!
note: Have a nice day.
"""

_FACTS_FOOTER = """
Respond ONLY with a valid YAML object that matches the above field descriptions.
Do not include markdown formatting or any explanation.
If a required field cannot be reasonably inferred from the input, leave the field blank.
If a field is not relevant to the input, leave it blank.

Example:

Input:
Please generate a greeting and optionally add a note.

Fields:
greeting: the greeting message. (type: string, required)
note: an optional note to include. (type: string, optional)

Expected YAML:
greeting: Hello!
note: Have a nice day.
"""

RETRY_HINT = (
    "\nIf there was an error understanding the request, "
    "explain the issue clearly in your YAML response."
)


def clean_answer(text: str) -> str:
    """Strip code fences and a ``yaml`` language tag from a backend answer.

    Raises:
        BackendError: If the backend answered with an ``ERROR:`` line.
    """
    text = text.strip()
    if text.startswith("ERROR:"):
        raise BackendError(f"AI error: {text}")
    start = text.find("```")
    end = text.rfind("```")
    if start != -1 and end > start:
        text = text[start + 3 : end].strip()
    if text.startswith("yaml\n"):
        text = text[len("yaml\n") :].strip()
    return text


def parse_mapping(text: str) -> dict[str, Any]:
    """Parse a YAML mapping; an empty document is an empty mapping.

    Raises:
        ValueError: If the text is not YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"answer is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"answer is not a YAML mapping: {text[:80]!r}")
    return {str(k): v for k, v in data.items()}


def inputs_prompt(agent: Agent, raw: str) -> str:
    prompt = _HEADER.format(input=raw)
    for name, arg in agent.inputs.items():
        required = "required" if arg.required else "optional"
        prompt += f"{name}: {arg.description} (type: {arg.type}, {required})\n"
    return prompt + _INPUTS_FOOTER


def facts_prompt(agent: Agent, raw: str, output: str, prior: Mapping[str, Any]) -> str:
    prompt = _HEADER.format(input=f"{raw}\n\nOutput:\n{output}")
    for name, fact in agent.facts.items():
        old = prior.get(name, fact.empty_default())
        prompt += f"{name}: {fact.description} (type: {fact.type}, {fact.scope}) (old: {old})\n"
    return prompt + _FACTS_FOOTER


async def ask_mapping(
    ctx: RunContext,
    agent: Agent,
    prompt: str,
    purpose: Literal["inputs", "facts"],
) -> dict[str, Any]:
    """Ask the backend for a YAML mapping, retrying once on failure."""
    try:
        return await _ask_once(ctx, agent, prompt, purpose)
    except (BackendError, ValueError) as exc:
        ctx.error("%s extraction for %s failed, retrying: %s", purpose, agent.name, exc)
    try:
        return await _ask_once(ctx, agent, prompt + RETRY_HINT, purpose)
    except ValueError as exc:
        raise BackendError(f"cannot read {purpose} of {agent.name}: {exc}") from exc


async def _ask_once(
    ctx: RunContext, agent: Agent, prompt: str, purpose: Literal["inputs", "facts"]
) -> dict[str, Any]:
    completion = await ctx.backend.complete(
        CompletionRequest(agent=agent.name, prompt=prompt, purpose=purpose)
    )
    return parse_mapping(clean_answer(completion.text))


def check_required(agent: Agent, inputs: Mapping[str, Any]) -> None:
    """Raise :class:`MissingRequiredInputError` for absent required fields."""
    missing = [
        name for name, arg in agent.inputs.items() if arg.required and inputs.get(name) is None
    ]
    if missing:
        raise MissingRequiredInputError(agent.name, missing)


async def extract_inputs(ctx: RunContext, agent: Agent, raw: str) -> dict[str, Any]:
    """Turn free text into the agent's declared input fields."""
    inputs = await ask_mapping(ctx, agent, inputs_prompt(agent, raw), "inputs")
    check_required(agent, inputs)
    ctx.log("extracted inputs for %s: %s", agent.name, ", ".join(inputs) or "(none)")
    return inputs


async def extract_facts(ctx: RunContext, agent: Agent, raw: str, output: str) -> None:
    """Record the agent's declared facts after a successful call.

    Global facts go to the session under ``"agent.fact"``; local facts stay
    in the run context.  Failures are logged and never fail the call.
    """
    session = ctx.session
    if session is None or not agent.facts:
        return
    prior: dict[str, Any] = {}
    for name, fact in agent.facts.items():
        key = f"{agent.name}.{name}"
        store = session.facts if fact.scope == "global" else ctx.local_facts
        if key in store:
            prior[name] = store[key]

    try:
        answer = await ask_mapping(ctx, agent, facts_prompt(agent, raw, output, prior), "facts")
    except AgenciaError as exc:
        ctx.error("fact extraction for %s failed: %s", agent.name, exc)
        return

    card = ctx.card
    for name, fact in agent.facts.items():
        value = answer.get(name)
        if value is None or value == "":
            continue
        key = f"{agent.name}.{name}"
        if fact.scope == "local":
            ctx.local_facts[key] = value
            if card is not None:
                card.local_facts[key] = value
        else:
            session.set_fact(key, value, fact.tags)
            if card is not None:
                card.facts[key] = value
    missing = [name for name in agent.facts if answer.get(name) in (None, "")]
    if missing:
        ctx.log("facts left blank by %s: %s", agent.name, ", ".join(missing))
