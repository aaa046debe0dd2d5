"""LLM explanation layer: input shaping, OpenAI call, validation, rendering."""

from __future__ import annotations

import json
import os
import re
import sys
import time
from typing import Any

import requests

from socwatch_analyzer.insights import calculate_delta

DEFAULT_MODEL = "gpt-4o"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
LLM_TIMEOUT_SECONDS = 30
LLM_MAX_RETRIES = 4
TOP_WAKEUPS = 5

SECTION_KEYS = ["key_findings", "threading", "next_steps", "limitations"]
THREADING_FIELDS = ("threadingModel", "threadingRatio", "pCoreActivity", "eCoreActivity")


def _top_wakeups(profile: dict, limit: int) -> list:
    entries = (profile.get("wakeupData") or {}).get("packageWakeups")
    if not isinstance(entries, list):
        return []
    return sorted(entries, key=lambda entry: entry.get("count", 0), reverse=True)[:limit]


def _profiles(analysis: dict) -> list[dict]:
    profiles = analysis.get("profiles") if isinstance(analysis, dict) else None
    return profiles if isinstance(profiles, list) else []


def _extract(profile: dict) -> dict:
    return {
        "name": profile.get("name"),
        "formatVersion": profile.get("formatVersion"),
        "metadata": profile.get("metadata", {}),
        "insights": profile.get("insights", {}),
        "concurrency": profile.get("concurrency"),
        "topPackageWakeups": _top_wakeups(profile, TOP_WAKEUPS)
    }


def build_llm_input(analysis: dict, baseline: dict | None = None) -> dict:
    payload: dict[str, Any] = {
        "current": [_extract(profile) for profile in _profiles(analysis)]
    }

    if baseline is not None:
        payload["baseline"] = [_extract(profile) for profile in _profiles(baseline)]
        payload["deltas"] = compute_deltas(payload["current"], payload["baseline"])

    return payload


def _number(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def compute_deltas(current: list[dict], baseline: list[dict]) -> dict:
    """Numeric insight deltas for profiles present (by name) in both runs."""
    baseline_by_name = {profile.get("name"): profile for profile in baseline}
    deltas: dict[str, Any] = {}
    for profile in current:
        name = profile.get("name")
        previous = baseline_by_name.get(name)
        if previous is None:
            continue
        entry = {}
        current_insights = profile.get("insights") or {}
        previous_insights = previous.get("insights") or {}
        for key, value in current_insights.items():
            now = _number(value)
            before = _number(previous_insights.get(key))
            if now is None or before is None:
                continue
            entry[key] = calculate_delta(now, before)
        if current_insights.get("threadingModel") != previous_insights.get("threadingModel"):
            entry["threadingModel"] = {
                "baseline": previous_insights.get("threadingModel"),
                "current": current_insights.get("threadingModel")
            }
        deltas[name] = entry
    return deltas


def _system_prompt() -> str:
    return (
        "You are a power and performance narrator for Intel SoC Watch game profiles. "
        "Use only the provided JSON input. "
        "Every claim must include evidence paths. "
        "If evidence is missing, say 'insufficient evidence' and list missing fields. "
        "No fixes or tuning advice; only next inspection steps. "
        "The threading section must cite threadingModel, threadingRatio or the "
        "P/E core activity insights. Power, thermal and package residency fields "
        "(avgPower, avgTemperature, packageC6Residency, s0ixResidency) are present "
        "only for comprehensive exports; treat their absence as a format limitation. "
        "Keep output concise and technical."
    )


def _user_prompt(llm_input: dict) -> str:
    return (
        "Return JSON with keys: title, high_level, key_findings, threading, "
        "next_steps, limitations. Each list item must include text and evidence "
        "(list of JSON paths). Use only the provided JSON input:\n"
        f"{json.dumps(llm_input, indent=2)}"
    )


def _parse_content(content: str) -> dict:
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        cleaned = content.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.lstrip("`")
            cleaned = cleaned.replace("json", "", 1).strip()
            if cleaned.endswith("```"):
                cleaned = cleaned[:-3].strip()
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            raise RuntimeError(f"LLM returned non-JSON content: {content[:500]}") from exc


def call_openai(llm_input: dict) -> dict:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("Missing OPENAI_API_KEY; set it to use the LLM explanation.")
    model = os.getenv("OPENAI_MODEL", DEFAULT_MODEL)

    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": _system_prompt()},
            {"role": "user", "content": _user_prompt(llm_input)}
        ],
        "temperature": 0.0
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json"
    }

    last_error = None
    for attempt in range(LLM_MAX_RETRIES):
        try:
            resp = requests.post(OPENAI_URL, headers=headers, json=payload, timeout=LLM_TIMEOUT_SECONDS)
            print(f"STATUS: {resp.status_code}", file=sys.stderr)
            if resp.status_code == 429:
                retry_after = resp.headers.get("Retry-After")
                try:
                    sleep_seconds = float(retry_after) if retry_after else 1.0 + (2 ** attempt)
                except ValueError:
                    sleep_seconds = 1.0 + (2 ** attempt)
                last_error = f"rate limited (HTTP 429) after {attempt + 1} attempt(s)"
                time.sleep(sleep_seconds)
                continue
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            last_error = str(exc)
            time.sleep(1.0 + attempt)
            continue

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"LLM response missing message content: {str(body)[:500]}") from exc
        if not isinstance(content, str):
            raise RuntimeError(f"LLM response missing message content: {str(body)[:500]}")
        return _parse_content(content)

    raise RuntimeError(f"LLM request failed: {last_error}")


def _evidence_root(path: str) -> str:
    return re.split(r"[.\[]", path, maxsplit=1)[0]


def validate_llm_output(output: dict, llm_input: dict | None = None) -> list[str]:
    """
    Check the narration shape. With ``llm_input``, every evidence path must
    start at one of its top-level keys, and the threading section must cite at
    least one threading insight.
    """
    errors: list[str] = []
    for key in ["title", "high_level"] + SECTION_KEYS:
        if key not in output:
            errors.append(f"missing key: {key}")

    def validate_list(name: str) -> list[str]:
        value = output.get(name)
        if not isinstance(value, list):
            errors.append(f"{name} is not a list")
            return []
        paths = []
        for idx, item in enumerate(value):
            if not isinstance(item, dict):
                errors.append(f"{name}[{idx}] is not an object")
                continue
            if not item.get("text"):
                errors.append(f"{name}[{idx}].text missing")
            evidence = item.get("evidence")
            if not isinstance(evidence, list) or not evidence:
                errors.append(f"{name}[{idx}].evidence missing")
                continue
            for path in evidence:
                if not isinstance(path, str):
                    errors.append(f"{name}[{idx}].evidence holds a non-string path")
                    continue
                if llm_input is not None and _evidence_root(path) not in llm_input:
                    errors.append(f"{name}[{idx}].evidence path not in input: {path}")
                paths.append(path)
        return paths

    for list_key in SECTION_KEYS:
        paths = validate_list(list_key)
        if list_key == "threading" and llm_input is not None and output.get("threading"):
            if not any(field in path for path in paths for field in THREADING_FIELDS):
                errors.append("threading cites no threading insight")

    return errors


def render_markdown(output: dict) -> str:
    lines = []
    lines.append(f"# {str(output.get('title', 'SoC Watch Profile Summary'))}")
    lines.append("")
    lines.append(str(output.get("high_level", "")))
    lines.append("")

    def render_section(title: str, key: str):
        lines.append(f"## {title}")
        for item in output.get(key, []):
            lines.append(f"- {str(item.get('text', ''))}")
        lines.append("")

    render_section("Key Findings", "key_findings")
    render_section("Threading", "threading")
    render_section("Next Steps", "next_steps")
    render_section("Limitations", "limitations")

    lines.append("## Evidence Appendix")
    for key in SECTION_KEYS:
        lines.append(f"### {key}")
        for item in output.get(key, []):
            evidence = item.get("evidence", [])
            if evidence:
                lines.append(f"- {item.get('text', '')}")
                for path in evidence:
                    lines.append(f"  - {path}")
        lines.append("")

    return "\n".join(lines).strip() + "\n"


def run_explain(analysis: dict, baseline: dict | None = None) -> tuple[dict, dict, str]:
    llm_input = build_llm_input(analysis, baseline)
    if not llm_input["current"]:
        raise RuntimeError("Analysis contains no profiles to explain.")
    llm_output = call_openai(llm_input)
    errors = validate_llm_output(llm_output, llm_input)
    if errors:
        raise RuntimeError(f"LLM output validation failed: {', '.join(errors)}")
    markdown = render_markdown(llm_output)
    return llm_input, llm_output, markdown
