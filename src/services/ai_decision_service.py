"""AI Decision Service - LLM-backed veto and replacement choices

The provider is asked for a small JSON decision. Anything unusable
(provider error, unparsable text, an ineligible houseguest) falls back
to the deterministic decision scorer, so a ceremony never stalls on the
model.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from src.config import settings
from src.core.decision.choices import (
    VetoDecision,
    choose_replacement_nominee,
    decide_veto,
    validate_replacement,
    validate_veto_save,
)
from src.core.errors import InvalidSelectionError
from src.core.game_state import GameSnapshot
from src.core.houseguest.models import Houseguest, trait_value
from src.core.logging import get_logger
from src.services.ai.base import AIProvider
from src.services.decision_service import DecisionService

logger = get_logger(__name__)

DECISION_SYSTEM_PROMPT = """\
You are a houseguest on Big Brother making a strategic decision.
Stay in character: your traits and relationships drive the choice.
Respond with JSON only, no other text."""

VETO_PROMPT = """\
You are {name} ({traits}) and you hold the Power of Veto.
Nominees and how you feel about them (-100 hate, 100 love):
{nominees}

Decide whether to use the veto. Respond in JSON:
{{"use_veto": true or false, "save_id": "<nominee id or null>", "reason": "<one sentence>"}}"""

REPLACEMENT_PROMPT = """\
You are {name} ({traits}), the Head of Household. The veto was used on {saved}.
Eligible replacement nominees and how you feel about them (-100 hate, 100 love):
{candidates}

Pick one replacement nominee. Respond in JSON:
{{"nominee_id": "<houseguest id>", "reason": "<one sentence>"}}"""

MAX_DECISION_TOKENS = 200


@dataclass
class AIDecisionResult:
    decision: Any
    source: str  # "llm" | "fallback"


class AIDecisionService:
    """Ask the provider first, fall back to the scorer"""

    def __init__(self, provider: AIProvider, decision_service: DecisionService) -> None:
        self._provider = provider
        self._decisions = decision_service

    # ── veto ─────────────────────────────────────────────────

    def decide_veto(self, snapshot: GameSnapshot) -> AIDecisionResult:
        holder = next((h for h in snapshot.active_houseguests() if h.is_pov_holder), None)
        if holder is None:
            raise ValueError("Nobody holds the Power of Veto")
        nominees = snapshot.nominees()

        decision = self._llm_veto(holder, snapshot)
        source = "llm"
        if decision is None:
            decision = decide_veto(
                holder, nominees, snapshot, threshold=settings.VETO_USE_THRESHOLD
            )
            source = "fallback"

        self._decisions.apply_veto(snapshot, decision.use_veto, decision.save_id)
        logger.info(f"Veto decision for {holder.name} via {source}: {decision.reason}")
        return AIDecisionResult(decision=decision, source=source)

    def _llm_veto(self, holder: Houseguest, snapshot: GameSnapshot) -> Optional[VetoDecision]:
        prompt = VETO_PROMPT.format(
            name=holder.name,
            traits=_traits(holder),
            nominees=_feelings(holder, snapshot.nominees(), snapshot),
        )
        parsed = self._ask(prompt)
        if parsed is None or not isinstance(parsed.get("use_veto"), bool):
            return None

        reason = str(parsed.get("reason") or "")
        if not parsed["use_veto"]:
            return VetoDecision(use_veto=False, reason=reason)

        save_id = parsed.get("save_id")
        if not isinstance(save_id, str):
            return None
        try:
            validate_veto_save(snapshot, save_id)
        except InvalidSelectionError as e:
            logger.warning(f"LLM veto rejected: {e}")
            return None
        return VetoDecision(use_veto=True, save_id=save_id, reason=reason)

    # ── replacement ──────────────────────────────────────────

    def choose_replacement(
        self, snapshot: GameSnapshot, saved_id: Optional[str] = None
    ) -> AIDecisionResult:
        hoh = snapshot.hoh()
        if hoh is None:
            raise ValueError("There is no Head of Household")

        nominee_id = self._llm_replacement(hoh, snapshot, saved_id)
        source = "llm"
        if nominee_id is None:
            nominee_id = choose_replacement_nominee(hoh, snapshot, saved_id)
            source = "fallback"
        if nominee_id is not None:
            self._decisions.apply_replacement(snapshot, nominee_id, saved_id)
        logger.info(f"Replacement nominee via {source}: {nominee_id}")
        return AIDecisionResult(decision=nominee_id, source=source)

    def _llm_replacement(
        self, hoh: Houseguest, snapshot: GameSnapshot, saved_id: Optional[str]
    ) -> Optional[str]:
        candidates = [
            h
            for h in snapshot.active_houseguests()
            if h.id not in (hoh.id, saved_id)
            and not h.is_nominated
            and not h.is_pov_holder
        ]
        if not candidates:
            return None
        prompt = REPLACEMENT_PROMPT.format(
            name=hoh.name,
            traits=_traits(hoh),
            saved=snapshot.name_of(saved_id) if saved_id else "nobody",
            candidates=_feelings(hoh, candidates, snapshot),
        )
        parsed = self._ask(prompt)
        if parsed is None:
            return None
        nominee_id = parsed.get("nominee_id")
        if not isinstance(nominee_id, str):
            return None
        try:
            validate_replacement(snapshot, nominee_id, saved_id)
        except InvalidSelectionError as e:
            logger.warning(f"LLM replacement rejected: {e}")
            return None
        return nominee_id

    # ── provider I/O ─────────────────────────────────────────

    def _ask(self, prompt: str) -> Optional[dict]:
        if not self._provider.is_available():
            return None
        try:
            raw = self._provider.generate(
                prompt,
                system_prompt=DECISION_SYSTEM_PROMPT,
                max_tokens=MAX_DECISION_TOKENS,
                json_mode=True,
            )
        except Exception as e:
            logger.warning(f"AI decision failed, using fallback: {e}")
            return None
        return parse_decision(raw)


def parse_decision(raw: str) -> Optional[dict]:
    """JSON object from a model reply, bare or inside a ```json block."""
    parsed = _try_parse_json(raw.strip())
    if parsed is not None:
        return parsed
    match = re.search(r"```json\s*(.*?)\s*```", raw, re.DOTALL)
    if match:
        return _try_parse_json(match.group(1))
    logger.warning("Failed to parse AI decision response")
    return None


def _try_parse_json(text: str) -> Optional[dict]:
    try:
        result = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return result if isinstance(result, dict) else None


def _traits(hg: Houseguest) -> str:
    return ", ".join(trait_value(t) for t in hg.traits) or "no strong traits"


def _feelings(me: Houseguest, others: list, snapshot: GameSnapshot) -> str:
    return "\n".join(
        f"- {o.id} ({o.name}): {snapshot.relationship(me.id, o.id):.0f}" for o in others
    )
