"""
Rule Evaluator: pure keyword matching of user-authored rules against text.

Behavioral Contract:
- Only enabled rules are considered, visited by descending priority
  (ties keep the caller's order)
- A natural-language rule triggers when any of its keywords appear in the text;
  the first triggering rule wins
- Never touches plugins, the cache or the rate limiter
"""

from typing import Iterable, List, Optional, Set, Tuple

from pilot_engine.models.decision import Decision, DecisionAction, RiskAssessment, RiskLevel
from pilot_engine.models.rules import ConditionType, Rule
from pilot_engine.utils.text import STOPWORDS, tokenize


def extract_keywords(expression: str) -> List[str]:
    """Distinct significant words of a rule expression, in order."""
    seen: Set[str] = set()
    keywords = []
    for token in tokenize(expression):
        if len(token) < 3 or token in STOPWORDS or token in seen:
            continue
        seen.add(token)
        keywords.append(token)
    return keywords


def order_rules(rules: Iterable[Rule]) -> List[Rule]:
    """Enabled rules, highest priority first. sorted() is stable, so ties keep input order."""
    return sorted((r for r in rules if r.enabled), key=lambda r: r.priority, reverse=True)


def overlap_ratio(rule: Rule, input_tokens: Set[str]) -> Tuple[float, List[str]]:
    """Fraction of the rule's keywords present in the input, plus the matched keywords."""
    if rule.condition.type != ConditionType.NATURAL_LANGUAGE:
        return 0.0, []
    keywords = extract_keywords(rule.condition.expression)
    if not keywords:
        return 0.0, []
    matched = [k for k in keywords if k in input_tokens]
    return len(matched) / len(keywords), matched


def evaluate_rules(text: Optional[str], rules: Iterable[Rule]) -> Decision:
    """Return the decision of the first triggering rule, or a DELEGATE decision."""
    input_tokens = set(tokenize(text or ""))
    candidates = order_rules(rules)

    for rule in candidates:
        ratio, matched = overlap_ratio(rule, input_tokens)
        if ratio <= 0:
            continue
        confidence = round(ratio * 100)
        keyword_count = len(extract_keywords(rule.condition.expression))
        return Decision(
            action=DecisionAction.EXECUTE,
            confidence=confidence,
            reasoning=[
                f'Rule "{rule.name}" triggered',
                f"Condition: {rule.condition.expression}",
                f"Matched {len(matched)}/{keyword_count} keywords: {', '.join(matched)}",
            ],
            metadata={
                "vote": rule.action.parameters.get("vote"),
                "triggered_rule_id": rule.id,
                "rule_name": rule.name,
                "action_type": rule.action.type,
                "action_parameters": dict(rule.action.parameters),
                "matched_keywords": matched,
                "confirmation_required": rule.action.confirmation_required,
            },
            risk_assessment=RiskAssessment(
                level=RiskLevel.LOW,
                factors=[f"Rule-based decision with {confidence}% keyword overlap"],
            ),
        )

    return Decision(
        action=DecisionAction.DELEGATE,
        confidence=0,
        reasoning=["No rule matched"],
        metadata={"rules_evaluated": len(candidates)},
        risk_assessment=RiskAssessment(level=RiskLevel.LOW),
    )
