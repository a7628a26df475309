"""
Sentiment and text analyzer built on deterministic lexicon heuristics.

Handles three request types:
  sentiment    lexicon polarity with an intensity multiplier
  text, nlp    general structure: complexity, readability, category
"""

import time
from typing import Dict, List

from pilot_engine.models.decision import Decision, DecisionAction, RiskAssessment, RiskLevel
from pilot_engine.models.request import AnalysisRequest, AnalysisResult
from pilot_engine.plugins.lexicon import (
    EMOTIONS,
    INTENSIFIERS,
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    TEXT_CATEGORIES,
)
from pilot_engine.utils.text import count_syllables, split_sentences, tokenize

EXECUTE_CONFIDENCE_THRESHOLD = 60
MAX_CONFIDENCE = 95


def score_sentiment(text: str) -> Dict[str, object]:
    """Lexicon polarity of a text. normalized_score lies in [-1, 1]."""
    tokens = tokenize(text)
    positive = [t for t in tokens if t in POSITIVE_WORDS]
    negative = [t for t in tokens if t in NEGATIVE_WORDS]
    intensifier_count = sum(1 for t in tokens if t in INTENSIFIERS)

    pos, neg = len(positive), len(negative)
    normalized = (pos - neg) / max(1, pos + neg)
    intensity = min(1.5, 1.0 + 0.1 * intensifier_count)
    confidence = max(0, min(MAX_CONFIDENCE, round(abs(normalized) * 100 * intensity)))

    return {
        "sentiment_score": pos - neg,
        "normalized_score": normalized,
        "intensity": intensity,
        "confidence": confidence,
        "positive_words": positive,
        "negative_words": negative,
        "token_count": len(tokens),
    }


def detect_emotions(tokens: List[str]) -> List[str]:
    present = set(tokens)
    return [emotion for emotion, words in EMOTIONS.items() if present & words]


class SentimentAnalyzer:
    """Bundled analyzer for free text."""

    name = "nlp-analyzer"
    version = "1.0.0"
    supported_types = ["text", "sentiment", "nlp"]
    metadata = {
        "author": "Pilot Engine",
        "description": "Lexicon-based sentiment and text structure analysis",
    }

    def validate(self, request: AnalysisRequest) -> bool:
        text = request.input.get("text")
        return isinstance(text, str) and bool(text.strip())

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        started = time.perf_counter()
        text = request.input.get("text")
        if not isinstance(text, str) or not text.strip():
            return AnalysisResult.failure(
                "No text provided for NLP analysis",
                provider=self.name,
                processing_time=(time.perf_counter() - started) * 1000,
            )

        if request.type == "sentiment":
            decision = self._analyze_sentiment(text)
        else:
            decision = self._analyze_text(text)

        return AnalysisResult(
            success=True,
            decision=decision,
            processing_time=(time.perf_counter() - started) * 1000,
            provider=self.name,
            metadata={"text_length": len(text), "word_count": len(tokenize(text))},
        )

    def _analyze_sentiment(self, text: str) -> Decision:
        scores = score_sentiment(text)
        normalized = scores["normalized_score"]
        confidence = scores["confidence"]
        emotions = detect_emotions(tokenize(text))

        if normalized > 0:
            polarity = "positive"
        elif normalized < 0:
            polarity = "negative"
        else:
            polarity = "neutral"

        action = (
            DecisionAction.EXECUTE
            if confidence >= EXECUTE_CONFIDENCE_THRESHOLD
            else DecisionAction.WAIT
        )
        reasoning = [
            f"{polarity.capitalize()} sentiment detected (normalized score {normalized:.2f})",
            f"Lexicon matches: {len(scores['positive_words'])} positive, "
            f"{len(scores['negative_words'])} negative",
            f"Intensity multiplier: {scores['intensity']:.2f}",
        ]
        if emotions:
            reasoning.append(f"Detected emotions: {', '.join(emotions)}")
        if action == DecisionAction.WAIT:
            reasoning.append("Confidence below execution threshold, awaiting more context")

        if normalized <= -0.5:
            risk = RiskLevel.HIGH
        elif normalized < 0:
            risk = RiskLevel.MEDIUM
        else:
            risk = RiskLevel.LOW

        return Decision(
            action=action,
            confidence=confidence,
            reasoning=reasoning,
            metadata={**scores, "polarity": polarity, "emotions": emotions},
            risk_assessment=RiskAssessment(
                level=risk,
                factors=[f"Sentiment analysis with {confidence}% confidence"],
            ),
        )

    def _analyze_text(self, text: str) -> Decision:
        tokens = tokenize(text)
        complexity = calculate_complexity(text)
        readability = calculate_readability(text)
        category = classify_text(tokens)

        confidence = 60 + (1 - abs(readability - 0.5)) * 20 + (1 - abs(complexity - 0.5)) * 15
        confidence = max(20, min(MAX_CONFIDENCE, confidence))

        action = DecisionAction.EXECUTE
        reasoning = [
            f"Text analysis completed for {len(tokens)} words",
            f"Text complexity: {complexity:.2f}, readability: {readability:.2f}",
            f"Classified as: {category}",
        ]
        if complexity > 0.8:
            action = DecisionAction.WAIT
            reasoning.append("High complexity detected, may require human review")

        if complexity > 0.8:
            risk = RiskLevel.HIGH
        elif complexity > 0.5:
            risk = RiskLevel.MEDIUM
        else:
            risk = RiskLevel.LOW

        return Decision(
            action=action,
            confidence=confidence,
            reasoning=reasoning,
            metadata={
                "token_count": len(tokens),
                "unique_tokens": len(set(tokens)),
                "complexity": complexity,
                "readability": readability,
                "category": category,
                "average_word_length": (
                    sum(len(t) for t in tokens) / len(tokens) if tokens else 0.0
                ),
            },
            risk_assessment=RiskAssessment(
                level=risk,
                factors=[f"Text complexity: {complexity:.2f}"],
            ),
        )


def calculate_complexity(text: str) -> float:
    """0..1 blend of sentence length, word length and lexical diversity."""
    sentences = split_sentences(text)
    words = tokenize(text)
    if not sentences or not words:
        return 0.0
    sentence_complexity = min(1.0, len(words) / len(sentences) / 20)
    word_complexity = min(1.0, sum(len(w) for w in words) / len(words) / 7)
    lexical_diversity = len(set(words)) / len(words)
    return (sentence_complexity + word_complexity + lexical_diversity) / 3


def calculate_readability(text: str) -> float:
    """Flesch reading ease scaled into 0..1."""
    sentences = split_sentences(text)
    words = tokenize(text)
    if not sentences or not words:
        return 0.0
    words_per_sentence = len(words) / len(sentences)
    syllables_per_word = sum(count_syllables(w) for w in words) / len(words)
    flesch = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
    return max(0.0, min(1.0, flesch / 100))


def classify_text(tokens: List[str]) -> str:
    best, best_score = "general", 0
    for category, keywords in TEXT_CATEGORIES.items():
        score = sum(1 for t in tokens if t in keywords)
        if score > best_score:
            best, best_score = category, score
    return best
