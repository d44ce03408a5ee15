"""
Character-level Markov model used to tell genuine prose from OCR noise.

Scanned books often pick up ink from the reverse side of the sheet. OCR turns
that bleed-through into strings that look like words but have implausible
letter transitions. The model below is trained once on a fixed English corpus
and scores candidate page text by the mean log-probability of its letter
pairs, with penalties for rare transitions and for text that fragments into
very short tokens.

Typical scores: clean English prose lands around -1.5 to -2.5, garbled OCR
output around -4.0 or lower. The default threshold sits at -3.8.
"""
import logging
import math
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = -3.8
NOISE_SCORE = -10.0
MIN_SCORABLE_LENGTH = 20
UNSEEN_PROBABILITY = 0.01
SUSPICIOUS_PROBABILITY = 0.005
SUSPICIOUS_WEIGHT = -2.0

# Representative English, including British spellings and aviation vocabulary
# so that books in that register are not rejected for their word choice.
ENGLISH_CORPUS = (
    "the quick brown fox jumps over the lazy dog",
    "this is a sample of normal english text that should have good probability",
    "common words like and the with for not but his from they she her been than",
    "normal sentences with proper punctuation and capitalization",
    "reading writing speaking listening are important language skills",
    "chapter one introduction to the basic concepts of literature and writing",
    "the author presents compelling arguments about human nature and society",
    "in this section we examine the historical context and its implications",
    "furthermore the evidence suggests that these conclusions are well founded",
    "therefore it becomes clear that understanding these principles is essential",
    "however there are several important considerations that must be addressed",
    "consequently the reader should carefully evaluate these different perspectives",
    "meanwhile the protagonist discovers new information that changes everything",
    "nevertheless the fundamental questions remain unanswered and require further study",
    "although the initial results were promising the final outcome was disappointing",
    "because of these factors the committee decided to postpone the final decision",
    "according to recent research findings the phenomenon occurs more frequently than expected",
    "throughout history many scholars have attempted to explain this complex relationship",
    "during the investigation several witnesses provided contradictory statements about the events",
    "despite numerous attempts to resolve the conflict the parties could not reach agreement",
    "she looked out of the window and wondered where the morning had gone",
    "he said nothing for a long while and then turned back towards the house",
    "the flight attendant recognised the problem straightaway and organised a proper response",
    "bloody hell that was brilliant absolutely smashing work mate well done indeed",
    "the aircraft taxied to the gate whilst passengers organised their belongings and waited patiently",
    "check in desk queue baggage handlers uniform security clearance airport terminal",
    "the crew realised they needed to prioritise safety whilst maintaining excellent customer service",
    "favourite colour honour neighbour centre theatre licence practise organised travelled cancelled",
    "brilliant chap lovely weather rather fancy spot of tea properly sorted cheers mate",
    "aeroplane petrol colour grey aluminium whilst amongst programme tyre plough labour favour",
    "flight crew cabin pressure oxygen masks emergency procedures safety demonstration boarding passes",
    "immigration customs duty free departure lounge boarding gate overhead compartments seat belts",
    "turbulence captain announcement weather conditions delayed cancelled diverted rescheduled",
    "first class business class economy premium seats upgrades frequent flyer miles loyalty points",
    "runway takeoff landing approach air traffic control tower ground staff maintenance hangar",
)


def _freeze(transitions: Mapping[str, Mapping[str, int]]) -> Mapping[str, Mapping[str, int]]:
    return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in transitions.items()})


@dataclass(frozen=True)
class TransitionModel:
    """Read-only character transition counts.

    ``transitions[a][b]`` is how often ``b`` followed ``a`` in the training
    text; ``totals[a]`` is the number of transitions observed out of ``a``.
    Instances never change after construction, so one model can be shared by
    every worker thread.
    """

    transitions: Mapping[str, Mapping[str, int]] = field(default_factory=lambda: MappingProxyType({}))
    totals: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def train(self, text: str) -> "TransitionModel":
        """Return a new model with the transitions of ``text`` added."""
        transitions = {k: dict(v) for k, v in self.transitions.items()}
        totals = dict(self.totals)
        for current, following in zip(text, text[1:]):
            row = transitions.setdefault(current, {})
            row[following] = row.get(following, 0) + 1
            totals[current] = totals.get(current, 0) + 1
        return TransitionModel(_freeze(transitions), MappingProxyType(totals))

    def probability(self, current: str, following: str) -> float:
        total = self.totals.get(current, 0)
        if total > 0:
            count = self.transitions[current].get(following)
            if count:
                return count / total
        return UNSEEN_PROBABILITY


def build_english_model(samples: Iterable[str] = ENGLISH_CORPUS) -> TransitionModel:
    """Build a transition model from lowercased training sentences."""
    model = TransitionModel()
    for sample in samples:
        model = model.train(sample.lower())
    return model


@lru_cache(maxsize=1)
def default_model() -> TransitionModel:
    return build_english_model()


@dataclass(frozen=True)
class ScoredText:
    log_probability: float
    suspicious_transition_ratio: float
    short_word_ratio: float
    final_score: float
    is_noise: bool


def _is_letter(ch: str) -> bool:
    return "a" <= ch <= "z"


def short_word_ratio(text: str) -> float:
    words = text.split()
    if not words:
        return 0.0
    short = sum(1 for w in words if 1 <= len(w.rstrip(".,!?:;")) <= 2)
    return short / len(words)


def short_word_penalty(ratio: float) -> float:
    # OCR garble tends to break into one- and two-letter fragments
    if ratio > 0.4:
        return -1.5
    if ratio > 0.2:
        return -0.5
    return 0.0


def score_text(
    text: str,
    model: Optional[TransitionModel] = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> ScoredText:
    """Score ``text`` for plausibility as English prose.

    Args:
        text: Candidate page text.
        model: Transition model; the shared default model when omitted.
        threshold: Scores below this are classified as noise.

    Returns:
        ScoredText with the components of the score and the verdict.
    """
    if len(text.strip()) < MIN_SCORABLE_LENGTH:
        return ScoredText(NOISE_SCORE, 0.0, 0.0, NOISE_SCORE, True)

    if model is None:
        model = default_model()

    lowered = text.lower()
    log_prob = 0.0
    scored = 0
    suspicious = 0
    for current, following in zip(lowered, lowered[1:]):
        if not (_is_letter(current) and _is_letter(following)):
            continue
        prob = model.probability(current, following)
        log_prob += math.log(prob)
        scored += 1
        if prob < SUSPICIOUS_PROBABILITY:
            suspicious += 1

    if scored == 0:
        return ScoredText(NOISE_SCORE, 0.0, 0.0, NOISE_SCORE, True)

    base = log_prob / scored
    suspicious_ratio = suspicious / scored
    ratio = short_word_ratio(lowered)
    final = base + suspicious_ratio * SUSPICIOUS_WEIGHT + short_word_penalty(ratio)

    return ScoredText(
        log_probability=base,
        suspicious_transition_ratio=suspicious_ratio,
        short_word_ratio=ratio,
        final_score=final,
        is_noise=final < threshold,
    )


def is_noise(
    text: str,
    model: Optional[TransitionModel] = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    return score_text(text, model, threshold).is_noise


def is_likely_bleed_through(
    text: str,
    model: Optional[TransitionModel] = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    """Page-level check: fragments too short to score are always kept."""
    text = text.strip()
    if len(text) < MIN_SCORABLE_LENGTH:
        return False

    result = score_text(text, model, threshold)
    logger.debug(
        f"Markov score {result.final_score:.3f} vs threshold {threshold:.3f} "
        f"for {text[:50]!r}: bleed-through={result.is_noise}"
    )
    return result.is_noise
