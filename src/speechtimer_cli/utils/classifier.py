"""Session type classification for agenda items.

Categories are inferred from the item title and its planned duration by an
ordered rule table. The first rule whose predicate holds decides the
category, so the table order is part of the behaviour.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from speechtimer_cli.models.agenda import SessionCategory


def _keywords(*fragments: str) -> re.Pattern[str]:
    return re.compile("|".join(fragments), re.IGNORECASE)


PREPARED_KEYWORDS = _keywords("备稿", "破冰", r"\bprepared\b", r"\bice ?breaker\b")
IMPROMPTU_KEYWORDS = _keywords("即兴", r"\btable ?topics?\b", r"\bimpromptu\b")
EVALUATION_KEYWORDS = _keywords("评估", "点评", "总评", r"\bevaluat", r"\bcritique")
OVERALL_EVALUATION_KEYWORDS = _keywords(
    "总评",
    "即兴评估",
    r"\boverall\b",
    r"\bgeneral evaluat",
    r"\b(?:table ?topics?|impromptu) evaluat",
)
INDIVIDUAL_EVALUATION_KEYWORDS = _keywords(
    "个体评估", "个人评估", r"\bindividual evaluat"
)
OFFICER_REPORT_KEYWORDS = _keywords(
    "时间官",
    "计时官",
    "语法官",
    "哼哈官",
    "报告",
    r"\btimer\b",
    r"\btimekeeper\b",
    r"\bgrammarian\b",
    r"\bah[- ]?counter\b",
    r"\bfiller",
    r"\breport\b",
)
SHARE_HOST_KEYWORDS = _keywords(
    "分享",
    "主持",
    "介绍",
    "开场",
    "致辞",
    "祝酒",
    r"\bshar(?:e|ing)\b",
    r"\bhost",
    r"\bintro",
    r"\bopening\b",
    r"\btoast",
    r"\bwelcome\b",
)
SPEECH_KEYWORDS = _keywords("演讲", r"\bspeech")
OTHER_KEYWORDS = _keywords(
    "休息",
    "茶歇",
    "中场",
    "合影",
    "颁奖",
    "投票",
    "签到",
    "交流",
    r"\bbreak\b",
    r"\bnetworking\b",
    r"\bceremony\b",
    r"\baward",
    r"\bvot(?:e|ing)\b",
    r"\bphoto",
)

PREPARED_MIN_SECONDS = 5 * 60
PREPARED_MAX_SECONDS = 8 * 60
LONG_EVALUATION_MIN_SECONDS = 3 * 60
SHORT_MAX_SECONDS = 3 * 60
SHARE_HOST_MIN_SECONDS = 15 * 60


@dataclass(frozen=True)
class ClassifierRule:
    """One row of the classification table."""

    name: str
    applies: Callable[[str, int], bool]
    resolve: Callable[[str, int], SessionCategory]


def _fixed(category: SessionCategory) -> Callable[[str, int], SessionCategory]:
    return lambda _title, _duration: category


def _in_prepared_window(duration: int) -> bool:
    return PREPARED_MIN_SECONDS <= duration <= PREPARED_MAX_SECONDS


def _is_impromptu_title(title: str, _duration: int) -> bool:
    # "即兴评估" is an evaluation; leave it to the evaluation rule.
    return bool(IMPROMPTU_KEYWORDS.search(title)) and not EVALUATION_KEYWORDS.search(title)


def _resolve_evaluation(title: str, duration: int) -> SessionCategory:
    if OVERALL_EVALUATION_KEYWORDS.search(title):
        return SessionCategory.LONG_EVALUATION
    if INDIVIDUAL_EVALUATION_KEYWORDS.search(title):
        return SessionCategory.SHORT_EVALUATION
    if duration > LONG_EVALUATION_MIN_SECONDS:
        return SessionCategory.LONG_EVALUATION
    return SessionCategory.SHORT_EVALUATION


def _resolve_generic_speech(_title: str, duration: int) -> SessionCategory:
    if _in_prepared_window(duration):
        return SessionCategory.PREPARED_SPEECH
    return SessionCategory.SHORT_EVALUATION


def _resolve_by_duration(_title: str, duration: int) -> SessionCategory:
    if _in_prepared_window(duration):
        return SessionCategory.PREPARED_SPEECH
    if duration >= SHARE_HOST_MIN_SECONDS:
        return SessionCategory.SHARE_HOST
    if duration <= SHORT_MAX_SECONDS:
        return SessionCategory.SHORT_EVALUATION
    return SessionCategory.OTHER


CLASSIFIER_RULES: tuple[ClassifierRule, ...] = (
    ClassifierRule(
        "prepared_keyword",
        lambda title, _d: bool(PREPARED_KEYWORDS.search(title)),
        _fixed(SessionCategory.PREPARED_SPEECH),
    ),
    ClassifierRule(
        "impromptu_keyword",
        _is_impromptu_title,
        _fixed(SessionCategory.SHORT_EVALUATION),
    ),
    ClassifierRule(
        "evaluation_keyword",
        lambda title, _d: bool(EVALUATION_KEYWORDS.search(title)),
        _resolve_evaluation,
    ),
    ClassifierRule(
        "officer_report",
        lambda title, _d: bool(OFFICER_REPORT_KEYWORDS.search(title)),
        _fixed(SessionCategory.SHORT_EVALUATION),
    ),
    ClassifierRule(
        "share_or_host",
        lambda title, _d: bool(SHARE_HOST_KEYWORDS.search(title)),
        _fixed(SessionCategory.SHARE_HOST),
    ),
    ClassifierRule(
        "generic_speech",
        lambda title, _d: bool(SPEECH_KEYWORDS.search(title)),
        _resolve_generic_speech,
    ),
    ClassifierRule(
        "break_or_ceremony",
        lambda title, _d: bool(OTHER_KEYWORDS.search(title)),
        _fixed(SessionCategory.OTHER),
    ),
    ClassifierRule("duration_fallback", lambda _t, _d: True, _resolve_by_duration),
)


def explain_classification(title: str, duration_seconds: int) -> tuple[SessionCategory, str]:
    """Classify an item and report which rule decided it.

    Returns:
        Tuple of (category, rule name)
    """
    text = (title or "").strip()
    for rule in CLASSIFIER_RULES:
        if rule.applies(text, duration_seconds):
            return rule.resolve(text, duration_seconds), rule.name
    # The duration fallback always applies; kept for type checkers.
    return SessionCategory.OTHER, "duration_fallback"


def classify_session(title: str, duration_seconds: int) -> SessionCategory:
    """Infer the session category from title text and duration in seconds."""
    category, _rule = explain_classification(title, duration_seconds)
    return category


def is_impromptu(title: str, category: SessionCategory | str) -> bool:
    """Whether an item runs as rapid-fire turns that use personal sub-timers."""
    if SessionCategory(category) == SessionCategory.SHORT_EVALUATION:
        return True
    return bool(IMPROMPTU_KEYWORDS.search(title or ""))
