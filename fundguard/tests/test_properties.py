"""Property-based tests for score bounds and monotonicity."""

from hypothesis import assume, given, strategies as st

from fundguard.models.analysis import RiskLevel
from fundguard.models.snapshot import Category
from fundguard.pipelines.fusion_engine import compute_fraud_score
from fundguard.services.amount_service import analyze_amount
from fundguard.services.text_service import analyze_description, analyze_story, analyze_title
from fundguard.utils.risk_levels import can_auto_approve, derive_risk_level, needs_manual_review

ANALYZERS = ("title", "description", "story", "amount", "creator", "pattern")

sub_score = st.floats(min_value=-50, max_value=500, allow_nan=False)
score_maps = st.fixed_dictionaries({name: sub_score for name in ANALYZERS})


@given(st.text(max_size=400))
def test_text_scores_stay_in_range(text):
    """Every text analyzer returns a score in [0, 100]."""
    for analyzer in (analyze_title, analyze_description, analyze_story):
        assert 0 <= analyzer(text).score <= 100


@given(st.text(max_size=120))
def test_adding_fraud_keyword_never_lowers_title_score(base):
    """Appending a critical phrase cannot make a title look safer."""
    assume("wire transfer" not in base.lower())
    assert analyze_title(base + " wire transfer").score >= analyze_title(base).score


@given(
    st.floats(min_value=0.01, max_value=1e9, allow_nan=False),
    st.sampled_from([c.value for c in Category] + ["Unlisted"]),
)
def test_amount_score_in_range(amount, category):
    """Goal amount scores are clamped for every category."""
    assert 0 <= analyze_amount(amount, category).score <= 100


@given(score_maps, st.one_of(st.none(), sub_score))
def test_fraud_score_in_range(scores, images):
    """The composite score is an integer in [0, 100]."""
    if images is not None:
        scores = dict(scores, images=images)
    result = compute_fraud_score(scores)
    assert isinstance(result, int)
    assert 0 <= result <= 100


@given(score_maps, st.sampled_from(ANALYZERS), st.floats(min_value=0, max_value=100))
def test_fraud_score_is_monotonic(scores, name, bump):
    """Raising one sub-score never lowers the composite score."""
    raised = dict(scores, **{name: scores[name] + bump})
    assert compute_fraud_score(raised) >= compute_fraud_score(scores)


@given(st.integers(min_value=0, max_value=100))
def test_flags_follow_tier(score):
    """Manual review and auto-approval are fixed by the tier."""
    level = derive_risk_level(score)
    assert needs_manual_review(score) == (level in (RiskLevel.HIGH, RiskLevel.VERY_HIGH, RiskLevel.CRITICAL))
    assert can_auto_approve(score) == (level == RiskLevel.VERY_LOW)
