"""Unit tests for flashcard-mode scoring."""
import pytest
from closer.balance import GameBalance
from closer.models import GameMode
from closer.services.scoring import (
    RunRank,
    RunScorer,
    base_points,
    combo_multiplier,
    rank_from_run,
    score_per_question,
    speed_bonus
)
from closer.services.stage_ladder import Rarity


class TestComboMultiplier:
    """Tests for 1 + combo/10."""

    def test_reference_values(self):
        """Every 10 combo adds one to the multiplier."""
        assert combo_multiplier(0) == 1
        assert combo_multiplier(10) == 2
        assert combo_multiplier(100) == 11

    def test_no_cap(self):
        """The combo multiplier keeps growing."""
        assert combo_multiplier(1000) == 101


class TestSpeedBonus:
    """Tests for 1 + remaining_rate * 0.5."""

    def test_endpoints(self):
        """Full time left gives 1.5x, none gives 1x."""
        assert speed_bonus(1) == 1.5
        assert speed_bonus(0) == 1.0
        assert speed_bonus(0.5) == 1.25

    def test_out_of_range_is_clamped(self):
        """Remaining rates outside [0, 1] are clamped."""
        assert speed_bonus(-2) == 1.0
        assert speed_bonus(7) == 1.5

    def test_monotonic_and_bounded(self):
        """More time left never lowers the bonus."""
        rates = [-1, 0, 0.1, 0.25, 0.5, 0.9, 1, 3]
        bonuses = [speed_bonus(rate) for rate in rates]
        assert bonuses == sorted(bonuses)
        assert all(1.0 <= bonus <= 1.5 for bonus in bonuses)


class TestScorePerQuestion:
    """Tests for ceil(base * combo multiplier * speed bonus)."""

    def test_no_bonuses(self):
        """Without bonuses the base points are scored."""
        assert score_per_question(1000, 0, 0) == 1000

    def test_full_bonuses(self):
        """Combo 10 and full time left triple the base."""
        assert score_per_question(1000, 10, 1) == 3000

    def test_always_rounds_up(self):
        """Fractional scores round up."""
        assert score_per_question(1000, 0, 0.001) == 1001
        assert score_per_question(1, 0, 0.01) == 2

    def test_positive_for_positive_base(self):
        """Any positive base scores at least one point."""
        for combo in (0, 3, 50):
            for rate in (0, 0.3, 1):
                assert score_per_question(1, combo, rate) >= 1


class TestBasePoints:
    """Tests for rarity base points."""

    def test_tiers(self):
        """Each rarity has its own base points."""
        assert base_points(Rarity.COMMON) == 1000
        assert base_points(Rarity.UNCOMMON) == 1200
        assert base_points(Rarity.RARE) == 1500
        assert base_points(Rarity.EPIC) == 2000
        assert base_points(Rarity.LEGENDARY) == 3000

    def test_unknown_tier_scores_as_common(self):
        """Unknown rarities score as common."""
        assert base_points("MYTHIC") == 1000


class TestRankFromRun:
    """Scenario table for run ranks."""

    @pytest.mark.parametrize("score,combo,rate,expected", [
        (1_000_000, 50, 0.5, RunRank.S),
        (500_000, 0, 0.95, RunRank.A),
        (100_000, 0, 0.0, RunRank.B),
        (99_999, 100, 1.0, None),
    ])
    def test_scenarios(self, score, combo, rate, expected):
        """Score, combo and accuracy decide the rank."""
        assert rank_from_run(score, combo, rate) == expected

    def test_high_score_without_combo_falls_to_a(self):
        """S needs the combo as well as the score."""
        assert rank_from_run(2_000_000, 49, 0.95) == RunRank.A

    def test_high_score_without_combo_or_accuracy_falls_to_b(self):
        """A needs accuracy as well as the score."""
        assert rank_from_run(2_000_000, 10, 0.5) == RunRank.B

    def test_custom_thresholds(self):
        """Rank thresholds come from the balance."""
        balance = GameBalance(rank_b_min_score=10)
        assert rank_from_run(10, 0, 0, balance) == RunRank.B


class TestRunScorer:
    """Tests for accumulating a run."""

    def test_combo_builds_and_resets(self):
        """Each answer scores with the streak before it."""
        scorer = RunScorer("learner-1")
        assert scorer.record(True, "500", 0) == 1000      # combo 0 -> 1x
        assert scorer.record(True, "500", 0) == 1100      # combo 1 -> 1.1x
        assert scorer.record(False) == 0
        assert scorer.combo == 0
        assert scorer.record(True, "900", 1) == 2250      # 1500 * 1 * 1.5
        assert scorer.max_combo == 2
        assert scorer.total_score == 4350

    def test_finish_builds_result(self):
        """Finishing a run summarizes it as a RunResult."""
        scorer = RunScorer("learner-1", mode=GameMode.FOR_YOU)
        scorer.record(True, "500", 0, response_time_ms=1200)
        scorer.record(False, response_time_ms=800)
        result = scorer.finish()

        assert result.learner_id == "learner-1"
        assert result.score == 1000
        assert result.max_combo == 1
        assert result.correct_rate == 0.5
        assert result.elapsed_ms == 2000
        assert result.mode == GameMode.FOR_YOU
        assert result.rank is None

    def test_empty_run(self):
        """A run with no answers scores zero."""
        result = RunScorer("learner-1").finish()
        assert result.score == 0
        assert result.correct_rate == 0.0

    def test_rank_assigned(self):
        """The finished run carries its rank."""
        balance = GameBalance(rank_b_min_score=2000)
        scorer = RunScorer("learner-1", balance=balance)
        scorer.record(True, "500", 0)
        scorer.record(True, "500", 0)
        assert scorer.finish().rank == "B"
