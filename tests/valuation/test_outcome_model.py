import math

import pytest

from valuation.outcome import compute_outcome_probabilities, poisson_pmf

XG_GRID = [0.2, 0.6, 1.0, 1.35, 1.8, 2.4, 3.1, 4.0]


def test_poisson_pmf_basic():
    assert poisson_pmf(0, 1.5) == pytest.approx(math.exp(-1.5))
    assert poisson_pmf(2, 1.5) == pytest.approx(1.5 ** 2 * math.exp(-1.5) / 2)


@pytest.mark.parametrize("home", XG_GRID)
@pytest.mark.parametrize("away", XG_GRID)
def test_probabilities_consistent(home, away):
    p = compute_outcome_probabilities(home, away)
    assert p.home + p.draw + p.away == pytest.approx(1.0, abs=1e-6)
    assert p.over + p.under == pytest.approx(1.0, abs=1e-6)
    assert 0.0 <= p.btts <= 1.0
    for v in (p.home, p.draw, p.away, p.over, p.under):
        assert 0.0 <= v <= 1.0


def test_monotonic_in_home_xg():
    away = 1.2
    prev = compute_outcome_probabilities(0.5, away)
    h = 0.5
    while h < 3.0:
        h += 0.25
        cur = compute_outcome_probabilities(h, away)
        assert cur.home > prev.home
        assert cur.over >= prev.over
        prev = cur


def test_reference_match_1_8_vs_1_1():
    p = compute_outcome_probabilities(1.8, 1.1)
    assert 0.50 <= p.home <= 0.62
    assert 0.20 <= p.draw <= 0.28
    assert 0.15 <= p.away <= 0.25
    assert p.over > 0.55
    # under = P(N <= 2) con N ~ Poisson(2.9)
    expected_under = math.exp(-2.9) * (1 + 2.9 + 2.9 ** 2 / 2)
    assert p.under == pytest.approx(expected_under, abs=1e-9)


def test_btts_independent_approximation():
    p = compute_outcome_probabilities(1.4, 0.9)
    assert p.btts == pytest.approx((1 - math.exp(-1.4)) * (1 - math.exp(-0.9)))


def test_symmetric_teams_have_equal_win_probabilities():
    p = compute_outcome_probabilities(1.3, 1.3)
    assert p.home == pytest.approx(p.away)


@pytest.mark.parametrize("home,away", [(0.0, 1.0), (1.0, -0.5), (float("nan"), 1.0), (float("inf"), 1.0)])
def test_invalid_xg_rejected(home, away):
    with pytest.raises(ValueError):
        compute_outcome_probabilities(home, away)


@pytest.mark.parametrize("home,away", [(800.0, 1.0), (1e200, 1.0), (1.0, 750.0), (900.0, 900.0)])
def test_xg_enormi_non_esplodono(home, away):
    p = compute_outcome_probabilities(home, away)
    assert p.home + p.draw + p.away == pytest.approx(1.0)
    assert p.over == pytest.approx(1.0)
    assert p.under == pytest.approx(0.0)
    assert 0.0 <= p.btts <= 1.0


def test_xg_enormi_favoriscono_il_rate_maggiore():
    assert compute_outcome_probabilities(800.0, 1.0).home == pytest.approx(1.0)
    assert compute_outcome_probabilities(1.0, 750.0).away == pytest.approx(1.0)
    assert compute_outcome_probabilities(900.0, 900.0).draw == pytest.approx(1.0)


def test_poisson_pmf_rate_enorme():
    assert poisson_pmf(7, 1e200) == 0.0
