"""Tests for the production yield formula and premium bonus."""

from src.core.models import Recipe, TeamRole
from src.production.calculator import apply_premium_bonus, compute_yield


class TestComputeYield:
    def test_no_role(self):
        assert compute_yield(None) == 0

    def test_no_max_depth(self):
        assert compute_yield(TeamRole(base_energy=10.0)) == 0

    def test_linear_energy(self, role):
        assert compute_yield(role) == 45

    def test_defaults_for_missing_fields(self):
        # base/level energy default to 0
        assert compute_yield(TeamRole(max_depth=3)) == 0
        # decay and branches default to 1.0: 4 levels of 2.0
        assert compute_yield(TeamRole(max_depth=3, base_energy=2.0)) == 8

    def test_decay_and_branches(self):
        role = TeamRole(branches=2.0, max_depth=2, decay=0.5, base_energy=10.0, level_energy=0.0)
        # (0.5*2)^level = 1 at every level
        assert compute_yield(role) == 30

    def test_rounds_each_level_half_up(self):
        # level 0: 0.5 -> 1, level 1: 0.5*3 = 1.5 -> 2
        role = TeamRole(branches=3.0, max_depth=1, base_energy=0.5)
        assert compute_yield(role) == 3

    def test_rounds_before_summing(self):
        # 0.4 per level rounds to 0 each time although the sum would be 1.2
        role = TeamRole(max_depth=2, base_energy=0.4)
        assert compute_yield(role) == 0


class TestPremiumBonus:
    def test_no_recipe_is_identity(self):
        assert apply_premium_bonus(17, None) == 17

    def test_no_bonus_is_identity(self):
        assert apply_premium_bonus(17, Recipe.premium({"GUACA": 1})) == 17

    def test_bonus_rounds_half_up(self):
        assert apply_premium_bonus(45, Recipe.premium({"GUACA": 1}, 1.3)) == 59  # 58.5
        assert apply_premium_bonus(5, Recipe.basic(1.5)) == 8  # 7.5
