"""Unit tests for fusiondex.fusion – the fusion synthesizer and its rules."""
import pytest

from fusiondex.fusion import (
    calc_ev,
    calc_stat,
    merge_evolutions,
    resolve_gender_ratio,
    resolve_growth_rate,
    resolve_habitat,
    resolve_types,
    split_and_combine,
    synthesize,
)
from fusiondex.species import Evolution, LearnedMove, RecordKind


class TestFormulas:
    def test_calc_stat_leans_on_dominant(self):
        assert calc_stat(45, 39) == 43
        assert calc_stat(39, 45) == 41

    def test_calc_stat_floor(self):
        assert calc_stat(0, 0) == 1
        assert calc_stat(1, 1) == 1

    @pytest.mark.parametrize("recessive", range(0, 256, 7))
    @pytest.mark.parametrize("dominant", range(0, 256, 7))
    def test_calc_stat_monotonic(self, dominant, recessive):
        assert calc_stat(dominant + 1, recessive) >= calc_stat(dominant, recessive) >= 1

    def test_calc_ev(self):
        assert calc_ev(1, 0) == 0
        assert calc_ev(3, 2) == 2
        assert calc_ev(0, 0) == 0

    def test_split_and_combine_words(self):
        assert split_and_combine("Seed", "Lizard", " ") == "Seed Lizard"
        assert split_and_combine("Tiny Mouse", "Flame Lizard", " ") == "Tiny Lizard"
        assert split_and_combine("Seed", "Big Flame Lizard", " ") == "Seed Flame"

    def test_split_and_combine_sentences(self):
        start = "First head. Second head."
        end = "First body. Second body."
        assert split_and_combine(start, end, ".") == "First head. Second body"


class TestTypes:
    def test_primary_from_head_secondary_from_body(self, make_record):
        head = make_record(primary_type="WATER", secondary_type=None)
        body = make_record(primary_type="FIRE", secondary_type="ROCK")
        assert resolve_types(head, body) == ("WATER", "ROCK")

    def test_normal_flying_head_is_flying(self, make_record):
        head = make_record(primary_type="NORMAL", secondary_type="FLYING")
        body = make_record(primary_type="FIRE", secondary_type="FLYING")
        assert resolve_types(head, body) == ("FLYING", "FIRE")

    def test_duplicate_type_uses_body_primary(self, make_record):
        head = make_record(primary_type="WATER", secondary_type=None)
        body = make_record(primary_type="GRASS", secondary_type="WATER")
        assert resolve_types(head, body) == ("WATER", "GRASS")

    def test_single_type_body(self, make_record):
        head = make_record(primary_type="FIRE", secondary_type=None)
        body = make_record(primary_type="FIRE", secondary_type=None)
        assert resolve_types(head, body) == ("FIRE", None)


class TestGrowthRate:
    def test_priority(self):
        assert resolve_growth_rate("Fast", "Erratic") == "Erratic"
        assert resolve_growth_rate("Medium", "Slow") == "Slow"
        assert resolve_growth_rate("Fast", "Fast") == "Fast"

    def test_unknown_defaults_to_medium(self):
        assert resolve_growth_rate("Foo", "Bar") == "Medium"


class TestGenderRatio:
    def test_genderless_wins(self):
        assert resolve_gender_ratio("AlwaysMale", "Genderless") == "Genderless"

    def test_single_gender_beats_mixed(self):
        assert resolve_gender_ratio("Female50Percent", "AlwaysFemale") == "AlwaysFemale"
        assert resolve_gender_ratio("AlwaysMale", "AlwaysFemale") == "AlwaysMale"

    def test_closest_entry(self):
        assert resolve_gender_ratio("FemaleOneEighth", "Female75Percent") == "Female50Percent"
        assert resolve_gender_ratio("FemaleOneEighth", "FemaleOneEighth") == "FemaleOneEighth"

    def test_tie_takes_earlier_entry(self):
        # average 159 is 32 away from both 50% and 75%
        assert resolve_gender_ratio("Female50Percent", "Female75Percent") == "Female50Percent"

    def test_unknown_token(self):
        with pytest.raises(ValueError):
            resolve_gender_ratio("Female50Percent", "Sometimes")


class TestHabitat:
    def test_same(self):
        assert resolve_habitat("Forest", "Forest") == "Forest"

    def test_none_defers_to_other(self):
        assert resolve_habitat("Cave", "None") == "Cave"
        assert resolve_habitat("None", "Sea") == "Sea"
        assert resolve_habitat("none", "Forest") == "Forest"

    def test_rare_wins(self):
        assert resolve_habitat("Grassland", "Sea") == "Sea"
        assert resolve_habitat("Rare", "Cave") == "Rare"

    def test_otherwise_head(self):
        assert resolve_habitat("Grassland", "Mountain") == "Grassland"


class TestSynthesize:
    def test_identity(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.id == "1.4"
        assert fused.kind == RecordKind.FUSION
        assert fused.component_ids == ("1", "4")
        assert fused.name == "Bulbmander"
        assert fused.category == "Seed Lizard"

    def test_pokedex_entry(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.pokedex_entry == (
            "A strange seed was planted on its back at birth. "
            "When it rains, steam is said to spout from the tip of its tail."
        )

    def test_pokedex_entry_renamed(self, make_record, charmander, names):
        head = make_record("1", pokedex_entry="Bulbasaur naps in the sun. It grows.")
        fused = synthesize(head, charmander, names)
        assert fused.pokedex_entry.startswith("Bulbmander naps in the sun.")

    def test_types(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert (fused.primary_type, fused.secondary_type) == ("GRASS", None)

    def test_stats(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert (fused.base_hp, fused.base_atk, fused.base_def) == (43, 51, 45)
        assert (fused.base_sp_atk, fused.base_sp_def, fused.base_spd) == (63, 60, 58)
        assert (fused.ev_sp_atk, fused.ev_spd) == (0, 0)

    def test_scalars(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.base_exp == 63
        assert fused.growth_rate == "Parabolic"
        assert fused.gender_ratio == "FemaleOneEighth"
        assert fused.catch_rate == 45
        assert fused.happiness == 70
        assert fused.hatch_steps == 5355
        assert fused.height == 6
        assert fused.weight == 77
        assert fused.color == "Green"
        assert fused.shape == "BipedalTail"
        assert fused.habitat == "Grassland"

    def test_sprite_geometry_from_body(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.back_sprite_y == 21
        assert fused.front_sprite_y == 20
        assert fused.shadow_size == 1

    def test_merged_collections(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.egg_groups == ("Monster", "Grass", "Dragon")
        assert fused.moves == (
            LearnedMove("TACKLE", 1), LearnedMove("GROWL", 3), LearnedMove("SCRATCH", 1),
        )
        assert fused.tutor_moves == ("CUT", "FIREPUNCH")
        assert fused.egg_moves == ("SKULLBASH", "BELLYDRUM")

    def test_abilities(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.abilities == ("BLAZE", "OVERGROW")
        assert fused.hidden_abilities == ("OVERGROW", "BLAZE", "SOLARPOWER", "CHLOROPHYLL")

    def test_evolutions_retargeted(self, bulbasaur, charmander, names):
        fused = synthesize(bulbasaur, charmander, names)
        assert fused.evolutions == (
            Evolution("2.4", "Level", "16"),
            Evolution("1.5", "Level", "16"),
        )

    def test_rare_habitat_beats_none(self, make_record, names):
        head = make_record("1", habitat="Cave", catch_rate=45)
        body = make_record("4", habitat="None", catch_rate=45)
        fused = synthesize(head, body, names)
        assert fused.id == "1.4"
        assert fused.habitat == "Cave"
        assert fused.catch_rate == 45

    def test_no_egg_groups(self, make_record, names):
        head = make_record("1", egg_groups=())
        body = make_record("4", egg_groups=())
        assert synthesize(head, body, names).egg_groups == ("Undiscovered",)

    def test_order_matters(self, bulbasaur, charmander, names):
        fused = synthesize(charmander, bulbasaur, names)
        assert fused.id == "4.1"
        assert fused.name == "Charbasaur"
        assert fused.primary_type == "FIRE"
        assert fused.secondary_type == "POISON"

    def test_self_fusion(self, bulbasaur, names):
        fused = synthesize(bulbasaur, bulbasaur, names)
        assert fused.id == "1.1"
        assert fused.name == "Bulbasaur"
        assert fused.base_hp == bulbasaur.base_hp
        assert fused.evolutions == (
            Evolution("2.1", "Level", "16"),
            Evolution("1.2", "Level", "16"),
        )

    def test_pure(self, bulbasaur, charmander, names):
        before = (bulbasaur.to_dict(), charmander.to_dict())
        first = synthesize(bulbasaur, charmander, names)
        second = synthesize(bulbasaur, charmander, names)
        assert first == second
        assert (bulbasaur.to_dict(), charmander.to_dict()) == before

    def test_merge_evolutions_dedupes(self, make_record):
        head = make_record("1", evolutions=(Evolution("2", "Level", "16"),
                                            Evolution("2", "Level", "16")))
        body = make_record("4")
        assert merge_evolutions(head, body) == [Evolution("2.4", "Level", "16")]
