from repair_round.settings import GameSettings


class TestGameSettings:
    def test_init_when_defaults_then_match_starting_game(self):
        s = GameSettings()
        assert s.target_count == 3
        assert s.round_count == 5
        assert s.arithmetic_mode == "addition"
        assert s.display_mode == "standard"
        assert s.first_range == (1, 5)
        assert s.second_range == (1, 5)

    def test_init_when_counts_out_of_range_then_clamped(self):
        s = GameSettings(target_count=50, round_count=0)
        assert s.target_count == 10
        assert s.round_count == 1

    def test_init_when_ranges_out_of_bounds_then_clamped_and_ordered(self):
        s = GameSettings(first_range=(-5, 500), second_range=(9, 3))
        assert s.first_range == (0, 99)
        assert s.second_range == (3, 9)

    def test_init_when_unknown_modes_then_defaults(self):
        s = GameSettings(arithmetic_mode="multiplication", display_mode="fancy")
        assert s.arithmetic_mode == "addition"
        assert s.display_mode == "standard"

    def test_init_when_garbage_values_then_defaults_without_error(self):
        s = GameSettings(target_count="lots", first_range=None)
        assert s.target_count == 3
        assert s.first_range == (1, 5)

    def test_from_dict_when_extra_and_missing_keys_then_tolerated(self):
        s = GameSettings.from_dict({"round_count": 7, "first_range": [2, 8], "legacy_key": True})
        assert s.round_count == 7
        assert s.first_range == (2, 8)
        assert s.target_count == 3

    def test_to_dict_when_round_trip_then_equal(self):
        s = GameSettings(target_count=4, arithmetic_mode="both", display_mode="blank", second_range=(0, 12))
        assert GameSettings.from_dict(s.to_dict()) == s
