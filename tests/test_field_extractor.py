from roster_core.anchor_scanner import find_coordinates, find_rank_markers
from roster_core.field_extractor import (
    apply_roman_numeral_fixes, collapse_separators, extract_event_name, extract_event_scores,
    extract_member_name, extract_score, find_all_scores, find_next_boundary
)


def _name_before_anchor(text):
    anchor = find_coordinates(text)[0]
    return extract_member_name(text, anchor.start)


def _score_after_anchor(text, min_score=5000):
    anchor = find_coordinates(text)[0]
    return extract_score(text, anchor.end, len(text), min_score)


# --- Nombres ---

def test_member_name_strips_leading_noise():
    assert _name_before_anchor("EN Dragonslayer K:98 X:707 Y:919") == "Dragonslayer"


def test_member_name_reads_only_current_line():
    assert _name_before_anchor("1,234,567\nab 42 Iceman (K:98 X:1 Y:2)") == "Iceman"


def test_member_name_keeps_real_prefix():
    assert _name_before_anchor("FACH Iceman K:98 X:1 Y:2") == "FACH Iceman"


def test_member_name_pipe_becomes_roman_numeral():
    assert _name_before_anchor("Kaiser |I K:98 X:1 Y:2") == "Kaiser II"


def test_member_name_trailing_single_char_removed():
    assert _name_before_anchor("Iceman x K:98 X:1 Y:2") == "Iceman"


def test_member_name_trailing_l_repaired_to_roman():
    assert _name_before_anchor("Iceman l K:98 X:1 Y:2") == "Iceman I"


def test_member_name_strips_junk_characters():
    assert _name_before_anchor("@@ Zoë_the-Great. K:98 X:1 Y:2") == "Zoë_the-Great."


def test_roman_numeral_fixes_only_at_end():
    assert apply_roman_numeral_fixes("Kaiser Il") == "Kaiser II"
    assert apply_roman_numeral_fixes("Kaiser ll") == "Kaiser II"
    assert apply_roman_numeral_fixes("Kaiser IIl") == "Kaiser III"
    assert apply_roman_numeral_fixes("Il Kaiser") == "Il Kaiser"


def test_event_name_strips_level_badge():
    assert extract_event_name(" Dragon 45\n1,234,567") == "Dragon"


def test_event_name_keeps_numeric_handle():
    assert extract_event_name(" 1337 Dragon\n1,234,567") == "1337 Dragon"


def test_event_name_strips_trailing_noise_but_keeps_roman():
    assert extract_event_name(" Kaiser II ab\n") == "Kaiser II"


# --- Scores ---

def test_score_with_separators():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n1,922,130") == 1922130


def test_score_fallback_missing_first_separator():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n1922,130") == 1922130


def test_fallback_only_when_primary_finds_nothing():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n1922,130 5,000,000") == 5000000
    assert [s.value for s in find_all_scores("1922,130 5,000,000")] == [5000000]


def test_score_first_match_above_minimum_wins():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n1,234\n2,500,000\n9,999,999") == 2500000


def test_score_ignores_plain_space_groups():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n9 185,896") == 185896


def test_score_non_breaking_space_separator():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n1\u00a0234\u00a0567") == 1234567


def test_score_collapses_duplicated_separators():
    assert collapse_separators("1,,234, .567") == "1,234,567"
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\n1,,234,567") == 1234567


def test_missing_score_is_zero():
    assert _score_after_anchor("Iceman K:98 X:1 Y:2\nkein Wert") == 0


def test_boundary_stops_at_next_anchor_or_rank():
    text = "A K:98 X:1 Y:1\n1,500,000\nMITGLIED\nB K:98 X:2 Y:2\n2,000,000"
    anchors = find_coordinates(text)
    markers = find_rank_markers(text)

    boundary = find_next_boundary(text, anchors[0].end, anchors, 0, markers)
    assert boundary == markers[0].index
    assert find_next_boundary(text, anchors[1].end, anchors, 1, markers) == len(text)


# --- Macht / Punkte ---

def test_zero_points_keyword_gives_power_only():
    assert extract_event_scores(" Dragon 45\n1,234,567\n0 Punkte\n") == (1234567, 0)


def test_single_number_next_to_keyword_is_points():
    assert extract_event_scores(" Dragon\n45,000 Punkte") == (0, 45000)


def test_single_number_away_from_keyword_is_power():
    assert extract_event_scores(" Dragon\nPunkte\n1,234,567") == (1234567, 0)


def test_number_closest_to_keyword_is_points():
    assert extract_event_scores(" Knight 12\n2,000,000\n15,000 Punkte\n") == (2000000, 15000)


def test_first_line_points_without_keyword():
    assert extract_event_scores(" Dragon 12,345\n1,234,567") == (1234567, 12345)


def test_two_largest_distinct_values_without_keyword():
    assert extract_event_scores(" Dragon\n1,234,567 12,345") == (1234567, 12345)
    assert extract_event_scores(" Dragon\n1,234,567 1,234,567") == (1234567, 0)


def test_no_numbers_in_event_segment():
    assert extract_event_scores(" Dragon\n") == (0, 0)
