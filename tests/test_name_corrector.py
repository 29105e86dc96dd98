from roster_core.name_corrector import NameContext, apply_known_corrections, fuzzy_match_name


def _ctx():
    return NameContext(
        corrections={"lceman": "iceman", "Dr4gon": "Dragon Lord"},
        known_names=["Iceman", "Bob", "Foo Fighter"],
    )


def test_correction_table_resolves_to_canonical_casing():
    result = apply_known_corrections("lceman", _ctx())

    assert (result.name, result.corrected, result.method) == ("Iceman", True, "correction")


def test_correction_lookup_is_case_insensitive():
    result = apply_known_corrections("dr4gon", _ctx())

    assert (result.name, result.method) == ("Dragon Lord", "correction")


def test_known_name_normalizes_capitalization():
    result = apply_known_corrections("ICEMAN", _ctx())
    assert (result.name, result.method) == ("Iceman", "canonical")

    unchanged = apply_known_corrections("Iceman", _ctx())
    assert (unchanged.name, unchanged.corrected, unchanged.method) == ("Iceman", False, None)


def test_fuzzy_suffix_match():
    result = apply_known_corrections("AB Foo Fighter", _ctx())

    assert (result.name, result.method) == ("Foo Fighter", "fuzzy")


def test_fuzzy_edit_distance_thresholds():
    assert fuzzy_match_name("Icemam", ["Iceman"]) == "Iceman"
    assert fuzzy_match_name("Icxmxn", ["Iceman"]) == "Iceman"
    assert fuzzy_match_name("Ixxmxn", ["Iceman"]) is None
    assert fuzzy_match_name("Bib", ["Bob"]) == "Bob"
    assert fuzzy_match_name("Bxx", ["Bob"]) is None


def test_closest_known_name_wins():
    assert fuzzy_match_name("Karla", ["Karl0s", "Karlo"]) == "Karlo"


def test_unknown_name_untouched():
    result = apply_known_corrections("Stranger", _ctx())

    assert (result.name, result.corrected, result.method) == ("Stranger", False, None)


def test_without_context():
    assert apply_known_corrections("Iceman", None).corrected is False
    assert NameContext().is_empty
