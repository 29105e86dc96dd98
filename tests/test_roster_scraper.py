import pytest

from roster_core.config_manager import ExtractionSettings
from roster_core.name_corrector import NameContext
from roster_core.records import MemberRecord, UNKNOWN_RANK
from scrapers.roster_scraper import (
    NoScreenshotsError, RosterScraper, ScreenshotText, list_png_files, load_text_folder,
    merge_or_add_member
)


def test_merge_by_coordinates_prefers_cleaner_name_and_higher_score():
    members = {}
    merge_or_add_member(members, MemberRecord("FACH Iceman", "K:98 X:100 Y:200", 500, source_origins={"01.png"}))
    merge_or_add_member(members, MemberRecord("Iceman", "K:98 X:100 Y:200", 800, source_origins={"02.png"}))

    record = members["K:98 X:100 Y:200"]
    assert (record.name, record.score) == ("Iceman", 800)
    assert record.source_origins == {"01.png", "02.png"}


def test_noise_prefix_removed_across_screenshots():
    screens = [
        ScreenshotText("01.png", "MITGLIED\nFACH Iceman K:98 X:100 Y:200\n1,500,000\n"),
        ScreenshotText("02.png", "MITGLIED\nIceman K:98 X:100 Y:200\n1,800,000\n"),
    ]
    result = RosterScraper().process_members(screens)

    assert len(result.records) == 1
    record = result.records[0]
    assert (record.name, record.score, record.rank) == ("Iceman", 1800000, "Mitglied")
    assert record.source_origins == {"01.png", "02.png"}


def test_rank_carries_across_screenshots():
    screens = [
        ScreenshotText("01.png", "OFFIZIER\nAlpha K:98 X:1 Y:1\n1,500,000\n"),
        ScreenshotText("02.png", "Bravo K:98 X:2 Y:2\n1,400,000\nMITGLIED\nCharlie K:98 X:3 Y:3\n1,300,000\n"),
        ScreenshotText("03.png", "Delta K:98 X:4 Y:4\n1,200,000\n"),
    ]
    result = RosterScraper().process_members(screens)

    assert [(r.name, r.rank) for r in result.records] == [
        ("Alpha", "Offizier"),
        ("Bravo", "Offizier"),
        ("Charlie", "Mitglied"),
        ("Delta", "Mitglied"),
    ]


def test_rank_defaults_to_unknown_at_batch_start():
    scraper = RosterScraper()
    scraper.process_members([ScreenshotText("01.png", "OFFIZIER\nAlpha K:98 X:1 Y:1\n1,500,000\n")])
    result = scraper.process_members([ScreenshotText("02.png", "Bravo K:98 X:2 Y:2\n1,400,000\n")])

    assert result.records[0].rank == UNKNOWN_RANK


def test_verification_pass_reconciles_score():
    screens = [ScreenshotText(
        "01.png",
        "Iceman K:98 X:1 Y:1\n822,073\n",
        "Iceman K:98 X:1 Y:1\n5,822,073\n",
    )]
    result = RosterScraper().process_members(screens)

    assert result.records[0].score == 5822073


def test_verification_only_score_fills_missing_primary():
    screens = [ScreenshotText("01.png", "Iceman K:98 X:1 Y:1\n???\n", "Iceman K:98 X:1 Y:1\n1,234,567\n")]
    result = RosterScraper().process_members(screens)

    assert result.records[0].score == 1234567
    assert result.records[0].warning is None


def test_empty_batch_raises():
    with pytest.raises(NoScreenshotsError):
        RosterScraper().process_members([])
    with pytest.raises(NoScreenshotsError):
        RosterScraper().process_events([])


def test_empty_folders_raise(tmp_path):
    (tmp_path / "notes.md").write_text("x", encoding="utf-8")
    with pytest.raises(NoScreenshotsError):
        list_png_files(tmp_path)
    with pytest.raises(NoScreenshotsError):
        load_text_folder(tmp_path)
    with pytest.raises(NoScreenshotsError):
        RosterScraper().process_member_folder(tmp_path / "missing")


def test_abort_returns_partial_deduplicated_results():
    scraper = RosterScraper()
    screens = [
        ScreenshotText("01.png", "Alpha K:98 X:1 Y:1\n1,500,000\n"),
        ScreenshotText("02.png", "Bravo K:98 X:2 Y:2\n1,400,000\n"),
    ]

    def on_progress(current, total, source):
        if current == 1:
            scraper.abort()

    result = scraper.process_members(screens, on_progress)

    assert result.aborted
    assert result.processed == ["01.png"]
    assert [r.name for r in result.records] == ["Alpha"]


def test_failing_screenshot_is_skipped(monkeypatch):
    scraper = RosterScraper()
    original = scraper.parser.parse_member_text

    def flaky(text):
        if "boom" in text:
            raise RuntimeError("kaputt")
        return original(text)

    monkeypatch.setattr(scraper.parser, "parse_member_text", flaky)
    screens = [
        ScreenshotText("01.png", "boom"),
        ScreenshotText("02.png", "Bravo K:98 X:2 Y:2\n1,400,000\n"),
    ]
    result = scraper.process_members(screens)

    assert result.failed == ["01.png"]
    assert result.processed == ["02.png"]
    assert [r.name for r in result.records] == ["Bravo"]
    assert scraper.get_stats()["errors"] == 1


def test_name_corrections_applied_before_merge():
    context = NameContext(corrections={"lceman": "Iceman"}, known_names=["Iceman"])
    screens = [
        ScreenshotText("01.png", "lceman K:98 X:1 Y:1\n1,500,000\n"),
        ScreenshotText("02.png", "Iceman K:98 X:1 Y:1\n1,500,000\n"),
    ]
    scraper = RosterScraper(name_context=context)
    result = scraper.process_members(screens)

    assert [r.name for r in result.records] == ["Iceman"]
    assert scraper.get_stats()["corrections"] == 1


def test_overlap_gap_reported():
    screens = [
        ScreenshotText("01.png", "Alpha K:98 X:1 Y:1\n1,500,000\n"),
        ScreenshotText("02.png", "Bravo K:98 X:2 Y:2\n1,400,000\n"),
    ]
    result = RosterScraper().process_members(screens)

    assert result.overlap.overlap_counts == [0]
    assert result.overlap.has_gaps


def test_sanity_warnings_on_result():
    text = (
        "Alpha K:98 X:1 Y:1\n1,200,000\n"
        "Bravo K:98 X:2 Y:2\n1,150,000\n"
        "Charlie K:497 X:3 Y:3\n1,100,000\n"
        "Delta K:98 X:4 Y:4\n1,050,000\n"
        "Echo K:98 X:5 Y:5\n1,000,000\n"
    )
    result = RosterScraper().process_members([ScreenshotText("01.png", text)])

    assert [r.name for r in result.records if r.warning] == ["Charlie"]
    assert result.warnings == 1


def test_event_batch():
    screens = [
        ScreenshotText(
            "01.png",
            "[K98] Dragon 45\n1,234,567\n0 Punkte\n[K98] Knight 12\n2,000,000\n15,000 Punkte\n",
        ),
        ScreenshotText(
            "02.png",
            "[K98] Knight 12\n2,000,000\n15,000 Punkte\n[K98] Mage 3\n900,000\n7,500 Punkte\n",
        ),
    ]
    result = RosterScraper().process_events(screens)

    assert [(r.name, r.power, r.event_points) for r in result.records] == [
        ("Dragon", 1234567, 0),
        ("Knight", 2000000, 15000),
        ("Mage", 900000, 7500),
    ]
    assert result.records[1].source_origins == {"01.png", "02.png"}
    assert result.overlap.overlap_counts == [1]


def test_event_verification_reconciles_power():
    screens = [ScreenshotText(
        "01.png",
        "[K98] Dragon\n234,567\n12,000 Punkte\n",
        "[K98] Dragon\n1,234,567\n12,000 Punkte\n",
    )]
    result = RosterScraper().process_events(screens)

    assert (result.records[0].power, result.records[0].event_points) == (1234567, 12000)


def test_min_score_setting_passed_to_parser():
    scraper = RosterScraper(ExtractionSettings(min_score=2000000))
    result = scraper.process_members([ScreenshotText("01.png", "Alpha K:98 X:1 Y:1\n1,500,000\n")])

    assert result.records[0].score == 0


def test_text_folder_loading(tmp_path):
    (tmp_path / "02.txt").write_text("Bravo K:98 X:2 Y:2\n1,400,000\n", encoding="utf-8")
    (tmp_path / "01.txt").write_text("Alpha K:98 X:1 Y:1\n822,073\n", encoding="utf-8")
    (tmp_path / "01.verify.txt").write_text("Alpha K:98 X:1 Y:1\n5,822,073\n", encoding="utf-8")

    screens = load_text_folder(tmp_path)

    assert [s.source for s in screens] == ["01", "02"]
    assert screens[0].verify_text.startswith("Alpha")
    assert screens[1].verify_text == ""


def test_member_folder_uses_ocr_engine(monkeypatch, tmp_path):
    for name in ("02.png", "01.png", "skip.jpg"):
        (tmp_path / name).write_bytes(b"")

    texts = {
        "01.png": ("Alpha K:98 X:1 Y:1\n1,500,000\n", ""),
        "02.png": ("Bravo K:98 X:2 Y:2\n1,400,000\n", ""),
    }

    class FakeEngine:
        def recognize_pair(self, path):
            return texts[path.name]

    scraper = RosterScraper()
    monkeypatch.setattr(scraper, "_create_engine", lambda: FakeEngine())
    result = scraper.process_member_folder(tmp_path)

    assert [r.name for r in result.records] == ["Alpha", "Bravo"]
    assert [p.endswith(".png") for p in result.processed] == [True, True]


def test_zero_outlier_threshold_keeps_batch():
    text = (
        "Alpha K:98 X:1 Y:1\n1,200,000\n"
        "Bravo K:98 X:2 Y:2\n1,150,000\n"
        "Charlie K:98 X:3 Y:3\n1,100,000\n"
    )
    scraper = RosterScraper(ExtractionSettings(score_outlier_threshold=0))
    result = scraper.process_members([ScreenshotText("01.png", text)])

    assert [r.name for r in result.records] == ["Alpha", "Bravo", "Charlie"]


def test_screenshot_failing_midway_leaves_no_partial_entries(monkeypatch):
    scraper = RosterScraper()
    original = scraper._correct_name

    def flaky(entry):
        if entry.name == "Bravo":
            raise RuntimeError("kaputt")
        original(entry)

    monkeypatch.setattr(scraper, "_correct_name", flaky)
    screens = [
        ScreenshotText("01.png", "Alpha K:98 X:1 Y:1\n1,500,000\n"),
        ScreenshotText("02.png", "OFFIZIER\nCharlie K:98 X:3 Y:3\n1,300,000\nBravo K:98 X:2 Y:2\n1,400,000\n"),
        ScreenshotText("03.png", "Delta K:98 X:4 Y:4\n1,200,000\n"),
    ]
    result = scraper.process_members(screens)

    assert result.failed == ["02.png"]
    assert [(r.name, r.rank) for r in result.records] == [("Alpha", UNKNOWN_RANK), ("Delta", UNKNOWN_RANK)]
    assert all("02.png" not in r.source_origins for r in result.records)


def test_event_screenshot_failing_midway_leaves_no_partial_entries(monkeypatch):
    scraper = RosterScraper()
    original = scraper._correct_name

    def flaky(entry):
        if entry.name == "Knight":
            raise RuntimeError("kaputt")
        original(entry)

    monkeypatch.setattr(scraper, "_correct_name", flaky)
    screens = [ScreenshotText("01.png", "[K98] Dragon\n1,234,567\n0 Punkte\n[K98] Knight\n2,000,000\n15,000 Punkte\n")]
    result = scraper.process_events(screens)

    assert result.failed == ["01.png"]
    assert result.records == []
