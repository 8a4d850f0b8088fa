from __future__ import annotations

from costsheet_import.extraction.fallback import is_fallback_candidate
from costsheet_import.extraction.segmenter import segment
from costsheet_import.models.cost_record import Category, OperationLineItem, SectionTag

"""Segmenter: section switching, header rebuilds, sentinel and fallback rows."""


def _labels(result, tag):
    return [item.label for item in result.sections[tag]]


def test_ballcaps_sections(ballcaps_grid):
    result = segment(ballcaps_grid, Category.BALLCAPS)

    assert _labels(result, SectionTag.FABRIC) == ["Poly Twill", "Mesh Back"]
    assert _labels(result, SectionTag.OTHER_FABRIC_TRIM) == ["Front logo 3D"]
    assert _labels(result, SectionTag.TRIM) == ["Sweatband", "Buckle"]
    assert _labels(result, SectionTag.PACKAGING) == ["Polybag"]
    assert _labels(result, SectionTag.OVERHEAD) == ["OVERHEAD", "PROFIT"]
    assert result.sections[SectionTag.OPERATIONS] == [
        OperationLineItem("Sewing", "12.00", "0.08", "0.96"),
        OperationLineItem("Logo stitching", "5.00", "0.10", "0.50"),
    ]
    assert result.sections[SectionTag.YARN] == []
    assert result.sections[SectionTag.PACKAGING][0].notes == "1 per cap"


def test_rows_after_sentinel_are_ignored(ballcaps_grid):
    result = segment(ballcaps_grid, Category.BALLCAPS)
    assert result.total_factory_cost == "6.96"
    assert result.sentinel_row == 21
    # the "Reference rates" footer would otherwise add a third Sewing line
    assert len(result.sections[SectionTag.OPERATIONS]) == 2


def test_beanie_sections(beanie_grid):
    result = segment(beanie_grid, Category.BEANIE)
    assert _labels(result, SectionTag.YARN) == ["Acrylic 2/28"]
    assert result.sections[SectionTag.KNITTING] == [
        OperationLineItem("Shima 12G", "6.00", "0.05", "0.30"),
    ]
    assert result.sections[SectionTag.OPERATIONS] == [
        OperationLineItem("Linking", "0.00", "0.00", "0.40"),
    ]


def test_summary_row_takes_time_from_operations_header():
    grid = [
        ["OPERATIONS", 12],
        [None, 0.08, None, 0.96],
        ["Ironing", 2, 0.05, 0.1],
    ]
    result = segment(grid)
    assert result.sections[SectionTag.OPERATIONS] == [
        OperationLineItem("", "12.00", "0.08", "0.96"),
        OperationLineItem("Ironing", "2.00", "0.05", "0.10"),
    ]
    assert result.sentinel_row is None
    assert result.total_factory_cost is None


def test_duplicate_operation_lines_are_dropped():
    grid = [
        ["OPERATIONS"],
        ["Sewing", 12, 0.08, 0.96],
        ["Sewing", 12, 0.08, 0.96],
    ]
    result = segment(grid)
    assert len(result.sections[SectionTag.OPERATIONS]) == 1


def test_header_row_rebuilds_roles_mid_block():
    grid = [
        ["FABRIC", "MATERIAL COST", "CONSUMPTION", "MATERIAL PRICE"],
        ["Twill", 1.2, 0.3, 4],
        ["DESCRIPTION", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
        ["Mesh", 0.1, 2.5, 0.25],
    ]
    fabric = segment(grid).sections[SectionTag.FABRIC]
    assert [(i.label, i.cost, i.consumption, i.price) for i in fabric] == [
        ("Twill", "1.20", "0.30", "4.00"),
        ("Mesh", "0.25", "0.10", "2.50"),
    ]


def test_notes_block_is_collected():
    grid = [
        ["FABRIC"],
        ["Twill", 1, 1, 1],
        ["NOTES"],
        ["Visor board 5mm"],
        ["Price valid 30 days"],
        ["TOTAL FACTORY COST", None, None, 3],
    ]
    result = segment(grid)
    assert result.notes_lines == ["Visor board 5mm", "Price valid 30 days"]
    assert result.total_factory_cost == "3.00"


def test_notes_block_ends_at_total_keyword():
    grid = [["NOTES"], ["free text"], ["SUBTOTAL"], ["Cutting", 3, 0.1, 0.3]]
    result = segment(grid)
    assert result.notes_lines == ["free text"]
    # back to unsectioned rows after the notes block
    assert _labels(result, SectionTag.OPERATIONS) == ["Cutting"]


def test_unsectioned_rows_go_through_fallback():
    grid = [
        ["Customer:", "Acme"],
        ["Cutting", 3, 0.1, 0.3],
        ["FABRIC"],
        ["Twill", 1, 1, 1],
    ]
    result = segment(grid)
    assert result.sections[SectionTag.OPERATIONS] == [
        OperationLineItem("Cutting", "3.00", "0.10", "0.30"),
    ]
    assert _labels(result, SectionTag.FABRIC) == ["Twill"]


def test_overhead_lines_without_block_header():
    grid = [["OVERHEAD", None, None, 2.0], ["PROFIT", None, None, 1.5]]
    overhead = segment(grid).sections[SectionTag.OVERHEAD]
    assert [(i.label, i.cost) for i in overhead] == [("OVERHEAD", "2.00"), ("PROFIT", "1.50")]


def test_total_rows_inside_a_section_are_skipped():
    grid = [
        ["TRIM"],
        ["Buckle", 1, 0.08, 0.08],
        ["SUB-TOTAL", None, None, 0.08],
    ]
    assert _labels(segment(grid), SectionTag.TRIM) == ["Buckle"]


def test_yarn_label_does_not_open_a_block_on_ballcaps():
    grid = [
        ["FABRIC", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
        ["Twill", 0.2, 5, 1.0],
        ["MATERIAL", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
        ["Mesh", 0.1, 2.5, 0.25],
    ]
    result = segment(grid, Category.BALLCAPS)
    assert _labels(result, SectionTag.FABRIC) == ["Twill", "Mesh"]
    assert result.sections[SectionTag.YARN] == []


def test_fallback_candidates():
    assert is_fallback_candidate(["Cutting", 3, 0.1, 0.3])
    assert not is_fallback_candidate(["Season:", "F25"])
    assert not is_fallback_candidate(["FABRIC", 1])
    assert not is_fallback_candidate(["TOTAL", None, None, 3])
    assert not is_fallback_candidate(["NAME", "TIME", "COST"])
    assert not is_fallback_candidate([None, ""])


def test_header_time_only_applies_to_the_next_row():
    grid = [
        ["OPERATIONS", 12],
        ["Sewing", 12, 0.08, 0.96],
        [None, None, None, 0.96],
    ]
    result = segment(grid)
    assert result.sections[SectionTag.OPERATIONS] == [
        OperationLineItem("Sewing", "12.00", "0.08", "0.96"),
    ]


def test_error_token_row_keeps_learned_columns():
    grid = [
        ["PACKAGING", "FACTORY NOTES", None, "COST"],
        ["Carton", "cost tbc", None, "#REF!"],
        ["Polybag", "1 per cap", None, 0.05],
    ]
    packaging = segment(grid).sections[SectionTag.PACKAGING]
    assert [(i.label, i.cost, i.notes) for i in packaging] == [("Polybag", "0.05", "1 per cap")]
