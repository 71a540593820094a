from __future__ import annotations

from metrics_grid.classify import NEUTRAL_STYLE, no_classifier
from metrics_grid.config import GridConfig
from metrics_grid.formatting import PLACEHOLDER
from metrics_grid.grid import (
    EMPTY_FILTERED_MESSAGE,
    EMPTY_MESSAGE,
    FILTERED_BADGE,
    GridOptions,
    ReportGrid,
    options_from_config,
)
from metrics_grid.thresholds import SPEND_ROAS


def _rows() -> list[dict[str, object]]:
    return [
        {
            "Channel": "Direct",
            "Total Sessions": 300,
            "Avg Conv. Rate": 2.0,
            "Total Purchases": 6,
            "MonthlyData": [
                {"Month": "202503", "Sessions": 200, "Conv. Rate": 3.0, "Purchases": 6},
                {"Month": "202502", "Sessions": 100, "Conv. Rate": 1.0},
            ],
        },
        {
            "Channel": "Organic",
            "Total Sessions": 100,
            "Avg Conv. Rate": 1.0,
            "MonthlyData": [{"Month": "202503", "Sessions": 50, "Conv. Rate": 0.5}],
        },
    ]


def _many_rows(count: int) -> list[dict[str, object]]:
    return [
        {
            "Channel": f"C{index}",
            "Total Sessions": index,
            "MonthlyData": [{"Month": "202503", "Sessions": index, "Conv. Rate": 1.0}],
        }
        for index in range(count)
    ]


def _options(**overrides: object) -> GridOptions:
    options = GridOptions(
        primary_column="Channel",
        secondary_columns=["Total Sessions", "Avg Conv. Rate"],
    )
    for name, value in overrides.items():
        setattr(options, name, value)
    return options


def test_view_headers_carry_layout_averages_and_subtitles() -> None:
    view = ReportGrid(_rows(), _options()).view()

    assert [header.label for header in view.headers] == [
        "Channel",
        "Total Sessions",
        "Avg Conv. Rate",
        "Mar-2025",
        "Feb-2025",
    ]
    assert view.headers[1].annotation == "(avg: 200)"
    assert view.headers[2].annotation == "(avg: 1.50%)"
    assert view.headers[3].subtitle == "Sessions / Conv. Rate"
    assert view.headers[0].badge == ""
    assert view.headers[0].width == 130
    assert view.headers[3].max_width == 150


def test_month_cells_are_classified_against_dataset_averages() -> None:
    view = ReportGrid(_rows(), _options()).view()
    direct, organic = view.rows

    assert direct.key == "Direct-0"
    march = direct.cells[3]
    assert march.lines == ("200", "3.00%")
    assert march.details == ("Purchases: 6",)
    assert march.background == "#D7FFDF"
    assert march.indicator == "positive"

    february = direct.cells[4]
    assert february.background == "#FFF1F2"
    assert february.indicator == "negative"

    missing = organic.cells[4]
    assert missing.text == PLACEHOLDER
    assert missing.lines == (PLACEHOLDER, PLACEHOLDER)
    assert missing.background == NEUTRAL_STYLE.background


def test_summary_cells_use_row_level_averages() -> None:
    view = ReportGrid(_rows(), _options()).view()
    direct, organic = view.rows

    assert direct.cells[1].text == "300"
    assert direct.cells[1].indicator == "up"
    assert direct.cells[2].text == "2.00%"
    assert direct.cells[2].details == ("Total Purchases: 6",)
    assert organic.cells[1].indicator == "down"
    assert organic.cells[1].background == "#FFF1F2"


def test_filter_derives_months_from_filtered_rows_but_keeps_full_averages() -> None:
    grid = ReportGrid(_rows(), _options(), filter_values=["Organic"])
    view = grid.view()

    assert [header.label for header in view.headers] == [
        "Channel",
        "Total Sessions",
        "Avg Conv. Rate",
        "Mar-2025",
    ]
    assert view.headers[0].badge == FILTERED_BADGE
    assert view.headers[1].annotation == "(avg: 200)"
    assert view.footer_label == "Showing 1-1 of 1 rows (Filtered from 2 total rows)"
    assert view.filter_active


def test_empty_filter_shows_filtered_empty_state_without_badge() -> None:
    view = ReportGrid(_rows(), _options(), filter_values=[]).view()

    assert view.rows == ()
    assert view.empty_message == EMPTY_FILTERED_MESSAGE
    assert view.headers[0].badge == ""
    assert [header.kind for header in view.headers] == ["primary", "secondary", "secondary"]
    assert view.footer_label == "No rows to display (Filter: Unknown) | Total rows: 2"


def test_empty_dataset_shows_plain_empty_state() -> None:
    view = ReportGrid([], _options()).view()

    assert view.empty_message == EMPTY_MESSAGE
    assert view.total_pages == 1
    assert view.thresholds["Sessions"] == 0.0


def test_pagination_resets_on_filter_change() -> None:
    grid = ReportGrid(_many_rows(120), _options())
    assert grid.go_to_page(3) == 3

    view = grid.view()
    assert len(view.rows) == 20
    assert view.footer_label == "Showing 101-120 of 120 rows"
    assert view.has_previous and not view.has_next

    grid.set_filter(["C1", "C2"])
    assert grid.view().page == 1


def test_page_size_change_resets_page() -> None:
    grid = ReportGrid(_many_rows(120), _options())
    grid.go_to_page(2)
    grid.set_page_size("all")

    view = grid.view()
    assert view.page == 1
    assert len(view.rows) == 120


def test_sorting_when_enabled() -> None:
    grid = ReportGrid(_rows(), _options(sortable=True))
    grid.toggle_sort("Total Sessions")
    view = grid.view()

    assert [row.cells[0].text for row in view.rows] == ["Organic", "Direct"]
    assert view.headers[1].sortable
    assert view.headers[1].sort_direction == "asc"
    assert not view.headers[3].sortable


def test_sorting_is_a_no_op_when_disabled() -> None:
    grid = ReportGrid(_rows(), _options())
    grid.toggle_sort("Total Sessions")
    view = grid.view()

    assert [row.cells[0].text for row in view.rows] == ["Direct", "Organic"]
    assert not view.headers[1].sortable


def test_chunked_mode_loads_incrementally() -> None:
    grid = ReportGrid(_many_rows(70), _options(mode="chunked", chunk_size=30))

    view = grid.view()
    assert len(view.rows) == 30
    assert view.can_load_more
    assert view.footer_label is None

    assert grid.load_more() == 30
    assert grid.load_more() == 10
    view = grid.view()
    assert len(view.rows) == 70
    assert not view.can_load_more


def test_full_mode_renders_every_row() -> None:
    view = ReportGrid(_many_rows(120), _options(mode="full")).view()

    assert len(view.rows) == 120
    assert view.footer_label is None


def test_set_rows_recomputes_averages_and_resets_page() -> None:
    grid = ReportGrid(_many_rows(120), _options())
    grid.go_to_page(2)

    grid.set_rows(_rows())
    view = grid.view()

    assert view.page == 1
    assert view.headers[1].annotation == "(avg: 200)"


def test_classifier_is_pluggable() -> None:
    view = ReportGrid(_rows(), _options(classifier=no_classifier)).view()

    assert view.rows[0].cells[3].background == NEUTRAL_STYLE.background
    assert view.rows[0].cells[1].indicator == ""


def test_options_from_config_maps_full_screen_and_metric_pair() -> None:
    options = options_from_config(
        GridConfig(full_screen=True, metric_pair="spend_roas", page_size="100")
    )

    assert options.mode == "full"
    assert options.metric_pair == SPEND_ROAS
    assert options.page_size == "100"
    assert options_from_config(GridConfig(mode="chunked", full_screen=True)).mode == "chunked"


def test_view_to_dict_is_serialisable() -> None:
    payload = ReportGrid(_rows(), _options()).view().to_dict()

    assert payload["total_rows"] == 2
    assert payload["headers"][0]["label"] == "Channel"
    assert payload["rows"][0]["cells"][3]["lines"] == ("200", "3.00%")


def test_aggregate_headers_state_the_averages_their_cells_are_coloured_against() -> None:
    rows = [
        {
            "Channel": name,
            "Total Sessions": total,
            "Avg Conv. Rate": 2.0,
            "MonthlyData": [{"Month": "202503", "Sessions": 10, "Conv. Rate": 2.0}],
        }
        for name, total in (("A", 300), ("B", 150), ("C", 150))
    ]

    view = ReportGrid(rows, _options()).view()

    assert view.headers[1].annotation == "(avg: 200)"
    assert view.headers[2].annotation == "(avg: 2.00%)"
    assert view.thresholds["Total Sessions"] == 200
    assert view.thresholds["Sessions"] == 10
    above, below, _ = view.rows
    assert (above.cells[1].text, above.cells[1].indicator) == ("300", "up")
    assert (below.cells[1].text, below.cells[1].indicator) == ("150", "down")
    assert below.cells[1].background == "#FFFBEB"


def test_average_columns_are_coloured_against_their_own_mean() -> None:
    rows = [
        {"Date": "01-03-2025", "Add To Cart Rate": 2.0, "Purchases": 4},
        {"Date": "02-03-2025", "Add To Cart Rate": 4.0, "Purchases": 9},
        {"Date": "03-03-2025", "Add To Cart Rate": 3.0, "Purchases": 5},
    ]
    options = GridOptions(
        primary_column="Date",
        secondary_columns=["Add To Cart Rate", "Purchases"],
        average_columns=["Add To Cart Rate"],
    )

    view = ReportGrid(rows, options).view()

    assert view.headers[1].annotation == "(avg: 3.00%)"
    assert view.headers[2].annotation == ""
    low, high, level = (row.cells[1] for row in view.rows)
    assert (low.text, low.indicator, low.background) == ("2.00%", "below", "#FEF2F2")
    assert (high.indicator, high.background) == ("above", "#DCFCE7")
    assert (level.indicator, level.background) == ("equal", "#FEF9C3")
    assert view.rows[0].cells[2].indicator == ""


def test_options_from_config_passes_average_columns() -> None:
    options = options_from_config(GridConfig(average_columns=["Checkout Rate"]))

    assert options.average_columns == ["Checkout Rate"]
