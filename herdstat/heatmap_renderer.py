"""
Heatmap renderer for contribution graphs.

Lays out the week slices of a calendar as a GitHub-style grid of colored
cells with month and weekday labels, hover tooltips, an overall count and a
legend, and renders the result as a self-contained SVG document using a
Jinja2 template.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from herdstat.color_quantizer import ColorQuantizer
from herdstat.contribution_calendar import Calendar, DayRecord
from herdstat.week_partitioner import MONTH_ABBREVIATIONS, partition, sunday_weekday

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "contribution_graph.svg.j2"

CANVAS_WIDTH = 700
CANVAS_HEIGHT = 150

# Distance between neighbouring cells, cells are 10px with 2px gap
CELL_PITCH = 12
CELL_SIZE = 10

TOOLTIP_WIDTH = 230
TOOLTIP_HEIGHT = 30
# Height and half-width of the tooltip "tip"
TOOLTIP_TIP_SIZE = 5
# Vertical distance of the tooltip "tip" from the cell centre
TOOLTIP_OFFSET = 10


class HeatmapRenderError(Exception):
    """Raised when the contribution graph markup cannot be produced."""


class HorizontalAnchor(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalAnchor(Enum):
    TOP = "top"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def offset(self, dx: int = 0, dy: int = 0) -> "Point":
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class TooltipAnchor:
    horizontal: HorizontalAnchor
    vertical: VerticalAnchor


def tooltip_anchor(slice_index: int, weekday: int) -> TooltipAnchor:
    """
    Choose where a tooltip opens relative to its cell.

    Tooltips of the leftmost and rightmost columns open inwards, tooltips of
    the top three rows open below the cell.

    Args:
        slice_index: Column of the cell
        weekday: Row of the cell (Sunday = 0)
    """
    if slice_index < 10:
        horizontal = HorizontalAnchor.LEFT
    elif slice_index > 42:
        horizontal = HorizontalAnchor.RIGHT
    else:
        horizontal = HorizontalAnchor.CENTER
    vertical = VerticalAnchor.BOTTOM if weekday <= 2 else VerticalAnchor.TOP
    return TooltipAnchor(horizontal, vertical)


def tooltip_box_origin(location: Point, anchor: TooltipAnchor) -> Point:
    """Upper left corner of the tooltip box pointing at `location`."""
    if anchor.horizontal is HorizontalAnchor.LEFT:
        dx = -4 * TOOLTIP_TIP_SIZE
    elif anchor.horizontal is HorizontalAnchor.CENTER:
        dx = -TOOLTIP_WIDTH // 2
    else:
        dx = -TOOLTIP_WIDTH + 4 * TOOLTIP_TIP_SIZE
    if anchor.vertical is VerticalAnchor.TOP:
        dy = -(TOOLTIP_TIP_SIZE + TOOLTIP_HEIGHT + TOOLTIP_OFFSET)
    else:
        dy = TOOLTIP_TIP_SIZE + TOOLTIP_OFFSET
    return location.offset(dx, dy)


def tooltip_tip_points(location: Point, vertical: VerticalAnchor) -> str:
    """SVG polygon points of the triangle connecting box and cell."""
    if vertical is VerticalAnchor.TOP:
        size, offset = TOOLTIP_TIP_SIZE, TOOLTIP_OFFSET
    else:
        size, offset = -TOOLTIP_TIP_SIZE, -TOOLTIP_OFFSET
    return (
        f"{location.x - TOOLTIP_TIP_SIZE},{location.y - size - offset} "
        f"{location.x + TOOLTIP_TIP_SIZE},{location.y - size - offset} "
        f"{location.x},{location.y - offset}"
    )


def format_day(day: date) -> str:
    """Format a date like "Apr 22, 2013"."""
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}, {day.year}"


def contributions_text(count: int) -> str:
    return f"{count} contributions"


@dataclass(frozen=True)
class Tooltip:
    anchor: TooltipAnchor
    origin: Point
    points: str
    text_position: Point
    count_text: str
    date_text: str

    @property
    def width(self) -> int:
        return TOOLTIP_WIDTH

    @property
    def height(self) -> int:
        return TOOLTIP_HEIGHT

    @property
    def text(self) -> str:
        return f"{self.count_text} {self.date_text}"


@dataclass(frozen=True)
class Cell:
    record: DayRecord
    y: int
    level: int
    tooltip: Tooltip


@dataclass(frozen=True)
class Column:
    index: int
    x: int
    month_label: str | None
    month_label_x: int
    month_label_anchor: str
    cells: tuple[Cell, ...]


@dataclass(frozen=True)
class Label:
    position: Point
    anchor: str
    text: str


@dataclass(frozen=True)
class Swatch:
    position: Point
    level: int


@dataclass(frozen=True)
class GraphLayout:
    """Everything the SVG template needs, positioned in pixels."""

    width: int
    height: int
    levels: int
    light_palette: tuple[str, ...]
    dark_palette: tuple[str, ...]
    origin: Point
    columns: tuple[Column, ...]
    weekday_labels: tuple[Label, ...]
    total: int
    total_position: Point
    legend_less: Label
    legend_more: Label
    legend_swatches: tuple[Swatch, ...]

    @property
    def total_text(self) -> str:
        return contributions_text(self.total)


def _build_tooltip(record: DayRecord, slice_index: int, weekday: int) -> Tooltip:
    # Centre of the cell, relative to its column
    location = Point(CELL_SIZE // 2, weekday * CELL_PITCH + CELL_SIZE // 2)
    anchor = tooltip_anchor(slice_index, weekday)
    origin = tooltip_box_origin(location, anchor)
    return Tooltip(
        anchor=anchor,
        origin=origin,
        points=tooltip_tip_points(location, anchor.vertical),
        text_position=origin.offset(TOOLTIP_WIDTH // 2, TOOLTIP_HEIGHT // 2 + 4),
        count_text=contributions_text(record.count),
        date_text=f"on {format_day(record.date)}",
    )


class HeatmapRenderer:
    """Renders a contribution calendar as an SVG heatmap."""

    def __init__(self, quantizer: ColorQuantizer, environment: Environment | None = None):
        """
        Args:
            quantizer: Color levels and spectra used for the cells
            environment: Jinja2 environment providing the graph template.
                Defaults to the templates shipped with the package.
        """
        self.quantizer = quantizer
        if environment is None:
            environment = Environment(
                loader=FileSystemLoader(TEMPLATES_DIR),
                autoescape=True,
                undefined=StrictUndefined,
                trim_blocks=True,
                lstrip_blocks=True,
            )
        self.environment = environment

    def layout(self, calendar: Calendar) -> GraphLayout:
        """
        Compute the geometry of the contribution graph.

        Raises:
            GraphDefectError: If the calendar cannot be split into weeks
        """
        slices = partition(calendar)
        max_count = calendar.max_count()

        # 52 full weeks leave the leftmost column empty
        origin = Point(50, 10)
        if len(slices) == 52:
            origin = origin.offset(dx=CELL_PITCH)

        columns = []
        for week in slices:
            is_last = week.index == len(slices) - 1
            cells = []
            for record in week.records:
                weekday = sunday_weekday(record.date)
                cells.append(
                    Cell(
                        record=record,
                        y=weekday * CELL_PITCH,
                        level=self.quantizer.level_of(record, max_count),
                        tooltip=_build_tooltip(record, week.index, weekday),
                    )
                )
            columns.append(
                Column(
                    index=week.index,
                    x=CELL_PITCH * week.index,
                    month_label=week.month_label if week.is_first_week_of_month else None,
                    # Keep the label of the rightmost column inside the canvas
                    month_label_x=CELL_SIZE if is_last else 0,
                    month_label_anchor="end" if is_last else "start",
                    cells=tuple(cells),
                )
            )

        weekday_labels = tuple(
            Label(Point(40, row * CELL_PITCH + 9 + 30), "end", text)
            for row, text in ((1, "Mon"), (3, "Wed"), (5, "Fri"))
        )

        legend = Point(565, 125)
        swatches = tuple(
            Swatch(legend.offset(dx=29 + i * CELL_PITCH), level)
            for i, level in enumerate(self.quantizer.legend_levels())
        )
        legend_less = Label(legend.offset(dy=9), "start", "Less")
        legend_more = Label(
            legend.offset(dx=29 + len(swatches) * CELL_PITCH + 1, dy=9), "start", "More"
        )

        return GraphLayout(
            width=CANVAS_WIDTH,
            height=CANVAS_HEIGHT,
            levels=self.quantizer.levels,
            light_palette=tuple(self.quantizer.palette(dark=False)),
            dark_palette=tuple(self.quantizer.palette(dark=True)),
            origin=origin,
            columns=tuple(columns),
            weekday_labels=weekday_labels,
            total=calendar.total_count(),
            total_position=Point(65, 125 + 9),
            legend_less=legend_less,
            legend_more=legend_more,
            legend_swatches=swatches,
        )

    def render(self, calendar: Calendar) -> str:
        """
        Render the calendar as an SVG document.

        Cells are drawn in a first pass over the columns, the transparent
        hover targets and their tooltips in a second pass so that no tooltip
        is hidden behind a cell of a later column.

        Returns:
            The SVG markup

        Raises:
            GraphDefectError: If the calendar cannot be split into weeks
            HeatmapRenderError: If the template fails to render
        """
        graph = self.layout(calendar)
        try:
            template = self.environment.get_template(TEMPLATE_NAME)
            return template.render(graph=graph)
        except TemplateError as exc:
            raise HeatmapRenderError(f"Rendering contribution graph failed: {exc}") from exc
