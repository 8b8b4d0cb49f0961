from __future__ import annotations

from rich import box
from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from ..slider import Selection, SliderState
from ..timeparse import format_clock

SLIDER_WIDTH = 50

CONTROL_ROWS = [
    ("[cyan]1[/] / [cyan]2[/]", "Select [cyan]start/end[/] position"),
    ("[yellow]←[/] / [yellow]→[/]", "Adjust by seconds"),
    ("[yellow]↑[/] / [yellow]↓[/]", "Adjust by minutes"),
    (
        "[green]Shift[/] + [yellow]←[/] / [yellow]→[/]  or  [yellow],[/] / [yellow].[/]",
        "Adjust by [blue]tenths of a second[/]",
    ),
    ("[cyan]Space[/]", "Enter exact time"),
    ("[green]Enter[/]", "Confirm"),
    ("[red]Esc[/]", "Cancel"),
]


def slider_cells(state: SliderState, width: int = SLIDER_WIDTH) -> list[tuple[str, str]]:
    if width < 2:
        raise ValueError("Slider width must be at least 2")
    start_idx = _cell_index(state.start, state.duration, width)
    end_idx = _cell_index(state.end, state.duration, width)
    active_idx = start_idx if state.selection is Selection.START else end_idx
    cells: list[tuple[str, str]] = []
    for idx in range(width):
        if idx == active_idx:
            cells.append(("●", "bold yellow"))
        elif idx in (start_idx, end_idx):
            cells.append(("●", "green"))
        elif start_idx < idx < end_idx:
            cells.append(("━", "green"))
        else:
            cells.append(("─", "grey50"))
    return cells


def render_slider(state: SliderState, width: int = SLIDER_WIDTH) -> Text:
    text = Text("0s ")
    for char, style in slider_cells(state, width):
        text.append(char, style=style)
    text.append(f" {state.duration:.2f}s")
    return text


def render_state(state: SliderState) -> RenderableType:
    adjusting = "Start" if state.selection is Selection.START else "End"
    header = Text.from_markup(
        f"\nVideo duration: [blue]{format_clock(state.duration)}[/]\n"
        f"Selected range: [green]{format_clock(state.start)} - {format_clock(state.end)}[/]\n\n"
        f"Currently adjusting: [blue]{adjusting}[/] position\n"
    )
    footer = time_input_table(state.buffer) if state.is_typing else controls_table()
    return Group(header, render_slider(state), Text(""), footer)


def controls_table() -> Table:
    table = Table(box=box.ROUNDED)
    table.add_column("Key", no_wrap=True)
    table.add_column("Action")
    for key, action in CONTROL_ROWS:
        table.add_row(key, action)
    return table


def time_input_table(buffer: str) -> Table:
    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Time Input", justify="center")
    value = Text("█")
    if buffer:
        value = Text(buffer, style="underline") + Text("█")
    table.add_row(Text.assemble(("Enter time value: ", "blue"), value))
    table.add_row(Text("(ss) or (mm:ss) or (mm:ss.ms)", style="grey50"))
    table.add_row(Text.from_markup("[green]Enter[/] to confirm, [red]Esc[/] to cancel"))
    return table


def _cell_index(value: float, duration: float, width: int) -> int:
    if duration <= 0:
        return 0
    ratio = min(max(value / duration, 0.0), 1.0)
    return int(round(ratio * (width - 1)))
