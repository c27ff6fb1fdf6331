"""
Help renderer: a pure formatter from command facts to rich renderables.

Layout
    <help>

    <descr>

    USAGE:
      app serve [OPTIONS] <COMMAND>

    OPTIONS:
      -h, --help                   show usage help
      -p, --port <PORT>  PORT      port to listen on  (default: 8080)
          --token <VALUE>          api token  (required)

    COMMANDS:
      http  serve plain http

Palette keys
- help-section, description-section, section-label, usage-section
- option-name, flag-name, metavar, env-name, argument-description
- default-note, required-note, children, children-description

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed entirely.
- Non-terminal files (pipes, StringIO) always receive plain text.
"""
import io
from collections import defaultdict

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text


def _styles():
    return defaultdict(str, {
        # === Head sections ===
        "help-section": "bold #FFFFFF",
        "description-section": "italic #A3A3A3",  # Neutral gray
        "section-label": "bold #00E6FF",  # CYAN → signature info color
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan

        # === Names / metavars ===
        "option-name": "bold #00E6FF",  # CYAN for options
        "flag-name": "bold #22C55E",  # GREEN for flags
        "metavar": "bold #FFD600",  # AMBER for parameters
        "env-name": "#A78BFA",
        "argument-description": "#9CA3AF",  # Muted gray
        "default-note": "#737373",
        "required-note": "bold #EF4444",

        # === Children ===
        "children": "bold #36C5F0",  # Sky-blue subcommands
        "children-description": "#9CA3AF",
    } | getattr(__import__("__main__"), "__styles__", {}))


def render(usage, /, help=None, descr=None, fields=(), children=(), *, colorful=True):
    """
    Build the help screen of a command.

    Parameters
    - usage: str, the full usage line (see Command.usage()).
    - help, descr: str | None, one-line summary and long description.
    - fields: Iterable[Field], in declaration order; hidden ones are skipped.
    - children: Iterable[tuple[str, str | None]], subcommand names and summaries.
    - colorful: bool, apply the palette.

    Returns
    - rich.console.Group
    """
    styles = _styles()

    def text(fragment, style=""):
        return Text(str(fragment), styles[style] if colorful else "")

    renders = []

    if help:
        renders.append(text(help, "help-section"))
        renders.append(Text())
    if descr:
        renders.append(text(descr, "description-section"))
        renders.append(Text())

    renders.append(Text.assemble(text("USAGE", "section-label"), ":"))
    renders.append(Text.assemble("  ", text(usage, "usage-section")))

    if fields := [field for field in fields if not field.hidden]:
        table = Table.grid(padding=(0, 2), pad_edge=True)
        table.add_column(no_wrap=True)
        table.add_column(no_wrap=True)
        table.add_column()
        for field in fields:
            style = "option-name" if field.has_argument else "flag-name"
            names = Text.assemble(
                text(f"-{field.short}", style) if field.short else "  ",
                ", " if field.short else "  ",
                text(f"--{field.name}", style),
            )
            if field.has_argument:
                names.append(" ").append(text(f"<{field.metavar}>", "metavar"))

            description = text(field.descr or "", "argument-description")
            if field.has_argument:
                if field.required:
                    description.append("  ").append(text("(required)", "required-note"))
                elif default := field.format_default():
                    description.append("  ").append(text(f"(default: {default})", "default-note"))
            table.add_row(names, text(field.env or "", "env-name"), description)

        renders.append(Text())
        renders.append(Text.assemble(text("OPTIONS", "section-label"), ":"))
        renders.append(table)

    if children := list(children):
        table = Table.grid(padding=(0, 2), pad_edge=True)
        table.add_column(no_wrap=True)
        table.add_column()
        for name, summary in children:
            table.add_row(text(name, "children"), text(summary or "", "children-description"))

        renders.append(Text())
        renders.append(Text.assemble(text("COMMANDS", "section-label"), ":"))
        renders.append(table)

    return Group(*renders)


def write(file, renderable, /, *, colorful=True):
    """
    Print a renderable to a text stream.
    """
    console = Console(file=file, no_color=not colorful, highlight=False)
    console.print(renderable)


def format(renderable, /):
    """
    Return a renderable as plain text.
    """
    buffer = io.StringIO()
    write(buffer, renderable, colorful=False)
    return buffer.getvalue()


__all__ = (
    "render",
    "write",
    "format",
)
