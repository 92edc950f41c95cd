"""
Help rendering: synopsis line and column-aligned argument tables.

Layout
- TextTable places cells of rich Text into fixed-width Columns. Widths are
  measured in display cells (rich.cells), so wide glyphs count twice.
  Every column has an overflow policy:
  • truncate: cut the cell at the column edge.
  • span: borrow the following empty columns; when the row is full, wrap the
    cell over the rest of the row and move the remaining cells one line down.
  • wrap: wrap the cell inside the column; continuation lines start at the
    same column as the first one.
- Help turns a CommandSpec into sections:
    header, synopsis, description, positionals, options, group sections,
    commands, footer
  using the option table
    marker | short | comma | long names and label | description

Styling
- Descriptions may use rich markup ("[bold]x[/]") when UsageSettings.markup.
  Bracketed text that is not a style tag, such as "[json|yaml]", is kept
  as written.
- With UsageSettings.colorful, names and labels are styled from a palette;
  define a mapping named __styles__ in __main__ to override any entry:
  usage-label, program-name, option-name, label, marker, heading,
  command-name, description, default.

Example
    >>> from argosy import CommandSpec, Option, Help
    >>> print(Help(CommandSpec("tool", Option("-v", "--verbose", type=bool))))
    Usage: tool [-v]
    <BLANKLINE>
      -v, --verbose
"""
import logging
import re
from collections import defaultdict

from rich.cells import cell_len
from rich.console import Console
from rich.errors import MarkupError, StyleSyntaxError
from rich.markup import escape
from rich.style import Style
from rich.text import Text

from .arguments import Option, Positional
from .groups import ArgGroup
from .settings import UsageSettings
from .utils import *

logger = logging.getLogger(__name__)

_OVERFLOWS = ("truncate", "span", "wrap")
_BRACKETED = re.compile(r"(?<!\\)\[([^\[\]]*)\]")


class Column:
    __slots__ = ("_width", "_indent", "_overflow")

    width = mirror("width")
    indent = mirror("indent")
    overflow = mirror("overflow")

    def __init__(self, width, /, indent=0, overflow="wrap"):
        if not isinstance(width, int) or isinstance(width, bool) or width < 1:
            raise ValueError("column 'width' must be a positive integer")
        if not isinstance(indent, int) or not 0 <= indent < width:
            raise ValueError("column 'indent' must lie between 0 and the column width")
        if overflow not in _OVERFLOWS:
            raise ValueError(f"column 'overflow' must be one of {', '.join(_OVERFLOWS)}")
        self._width = width
        self._indent = indent
        self._overflow = overflow

    def __repr__(self):
        return f"column({self._width}, indent={self._indent}, overflow={self._overflow!r})"


class TextTable:
    """
    Rows of rich Text laid out over fixed columns.

    Rows are added with add_row(); the rendered lines are right-stripped and
    never exceed the sum of the column widths.
    """
    __slots__ = ("_columns", "_console", "_lines")

    columns = mirror("columns")

    def __init__(self, *columns, console=Unset):
        if not columns or not all(isinstance(column, Column) for column in columns):
            raise TypeError("text-table needs at least one column")
        self._columns = columns
        self._console = coalesce(console, Console())
        self._lines = []

    @property
    def width(self):
        return sum(column.width for column in self._columns)

    def _wrap(self, text, width, /):
        lines = text.wrap(self._console, max(width, 1), overflow="fold")
        for line in lines:
            line.rstrip()
        return list(lines) or [Text()]

    def _put(self, number, offset, text, /):
        while len(self._lines) <= number:
            self._lines.append(Text())
        line = self._lines[number]
        if (gap := offset - cell_len(line.plain)) > 0:
            line.append(" " * gap)
        line.append_text(text)

    def add_row(self, *cells):
        """add one logical row; missing trailing cells are empty."""
        if len(cells) > len(self._columns):
            raise ValueError("text-table row has more cells than columns")
        cells = [_text(cell) for cell in cells] + [Text()] * (len(self._columns) - len(cells))

        first = number = len(self._lines)
        offset = 0
        index = 0
        while index < len(self._columns):
            column, text = self._columns[index], cells[index]
            start = offset + column.indent
            room = column.width - column.indent
            offset += column.width
            index += 1
            if not text:
                continue

            match column.overflow:
                case "truncate":
                    text = text.copy()
                    text.truncate(room)
                    self._put(number, start, text)
                case "wrap":
                    for count, line in enumerate(self._wrap(text, room)):
                        self._put(number + count, start, line)
                case "span":
                    while text.cell_len > room and index < len(self._columns) and not cells[index]:
                        room += self._columns[index].width
                        offset += self._columns[index].width
                        index += 1
                    if text.cell_len <= room:
                        self._put(number, start, text)
                        continue
                    lines = self._wrap(text, self.width - start)
                    for count, line in enumerate(lines):
                        self._put(number + count, start, line)
                    number += len(lines)

        if len(self._lines) == first:
            self._lines.append(Text())
        return self

    def lines(self):
        lines = []
        for line in self._lines:
            line = line.copy()
            line.rstrip()
            lines.append(line)
        return lines

    def __rich__(self):
        return Text("\n").join(self.lines())

    def __str__(self):
        return "\n".join(line.plain for line in self.lines())


def _escape(line, /):
    """escape bracketed text that is not a rich style tag."""
    def replace(found):
        if found[1].startswith("/"):
            return found[0]
        try:
            Style.parse(found[1])
        except StyleSyntaxError:
            return escape(found[0])
        return found[0]

    return _BRACKETED.sub(replace, line)


def _text(fragment, /, style=""):
    if isinstance(fragment, Text):
        return fragment
    if fragment is Unset or fragment is None:
        return Text()
    return Text(str(fragment), style)


def _palette():
    return defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "option-name": "bold #00E6FF",
        "label": "bold #FFD600",
        "marker": "bold #EF4444",
        "heading": "bold #FFFFFF",
        "command-name": "bold #36C5F0",
        "description": "#9CA3AF",
        "default": "italic #737373",
    } | getattr(__import__("__main__"), "__styles__", {}))


class Help:
    """
    Usage help of one command.

    Parameters
    - command: the CommandSpec to describe.
    - settings: UsageSettings (width, sort order, headings, ...).
    - console: rich Console used to wrap and print (stdout when Unset).

    Sections are available on their own (synopsis(), positionals(),
    options(), commands()); render() assembles the whole page and str()
    returns it as plain text.
    """
    __slots__ = ("_command", "_settings", "_console", "_styles")

    command = mirror("command")
    settings = mirror("settings")

    def __init__(self, command, /, settings=Unset, *, console=Unset):
        settings = coalesce(settings, UsageSettings())
        if not isinstance(settings, UsageSettings):
            raise TypeError("help 'settings' must be usage-settings")
        self._command = command
        self._settings = settings
        self._console = coalesce(console, Console())
        self._styles = _palette()

    @property
    def width(self):
        return self._settings.width

    # ── fragments ────────────────────────────────────────────────────────────

    def _style(self, name, /):
        return self._styles[name] if self._settings.colorful else ""

    def _markup(self, line, /, style="description"):
        if isinstance(line, Text):
            return line.copy()
        if self._settings.markup:
            try:
                text = Text.from_markup(_escape(line))
            except MarkupError:
                logger.debug("markup of %r does not parse; rendered as written", line)
            else:
                text.stylize(self._style(style))
                return text
        return Text(line, self._style(style))

    def _name(self, name, /):
        return Text(name, self._style("option-name"))

    def _label(self, argument, /):
        return Text(argument.placeholder, self._style("label"))

    def _negatable(self, option, name, /):
        """"--[no-]verbose" for negatable long names, the name otherwise."""
        if not option.negatable or not name.startswith("--"):
            return name
        return "--[no-]" + (name[5:] if name.startswith("--no-") else name[2:])

    def _valued(self, option, /):
        """the "=<label>" part of an option, "[=<label>]" when the value is optional."""
        if option.arity.max == 0:
            return Text()
        separator = "="
        label = self._label(option)
        if option.arity.max > 1:
            label.append("...")
        if option.arity.optional:
            return Text.assemble("[", separator, label, "]")
        return Text.assemble(separator, label)

    def _positional(self, positional, /):
        """<file>, [<file>], <file>... or [<file>...] depending on arity."""
        label = self._label(positional)
        if positional.arity.max > 1:
            label.append("...")
        if positional.arity.optional:
            return Text.assemble("[", label, "]")
        return label

    def _sorted(self, options, /):
        match self._settings.sort:
            case "alphabetical":
                return sorted(options, key=lambda option: (option.shortest.lstrip("-").lower(), option.shortest))
            case "declaration":
                return sorted(options, key=lambda option: coalesce(option.order, 0))
            case _:
                return list(options)

    def _visible_options(self):
        command = self._command
        return [option for option in (*command.options, *command.inherited_options) if not option.hidden]

    def _visible_positionals(self):
        return [positional for positional in self._command.positionals if not positional.hidden]

    def _grouped(self, argument, /):
        return self._command.group_of(argument) is not None

    # ── synopsis ─────────────────────────────────────────────────────────────

    def _option_element(self, option, /, *, bracket=True):
        name = self._negatable(option, option.shortest)
        element = Text.assemble(self._name(name), self._valued(option))
        if not bracket:
            return element
        if option.required:
            if option.multivalued:
                return Text.assemble(element, " [", element.copy(), "]...")
            return element
        if option.multivalued:
            return Text.assemble("[", element, "]...")
        return Text.assemble("[", element, "]")

    def _group_element(self, group, /):
        members = []
        for member in group.members:
            if isinstance(member, ArgGroup):
                members.append(self._group_element(member))
            elif isinstance(member, Option):
                if member.hidden:
                    continue
                element = self._option_element(member, bracket=False)
                if not group.exclusive and not group.requires(member):
                    element = Text.assemble("[", element, "]")
                members.append(element)
            elif not member.hidden:
                members.append(self._positional(member))
        glue = " | " if group.exclusive else " "
        element = Text.assemble("(" if group.required else "[", Text(glue).join(members), ")" if group.required else "]")
        if group.multiplicity.max > 1:
            element.append("...")
        return element

    def _elements(self):
        command = self._command
        options = [option for option in self._sorted(self._visible_options()) if not self._grouped(option)]
        elements = []
        for kind in self._settings.synopsis_order:
            match kind:
                case "options" if options and self._settings.abbreviate_synopsis:
                    elements.append(Text("[OPTIONS]"))
                case "options":
                    clustered = []
                    if self._settings.cluster_booleans:
                        clustered = [
                            option for option in options
                            if option.arity.max == 0 and not option.required and len(option.shortest) == 2
                            and not option.shortest.startswith("--")
                        ]
                    if clustered:
                        elements.append(Text.assemble(
                            "[-", *(self._name(option.shortest[1]) for option in clustered), "]"
                        ))
                    elements.extend(self._option_element(option) for option in options if option not in clustered)
                case "groups":
                    elements.extend(self._group_element(group) for group in command.groups)
                case "positionals":
                    elements.extend(
                        self._positional(positional)
                        for positional in self._visible_positionals()
                        if not self._grouped(positional)
                    )
                case "commands":
                    if any(not subcommand.hidden for subcommand in command.subcommands):
                        elements.append(Text("[COMMAND]"))
        return elements

    def synopsis(self):
        """
        The "Usage: " line, wrapped to the configured width.

        Wrapped elements are indented under the first element; long command
        names fall back to an indentation of half the width.
        """
        heading = self._markup(self._settings.headings["synopsis"], "usage-label")
        usage = Text.assemble(heading, Text(self._command.qualified_name, self._style("program-name")))
        offset = usage.cell_len + 1
        if offset > self.width // 2:
            offset = min(cell_len(heading.plain), self.width // 2)

        lines = [usage]
        room = self.width - offset
        for element in self._elements():
            if lines[-1].cell_len + 1 + element.cell_len <= (self.width if len(lines) == 1 else room):
                lines[-1].append(" ").append_text(element)
                continue
            pieces = element.wrap(self._console, room, overflow="fold") if element.cell_len > room else [element]
            lines.extend(pieces)
        for number, line in enumerate(lines[1:], start=1):
            line.rstrip()
            lines[number] = Text.assemble(" " * offset, line)
        return Text("\n").join(lines)

    # ── tables ───────────────────────────────────────────────────────────────

    def _long_width(self, options, positionals, /):
        entries = [self._long_cell(option).cell_len for option in options]
        entries += [self._positional(positional).cell_len for positional in positionals]
        width = min(max(entries, default=0) + 2, self._settings.long_column_max)
        return max(4, min(width, self.width - 15))

    def _short_cell(self, option, /):
        if len(option.shortest) != 2 or option.shortest.startswith("--"):
            return Text()
        if len(option.names) == 1:
            return Text.assemble(self._name(option.shortest), self._valued(option))
        return self._name(option.shortest)

    def _long_cell(self, option, /):
        names = [
            self._negatable(option, name) for name in option.names
            if name != option.shortest or len(name) != 2 or name.startswith("--")
        ]
        if not names:
            return Text()
        return Text.assemble(Text(", ").join(map(self._name, names)), self._valued(option))

    def _description(self, argument, /):
        lines = [self._markup(line) for line in argument.descr]
        if self._settings.show_defaults and argument.default is not Unset:
            lines.append(Text("Default: " + argument.default.describe(), self._style("default")))
        return lines or [Text()]

    def _table(self, long_width, /):
        description = self.width - 5 - long_width
        return TextTable(
            Column(2, 0, "truncate"),
            Column(2, 0, "span"),
            Column(1, 0, "truncate"),
            Column(long_width, 1, "span"),
            Column(description, 1, "wrap"),
            console=self._console,
        )

    def _option_rows(self, table, options, /):
        marker = coalesce(self._settings.required_marker, " ")
        for option in options:
            short, long = self._short_cell(option), self._long_cell(option)
            first, *rest = self._description(option)
            table.add_row(
                Text(marker if option.required else "", self._style("marker")),
                short,
                "," if short and long else "",
                long,
                first,
            )
            for line in rest:
                table.add_row("", "", "", "", line)

    def _positional_rows(self, table, positionals, /):
        for positional in positionals:
            first, *rest = self._description(positional)
            table.add_row("", "", "", self._positional(positional), first)
            for line in rest:
                table.add_row("", "", "", "", line)

    def _section(self, heading, table, /):
        lines = []
        if heading:
            lines.extend(self._markup(heading, "heading").split("\n"))
        lines.extend(table.lines())
        return lines

    def positionals(self):
        """lines of the positional parameter table (empty when there is none)."""
        positionals = [positional for positional in self._visible_positionals() if not self._headed(positional)]
        if not positionals:
            return []
        table = self._table(self._long_width(self._visible_options(), self._visible_positionals()))
        self._positional_rows(table, positionals)
        return self._section(self._settings.headings["positionals"], table)

    def options(self):
        """lines of the option table (empty when there is none)."""
        options = [option for option in self._sorted(self._visible_options()) if not self._headed(option)]
        if not options:
            return []
        table = self._table(self._long_width(self._visible_options(), self._visible_positionals()))
        self._option_rows(table, options)
        return self._section(self._settings.headings["options"], table)

    def _headed(self, argument, /):
        """whether argument is listed in the section of a group with a heading."""
        group = self._command.group_of(argument)
        while isinstance(group, ArgGroup):
            if group.heading is not Unset:
                return True
            group = self._command.group_of(group)
        return False

    def _headings(self):
        groups = [group for top in self._command.groups for group in (top, *top.walk()) if group.heading is not Unset]
        if self._settings.sort == "declaration":
            groups.sort(key=lambda group: coalesce(group.order, 0))
        return groups

    def groups(self):
        """lines of every group with a heading, one section each."""
        lines = []
        long_width = self._long_width(self._visible_options(), self._visible_positionals())
        for group in self._headings():
            members = [
                argument for argument in group.specs()
                if not argument.hidden and self._nearest_heading(argument) is group
            ]
            if not members:
                continue
            table = self._table(long_width)
            self._option_rows(table, self._sorted([member for member in members if isinstance(member, Option)]))
            self._positional_rows(table, [member for member in members if isinstance(member, Positional)])
            if lines:
                lines.append(Text())
            lines.extend(self._section(group.heading, table))
        return lines

    def _nearest_heading(self, argument, /):
        group = self._command.group_of(argument)
        while isinstance(group, ArgGroup):
            if group.heading is not Unset:
                return group
            group = self._command.group_of(group)
        return None

    def commands(self):
        """lines of the subcommand list: names, aliases and first description line."""
        subcommands = [subcommand for subcommand in self._command.subcommands if not subcommand.hidden]
        if not subcommands:
            return []
        names = [
            Text(", ").join(Text(name, self._style("command-name")) for name in (subcommand.name, *subcommand.aliases))
            for subcommand in subcommands
        ]
        width = max(4, min(max(name.cell_len for name in names) + 4, self._settings.long_column_max, self.width - 15))
        table = TextTable(
            Column(width, 2, "span"),
            Column(self.width - width, 1, "wrap"),
            console=self._console,
        )
        for name, subcommand in zip(names, subcommands):
            descr = subcommand.descr or subcommand.header
            table.add_row(name, self._markup(descr[0]) if descr else "")
        return self._section(self._settings.headings["commands"], table)

    # ── page ─────────────────────────────────────────────────────────────────

    def _paragraph(self, lines, /, style="description"):
        wrapped = []
        for line in lines:
            for piece in self._markup(line, style).wrap(self._console, self.width, overflow="fold"):
                piece.rstrip()
                wrapped.append(piece)
        return wrapped

    def render(self, recursive=False):
        """
        The whole help page as rich Text.

        recursive appends the help of every visible subcommand, depth first.
        """
        command = self._command
        sections = []
        if command.header:
            sections.append(self._paragraph(command.header, "heading"))
        sections.append([self.synopsis()])
        if command.descr:
            sections.append(self._paragraph(command.descr))
        for lines in (self.positionals(), self.options(), self.groups(), self.commands()):
            if lines:
                sections.append(lines)
        if command.footer:
            footer = self._paragraph(command.footer)
            if heading := self._settings.headings["footer"]:
                footer.insert(0, self._markup(heading, "heading"))
            sections.append(footer)

        text = Text("\n\n").join(Text("\n").join(lines) for lines in sections)
        logger.debug("rendered help of %r at width %d", command.qualified_name, self.width)

        if recursive:
            for subcommand in command.subcommands:
                if subcommand.hidden:
                    continue
                helper = Help(subcommand, self._settings, console=self._console)
                text.append("\n\n").append_text(helper.render(recursive=True))
        return text

    def __rich__(self):
        return self.render()

    def __str__(self):
        return self.render().plain

    def print(self, *, recursive=False, console=Unset):
        """print the page without letting the console re-wrap it."""
        coalesce(console, self._console).print(self.render(recursive), soft_wrap=True, highlight=False)


__all__ = (
    "Column",
    "TextTable",
    "Help",
)
