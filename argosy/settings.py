"""
Argosy settings: knobs of the parser and of the help renderer.

Both classes are immutable, keyword-only and validated on construction; use
copy.replace() (or .__replace__()) to derive a modified copy:

    strict = copy.replace(ParserSettings(), allow_overwrite=False)
"""
import os

from .utils import *

_SORTS = ("alphabetical", "declaration", "unsorted")
_ELEMENTS = ("options", "groups", "positionals", "commands")


class _Settings:
    __slots__ = ()
    __fields__ = ()

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{name: getattr(self, "_" + name) for name in type(self).__fields__} | overrides)

    def __rich_repr__(self):
        for name in type(self).__fields__:
            yield name, getattr(self, "_" + name)

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__.replace("Settings", "-settings").lower(),
            ", ".join("%s=%r" % field for field in self.__rich_repr__()),
        )

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, "_" + name) == getattr(other, "_" + name) for name in type(self).__fields__)

    __hash__ = None


def _flags(cls, metadata, /, *names):
    for name in names:
        if not isinstance(metadata[name], bool):
            raise TypeError(f"{cls.__name__} '{name}' must be a boolean")


class ParserSettings(_Settings):
    """
    How tokens are matched.

    - separator: joins an option name and its attached value ("--out=x").
    - end_of_options: delimiter after which every token is positional.
    - posix_clustering: accept "-abc" for "-a -b -c".
    - abbreviations: accept unambiguous prefixes of long names ("--verb").
    - allow_overwrite: a scalar option given twice keeps the last value;
      when False the second occurrence raises DuplicateOptionError.
    - collect_unmatched: keep unknown tokens in ParseResult.unmatched
      instead of raising.
    - stop_at_positional: the first positional ends option processing.
    - stop_at_unmatched: the first unmatched token and the rest are unmatched.
    - allow_options_as_values: a known option name may be taken as a value.
    - unknown_options_as_values: an unknown option-looking token may be taken
      as a value when an option still needs one.
    - expand_at_files: replace "@path" with the shell-split contents of path.
    - environ, properties: mappings read by Environment and Property defaults.
    - prompter: callable(argument) returning the answer of an interactive prompt.
    """
    __slots__ = (
        "_separator",
        "_end_of_options",
        "_posix_clustering",
        "_abbreviations",
        "_allow_overwrite",
        "_collect_unmatched",
        "_stop_at_positional",
        "_stop_at_unmatched",
        "_allow_options_as_values",
        "_unknown_options_as_values",
        "_expand_at_files",
        "_environ",
        "_properties",
        "_prompter",
    )
    __fields__ = tuple(name[1:] for name in __slots__)

    separator = mirror("separator")
    end_of_options = mirror("end_of_options")
    posix_clustering = mirror("posix_clustering")
    abbreviations = mirror("abbreviations")
    allow_overwrite = mirror("allow_overwrite")
    collect_unmatched = mirror("collect_unmatched")
    stop_at_positional = mirror("stop_at_positional")
    stop_at_unmatched = mirror("stop_at_unmatched")
    allow_options_as_values = mirror("allow_options_as_values")
    unknown_options_as_values = mirror("unknown_options_as_values")
    expand_at_files = mirror("expand_at_files")
    properties = mirror("properties")

    def __init__(
            self,
            *,
            separator="=",
            end_of_options="--",
            posix_clustering=True,
            abbreviations=False,
            allow_overwrite=True,
            collect_unmatched=False,
            stop_at_positional=False,
            stop_at_unmatched=False,
            allow_options_as_values=False,
            unknown_options_as_values=True,
            expand_at_files=True,
            environ=Unset,
            properties=Unset,
            prompter=Unset,
    ):
        metadata = dict(locals())
        del metadata["self"]

        for name in ("separator", "end_of_options"):
            if not isinstance(metadata[name], str):
                raise TypeError(f"{type(self).__name__} '{name}' must be a string")
            elif not metadata[name] or metadata[name].isspace():
                raise ValueError(f"{type(self).__name__} '{name}' cannot be empty")
        _flags(
            type(self),
            metadata,
            "posix_clustering",
            "abbreviations",
            "allow_overwrite",
            "collect_unmatched",
            "stop_at_positional",
            "stop_at_unmatched",
            "allow_options_as_values",
            "unknown_options_as_values",
            "expand_at_files",
        )
        if prompter is not Unset and not callable(prompter):
            raise TypeError(f"{type(self).__name__} 'prompter' must be callable")

        metadata["properties"] = dict(coalesce(properties, {}))
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def environ(self):
        """environment read by Environment defaults (os.environ unless given)."""
        return coalesce(self._environ, os.environ)

    @property
    def prompter(self):
        if self._prompter is Unset:
            from .prompts import ask
            return ask
        return self._prompter


class UsageSettings(_Settings):
    """
    How help text is laid out.

    - width: target width in display columns; falls back to the
      ARGOSY_USAGE_WIDTH environment variable, then to 80.
    - long_column_max: cap of the long-name column of the option table.
    - sort: "alphabetical", "declaration" or "unsorted" option order.
    - synopsis_order: order of "options", "groups", "positionals", "commands".
    - abbreviate_synopsis: render "[OPTIONS]" instead of every option.
    - cluster_booleans: render optional short booleans as one "[-abc]".
    - required_marker: character shown before required options (blank if Unset).
    - show_defaults: append "Default: x" rows below descriptions.
    - markup: interpret rich markup ("[bold]x[/]") in descriptions.
    - colorful: style names and labels with the palette.
    - headings: section titles keyed by "synopsis", "commands", "positionals",
      "options" and "footer".
    """
    __slots__ = (
        "_width",
        "_long_column_max",
        "_sort",
        "_synopsis_order",
        "_abbreviate_synopsis",
        "_cluster_booleans",
        "_required_marker",
        "_show_defaults",
        "_markup",
        "_colorful",
        "_headings",
    )
    __fields__ = tuple(name[1:] for name in __slots__)

    long_column_max = mirror("long_column_max")
    sort = mirror("sort")
    synopsis_order = mirror("synopsis_order")
    abbreviate_synopsis = mirror("abbreviate_synopsis")
    cluster_booleans = mirror("cluster_booleans")
    required_marker = mirror("required_marker")
    show_defaults = mirror("show_defaults")
    markup = mirror("markup")
    colorful = mirror("colorful")
    headings = mirror("headings")

    def __init__(
            self,
            *,
            width=Unset,
            long_column_max=24,
            sort="alphabetical",
            synopsis_order=_ELEMENTS,
            abbreviate_synopsis=False,
            cluster_booleans=True,
            required_marker=Unset,
            show_defaults=False,
            markup=True,
            colorful=False,
            headings=Unset,
    ):
        metadata = dict(locals())
        del metadata["self"]

        for name in ("width", "long_column_max"):
            if not isinstance(metadata[name], int | Unset) or isinstance(metadata[name], bool):
                raise TypeError(f"{type(self).__name__} '{name}' must be an integer")
        if width is not Unset and width < 20:
            raise ValueError(f"{type(self).__name__} 'width' must be at least 20 columns")
        if long_column_max < 4:
            raise ValueError(f"{type(self).__name__} 'long_column_max' must be at least 4 columns")

        if sort not in _SORTS:
            raise ValueError(f"{type(self).__name__} 'sort' must be one of {', '.join(_SORTS)}")

        metadata["synopsis_order"] = synopsis_order = tuple(synopsis_order)
        if stray := set(synopsis_order) - set(_ELEMENTS):
            raise ValueError(f"{type(self).__name__} 'synopsis_order' has unknown elements: {', '.join(sorted(stray))}")
        if len(set(synopsis_order)) != len(synopsis_order):
            raise ValueError(f"{type(self).__name__} 'synopsis_order' cannot repeat elements")

        _flags(type(self), metadata, "abbreviate_synopsis", "cluster_booleans", "show_defaults", "markup", "colorful")

        if not isinstance(required_marker, str | Unset) or (isinstance(required_marker, str) and len(required_marker) != 1):
            raise TypeError(f"{type(self).__name__} 'required_marker' must be a single character")

        metadata["headings"] = {
            "synopsis": "Usage: ",
            "commands": "Commands:",
            "positionals": "",
            "options": "",
            "footer": "",
        } | dict(coalesce(headings, {}))

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def width(self):
        """effective width: explicit, then $ARGOSY_USAGE_WIDTH, then 80."""
        if self._width is not Unset:
            return self._width
        try:
            return max(20, int(os.environ["ARGOSY_USAGE_WIDTH"]))
        except (KeyError, ValueError):
            return 80


__all__ = (
    "ParserSettings",
    "UsageSettings",
)
