__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'argosy'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .arity import *
from .defaults import *
from .descriptors import *
from .arguments import *
from .groups import *
from .commands import *
from .converters import *
from .settings import *
from .results import *
from .parser import *
from .help import *
from .completion import *
from .runner import *
from .faults import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__import__("logging").getLogger(__name__).addHandler(__import__("logging").NullHandler())

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the specification model
__all__ += arity.__all__  # type: ignore[attr-defined]
__all__ += defaults.__all__  # type: ignore[attr-defined]
__all__ += descriptors.__all__  # type: ignore[attr-defined]
__all__ += arguments.__all__  # type: ignore[attr-defined]
__all__ += groups.__all__  # type: ignore[attr-defined]
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser
__all__ += converters.__all__  # type: ignore[attr-defined]
__all__ += settings.__all__  # type: ignore[attr-defined]
__all__ += results.__all__  # type: ignore[attr-defined]
__all__ += parser.__all__  # type: ignore[attr-defined]
# Load the exposed API of the help renderer and the completion generator
__all__ += help.__all__  # type: ignore[attr-defined]
__all__ += completion.__all__  # type: ignore[attr-defined]
__all__ += runner.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
