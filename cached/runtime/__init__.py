"""
Cached: incremental memoization for code that is re-run from scratch.

A computation is run against a storage again and again. Values created inside
cache cells survive between runs as long as each run keeps reaching them;
values a run does not reach are swept away when it finishes.

| Layer                      | Module    |
<--------------------------- + --------- >
| Addresses, storage, errors | core      |
| Cache cells, scope gates   | cells     |
| Sequencing combinators     | builder   |
| Post-run sweep             | collector |
| Run driver                 | driver    |
| Inspection, graphs         | analysis  |
| Debug snapshots            | snapshot  |
"""

from . import core as _core
from . import cells as _cells
from . import builder as _builder
from . import collector as _collector
from . import driver as _driver
from . import analysis as _analysis
from . import snapshot as _snapshot

from .core import *
from .cells import *
from .builder import *
from .collector import *
from .driver import *
from .analysis import *
from .snapshot import *
from .cli import main, parse_args, run_repl

__all__ = []
for module in (_core, _cells, _builder, _collector, _driver, _analysis, _snapshot):
    __all__.extend(getattr(module, '__all__', []))
__all__ += ['main', 'parse_args', 'run_repl']
__all__ = list(dict.fromkeys(__all__))
