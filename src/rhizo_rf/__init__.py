"""
rhizo-rf: Random forest analysis of plant compartment metabolomes

Classifies leaf, root and rhizosphere samples from metabolite abundance
profiles, with proximity-based imputation, mtry tuning, OOB diagnostics,
variable importance and MDS of sample proximity.
"""

# Enable pandas Copy-on-Write for pandas 3.0 compatibility and better memory efficiency
# See: https://pandas.pydata.org/docs/user_guide/copy_on_write.html
import pandas as pd

pd.options.mode.copy_on_write = True

__version__ = "1.0.0"
__license__ = "MIT"

from rhizo_rf import (  # noqa: E402
    cli,
    config,
    data,
    evaluation,
    models,
    plotting,
    utils,
)

__all__ = [
    "__version__",
    "cli",
    "config",
    "data",
    "evaluation",
    "models",
    "plotting",
    "utils",
]
