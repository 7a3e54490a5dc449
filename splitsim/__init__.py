from .exceptions import (
    MitigationError,
    NoStrategySelectedError,
    StructuralError,
)
from .loaders import (
    classify,
    index_records,
    load_sped,
    load_sped_pair,
    tokenize,
)
from .mitigation import (
    calculate_mitigation,
    combinations_frame,
    combined_effectiveness,
    optimal_combination,
    simulate_strategies,
)
from .models import (
    DocumentKind,
    FlatRecord,
    NestedRecord,
    as_record,
)
from .processors import (
    extract,
    flatten_simulation_data,
    import_sped_pair,
    integrate,
)
from .utils import (
    parse_decimal,
    process_date,
)
from .validation import validate

__all__ = [
    "MitigationError",
    "NoStrategySelectedError",
    "StructuralError",
    "classify",
    "index_records",
    "load_sped",
    "load_sped_pair",
    "tokenize",
    "calculate_mitigation",
    "combinations_frame",
    "combined_effectiveness",
    "optimal_combination",
    "simulate_strategies",
    "DocumentKind",
    "FlatRecord",
    "NestedRecord",
    "as_record",
    "extract",
    "flatten_simulation_data",
    "import_sped_pair",
    "integrate",
    "parse_decimal",
    "process_date",
    "validate",
]
