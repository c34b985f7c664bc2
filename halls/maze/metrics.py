from typing import Dict


def init_metrics() -> Dict[str, int | float | bool]:
    return {
        'regions_generated': 0,
        'generation_attempts': 0,
        'rejected_no_seed': 0,
        'rejected_empty': 0,
        'rejected_edge': 0,
        'rejected_fraction': 0,
        'forced_probes': 0,
        'edge_corridors': 0,
        'component_joins': 0,
        'cells_discarded': 0,
        'regions_destroyed': 0,
        'rehomes': 0,
        'portables_relocated': 0,
        'runtime_ms': 0.0,
    }
