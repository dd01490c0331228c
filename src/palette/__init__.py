from .colors import (
    Lab,
    ColorObservation,
    parse_color,
    rgb_to_lab,
)
from .reduce import (
    NormalizedColor,
    normalize_colors,
    filter_near_duplicates,
    reduce_palette,
    sort_palette,
    filter_alpha,
)
from .export import (
    to_csv,
    to_json,
    to_hex_list,
    FORMATTERS,
)

__all__ = [
    'Lab','ColorObservation','parse_color','rgb_to_lab',
    'NormalizedColor','normalize_colors','filter_near_duplicates','reduce_palette','sort_palette','filter_alpha',
    'to_csv','to_json','to_hex_list','FORMATTERS'
]
