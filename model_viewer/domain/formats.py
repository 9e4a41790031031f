import copy
from typing import Any, Dict, List

import structlog

logger = structlog.get_logger()

OutputFormat = Dict[str, Any]

# SVF2 with both views, the format the viewer streams for drawings and BIM
CAD_BIM_FORMATS: List[OutputFormat] = [{"type": "svf2", "views": ["2d", "3d"]}]

DEFAULT_FORMATS: List[OutputFormat] = [{"type": "obj"}]

# EXTENSION POINT: add output formats for other extensions here.
# See https://aps.autodesk.com/en/docs/model-derivative/v2/reference/http/jobs/job-POST/
OUTPUT_FORMATS_BY_EXTENSION: Dict[str, List[OutputFormat]] = {
    "dwg": CAD_BIM_FORMATS,
    "dxf": CAD_BIM_FORMATS,
    "ifc": CAD_BIM_FORMATS,
}


def get_output_formats(extension: str) -> List[OutputFormat]:
    """
    Selects the Model Derivative output formats for a source file extension.
    Unknown extensions fall back to DEFAULT_FORMATS with a warning.
    """
    key = extension.lower().lstrip(".")
    formats = OUTPUT_FORMATS_BY_EXTENSION.get(key)

    if formats is None:
        logger.warning("output_format_not_configured", extension=extension, fallback=DEFAULT_FORMATS)
        formats = DEFAULT_FORMATS

    # Callers serialize and may mutate the payload
    return copy.deepcopy(formats)
