"""
Output template handling.

An output template is a path with exactly one printf-style integer conversion
that receives the zero-based segment index, e.g. chunks/%05d.mp4. A literal
percent sign is written as %%.

Invalid templates raise ConfigValidationError before any file is touched.
"""

import re
from pathlib import Path

from .errors import ConfigValidationError

# flags, width, optional precision, optional length modifier, conversion
_CONVERSION_RE = re.compile(r"%(?P<spec>[-+ 0#]*\d*(?:\.\d+)?[hlL]?)(?P<conv>[a-zA-Z%])")
_INTEGER_CONVERSIONS = frozenset("diu")


def validate_output_template(template: str) -> str:
    """
    Check that template has exactly one integer conversion.

    Returns the template unchanged. Raises ConfigValidationError otherwise.
    """
    if not template or not template.strip():
        raise ConfigValidationError("output template is empty")
    integer_fields = 0
    for match in _CONVERSION_RE.finditer(template):
        conv = match.group("conv")
        if conv == "%":
            if match.group("spec"):
                raise ConfigValidationError(f"malformed '%%' in output template: {template!r}")
            continue
        if conv not in _INTEGER_CONVERSIONS:
            raise ConfigValidationError(
                f"output template {template!r} has a non-integer conversion '%{match.group('spec')}{conv}'"
            )
        integer_fields += 1
    stray = _CONVERSION_RE.sub("", template)
    if "%" in stray:
        raise ConfigValidationError(f"malformed conversion in output template: {template!r}")
    if integer_fields != 1:
        raise ConfigValidationError(
            f"output template {template!r} must contain exactly one integer placeholder "
            f"(found {integer_fields}), e.g. chunks/%05d.mp4"
        )
    return template


def render_segment_path(template: str, index: int) -> Path:
    """Path of segment index (zero-based) for a validated template."""
    if index < 0:
        raise ValueError(f"segment index must be >= 0, got {index}")
    return Path(template % index)

