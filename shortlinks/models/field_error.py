from dataclasses import dataclass


# fmt: off
@dataclass(frozen=True)
class FieldError:
    field: str    # Name of the offending input field, e.g. 'customShortCode'
    message: str  # Human readable description of the violated rule
# fmt: on
