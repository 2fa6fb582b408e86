from typing import Any


# Type aliases for Python dictionaries
type LambdaEvent = dict[str, Any]
type LambdaContext = Any
type LambdaResponse = dict[str, Any]
type LambdaConfiguration = dict[str, Any]

# Type aliases for serialized short links
type ShortLinkDocument = dict[str, Any]
type ClickRecordDocument = dict[str, Any]
